"""Timing spans for the write path.

Nothing is recorded until :func:`enable_telemetry` is called (the CLI does
so for ``--verbose``); until then every helper costs one ContextVar read.
Once enabled, a ``@traced`` service method opens the root span, pipeline
stages open children with :func:`trace_span`, and the finished tree is
attached to ``ServiceResult.meta["telemetry"]``::

    WriteService.insert   {type: orders}
      validate            {errors: 0}
      persist
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from writeguard.services.result import ServiceResult

_enabled: ContextVar[bool] = ContextVar("writeguard_telemetry", default=False)
_active_span: ContextVar[Span | None] = ContextVar("writeguard_active_span", default=None)

log = structlog.get_logger("writeguard.telemetry")


@dataclass
class Span:
    """One timed stage. Children are kept in the order they were opened."""

    name: str
    parent: Span | None = field(default=None, repr=False)
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def end(self) -> None:
        if self.finished is None:
            self.finished = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def child(self, name: str) -> Span:
        span = Span(name=name, parent=self)
        self.children.append(span)
        return span

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            out["annotations"] = dict(self.annotations)
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        return out


@contextmanager
def _activated(span: Span) -> Iterator[Span]:
    token = _active_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _active_span.reset(token)


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Time a stage as a child of the active span.

    Yields None when telemetry is off or no traced method is running, so
    callers guard annotations with ``if span:``.
    """
    parent = get_current_span()
    if parent is None:
        yield None
        return
    with _activated(parent.child(name)) as span:
        yield span


def _log_span(span: Span, *, ok: bool) -> None:
    log.debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        stages=[c.name for c in span.children],
    )


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Open a root span around a service method.

    When the method's first argument after ``self`` is a type name, the
    root span is annotated with it. A returned ServiceResult is copied with
    the span tree merged into its ``meta``.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        root = Span(name=func.__qualname__)
        if len(args) > 1 and isinstance(args[1], str):
            root.annotate("type", args[1])
        try:
            with _activated(root):
                result = func(*args, **kwargs)
        except Exception:
            _log_span(root, ok=False)
            raise

        if not isinstance(result, ServiceResult):
            _log_span(root, ok=True)
            return result
        _log_span(root, ok=result.ok)
        meta = {**(result.meta or {}), "telemetry": root.to_dict()}
        return result.model_copy(update={"meta": meta})  # type: ignore[return-value]

    return wrapper


def enable_telemetry() -> None:
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """The span stages should attach to, or None when telemetry is off."""
    if not _enabled.get():
        return None
    return _active_span.get()
