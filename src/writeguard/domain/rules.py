"""Rule catalog: built-in rule kinds, message templates, and custom rules.

Rules are a closed tagged variant (:class:`~writeguard.domain.types.RuleKind`).
Six kinds are built in; ``CUSTOM`` boxes a caller-supplied evaluator.

Built-in messages are client-visible and must not change shape:

- Length:  ``\\`name\\` failed length validation: length 12 does not satisfy at most 10.``
- Range:   ``\\`qty\\` failed range validation: 0 does not satisfy at least 1.``
- Pattern: ``\\`code\\` failed format validation: value does not match required pattern.``
- OneOf:   ``The value \\`x\\` is not valid for \\`state\\`. Valid values are: 'a', 'b'.``
- Present: ``\\`email\\` is required.``
- Absent:  ``\\`token\\` cannot be specified.``

Factories validate their parameters immediately and raise
:class:`ConfigurationError`, so a bad rule can never reach a write.
"""

from __future__ import annotations

import inspect
import numbers
import re
from collections.abc import Callable, Iterable, Mapping, Sized
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from writeguard.domain.errors import ConfigurationError, HookContractViolation
from writeguard.domain.types import ALL_OPERATIONS, GateKind, OperationKind, RuleKind, SemanticType

if TYPE_CHECKING:
    from writeguard.domain.assignments import Assignment
    from writeguard.domain.descriptors import PropertyDescriptor

# (operation, prop, value, errors) -> passed
CustomEvaluator = Callable[..., bool]

_NUMERIC = frozenset({SemanticType.INTEGER, SemanticType.FLOAT})
_TEXT = frozenset({SemanticType.STRING})

ACCEPTED_TYPES: dict[RuleKind, frozenset[SemanticType] | None] = {
    RuleKind.LENGTH: _TEXT | {SemanticType.JSON},
    RuleKind.RANGE: _NUMERIC,
    RuleKind.PATTERN: _TEXT,
    RuleKind.ONE_OF: _TEXT,
    RuleKind.PRESENT: None,
    RuleKind.ABSENT: None,
    RuleKind.CUSTOM: None,
}


@dataclass(frozen=True)
class Rule:
    """One correctness rule attached to a property.

    ``target`` is None until the rule is bound by a
    :class:`~writeguard.domain.descriptors.TypeBuilder`.
    """

    kind: RuleKind
    operations: frozenset[OperationKind] = ALL_OPERATIONS
    gate: GateKind = GateKind.VALUE
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    target: str | None = None
    evaluator: CustomEvaluator | None = field(default=None, compare=False)
    value_type: SemanticType | None = None
    name: str | None = None

    def bind(self, property_name: str) -> Rule:
        return replace(self, target=property_name)

    def applies_to(self, operation: OperationKind) -> bool:
        return operation in self.operations

    def admits(self, assignment: Assignment) -> bool:
        """Gate: decide whether *assignment* lets this rule evaluate."""
        if self.gate is GateKind.PRESENCE:
            return not assignment.is_null
        return assignment.has_value

    def evaluate(
        self,
        operation: OperationKind,
        prop: PropertyDescriptor,
        assignment: Assignment,
        errors: list[str],
    ) -> bool:
        """Run the rule, appending failure messages to *errors*.

        Returns True when the rule passed. Callers must check
        :meth:`applies_to` and :meth:`admits` first.
        """
        if self.kind is RuleKind.CUSTOM:
            return self._evaluate_custom(operation, prop, assignment, errors)
        message = _BUILTIN_CHECKS[self.kind](self, assignment, prop)
        if message is None:
            return True
        errors.append(message)
        return False

    def _evaluate_custom(
        self,
        operation: OperationKind,
        prop: PropertyDescriptor,
        assignment: Assignment,
        errors: list[str],
    ) -> bool:
        assert self.evaluator is not None
        before = len(errors)
        result = self.evaluator(operation, prop, assignment.value, errors)
        ensure_synchronous(result, f"custom rule {self.label!r} on {prop.name!r}")
        if not isinstance(result, bool):
            msg = (
                f"Custom rule {self.label!r} on {prop.name!r} must return bool, "
                f"got {type(result).__name__}"
            )
            raise HookContractViolation(msg)
        if not result and len(errors) == before:
            errors.append(f"`{prop.name}` failed {self.label} validation.")
        return result and len(errors) == before

    @property
    def label(self) -> str:
        return self.name or str(self.kind)

    def describe(self) -> str:
        """Short human-readable summary, e.g. ``length(at most 10)``."""
        p = self.params
        match self.kind:
            case RuleKind.LENGTH | RuleKind.RANGE:
                detail = describe_bounds(p.get("min"), p.get("max"), p.get("equal_to"))
            case RuleKind.PATTERN:
                detail = p["regex"].pattern
            case RuleKind.ONE_OF:
                detail = _quote_options(p["options"])
            case RuleKind.CUSTOM:
                return f"custom:{self.label}"
            case _:
                return str(self.kind)
        return f"{self.kind}({detail})"


# ---------------------------------------------------------------------------
# Message helpers
# ---------------------------------------------------------------------------


def describe_bounds(minimum: Any = None, maximum: Any = None, equal_to: Any = None) -> str:
    """Render a bound set as ``between 1 and 5`` / ``at least 1`` / ``exactly 3``."""
    if equal_to is not None:
        return f"exactly {equal_to}"
    if minimum is not None and maximum is not None:
        return f"between {minimum} and {maximum}"
    if minimum is not None:
        return f"at least {minimum}"
    return f"at most {maximum}"


def _within(value: Any, minimum: Any, maximum: Any, equal_to: Any) -> bool:
    # Positive comparisons only, so NaN satisfies no bound.
    try:
        if equal_to is not None:
            return bool(value == equal_to)
        if minimum is not None and not minimum <= value:
            return False
        if maximum is not None and not value <= maximum:
            return False
    except (TypeError, ArithmeticError):
        # decimal.InvalidOperation on Decimal("NaN") ordering
        return False
    return True


def _quote_options(options: Iterable[str]) -> str:
    return ", ".join(f"'{opt}'" for opt in options)


# ---------------------------------------------------------------------------
# Built-in checks: (rule, assignment, property) -> failure message or None
# ---------------------------------------------------------------------------


def _check_length(rule: Rule, assignment: Assignment, prop: PropertyDescriptor) -> str | None:
    value = assignment.value
    size = len(value) if isinstance(value, Sized) else len(str(value))
    p = rule.params
    if _within(size, p.get("min"), p.get("max"), p.get("equal_to")):
        return None
    bounds = describe_bounds(p.get("min"), p.get("max"), p.get("equal_to"))
    return f"`{prop.name}` failed length validation: length {size} does not satisfy {bounds}."


def _check_range(rule: Rule, assignment: Assignment, prop: PropertyDescriptor) -> str | None:
    value = assignment.value
    p = rule.params
    numeric = isinstance(value, numbers.Number) and not isinstance(value, bool)
    if numeric and _within(value, p.get("min"), p.get("max"), p.get("equal_to")):
        return None
    bounds = describe_bounds(p.get("min"), p.get("max"), p.get("equal_to"))
    return f"`{prop.name}` failed range validation: {value} does not satisfy {bounds}."


def _check_pattern(rule: Rule, assignment: Assignment, prop: PropertyDescriptor) -> str | None:
    if rule.params["regex"].fullmatch(str(assignment.value)):
        return None
    return f"`{prop.name}` failed format validation: value does not match required pattern."


def _check_one_of(rule: Rule, assignment: Assignment, prop: PropertyDescriptor) -> str | None:
    options: tuple[str, ...] = rule.params["options"]
    if str(assignment.value) in options:
        return None
    return (
        f"The value `{assignment.value}` is not valid for `{prop.name}`. "
        f"Valid values are: {_quote_options(options)}."
    )


def _check_present(rule: Rule, assignment: Assignment, prop: PropertyDescriptor) -> str | None:
    if assignment.is_unset:
        return f"`{prop.name}` is required."
    return None


def _check_absent(rule: Rule, assignment: Assignment, prop: PropertyDescriptor) -> str | None:
    if assignment.has_value:
        return f"`{prop.name}` cannot be specified."
    return None


_BUILTIN_CHECKS: dict[RuleKind, Callable[[Rule, Assignment, PropertyDescriptor], str | None]] = {
    RuleKind.LENGTH: _check_length,
    RuleKind.RANGE: _check_range,
    RuleKind.PATTERN: _check_pattern,
    RuleKind.ONE_OF: _check_one_of,
    RuleKind.PRESENT: _check_present,
    RuleKind.ABSENT: _check_absent,
}


# ---------------------------------------------------------------------------
# Contract helpers
# ---------------------------------------------------------------------------


def ensure_sync_callable(fn: Callable[..., Any], what: str) -> None:
    """Reject ``async def`` callables at registration time."""
    if not callable(fn):
        msg = f"{what} must be callable, got {type(fn).__name__}"
        raise ConfigurationError(msg)
    if inspect.iscoroutinefunction(fn) or inspect.isasyncgenfunction(fn):
        msg = f"{what} must be synchronous; {getattr(fn, '__qualname__', fn)!r} is async"
        raise HookContractViolation(msg)


def ensure_synchronous(result: Any, what: str) -> None:
    """Reject a returned awaitable without scheduling it."""
    if inspect.isawaitable(result):
        close = getattr(result, "close", None)
        if close is not None:
            close()
        msg = f"{what} returned an awaitable; hooks and custom rules must not suspend"
        raise HookContractViolation(msg)


def check_compatible(rule: Rule, prop: PropertyDescriptor) -> None:
    """Raise ConfigurationError if *rule* cannot apply to *prop*'s declared type."""
    if prop.declared_type is SemanticType.ANY:
        return
    if rule.kind is RuleKind.CUSTOM:
        if rule.value_type is not None and rule.value_type not in (
            prop.declared_type,
            SemanticType.ANY,
        ):
            msg = (
                f"Custom rule {rule.label!r} expects {rule.value_type} values but "
                f"property {prop.name!r} is declared as {prop.declared_type}"
            )
            raise ConfigurationError(msg)
        return
    accepted = ACCEPTED_TYPES[rule.kind]
    if accepted is not None and prop.declared_type not in accepted:
        msg = (
            f"{rule.kind} rule cannot apply to property {prop.name!r} "
            f"of type {prop.declared_type}"
        )
        raise ConfigurationError(msg)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _operations(on_insert: bool, on_update: bool) -> frozenset[OperationKind]:
    ops = set()
    if on_insert:
        ops.add(OperationKind.INSERT)
    if on_update:
        ops.add(OperationKind.UPDATE)
    if not ops:
        msg = "A rule must apply to at least one of insert or update"
        raise ConfigurationError(msg)
    return frozenset(ops)


def _bounds(kind: RuleKind, minimum: Any, maximum: Any, equal_to: Any) -> dict[str, Any]:
    if minimum is None and maximum is None and equal_to is None:
        msg = f"{kind} rule needs at least one of min, max or equal_to"
        raise ConfigurationError(msg)
    if equal_to is not None and (minimum is not None or maximum is not None):
        msg = f"{kind} rule cannot combine equal_to with min or max"
        raise ConfigurationError(msg)
    if minimum is not None and maximum is not None and minimum > maximum:
        msg = f"{kind} rule has min {minimum} greater than max {maximum}"
        raise ConfigurationError(msg)
    if kind is RuleKind.LENGTH:
        for bound in (minimum, maximum, equal_to):
            if bound is not None and (not isinstance(bound, int) or bound < 0):
                msg = f"length bounds must be non-negative integers, got {bound!r}"
                raise ConfigurationError(msg)
    return {"min": minimum, "max": maximum, "equal_to": equal_to}


def length(
    *,
    min: int | None = None,  # noqa: A002
    max: int | None = None,  # noqa: A002
    equal_to: int | None = None,
    on_insert: bool = True,
    on_update: bool = True,
) -> Rule:
    """String length must fall within the given bound(s)."""
    params = _bounds(RuleKind.LENGTH, min, max, equal_to)
    return Rule(
        RuleKind.LENGTH,
        _operations(on_insert, on_update),
        params=MappingProxyType(params),
    )


def value_range(
    *,
    min: float | None = None,  # noqa: A002
    max: float | None = None,  # noqa: A002
    equal_to: float | None = None,
    on_insert: bool = True,
    on_update: bool = True,
) -> Rule:
    """Numeric value must fall within the given bound(s)."""
    params = _bounds(RuleKind.RANGE, min, max, equal_to)
    return Rule(
        RuleKind.RANGE,
        _operations(on_insert, on_update),
        params=MappingProxyType(params),
    )


def pattern(regex: str | re.Pattern[str], *, on_insert: bool = True, on_update: bool = True) -> Rule:
    """Value must fully match *regex*."""
    try:
        compiled = re.compile(regex)
    except re.error as exc:
        msg = f"Invalid pattern {regex!r}: {exc}"
        raise ConfigurationError(msg) from exc
    return Rule(
        RuleKind.PATTERN,
        _operations(on_insert, on_update),
        params=MappingProxyType({"regex": compiled}),
    )


def one_of(options: Iterable[str], *, on_insert: bool = True, on_update: bool = True) -> Rule:
    """Value must be one of *options* (order is kept for the message)."""
    opts = tuple(str(o) for o in options)
    if not opts:
        msg = "one_of rule needs at least one option"
        raise ConfigurationError(msg)
    if len(set(opts)) != len(opts):
        msg = f"one_of options must be unique: {opts!r}"
        raise ConfigurationError(msg)
    return Rule(
        RuleKind.ONE_OF,
        _operations(on_insert, on_update),
        params=MappingProxyType({"options": opts}),
    )


def present(*, on_insert: bool = True, on_update: bool = True) -> Rule:
    """Property must be assigned. An explicit null skips the rule."""
    return Rule(RuleKind.PRESENT, _operations(on_insert, on_update), gate=GateKind.PRESENCE)


def absent(*, on_insert: bool = True, on_update: bool = True) -> Rule:
    """Property must not be assigned a value. An explicit null skips the rule."""
    return Rule(RuleKind.ABSENT, _operations(on_insert, on_update), gate=GateKind.PRESENCE)


def custom(
    evaluate: CustomEvaluator,
    *,
    name: str | None = None,
    value_type: SemanticType | None = None,
    gate: GateKind = GateKind.VALUE,
    on_insert: bool = True,
    on_update: bool = True,
) -> Rule:
    """Wrap a caller-supplied evaluator as a rule.

    *evaluate* is called as ``evaluate(operation, prop, value, errors)`` and
    must return a bool. It must be pure and synchronous. With
    ``gate=GateKind.PRESENCE`` it also runs for unset properties and then
    receives :data:`~writeguard.domain.assignments.UNSET` as *value*.
    """
    label = name or getattr(evaluate, "__name__", None)
    ensure_sync_callable(evaluate, f"custom rule {label!r}")
    return Rule(
        RuleKind.CUSTOM,
        _operations(on_insert, on_update),
        gate=GateKind(gate),
        evaluator=evaluate,
        value_type=SemanticType(value_type) if value_type is not None else None,
        name=label,
    )
