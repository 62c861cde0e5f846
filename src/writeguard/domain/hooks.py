"""Object hook interface: pre-write mutation and cross-field validation.

Fixed order per write (:func:`validate_write`):

1. ``pre_write(operation, assignments)``: may set or overwrite entries.
2. The engine's field-rule pass over the (now frozen) assignments.
3. ``post_validation(operation, assignments, field_valid, errors)``: may
   append messages and returns the final verdict. Without a hook the
   verdict is ``field_valid``.

Hooks are a capability set looked up per type, not inherited behaviour.
They must be synchronous and free of I/O; a hook that returns an awaitable
raises :class:`HookContractViolation` and the write is abandoned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from writeguard.domain.engine import ValidationRun, run_validation
from writeguard.domain.errors import HookContractViolation
from writeguard.domain.rules import ensure_synchronous

if TYPE_CHECKING:
    from writeguard.domain.assignments import AssignmentSet
    from writeguard.domain.descriptors import TypeDescriptor
    from writeguard.domain.types import OperationKind

logger = logging.getLogger(__name__)

PreWriteHook = Callable[["OperationKind", "AssignmentSet"], None]
PostValidationHook = Callable[["OperationKind", "AssignmentSet", bool, list[str]], bool]


@dataclass(frozen=True)
class WriteHooks:
    """Optional hooks of one type."""

    pre_write: PreWriteHook | None = None
    post_validation: PostValidationHook | None = None

    def run_pre_write(self, operation: OperationKind, assignments: AssignmentSet) -> None:
        if self.pre_write is None:
            return
        result = self.pre_write(operation, assignments)
        ensure_synchronous(result, "pre-write hook")

    def run_post_validation(
        self,
        operation: OperationKind,
        assignments: AssignmentSet,
        field_valid: bool,
        errors: list[str],
    ) -> bool:
        if self.post_validation is None:
            return field_valid
        before = len(errors)
        verdict = self.post_validation(operation, assignments, field_valid, errors)
        ensure_synchronous(verdict, "post-validation hook")
        if not isinstance(verdict, bool):
            msg = f"post-validation hook must return bool, got {type(verdict).__name__}"
            raise HookContractViolation(msg)
        if not verdict and field_valid and len(errors) == before:
            logger.warning("post_validation.silent_reject operation=%s", operation)
        return verdict


def validate_write(
    operation: OperationKind,
    descriptor: TypeDescriptor,
    assignments: AssignmentSet,
) -> ValidationRun:
    """Run pre-write hook, field-rule pass and post-validation hook in order.

    *assignments* is frozen after the pre-write stage; the pre-write
    mutations stay visible on it for diagnostics and persistence.

    Raises:
        HookContractViolation: If a hook or custom rule breaks its contract.
    """
    descriptor.hooks.run_pre_write(operation, assignments)
    assignments.freeze()

    field_run = run_validation(operation, descriptor.rule_set, assignments)
    errors = list(field_run.errors)
    valid = descriptor.hooks.run_post_validation(operation, assignments, field_run.valid, errors)

    return ValidationRun(
        valid=valid,
        errors=tuple(errors),
        invalid_properties=field_run.invalid_properties,
    )
