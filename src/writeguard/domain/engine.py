"""Validation engine: the field-rule pass over one AssignmentSet.

For each property in declaration order, and each of its rules in
registration order, a rule evaluates only when the operation is one the
rule applies to and the rule's gate admits the property's assignment.

INVARIANT: No short-circuiting. Every applicable rule on every property is
evaluated, so ``errors`` always reports the complete failure set.

The engine is pure apart from appending to its own error list; the
RuleSet is shared read-only and the AssignmentSet belongs to one write, so
concurrent runs need no locking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from writeguard.domain.assignments import AssignmentSet
    from writeguard.domain.descriptors import RuleSet
    from writeguard.domain.types import OperationKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationRun:
    """Outcome of one validation run."""

    valid: bool
    errors: tuple[str, ...] = ()
    invalid_properties: tuple[str, ...] = ()


def run_validation(
    operation: OperationKind,
    rule_set: RuleSet,
    assignments: AssignmentSet,
) -> ValidationRun:
    """Evaluate every applicable, gated rule in *rule_set*.

    Raises:
        HookContractViolation: If a custom rule breaks the evaluator contract.
    """
    errors: list[str] = []
    invalid: list[str] = []
    evaluated = 0

    for prop, rules in rule_set:
        assignment = assignments.get(prop)
        prop_valid = True
        for rule in rules:
            if not rule.applies_to(operation) or not rule.admits(assignment):
                continue
            evaluated += 1
            if not rule.evaluate(operation, prop, assignment, errors):
                prop_valid = False
        if not prop_valid:
            invalid.append(prop.name)

    logger.debug(
        "validation.run operation=%s evaluated=%d failed=%d",
        operation,
        evaluated,
        len(errors),
    )
    return ValidationRun(
        valid=not errors,
        errors=tuple(errors),
        invalid_properties=tuple(invalid),
    )
