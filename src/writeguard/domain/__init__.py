"""Domain layer: assignments, rules, engine, hooks, and the type registry.

Pure Python with no persistence dependencies: infrastructure depends on the
domain, never the reverse.
"""

from writeguard.domain.assignments import UNSET, Assignment, AssignmentSet
from writeguard.domain.descriptors import PropertyDescriptor, RuleSet, TypeBuilder, TypeDescriptor
from writeguard.domain.engine import ValidationRun, run_validation
from writeguard.domain.errors import ConfigurationError, HookContractViolation, WriteguardError
from writeguard.domain.hooks import WriteHooks, validate_write
from writeguard.domain.registry import TypeRegistry
from writeguard.domain.rules import (
    Rule,
    absent,
    custom,
    length,
    one_of,
    pattern,
    present,
    value_range,
)
from writeguard.domain.types import GateKind, OperationKind, RuleKind, SemanticType

__all__ = [
    "UNSET",
    "Assignment",
    "AssignmentSet",
    "ConfigurationError",
    "GateKind",
    "HookContractViolation",
    "OperationKind",
    "PropertyDescriptor",
    "Rule",
    "RuleKind",
    "RuleSet",
    "SemanticType",
    "TypeBuilder",
    "TypeDescriptor",
    "TypeRegistry",
    "ValidationRun",
    "WriteHooks",
    "WriteguardError",
    "absent",
    "custom",
    "length",
    "one_of",
    "pattern",
    "present",
    "run_validation",
    "validate_write",
    "value_range",
]
