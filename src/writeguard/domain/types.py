"""Operation kinds and classification enums for the validation engine."""

from __future__ import annotations

from enum import StrEnum


class OperationKind(StrEnum):
    """Persistence writes that are validated."""

    INSERT = "insert"
    UPDATE = "update"


class SemanticType(StrEnum):
    """Declared value type of a property."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    JSON = "json"
    ANY = "any"


class RuleKind(StrEnum):
    """Closed set of rule variants. ``CUSTOM`` wraps a caller-supplied evaluator."""

    LENGTH = "length"
    RANGE = "range"
    PATTERN = "pattern"
    ONE_OF = "one_of"
    PRESENT = "present"
    ABSENT = "absent"
    CUSTOM = "custom"


class GateKind(StrEnum):
    """Which assignment states let a rule evaluate.

    ``VALUE`` admits only an assigned non-null value. ``PRESENCE`` admits
    both an unset property and an assigned value, but never an explicit null.
    """

    VALUE = "value"
    PRESENCE = "presence"


ALL_OPERATIONS: frozenset[OperationKind] = frozenset(OperationKind)
