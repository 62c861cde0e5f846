"""Assignment Set: the tri-state record of what one write touched.

Every property of a write is in exactly one state:

- **Unset**: the caller never assigned it.
- **ExplicitNull**: the caller assigned ``None``.
- **Value**: the caller assigned a non-null value.

Unset and ExplicitNull both suppress ordinary rules, but only Unset is
visible to presence/absence rules, so the two must never be conflated.

INVARIANT: An AssignmentSet is owned by a single write. It is mutable until
:meth:`AssignmentSet.freeze` is called after the pre-write stage; from then
on it is read-only.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final

from writeguard.domain.errors import HookContractViolation

if TYPE_CHECKING:
    from writeguard.domain.descriptors import PropertyDescriptor


class _UnsetType:
    """Sentinel type for a property that was never assigned."""

    _instance: _UnsetType | None = None

    def __new__(cls) -> _UnsetType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _UnsetType()


class AssignmentState(StrEnum):
    UNSET = "unset"
    NULL = "null"
    VALUE = "value"


@dataclass(frozen=True, slots=True)
class Assignment:
    """State of one property within one write."""

    state: AssignmentState
    value: Any = UNSET

    @classmethod
    def unset(cls) -> Assignment:
        return _UNSET_ASSIGNMENT

    @classmethod
    def null(cls) -> Assignment:
        return _NULL_ASSIGNMENT

    @classmethod
    def of(cls, value: Any) -> Assignment:
        """Wrap a caller-supplied value; ``None`` becomes ExplicitNull."""
        if value is None:
            return _NULL_ASSIGNMENT
        if value is UNSET:
            return _UNSET_ASSIGNMENT
        return cls(AssignmentState.VALUE, value)

    @property
    def is_unset(self) -> bool:
        return self.state is AssignmentState.UNSET

    @property
    def is_null(self) -> bool:
        return self.state is AssignmentState.NULL

    @property
    def has_value(self) -> bool:
        return self.state is AssignmentState.VALUE


_UNSET_ASSIGNMENT = Assignment(AssignmentState.UNSET, UNSET)
_NULL_ASSIGNMENT = Assignment(AssignmentState.NULL, None)


def _key(prop: PropertyDescriptor | str) -> str:
    return prop if isinstance(prop, str) else prop.name


class AssignmentSet:
    """Mapping of property name to :class:`Assignment` for one write.

    Properties may be addressed by name or by :class:`PropertyDescriptor`.
    Reading a property that was never touched yields ``Assignment.unset()``.
    Entries are never removed; ``merge`` only inserts or overwrites.
    """

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._entries: dict[str, Assignment] = {}
        self._frozen = False
        if values:
            for name, value in values.items():
                self._entries[name] = Assignment.of(value)

    def set(self, prop: PropertyDescriptor | str, value: Any) -> None:
        """Assign *value* (``None`` for an explicit null) to *prop*."""
        self._check_mutable()
        self._entries[_key(prop)] = Assignment.of(value)

    def get(self, prop: PropertyDescriptor | str) -> Assignment:
        return self._entries.get(_key(prop), _UNSET_ASSIGNMENT)

    def merge(self, overrides: Mapping[str, Any]) -> None:
        """Overwrite or insert every entry of *overrides*."""
        self._check_mutable()
        for name, value in overrides.items():
            self._entries[name] = Assignment.of(value)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def changes(self) -> dict[str, Any]:
        """Return touched properties as plain values, in assignment order."""
        return {name: a.value for name, a in self._entries.items() if not a.is_unset}

    def copy(self) -> AssignmentSet:
        """Return an unfrozen copy with the same entries."""
        clone = AssignmentSet()
        clone._entries = dict(self._entries)
        return clone

    def _check_mutable(self) -> None:
        if self._frozen:
            msg = "Assignments are read-only once the pre-write stage has finished"
            raise HookContractViolation(msg)

    def __contains__(self, prop: object) -> bool:
        if isinstance(prop, str):
            return prop in self._entries
        name = getattr(prop, "name", None)
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={a.value!r}" for k, a in self._entries.items())
        return f"AssignmentSet({inner})"
