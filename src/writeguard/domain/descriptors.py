"""Type descriptors and the one-time rule-registration builder.

A :class:`TypeDescriptor` is the complete, immutable description of one
persistence-backed type: its properties in declaration order, the rules
attached to each property, and its optional write hooks.

Descriptors are produced only by :class:`TypeBuilder`, which validates
everything eagerly in :meth:`TypeBuilder.build`:

- a rule attached to a property that does not exist is a ConfigurationError;
- a rule attached to a non-persistent property is dropped (not an error);
- a rule whose kind or declared value type does not fit the property's
  declared type is a ConfigurationError;
- ``async`` hooks are rejected as a HookContractViolation.

Usage::

    orders = (
        TypeBuilder("orders", key=("id",))
        .property("id", SemanticType.INTEGER, nullable=False)
        .property("state", SemanticType.STRING)
        .rule("state", one_of(["started", "accepted"]))
        .build()
    )
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from writeguard.domain.errors import ConfigurationError
from writeguard.domain.hooks import PostValidationHook, PreWriteHook, WriteHooks
from writeguard.domain.rules import Rule, check_compatible, ensure_sync_callable
from writeguard.domain.types import SemanticType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PropertyDescriptor:
    """One property of a persistence-backed type."""

    name: str
    declared_type: SemanticType = SemanticType.STRING
    nullable: bool = True
    persistent: bool = True


@dataclass(frozen=True)
class RuleSet:
    """Rules per property, iterated in property declaration order.

    Rules on one property keep their registration order, so repeated runs
    over identical input produce identical error sequences.
    """

    properties: tuple[PropertyDescriptor, ...] = ()
    rules: Mapping[str, tuple[Rule, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def rules_for(self, prop: PropertyDescriptor | str) -> tuple[Rule, ...]:
        name = prop if isinstance(prop, str) else prop.name
        return self.rules.get(name, ())

    @property
    def rule_count(self) -> int:
        return sum(len(r) for r in self.rules.values())

    def __iter__(self) -> Iterator[tuple[PropertyDescriptor, tuple[Rule, ...]]]:
        for prop in self.properties:
            attached = self.rules.get(prop.name)
            if attached:
                yield prop, attached


@dataclass(frozen=True)
class TypeDescriptor:
    """Immutable description of a registered type."""

    name: str
    properties: tuple[PropertyDescriptor, ...]
    rule_set: RuleSet
    hooks: WriteHooks = field(default_factory=WriteHooks)
    table_name: str = ""
    key: tuple[str, ...] = ()

    def get_property(self, name: str) -> PropertyDescriptor:
        """Return the property called *name*.

        Raises:
            KeyError: If the type has no such property.
        """
        for prop in self.properties:
            if prop.name == name:
                return prop
        msg = f"Type {self.name!r} has no property {name!r}"
        raise KeyError(msg)

    def has_property(self, name: str) -> bool:
        return any(p.name == name for p in self.properties)

    @property
    def persistent_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.properties if p.persistent)


class TypeBuilder:
    """Explicit registration builder for one type. Call :meth:`build` once."""

    def __init__(
        self,
        name: str,
        properties: Iterable[PropertyDescriptor] = (),
        *,
        table_name: str | None = None,
        key: Iterable[str] = (),
    ) -> None:
        self._name = name.strip()
        self._properties: list[PropertyDescriptor] = list(properties)
        self._pending: list[tuple[str, Rule]] = []
        self._pre_write: PreWriteHook | None = None
        self._post_validation: PostValidationHook | None = None
        self._table_name = table_name or self._name
        self._key = tuple(key)

    def property(
        self,
        name: str,
        declared_type: SemanticType | str = SemanticType.STRING,
        *,
        nullable: bool = True,
        persistent: bool = True,
    ) -> TypeBuilder:
        self._properties.append(
            PropertyDescriptor(name, SemanticType(declared_type), nullable, persistent)
        )
        return self

    def rule(self, property_name: str, *rules: Rule) -> TypeBuilder:
        """Attach *rules* to *property_name*, in the given order."""
        for r in rules:
            if not isinstance(r, Rule):
                msg = f"Expected a Rule for {property_name!r}, got {type(r).__name__}"
                raise ConfigurationError(msg)
            self._pending.append((property_name, r))
        return self

    def pre_write(self, hook: PreWriteHook) -> TypeBuilder:
        ensure_sync_callable(hook, f"pre-write hook of {self._name!r}")
        self._pre_write = hook
        return self

    def post_validation(self, hook: PostValidationHook) -> TypeBuilder:
        ensure_sync_callable(hook, f"post-validation hook of {self._name!r}")
        self._post_validation = hook
        return self

    def build(self) -> TypeDescriptor:
        """Validate the registration and return the frozen descriptor.

        Raises:
            ConfigurationError: On any invalid registration.
        """
        if not self._name:
            msg = "Type name must not be empty"
            raise ConfigurationError(msg)

        by_name: dict[str, PropertyDescriptor] = {}
        for prop in self._properties:
            if not prop.name:
                msg = f"Type {self._name!r} declares a property with an empty name"
                raise ConfigurationError(msg)
            if prop.name in by_name:
                msg = f"Type {self._name!r} declares property {prop.name!r} twice"
                raise ConfigurationError(msg)
            by_name[prop.name] = prop

        for key_name in self._key:
            key_prop = by_name.get(key_name)
            if key_prop is None or not key_prop.persistent:
                msg = f"Key {key_name!r} of type {self._name!r} is not a persistent property"
                raise ConfigurationError(msg)

        attached: dict[str, list[Rule]] = {}
        for prop_name, rule in self._pending:
            prop = by_name.get(prop_name)
            if prop is None:
                msg = f"Rule {rule.describe()} targets unknown property {self._name}.{prop_name}"
                raise ConfigurationError(msg)
            if not prop.persistent:
                logger.debug(
                    "Ignoring %s on non-persistent property %s.%s",
                    rule.describe(),
                    self._name,
                    prop_name,
                )
                continue
            check_compatible(rule, prop)
            attached.setdefault(prop_name, []).append(rule.bind(prop_name))

        properties = tuple(self._properties)
        rule_set = RuleSet(
            properties=properties,
            rules=MappingProxyType({k: tuple(v) for k, v in attached.items()}),
        )
        return TypeDescriptor(
            name=self._name,
            properties=properties,
            rule_set=rule_set,
            hooks=WriteHooks(
                pre_write=self._pre_write,
                post_validation=self._post_validation,
            ),
            table_name=self._table_name,
            key=self._key,
        )
