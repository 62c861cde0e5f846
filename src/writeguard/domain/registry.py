"""TypeRegistry: explicit, process-wide table of registered types.

The registry has two phases. During initialization, types are added with
:meth:`TypeRegistry.register` (directly or by plugins through the
``register_types`` hook). :meth:`TypeRegistry.seal` ends that phase; after
it the registry is read-only and may be shared by concurrent writes.

There is no lazy discovery: a type that was not registered before sealing
does not exist.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from writeguard.domain.descriptors import TypeBuilder, TypeDescriptor
from writeguard.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)


class TypeRegistry:
    """Name -> :class:`TypeDescriptor` mapping with a sealing step."""

    def __init__(self) -> None:
        self._types: dict[str, TypeDescriptor] = {}
        self._sealed = False

    @classmethod
    def of(cls, *types: TypeDescriptor | TypeBuilder) -> TypeRegistry:
        """Build a sealed registry from *types*."""
        registry = cls()
        for item in types:
            registry.register(item)
        registry.seal()
        return registry

    def register(self, item: TypeDescriptor | TypeBuilder) -> TypeDescriptor:
        """Add a type. A builder is built here, so its errors surface now.

        Raises:
            ConfigurationError: If the registry is sealed, the name is taken,
                or the builder rejects the registration.
        """
        if self._sealed:
            msg = "Type registry is sealed; register types during initialization"
            raise ConfigurationError(msg)
        descriptor = item.build() if isinstance(item, TypeBuilder) else item
        if not isinstance(descriptor, TypeDescriptor):
            msg = f"Cannot register {type(item).__name__}; expected TypeDescriptor or TypeBuilder"
            raise ConfigurationError(msg)
        if descriptor.name in self._types:
            msg = f"Type {descriptor.name!r} is already registered"
            raise ConfigurationError(msg)
        self._types[descriptor.name] = descriptor
        logger.debug(
            "Registered type %s (%d properties, %d rules)",
            descriptor.name,
            len(descriptor.properties),
            descriptor.rule_set.rule_count,
        )
        return descriptor

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get(self, name: str) -> TypeDescriptor:
        """Look up a registered type.

        Raises:
            KeyError: If no type is registered under *name*.
        """
        try:
            return self._types[name]
        except KeyError:
            msg = f"No type registered with name {name!r}"
            raise KeyError(msg) from None

    def names(self) -> list[str]:
        return sorted(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[TypeDescriptor]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)
