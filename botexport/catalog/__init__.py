"""Block catalog: the immutable table of known block types.

A ``BlockCatalog`` is built once from a sequence of ``BlockDefinition``
objects and then passed explicitly to the linearizer, the emitter backends
and the validator.  Nothing in the package reads a catalog from module
state, so tests can hand in a catalog of their own.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Protocol

from .definitions import BUILTIN_DEFINITIONS
from .models import (
    ZERO_VALUES,
    BlockDefinition,
    PropertyKind,
    PropertyOption,
    PropertySpec,
)

__all__ = [
    "BlockCatalog",
    "BlockDefinition",
    "PropertyKind",
    "PropertyOption",
    "PropertySpec",
    "default_catalog",
]


class _HasProperties(Protocol):
    type: str
    properties: Mapping[str, Any]


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class BlockCatalog:
    """Read-only lookup table keyed by block type."""

    def __init__(self, definitions: Iterable[BlockDefinition]) -> None:
        table: dict[str, BlockDefinition] = {}
        for definition in definitions:
            table[definition.type] = definition
        self._definitions = table

    def __contains__(self, block_type: object) -> bool:
        return block_type in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[BlockDefinition]:
        return iter(self._definitions.values())

    def lookup(self, block_type: str) -> BlockDefinition | None:
        """Return the definition for *block_type*, or ``None`` when unknown."""
        return self._definitions.get(block_type)

    def types(self) -> list[str]:
        """Return every known block type in registration order."""
        return list(self._definitions)

    def by_category(self, category: str) -> list[BlockDefinition]:
        return [d for d in self._definitions.values() if d.category == category]

    def resolve_property(self, block: _HasProperties, key: str, fallback: Any = None) -> Any:
        """Resolve the effective value of a block property.

        Resolution order:

        1. The value stored on the block, unless missing or blank.
        2. The default declared by the block type's definition.
        3. *fallback*, supplied by the caller.
        4. The zero value of the property kind (``""`` for unknown keys).

        The result is never ``None``.

        Args:
            block: Any object with ``type`` and a ``properties`` mapping.
            key: Property key, e.g. ``"content"``.
            fallback: Value to use when neither the block nor the
                definition provides one.

        Returns:
            The resolved value.
        """
        stored = block.properties.get(key) if block.properties else None
        if not _is_empty(stored):
            return stored

        definition = self.lookup(block.type)
        spec = definition.get_property(key) if definition is not None else None
        if spec is not None and not _is_empty(spec.default):
            return spec.default
        if fallback is not None:
            return fallback
        if spec is not None:
            return spec.zero_value
        return ZERO_VALUES[PropertyKind.TEXT]


_DEFAULT: BlockCatalog | None = None


def default_catalog() -> BlockCatalog:
    """Return the shared catalog of built-in block types."""
    global _DEFAULT
    if _DEFAULT is None:
        _DEFAULT = BlockCatalog(BUILTIN_DEFINITIONS)
    return _DEFAULT
