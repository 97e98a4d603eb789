"""Pydantic v2 models describing block definitions.

A ``BlockDefinition`` is the immutable catalog entry for one block type: its
category, how many inputs/outputs it exposes on the canvas, and the
properties the editor lets the user configure.  Definitions are frozen so a
catalog built at startup can be shared safely between concurrent exports.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class PropertyKind(str, Enum):
    """Input widget / value kind of a block property."""
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    COLOR = "color"


# Zero values used when neither the block nor its definition provides one.
ZERO_VALUES: dict[PropertyKind, Any] = {
    PropertyKind.TEXT: "",
    PropertyKind.TEXTAREA: "",
    PropertyKind.NUMBER: 0,
    PropertyKind.BOOLEAN: False,
    PropertyKind.SELECT: "",
    PropertyKind.COLOR: "",
}


# ---------------------------------------------------------------------------
# Property & definition models
# ---------------------------------------------------------------------------

class PropertyOption(BaseModel):
    """One choice of a ``select`` property."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Text shown in the editor")
    value: str = Field(..., description="Value stored on the block")


class PropertySpec(BaseModel):
    """A configurable property of a block type."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Property key on the block, e.g. 'content'")
    label: str = Field(..., description="Human-readable label")
    kind: PropertyKind = Field(default=PropertyKind.TEXT, description="Value kind")
    required: bool = Field(default=False, description="Whether the editor requires a value")
    default: Optional[Any] = Field(default=None, description="Value used when unset")
    options: tuple[PropertyOption, ...] = Field(
        default=(), description="Allowed values for select properties"
    )
    placeholder: Optional[str] = Field(default=None, description="Editor placeholder")
    helper_text: Optional[str] = Field(default=None, description="Editor helper text")

    @property
    def zero_value(self) -> Any:
        """Return the empty value for this property's kind."""
        return ZERO_VALUES[self.kind]


class BlockDefinition(BaseModel):
    """Immutable catalog entry for one block type."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Block type id, e.g. 'action_reply'")
    label: str = Field(..., description="Display name")
    description: str = Field(default="", description="What the block does")
    category: str = Field(..., description="Category id, e.g. 'triggers' or 'moderation'")
    inputs: int = Field(default=1, ge=0, le=1, description="Number of inbound handles")
    outputs: int = Field(default=1, ge=0, le=2, description="Number of outbound handles")
    properties: tuple[PropertySpec, ...] = Field(default=())

    def get_property(self, key: str) -> PropertySpec | None:
        """Return the property spec for *key*, if the block type declares one."""
        for spec in self.properties:
            if spec.key == key:
                return spec
        return None

    @property
    def property_keys(self) -> list[str]:
        """Return declared property keys in declaration order."""
        return [spec.key for spec in self.properties]

    @property
    def is_trigger(self) -> bool:
        return self.category == "triggers"

    @property
    def is_branching(self) -> bool:
        return self.outputs == 2
