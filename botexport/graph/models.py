"""Pydantic v2 models for the block graph and for export input/output.

The editor stores a block as ``{id, type, position, data: {label, category,
properties}}``; the flat shape ``{id, type, position, category, properties}``
is accepted as well.  A canvas that is missing its ``blocks`` or
``connections`` arrays, or that contains entries that are not objects, is
normalised to whatever valid part remains (possibly an empty graph).  It is
never an error.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------

class Position(BaseModel):
    """Canvas coordinates of a block. Only ``y`` matters to code generation."""

    x: float = 0.0
    y: float = 0.0


class Block(BaseModel):
    """A node of the canvas graph."""

    id: str = Field(..., description="Unique block id")
    type: str = Field(..., description="Block type, references a catalog definition")
    position: Position = Field(default_factory=Position)
    properties: dict[str, Any] = Field(default_factory=dict)
    category: str = Field(default="", description="Denormalised catalog category")
    label: str = Field(default="")

    @model_validator(mode="before")
    @classmethod
    def _lift_editor_data(cls, value: Any) -> Any:
        if not isinstance(value, dict) or not isinstance(value.get("data"), dict):
            return value
        lifted = {k: v for k, v in value.items() if k != "data"}
        data = value["data"]
        for key in ("properties", "category", "label"):
            if key in data and key not in lifted:
                lifted[key] = data[key]
        return lifted

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("position", mode="before")
    @classmethod
    def _missing_position(cls, value: Any) -> Any:
        return value if isinstance(value, (Position, dict)) else {}

    @field_validator("properties", mode="before")
    @classmethod
    def _none_properties(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("category", "label", mode="before")
    @classmethod
    def _none_text(cls, value: Any) -> Any:
        return "" if value is None else value


class Connection(BaseModel):
    """A directed edge between two blocks, optionally from a named output handle."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="")
    source: str
    target: str
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")

    @field_validator("id", "source", "target", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


def _valid_entries(model: type[BaseModel], raw: Any) -> list[BaseModel]:
    if not isinstance(raw, list):
        return []
    entries: list[BaseModel] = []
    for item in raw:
        if isinstance(item, model):
            entries.append(item)
            continue
        if not isinstance(item, dict):
            continue
        try:
            entries.append(model.model_validate(item))
        except ValidationError:
            continue
    return entries


class Canvas(BaseModel):
    """The blocks and connections of one command/event/module unit."""

    blocks: list[Block] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalise(cls, value: Any) -> Any:
        if isinstance(value, Canvas):
            return value
        if not isinstance(value, dict):
            return {"blocks": [], "connections": []}
        return {
            "blocks": _valid_entries(Block, value.get("blocks")),
            "connections": _valid_entries(Connection, value.get("connections")),
        }

    def get_block(self, block_id: str) -> Block | None:
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    def outgoing(self, block_id: str, handle: str | None = None) -> list[Connection]:
        """Return edges leaving *block_id*, optionally restricted to one handle."""
        return [
            c for c in self.connections
            if c.source == block_id and (handle is None or c.source_handle == handle)
        ]

    def incoming(self, block_id: str) -> list[Connection]:
        return [c for c in self.connections if c.target == block_id]

    def types(self) -> set[str]:
        """Return the set of block types present on the canvas."""
        return {b.type for b in self.blocks}


# ---------------------------------------------------------------------------
# Export input
# ---------------------------------------------------------------------------

class ExportSettings(BaseModel):
    """Bot credentials and prefix, substituted into the generated ``.env``."""

    model_config = ConfigDict(populate_by_name=True)

    bot_token: str = Field(default="", alias="botToken")
    client_id: str = Field(default="", alias="clientId")
    prefix: Optional[str] = Field(default=None)


class ExportRequest(BaseModel):
    """Everything one export needs: the graph, the target language and settings."""

    canvas: Canvas = Field(default_factory=Canvas)
    language: str = Field(default="discord.js", description="'discord.js' or 'discord.py'")
    settings: ExportSettings = Field(default_factory=ExportSettings)

    @field_validator("canvas", mode="before")
    @classmethod
    def _malformed_canvas(cls, value: Any) -> Any:
        if isinstance(value, (Canvas, dict)):
            return value
        return {}

    @field_validator("settings", mode="before")
    @classmethod
    def _missing_settings(cls, value: Any) -> Any:
        return {} if value is None else value


# ---------------------------------------------------------------------------
# Export output
# ---------------------------------------------------------------------------

class GeneratedFile(BaseModel):
    """One file of the exported project."""

    path: str = Field(..., description="Path relative to the project root")
    content: str = Field(default="")

    @property
    def size(self) -> int:
        return len(self.content)


class FilePreview(BaseModel):
    """Preview-mode summary of a generated file."""

    path: str
    size: int = Field(default=0, ge=0)
    preview: str = Field(default="")
    issues: list[str] = Field(default_factory=list)


class ExportResult(BaseModel):
    """Complete output of an export: files, dependency manifest, instructions."""

    files: list[GeneratedFile] = Field(default_factory=list)
    dependencies: dict[str, str] = Field(default_factory=dict)
    instructions: str = Field(default="")

    def get_file(self, path: str) -> GeneratedFile | None:
        for generated in self.files:
            if generated.path == path:
                return generated
        return None

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]


class ExportPreview(BaseModel):
    files: list[FilePreview] = Field(default_factory=list)
