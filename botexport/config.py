"""botexport configuration.

Typed exporter settings using a Pydantic v2 model so they are validated at
construction time and can be serialised to/from JSON or read from
environment variables.  Only the CLI reads the environment; library callers
construct an ``ExporterConfig`` explicitly or use the defaults.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from .graph.linearizer import TraversalMode

_TRUTHY = {"1", "true", "yes", "on"}


class ExporterConfig(BaseModel):
    """Tuning knobs for ``BotExporter``."""

    traversal: TraversalMode = Field(
        default=TraversalMode.POSITION,
        description="How action order is derived: Y position or connection walking",
    )
    preview_length: int = Field(
        default=200, ge=1, description="Characters of each file shown in preview mode"
    )
    zip_compression: Literal["deflate", "store"] = Field(default="deflate")
    verbose: bool = Field(default=False, description="Log progress to the console")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file; parent directories are created.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "ExporterConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "ExporterConfig":
        """Build an ``ExporterConfig`` from environment variables.

        Recognised variables (all optional):
            BOTEXPORT_TRAVERSAL, BOTEXPORT_PREVIEW_LENGTH,
            BOTEXPORT_ZIP_COMPRESSION, BOTEXPORT_VERBOSE.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("BOTEXPORT_TRAVERSAL"):
            kwargs["traversal"] = os.environ["BOTEXPORT_TRAVERSAL"].strip().lower()
        if os.environ.get("BOTEXPORT_PREVIEW_LENGTH"):
            kwargs["preview_length"] = int(os.environ["BOTEXPORT_PREVIEW_LENGTH"])
        if os.environ.get("BOTEXPORT_ZIP_COMPRESSION"):
            kwargs["zip_compression"] = os.environ["BOTEXPORT_ZIP_COMPRESSION"].strip().lower()
        if os.environ.get("BOTEXPORT_VERBOSE"):
            kwargs["verbose"] = os.environ["BOTEXPORT_VERBOSE"].strip().lower() in _TRUTHY
        return cls(**kwargs)
