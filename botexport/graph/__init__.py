"""Block graph model and flow linearization."""

from .linearizer import BRANCHING_TYPES, FlowLinearizer, FlowStep, TraversalMode
from .models import (
    Block,
    Canvas,
    Connection,
    ExportPreview,
    ExportRequest,
    ExportResult,
    ExportSettings,
    FilePreview,
    GeneratedFile,
    Position,
)

__all__ = [
    "BRANCHING_TYPES",
    "Block",
    "Canvas",
    "Connection",
    "ExportPreview",
    "ExportRequest",
    "ExportResult",
    "ExportSettings",
    "FilePreview",
    "FlowLinearizer",
    "FlowStep",
    "GeneratedFile",
    "Position",
    "TraversalMode",
]
