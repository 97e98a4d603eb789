"""botexport: turn a Discord bot block graph into a runnable project.

Quick use::

    from botexport import export

    result = export(canvas, language="discord.py")
    for generated in result.files:
        print(generated.path)
"""

from .catalog import BlockCatalog, BlockDefinition, default_catalog
from .config import ExporterConfig
from .errors import BotExportError, PackagingFailed, UnsupportedLanguage
from .exporter import BotExporter, build_request, export, export_preview, export_zip, validate_file
from .graph import (
    Block,
    Canvas,
    Connection,
    ExportPreview,
    ExportRequest,
    ExportResult,
    ExportSettings,
    FilePreview,
    GeneratedFile,
    TraversalMode,
)
from .validator import Finding, Severity

__version__ = "0.1.0"

__all__ = [
    "Block",
    "BlockCatalog",
    "BlockDefinition",
    "BotExportError",
    "BotExporter",
    "Canvas",
    "Connection",
    "ExportPreview",
    "ExportRequest",
    "ExportResult",
    "ExportSettings",
    "ExporterConfig",
    "FilePreview",
    "Finding",
    "GeneratedFile",
    "PackagingFailed",
    "Severity",
    "TraversalMode",
    "UnsupportedLanguage",
    "build_request",
    "default_catalog",
    "export",
    "export_preview",
    "export_zip",
    "validate_file",
]
