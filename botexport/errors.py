"""Exceptions raised by the export pipeline.

Only two conditions are ever fatal: asking for a target language that has
no backend, and failing to serialise an already generated file set into an
archive.  Everything else (malformed graphs, unknown block types, lint
findings) degrades into output or advisory data instead of raising.
"""

from __future__ import annotations


class BotExportError(Exception):
    """Base class for all botexport errors."""


class UnsupportedLanguage(BotExportError):
    """Raised when an export targets a language with no registered backend."""

    def __init__(self, language: str, supported: list[str] | None = None) -> None:
        self.language = language
        self.supported = supported or []
        message = f"Unsupported target language: {language!r}"
        if self.supported:
            message += f" (expected one of: {', '.join(self.supported)})"
        super().__init__(message)


class PackagingFailed(BotExportError):
    """Raised when the generated files could not be written into a zip archive."""
