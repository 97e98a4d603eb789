"""Code emission: one ``LanguageBackend`` per supported target language."""

from __future__ import annotations

from ..catalog import BlockCatalog
from ..errors import UnsupportedLanguage
from .base import EmitContext, LanguageBackend, TriggerKind
from .javascript import JavaScriptBackend
from .python import PythonBackend
from .templates import TemplateRenderer

BACKENDS: dict[str, type[LanguageBackend]] = {
    JavaScriptBackend.language: JavaScriptBackend,
    PythonBackend.language: PythonBackend,
}


def supported_languages() -> list[str]:
    return list(BACKENDS)


def get_backend(language: str, catalog: BlockCatalog) -> LanguageBackend:
    """Return the backend for *language*.

    Raises:
        UnsupportedLanguage: If no backend is registered for *language*.
    """
    backend_cls = BACKENDS.get(language)
    if backend_cls is None:
        raise UnsupportedLanguage(language, supported_languages())
    return backend_cls(catalog)


__all__ = [
    "BACKENDS",
    "EmitContext",
    "JavaScriptBackend",
    "LanguageBackend",
    "PythonBackend",
    "TemplateRenderer",
    "TriggerKind",
    "get_backend",
    "supported_languages",
]
