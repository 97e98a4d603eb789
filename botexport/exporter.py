"""Export orchestrator.

``BotExporter`` drives linearization and emission over every trigger of a
canvas, assembles the fixed per-language file set (entry file, dependency
manifest, README, ``.env``), attaches the dependency manifest and quick-start
instructions, and offers preview, zip and on-disk variants of the same
export.

Typical usage::

    exporter = BotExporter()
    result = exporter.export(ExportRequest(canvas=canvas, language="discord.py"))
    archive = await exporter.export_zip(request)
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from .catalog import BlockCatalog, default_catalog
from .config import ExporterConfig
from .emitter import LanguageBackend, TemplateRenderer, get_backend
from .emitter.base import TRIGGER_KINDS, TriggerKind
from .emitter.templates import write_file
from .graph.linearizer import FlowLinearizer
from .graph.models import (
    Canvas,
    ExportPreview,
    ExportRequest,
    ExportResult,
    ExportSettings,
    FilePreview,
    GeneratedFile,
)
from .packager import package_async
from .utils import console
from .validator import FileLinter, Finding, GraphHeuristics

README_PATH = "README.md"
ENV_PATH = ".env"
PROJECT_NAME = "discord-bot"


class BotExporter:
    """Turns export requests into complete bot projects.

    The exporter holds no per-request state; one instance can serve any
    number of (concurrent) exports.

    Args:
        catalog: Block catalog; defaults to the built-in catalog.
        config: Exporter settings; defaults to ``ExporterConfig()``.
        renderer: Template renderer for the project-level files.
    """

    def __init__(
        self,
        catalog: BlockCatalog | None = None,
        config: ExporterConfig | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.catalog = catalog or default_catalog()
        self.config = config or ExporterConfig()
        self.renderer = renderer or TemplateRenderer()
        self.linearizer = FlowLinearizer(self.catalog, self.config.traversal)
        self.heuristics = GraphHeuristics(self.catalog)
        self.linter = FileLinter()

    # -- Public API --------------------------------------------------------

    def export(self, request: ExportRequest | dict[str, Any]) -> ExportResult:
        """Generate the complete file set for *request*.

        Raises:
            UnsupportedLanguage: If ``request.language`` has no backend.  Raised
                before anything is generated.
        """
        request = _as_request(request)
        backend = get_backend(request.language, self.catalog)
        canvas = request.canvas
        self._log(
            f"Exporting {len(canvas.blocks)} blocks / {len(canvas.connections)} connections "
            f"as {backend.language} ({self.config.traversal.value} order)"
        )

        program = backend.emit_program(canvas, self.linearizer)
        dependencies = backend.dependencies(program, canvas.types())
        context = self._template_context(backend, canvas, request.settings, dependencies)

        files = [
            GeneratedFile(path=backend.entry_point, content=program),
            GeneratedFile(path=backend.manifest_path, content=self._render_manifest(backend, context)),
            GeneratedFile(path=README_PATH, content=self.renderer.render("README.md.j2", context)),
            GeneratedFile(path=ENV_PATH, content=self.renderer.render("env.j2", context)),
        ]
        self._log(f"Generated {len(files)} files, {len(dependencies)} dependencies")
        return ExportResult(
            files=files,
            dependencies=dependencies,
            instructions=self.renderer.render("instructions.md.j2", context),
        )

    def export_preview(self, request: ExportRequest | dict[str, Any]) -> ExportPreview:
        """Export, then summarise each file with its lint issues."""
        result = self.export(request)
        limit = self.config.preview_length
        return ExportPreview(
            files=[
                FilePreview(
                    path=f.path,
                    size=f.size,
                    preview=f.content[:limit],
                    issues=self.validate_file(f),
                )
                for f in result.files
            ]
        )

    async def export_zip(self, request: ExportRequest | dict[str, Any]) -> bytes:
        """Export and package the file set as zip bytes.

        Raises:
            UnsupportedLanguage: For an unknown target language.
            PackagingFailed: If the archive could not be written.
        """
        result = self.export(request)
        archive = await package_async(result.files, self.config.zip_compression)
        self._log(f"Packaged {len(result.files)} files into {len(archive)} bytes")
        return archive

    async def write(self, request: ExportRequest | dict[str, Any], output_dir: str | Path) -> list[Path]:
        """Export and write the file set under *output_dir*.

        Returns:
            Paths of the written files, in file-set order.
        """
        result = self.export(request)
        root = Path(output_dir)
        written: list[Path] = []
        for generated in result.files:
            target = root / generated.path
            await asyncio.to_thread(write_file, target, generated.content)
            written.append(target)
        self._log(f"Wrote {len(written)} files to {root}")
        return written

    def validate_file(self, file: GeneratedFile | dict[str, Any]) -> list[str]:
        """Lint one generated file; returns a (possibly empty) list of issues."""
        if not isinstance(file, GeneratedFile):
            file = GeneratedFile.model_validate(file)
        return self.linter.validate(file)

    def analyze(self, canvas: Canvas | dict[str, Any]) -> list[Finding]:
        """Run the graph heuristics over *canvas*."""
        if not isinstance(canvas, Canvas):
            canvas = Canvas.model_validate(canvas)
        return self.heuristics.analyze(canvas)

    # -- Internal helpers --------------------------------------------------

    def _template_context(
        self,
        backend: LanguageBackend,
        canvas: Canvas,
        settings: ExportSettings,
        dependencies: dict[str, str],
    ) -> dict[str, Any]:
        counts = {kind.value: 0 for kind in TriggerKind}
        for trigger in self.linearizer.triggers(canvas):
            kind = TRIGGER_KINDS.get(trigger.type)
            if kind is not None:
                counts[kind.value] += 1
        return {
            "project_name": PROJECT_NAME,
            "language": backend.language,
            "entry_point": backend.entry_point,
            "manifest_path": backend.manifest_path,
            "install_command": backend.install_command,
            "run_command": backend.run_command,
            "docs_url": backend.docs_url,
            "dependencies": dependencies,
            "settings": settings,
            "counts": counts,
        }

    def _render_manifest(self, backend: LanguageBackend, context: dict[str, Any]) -> str:
        if backend.manifest_path == "package.json":
            manifest = {
                "name": PROJECT_NAME,
                "version": "1.0.0",
                "main": backend.entry_point,
                "type": "commonjs",
                "scripts": {
                    "start": f"node {backend.entry_point}",
                    "dev": f"node {backend.entry_point}",
                },
                "dependencies": context["dependencies"],
            }
            return self.renderer.render("package.json.j2", {**context, "manifest": manifest})
        return self.renderer.render("requirements.txt.j2", context)

    def _log(self, message: str) -> None:
        if self.config.verbose:
            console.print(f"  [dim]{message}[/dim]")


# ---------------------------------------------------------------------------
# Module-level convenience API
# ---------------------------------------------------------------------------


def _as_request(request: ExportRequest | dict[str, Any]) -> ExportRequest:
    if isinstance(request, ExportRequest):
        return request
    return ExportRequest.model_validate(request if isinstance(request, dict) else {})


def build_request(
    canvas: Canvas | dict[str, Any] | None,
    language: str = "discord.js",
    settings: ExportSettings | dict[str, Any] | None = None,
) -> ExportRequest:
    """Assemble an ``ExportRequest``; a malformed canvas becomes an empty one."""
    return ExportRequest.model_validate(
        {"canvas": canvas, "language": language, "settings": settings or {}}
    )


def export(
    canvas: Canvas | dict[str, Any] | None,
    language: str = "discord.js",
    settings: ExportSettings | dict[str, Any] | None = None,
) -> ExportResult:
    return BotExporter().export(build_request(canvas, language, settings))


def export_preview(
    canvas: Canvas | dict[str, Any] | None,
    language: str = "discord.js",
    settings: ExportSettings | dict[str, Any] | None = None,
) -> ExportPreview:
    return BotExporter().export_preview(build_request(canvas, language, settings))


async def export_zip(
    canvas: Canvas | dict[str, Any] | None,
    language: str = "discord.js",
    settings: ExportSettings | dict[str, Any] | None = None,
) -> bytes:
    return await BotExporter().export_zip(build_request(canvas, language, settings))


def validate_file(file: GeneratedFile | dict[str, Any]) -> list[str]:
    return BotExporter().validate_file(file)
