"""Command-line front end: ``botexport canvas.json [options]``."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.markup import escape

from .config import ExporterConfig
from .emitter import supported_languages
from .errors import BotExportError
from .exporter import BotExporter
from .graph.models import ExportRequest
from .utils import (
    format_size,
    load_json,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    sanitize_name,
)
from .validator import Severity, print_findings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="botexport",
        description="Export a Discord bot block graph to a runnable project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  botexport canvas.json -o ./my-bot\n"
            "  botexport canvas.json --language discord.py --zip\n"
            "  botexport canvas.json --preview --traversal connections\n"
        ),
    )
    parser.add_argument(
        "canvas",
        help="Path to a canvas JSON file (bare canvas or a full export request)",
    )
    parser.add_argument(
        "--language", "-l",
        default=None,
        help=f"Target language: {', '.join(supported_languages())} (default: discord.js)",
    )
    parser.add_argument(
        "--output", "-o",
        default="./bot",
        help="Output directory, or zip path with --zip (default: ./bot)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--zip", action="store_true", help="Write a zip archive instead of a directory")
    mode.add_argument("--preview", action="store_true", help="Only print a preview of each file")
    parser.add_argument("--token", default=None, help="Bot token written into .env")
    parser.add_argument("--client-id", default=None, help="Application id written into .env")
    parser.add_argument("--prefix", default=None, help="Prefix command character written into .env")
    parser.add_argument(
        "--traversal",
        choices=["position", "connections"],
        default=None,
        help="Action ordering: by Y position or by walking connections",
    )
    parser.add_argument("--config", default=None, help="Path to an exporter config JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress")
    return parser


def load_request(path: Path, args: argparse.Namespace) -> ExportRequest:
    """Read *path* and apply the command-line overrides.

    A file with a top-level ``canvas`` key is treated as a full export
    request; anything else is taken as the canvas itself.
    """
    data = load_json(path)
    if "canvas" in data:
        raw: dict[str, Any] = dict(data)
    else:
        raw = {"canvas": data}

    if args.language:
        raw["language"] = args.language
    settings = dict(raw.get("settings") or {})
    if args.token is not None:
        settings["botToken"] = args.token
    if args.client_id is not None:
        settings["clientId"] = args.client_id
    if args.prefix is not None:
        settings["prefix"] = args.prefix
    raw["settings"] = settings
    return ExportRequest.model_validate(raw)


def load_config(args: argparse.Namespace) -> ExporterConfig:
    config = ExporterConfig.load(Path(args.config)) if args.config else ExporterConfig.from_env()
    updates: dict[str, Any] = {}
    if args.traversal:
        updates["traversal"] = args.traversal
    if args.verbose:
        updates["verbose"] = True
    if updates:
        config = ExporterConfig.model_validate({**config.model_dump(), **updates})
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``botexport`` / ``python -m botexport.cli``."""
    args = build_parser().parse_args(argv)

    canvas_path = Path(args.canvas)
    if not canvas_path.exists():
        print_error(f"Error: Canvas file not found: {canvas_path}")
        sys.exit(1)

    try:
        config = load_config(args)
        request = load_request(canvas_path, args)
    except (OSError, json.JSONDecodeError, ValidationError, ValueError) as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    exporter = BotExporter(config=config)
    findings = exporter.analyze(request.canvas)
    print_findings(findings)
    if any(f.severity == Severity.CRITICAL for f in findings):
        print_warning("Critical findings present; the bot will still be exported.")

    try:
        if args.preview:
            preview = exporter.export_preview(request)
            for item in preview.files:
                print_summary_table(
                    {
                        "Size": format_size(item.size),
                        "Issues": escape("; ".join(item.issues)) or "none",
                        "Preview": escape(item.preview),
                    },
                    title=item.path,
                )
            print_success(f"Previewed {len(preview.files)} files for {request.language}")
            return

        if args.zip:
            target = Path(args.output)
            if target.suffix != ".zip":
                target = target / f"{sanitize_name(request.language)}-bot.zip"
            archive = asyncio.run(exporter.export_zip(request))
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(archive)
            print_success(f"Wrote {target} ({format_size(len(archive))})")
            return

        written = asyncio.run(exporter.write(request, Path(args.output)))
        print_summary_table(
            {str(path): format_size(path.stat().st_size) for path in written},
            title="Exported Files",
        )
        print_success(f"Exported {request.language} bot to {args.output}")
    except BotExportError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)
    except OSError as exc:
        print_error(f"Error: could not write output: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
