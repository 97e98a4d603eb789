"""Jinja2 rendering of the project-level files of an export.

Program bodies come from the language backends; the files around them
(README, dependency manifest, ``.env``, quick-start instructions) are
rendered from the ``.j2`` templates shipped next to this module.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders the Jinja2 templates of an exported bot project.

    Rendering is deterministic: templates see only the context they are
    given, so identical context produces identical text.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["json_pretty"] = _json_pretty_filter
        self.env.filters["env_value"] = _env_value_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"README.md.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def list_templates(self) -> list[str]:
        """Return a sorted list of all ``.j2`` templates, relative to the root."""
        if not self.template_dir.is_dir():
            return []
        return sorted(str(p.relative_to(self.template_dir)) for p in self.template_dir.rglob("*.j2"))


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _json_pretty_filter(value: Any) -> str:
    """Serialise *value* as two-space indented JSON, keys in insertion order."""
    return json.dumps(value, indent=2, ensure_ascii=False)


def _env_value_filter(value: Any) -> str:
    """Collapse a value onto one line so it cannot break a ``.env`` file."""
    if value is None:
        return ""
    return " ".join(str(value).splitlines()).strip()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
