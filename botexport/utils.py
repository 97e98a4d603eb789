"""Shared helpers for botexport.

Name/identifier normalisation used by the language backends, JSON input
loading for the CLI, and Rich-based console reporting.
"""

from __future__ import annotations

import json
import keyword
import re
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary name to a lowercase, hyphenated slug.

    Examples::

        sanitize_name("User Info") -> "user-info"
        sanitize_name("  Ping!  ") -> "ping"
    """
    result = re.sub(r"[^a-zA-Z0-9_-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


def command_name(name: str, default: str = "command") -> str:
    """Normalise a slash command name the way Discord expects it.

    Lowercases, turns whitespace runs into ``-`` and drops anything that is
    not a word character or hyphen.  Discord limits names to 32 characters.
    """
    result = re.sub(r"\s+", "-", str(name).strip().lower())
    result = re.sub(r"[^\w-]", "", result)[:32]
    return result or default


def to_identifier(name: str, default: str = "value") -> str:
    """Return a valid identifier (Python and JavaScript) derived from *name*.

    Examples::

        to_identifier("my result") -> "my_result"
        to_identifier("2fa")       -> "_2fa"
        to_identifier("class")     -> "class_"
    """
    result = re.sub(r"\W+", "_", str(name).strip()).strip("_")
    if not result:
        return default
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result) or result in _JS_RESERVED:
        result = f"{result}_"
    return result


def as_bool(value: Any) -> bool:
    """Interpret a property value as a boolean; strings like "false" are false."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def snake_case(name: str) -> str:
    """Convert ``PascalCase``/``camelCase`` to ``snake_case``.

    Examples::

        snake_case("ManageGuild")       -> "manage_guild"
        snake_case("guildMemberAdd")    -> "guild_member_add"
    """
    result = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", str(name).strip())
    result = re.sub(r"[^a-zA-Z0-9]+", "_", result)
    return result.strip("_").lower()


_JS_RESERVED = frozenset({
    "await", "break", "case", "catch", "class", "const", "continue", "debugger",
    "default", "delete", "do", "else", "enum", "export", "extends", "false",
    "finally", "for", "function", "if", "import", "in", "instanceof", "let",
    "new", "null", "return", "super", "switch", "this", "throw", "true", "try",
    "typeof", "var", "void", "while", "with", "yield",
    # names bound by the generated program itself
    "client", "interaction", "bot", "discord",
})


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed dictionary.  A top-level non-object is wrapped as
        ``{"_root": data}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        return {"_root": data}
    return data


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_size(size: int) -> str:
    """Format a character/byte count for display.

    Examples::

        format_size(512)   -> "512 B"
        format_size(2048)  -> "2.0 KB"
    """
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message to stderr."""
    err_console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
