"""Lint pass over generated files.

A superficial scan used in preview mode: empty files, missing top-level
constructs, unbalanced brackets in JavaScript, and a real parse of Python
sources.  ``FileLinter.validate`` returns a list of human-readable issue
strings and never raises for a well-formed ``GeneratedFile``.
"""

from __future__ import annotations

import ast
import json
import re
from pathlib import PurePosixPath

from ..graph.models import GeneratedFile

_PAIRS = {")": "(", "]": "[", "}": "{"}
_REQUIREMENT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._\-\[\],]*\s*(?:(?:==|>=|<=|~=|!=|>|<)\s*[^\s;]+)?(?:\s*;.*)?$")

# Entry files must contain these constructs.
REQUIRED_CONSTRUCTS: dict[str, tuple[str, str]] = {
    "index.js": ("client.login(", "index.js never logs the client in (missing client.login call)"),
    "main.py": ("bot.run(", "main.py never starts the bot (missing bot.run call)"),
}


def check_js_brackets(source: str) -> list[str]:
    """Check bracket balance in JavaScript, skipping strings and comments.

    Template literal placeholders (``${...}``) are skipped together with the
    literal itself.
    """
    stack: list[tuple[str, int]] = []
    issues: list[str] = []
    i, line, length = 0, 1, len(source)
    while i < length:
        ch = source[i]
        if ch == "\n":
            line += 1
        elif source.startswith("//", i):
            end = source.find("\n", i)
            i = length if end == -1 else end
            continue
        elif source.startswith("/*", i):
            end = source.find("*/", i + 2)
            if end == -1:
                issues.append(f"Unterminated block comment starting at line {line}")
                return issues
            line += source.count("\n", i, end)
            i = end + 2
            continue
        elif ch in "'\"`":
            start_line = line
            i += 1
            while i < length and source[i] != ch:
                if source[i] == "\\":
                    i += 1
                elif source[i] == "\n":
                    if ch != "`":
                        break
                    line += 1
                i += 1
            if i >= length or source[i] != ch:
                issues.append(f"Unterminated string starting at line {start_line}")
                return issues
        elif ch in "([{":
            stack.append((ch, line))
        elif ch in ")]}":
            if not stack or stack[-1][0] != _PAIRS[ch]:
                issues.append(f"Unexpected '{ch}' at line {line}")
                return issues
            stack.pop()
        i += 1
    for opener, opened_at in stack:
        issues.append(f"Unclosed '{opener}' opened at line {opened_at}")
    return issues


def check_python_syntax(source: str) -> list[str]:
    try:
        ast.parse(source)
    except SyntaxError as exc:
        return [f"Python syntax error at line {exc.lineno}: {exc.msg}"]
    except ValueError as exc:
        return [f"Python source could not be parsed: {exc}"]
    except (MemoryError, RecursionError):
        return ["Python source is nested too deeply to parse"]
    return []


class FileLinter:
    """Per-path checks for the files of an exported project."""

    def validate(self, file: GeneratedFile) -> list[str]:
        path = PurePosixPath(file.path)
        content = file.content or ""
        if not content.strip():
            return [f"{file.path} is empty"]

        issues: list[str] = []
        required = REQUIRED_CONSTRUCTS.get(path.name)
        if required is not None and required[0] not in content:
            issues.append(required[1])

        if path.suffix == ".js":
            issues.extend(check_js_brackets(content))
        elif path.suffix == ".py":
            issues.extend(check_python_syntax(content))
        elif path.name == "package.json":
            issues.extend(self._package_json(content))
        elif path.name == "requirements.txt":
            issues.extend(self._requirements(content))
        elif path.name == ".env":
            if not re.search(r"^BOT_TOKEN=", content, re.MULTILINE):
                issues.append(".env does not define BOT_TOKEN")
        return issues

    @staticmethod
    def _package_json(content: str) -> list[str]:
        try:
            manifest = json.loads(content)
        except ValueError as exc:
            return [f"package.json is not valid JSON: {exc}"]
        if not isinstance(manifest, dict) or not isinstance(manifest.get("dependencies"), dict):
            return ["package.json has no dependencies object"]
        if not manifest["dependencies"]:
            return ["package.json declares no dependencies"]
        return []

    @staticmethod
    def _requirements(content: str) -> list[str]:
        issues: list[str] = []
        for number, raw in enumerate(content.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if not _REQUIREMENT_RE.match(line):
                issues.append(f"requirements.txt line {number} is not a valid requirement: {line!r}")
        return issues
