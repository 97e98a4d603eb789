"""Tests for the packaging metadata in pyproject.toml."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

import botexport

pytestmark = pytest.mark.unit

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


@pytest.fixture
def pyproject() -> str:
    return PYPROJECT.read_text(encoding="utf-8")


class TestProjectMetadata:
    def test_design_notes_not_published(self, pyproject):
        assert "DESIGN.md" not in pyproject

    def test_version_matches_package(self, pyproject):
        match = re.search(r'^version = "([^"]+)"', pyproject, re.MULTILINE)
        assert match is not None
        assert match.group(1) == botexport.__version__

    def test_templates_shipped(self, pyproject):
        assert '"templates/*.j2"' in pyproject
