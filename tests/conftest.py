"""Shared pytest fixtures for the botexport test suite.

Provides reusable fixtures for:
- The built-in block catalog and a default exporter
- A block factory producing editor-shaped block dicts
- Sample canvases: ping command, moderation command, branching flow
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from botexport.catalog import BlockCatalog, default_catalog
from botexport.exporter import BotExporter


# ---------------------------------------------------------------------------
# Core objects
# ---------------------------------------------------------------------------

@pytest.fixture
def catalog() -> BlockCatalog:
    return default_catalog()


@pytest.fixture
def exporter() -> BotExporter:
    return BotExporter()


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """Temporary directory for exported projects (auto-cleanup)."""
    output = tmp_path / "bot"
    yield output


# ---------------------------------------------------------------------------
# Block factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_block() -> Callable[..., dict[str, Any]]:
    """Factory for blocks in the shape the editor stores them.

    Usage::

        make_block("b1", "action_reply", y=100, content="Hi")
    """

    def _make(block_id: str, block_type: str, y: float = 0, **properties: Any) -> dict[str, Any]:
        return {
            "id": block_id,
            "type": block_type,
            "position": {"x": 0, "y": y},
            "data": {"label": block_type, "properties": properties},
        }

    return _make


@pytest.fixture
def connect() -> Callable[..., dict[str, Any]]:
    """Factory for connections; *handle* becomes ``sourceHandle``."""

    def _connect(source: str, target: str, handle: str | None = None) -> dict[str, Any]:
        edge: dict[str, Any] = {"id": f"{source}-{target}", "source": source, "target": target}
        if handle is not None:
            edge["sourceHandle"] = handle
        return edge

    return _connect


# ---------------------------------------------------------------------------
# Sample canvases
# ---------------------------------------------------------------------------

@pytest.fixture
def ping_canvas(make_block, connect) -> dict[str, Any]:
    """``/ping`` replying ``Pong!``."""
    return {
        "blocks": [
            make_block("t1", "command_slash", 0, name="ping", description="Replies with Pong!"),
            make_block("a1", "action_reply", 100, content="Pong!"),
        ],
        "connections": [connect("t1", "a1")],
    }


@pytest.fixture
def moderation_canvas(make_block, connect) -> dict[str, Any]:
    """``/kick`` with a kick action and no permission check."""
    return {
        "blocks": [
            make_block("t1", "command_slash", 0, name="kick"),
            make_block("m1", "action_kick", 100, userId="123456789012345678"),
        ],
        "connections": [connect("t1", "m1")],
    }


@pytest.fixture
def subcommand_canvas(make_block, connect) -> dict[str, Any]:
    """``/mod ban`` and ``/mod kick``, each subcommand with its own flow."""
    return {
        "blocks": [
            make_block("t1", "command_slash", 0, name="mod", description="Moderation tools"),
            make_block("s_ban", "command_subcommand", 50, name="ban", description="Ban a member"),
            make_block("s_kick", "command_subcommand", 60, name="kick", description="Kick a member"),
            make_block("ban", "action_ban", 100, userId="{user}"),
            make_block("ban_done", "action_reply", 200, content="Banned"),
            make_block("kick", "action_kick", 300, userId="{user}"),
        ],
        "connections": [
            connect("t1", "s_ban"),
            connect("t1", "s_kick"),
            connect("s_ban", "ban"),
            connect("ban", "ban_done"),
            connect("s_kick", "kick"),
        ],
    }


@pytest.fixture
def branching_canvas(make_block, connect) -> dict[str, Any]:
    """``/secret`` gated by an Administrator permission check."""
    return {
        "blocks": [
            make_block("t1", "command_slash", 0, name="secret"),
            make_block("p1", "check_permissions", 100, permission="Administrator"),
            make_block("ok", "action_reply", 200, content="Welcome, admin", ephemeral=True),
            make_block("no", "action_reply", 300, content="Admins only", ephemeral=True),
        ],
        "connections": [
            connect("t1", "p1"),
            connect("p1", "ok", "true"),
            connect("p1", "no", "false"),
        ],
    }
