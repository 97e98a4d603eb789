"""Tests for the block catalog (botexport.catalog).

Covers:
- Built-in definitions: triggers, branching blocks, uniqueness
- BlockCatalog lookup, membership, category filtering
- Property resolution order: stored value, default, fallback, zero value
- Definitions are frozen
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from botexport.catalog import BlockCatalog, PropertyKind, default_catalog
from botexport.catalog.definitions import BUILTIN_DEFINITIONS
from botexport.catalog.models import BlockDefinition, PropertySpec
from botexport.graph.models import Block

pytestmark = pytest.mark.unit


def _block(block_type: str, **properties) -> Block:
    return Block(id="b1", type=block_type, properties=properties)


# ---------------------------------------------------------------------------
# Built-in definitions
# ---------------------------------------------------------------------------


class TestBuiltinDefinitions:
    def test_types_are_unique(self):
        types = [d.type for d in BUILTIN_DEFINITIONS]
        assert len(types) == len(set(types))

    def test_trigger_types(self, catalog):
        triggers = {d.type for d in catalog if d.is_trigger}
        assert triggers == {
            "command_slash",
            "command_subcommand",
            "event_listener",
            "on_button_click",
            "on_select_menu",
            "on_modal_submit",
        }

    def test_trigger_inputs(self, catalog):
        for definition in catalog.by_category("triggers"):
            if definition.type == "command_subcommand":
                assert definition.inputs == 1
            else:
                assert definition.inputs == 0

    def test_two_way_blocks(self, catalog):
        branching = {d.type for d in catalog if d.is_branching}
        assert {"if_condition", "check_permissions", "check_bot_permissions"} <= branching

    def test_moderation_category(self, catalog):
        types = {d.type for d in catalog.by_category("moderation")}
        assert {"action_kick", "action_ban", "member_timeout"} <= types

    def test_select_properties_have_options(self, catalog):
        for definition in catalog:
            for spec in definition.properties:
                if spec.kind is PropertyKind.SELECT:
                    assert spec.options, f"{definition.type}.{spec.key} has no options"


# ---------------------------------------------------------------------------
# BlockCatalog
# ---------------------------------------------------------------------------


class TestBlockCatalog:
    def test_lookup_known(self, catalog):
        definition = catalog.lookup("action_reply")
        assert definition is not None
        assert definition.label == "Reply"
        assert "content" in definition.property_keys

    def test_lookup_unknown(self, catalog):
        assert catalog.lookup("foo_bar_baz") is None

    def test_contains(self, catalog):
        assert "command_slash" in catalog
        assert "foo_bar_baz" not in catalog

    def test_len_matches_definitions(self, catalog):
        assert len(catalog) == len(BUILTIN_DEFINITIONS)
        assert catalog.types()[0] == "command_slash"

    def test_default_catalog_is_shared(self):
        assert default_catalog() is default_catalog()

    def test_custom_catalog(self):
        custom = BlockCatalog([
            BlockDefinition(type="custom_block", label="Custom", category="data"),
        ])
        assert custom.types() == ["custom_block"]
        assert "action_reply" not in custom

    def test_later_definition_wins(self):
        custom = BlockCatalog([
            BlockDefinition(type="x", label="First", category="data"),
            BlockDefinition(type="x", label="Second", category="data"),
        ])
        assert len(custom) == 1
        assert custom.lookup("x").label == "Second"


# ---------------------------------------------------------------------------
# Property resolution
# ---------------------------------------------------------------------------


class TestResolveProperty:
    def test_stored_value_wins(self, catalog):
        assert catalog.resolve_property(_block("action_ban", reason="Spam"), "reason") == "Spam"

    def test_definition_default(self, catalog):
        assert catalog.resolve_property(_block("action_ban"), "reason") == "No reason provided"

    def test_blank_string_uses_default(self, catalog):
        assert catalog.resolve_property(_block("action_ban", reason="   "), "reason") == "No reason provided"

    def test_fallback_when_no_default(self, catalog):
        assert catalog.resolve_property(_block("action_reply"), "content", "Hello") == "Hello"

    def test_zero_value_by_kind(self, catalog):
        assert catalog.resolve_property(_block("action_reply"), "content") == ""
        assert catalog.resolve_property(_block("action_reply"), "ephemeral") is False

    def test_unknown_key_resolves_to_empty_string(self, catalog):
        assert catalog.resolve_property(_block("action_reply"), "nope") == ""

    def test_unknown_type_uses_fallback(self, catalog):
        assert catalog.resolve_property(_block("foo_bar_baz"), "content", "x") == "x"

    def test_false_is_not_blank(self, catalog):
        block = _block("error_handler", logToConsole=False)
        assert catalog.resolve_property(block, "logToConsole") is False

    def test_numeric_default(self, catalog):
        assert catalog.resolve_property(_block("member_timeout"), "minutes") == 10


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestModels:
    def test_definition_is_frozen(self, catalog):
        definition = catalog.lookup("action_reply")
        with pytest.raises(ValidationError):
            definition.label = "Changed"

    def test_outputs_bounded(self):
        with pytest.raises(ValidationError):
            BlockDefinition(type="x", label="X", category="logic", outputs=3)

    def test_zero_value(self):
        assert PropertySpec(key="n", label="N", kind=PropertyKind.NUMBER).zero_value == 0

    def test_get_property_missing(self, catalog):
        assert catalog.lookup("delete_message").get_property("content") is None
