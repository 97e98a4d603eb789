"""Tests for flow linearization (botexport.graph.linearizer).

Covers:
- Trigger / action classification
- Position mode: Y ordering, stable ties, connections ignored
- Connections mode: edge walking, branching arms, error handler bodies,
  cycles, unconnected triggers, arms that rejoin
- Subcommands wired to a slash command
"""

from __future__ import annotations

import pytest

from botexport.graph.linearizer import FlowLinearizer, TraversalMode
from botexport.graph.models import Canvas

pytestmark = pytest.mark.unit


def _ids(steps) -> list[str]:
    return [step.block.id for step in steps]


@pytest.fixture
def position(catalog) -> FlowLinearizer:
    return FlowLinearizer(catalog)


@pytest.fixture
def connections(catalog) -> FlowLinearizer:
    return FlowLinearizer(catalog, TraversalMode.CONNECTIONS)


class TestClassification:
    def test_triggers_and_actions(self, position, ping_canvas):
        canvas = Canvas.model_validate(ping_canvas)
        assert [b.id for b in position.triggers(canvas)] == ["t1"]
        assert [b.id for b in position.actions(canvas)] == ["a1"]

    def test_category_on_block_wins(self, position):
        canvas = Canvas.model_validate({
            "blocks": [{"id": "x", "type": "custom", "category": "triggers"}],
        })
        assert [b.id for b in position.triggers(canvas)] == ["x"]

    def test_unknown_type_is_action(self, position, make_block):
        canvas = Canvas.model_validate({"blocks": [make_block("u", "foo_bar_baz")]})
        assert [b.id for b in position.actions(canvas)] == ["u"]

    def test_mode_from_string(self, catalog):
        assert FlowLinearizer(catalog, "connections").mode is TraversalMode.CONNECTIONS


class TestPositionMode:
    def test_sorted_by_y(self, position, make_block):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("t", "command_slash", 0),
                make_block("c", "console_log", 300),
                make_block("a", "action_reply", 100),
                make_block("b", "wait", 200),
            ],
        })
        assert _ids(position.linearize(canvas, canvas.blocks[0])) == ["a", "b", "c"]

    def test_ties_keep_input_order(self, position, make_block):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("second", "wait", 50),
                make_block("first", "wait", 10),
                make_block("third", "wait", 50),
            ],
        })
        assert _ids(position.linearize(canvas)) == ["first", "second", "third"]

    def test_ignores_connections(self, position, make_block, connect):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("t", "command_slash", 0),
                make_block("low", "wait", 500),
                make_block("high", "wait", 100),
            ],
            "connections": [connect("t", "low"), connect("low", "high")],
        })
        assert _ids(position.linearize(canvas, canvas.blocks[0])) == ["high", "low"]

    def test_branching_has_no_arms(self, position, branching_canvas):
        canvas = Canvas.model_validate(branching_canvas)
        steps = position.linearize(canvas, canvas.blocks[0])
        assert _ids(steps) == ["p1", "ok", "no"]
        assert steps[0].branches == {}

    def test_same_list_for_every_trigger(self, position, make_block):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("t1", "command_slash", 0),
                make_block("t2", "event_listener", 0),
                make_block("a", "console_log", 10),
            ],
        })
        first = _ids(position.linearize(canvas, canvas.blocks[0]))
        second = _ids(position.linearize(canvas, canvas.blocks[1]))
        assert first == second == ["a"]


class TestConnectionsMode:
    def test_follows_edges(self, connections, make_block, connect):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("t", "command_slash", 0),
                make_block("a", "action_reply", 300),
                make_block("b", "console_log", 100),
                make_block("stray", "wait", 50),
            ],
            "connections": [connect("t", "a"), connect("a", "b")],
        })
        assert _ids(connections.linearize(canvas, canvas.blocks[0])) == ["a", "b"]

    def test_unconnected_trigger_is_empty(self, connections, make_block):
        canvas = Canvas.model_validate({
            "blocks": [make_block("t", "command_slash"), make_block("a", "wait", 10)],
        })
        assert connections.linearize(canvas, canvas.blocks[0]) == []

    def test_without_trigger_falls_back_to_position(self, connections, ping_canvas):
        canvas = Canvas.model_validate(ping_canvas)
        assert _ids(connections.linearize(canvas)) == ["a1"]

    def test_branch_arms(self, connections, branching_canvas):
        canvas = Canvas.model_validate(branching_canvas)
        steps = connections.linearize(canvas, canvas.blocks[0])
        assert _ids(steps) == ["p1"]
        assert _ids(steps[0].branch("true")) == ["ok"]
        assert _ids(steps[0].branch("false")) == ["no"]

    def test_unlabelled_edge_is_true_arm(self, connections, make_block, connect):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("t", "command_slash"),
                make_block("if", "if_condition", 10),
                make_block("yes", "wait", 20),
            ],
            "connections": [connect("t", "if"), connect("if", "yes")],
        })
        step = connections.linearize(canvas, canvas.blocks[0])[0]
        assert _ids(step.branch("true")) == ["yes"]
        assert step.branch("false") == []

    def test_error_handler_body(self, connections, make_block, connect):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("t", "command_slash"),
                make_block("err", "error_handler", 10),
                make_block("risky", "http_request", 20, url="https://example.com"),
            ],
            "connections": [connect("t", "err"), connect("err", "risky")],
        })
        step = connections.linearize(canvas, canvas.blocks[0])[0]
        assert step.type == "error_handler"
        assert _ids(step.branch("body")) == ["risky"]

    def test_cycle_terminates(self, connections, make_block, connect):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("t", "command_slash"),
                make_block("a", "wait", 10),
                make_block("b", "wait", 20),
            ],
            "connections": [connect("t", "a"), connect("a", "b"), connect("b", "a")],
        })
        assert _ids(connections.linearize(canvas, canvas.blocks[0])) == ["a", "b"]

    def test_self_loop_terminates(self, connections, make_block, connect):
        canvas = Canvas.model_validate({
            "blocks": [make_block("t", "command_slash"), make_block("a", "wait", 10)],
            "connections": [connect("t", "a"), connect("a", "a")],
        })
        assert _ids(connections.linearize(canvas, canvas.blocks[0])) == ["a"]

    def test_stops_at_another_trigger(self, connections, make_block, connect):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("t1", "command_slash"),
                make_block("a", "wait", 10),
                make_block("t2", "on_button_click", 20),
                make_block("b", "wait", 30),
            ],
            "connections": [connect("t1", "a"), connect("a", "t2"), connect("t2", "b")],
        })
        assert _ids(connections.linearize(canvas, canvas.blocks[0])) == ["a"]

    def test_dangling_edge(self, connections, make_block, connect):
        canvas = Canvas.model_validate({
            "blocks": [make_block("t", "command_slash")],
            "connections": [connect("t", "ghost")],
        })
        assert connections.linearize(canvas, canvas.blocks[0]) == []

    def test_rejoining_arms_both_emit_shared_tail(self, connections, make_block, connect):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("t", "command_slash"),
                make_block("if", "if_condition", 10, condition="a === 1"),
                make_block("a", "console_log", 20, message="A"),
                make_block("b", "console_log", 30, message="B"),
                make_block("join", "console_log", 40, message="JOIN"),
            ],
            "connections": [
                connect("t", "if"),
                connect("if", "a", "true"),
                connect("if", "b", "false"),
                connect("a", "join"),
                connect("b", "join"),
            ],
        })
        step = connections.linearize(canvas, canvas.blocks[0])[0]
        assert _ids(step.branch("true")) == ["a", "join"]
        assert _ids(step.branch("false")) == ["b", "join"]

    def test_cycle_inside_arm_terminates(self, connections, make_block, connect):
        canvas = Canvas.model_validate({
            "blocks": [
                make_block("t", "command_slash"),
                make_block("if", "if_condition", 10),
                make_block("a", "wait", 20),
                make_block("b", "wait", 30),
            ],
            "connections": [
                connect("t", "if"),
                connect("if", "a", "true"),
                connect("a", "b"),
                connect("b", "if"),
            ],
        })
        step = connections.linearize(canvas, canvas.blocks[0])[0]
        assert _ids(step.branch("true")) == ["a", "b"]


class TestSubcommands:
    def test_subcommands_in_connection_order(self, position, subcommand_canvas):
        canvas = Canvas.model_validate(subcommand_canvas)
        command = canvas.get_block("t1")
        assert [b.id for b in position.subcommands(canvas, command)] == ["s_ban", "s_kick"]

    def test_subcommands_are_not_actions(self, position, subcommand_canvas):
        canvas = Canvas.model_validate(subcommand_canvas)
        assert "s_ban" not in [b.id for b in position.actions(canvas)]
        assert "s_ban" in [b.id for b in position.triggers(canvas)]

    def test_subcommand_without_catalog_category_is_trigger(self, position):
        canvas = Canvas.model_validate({
            "blocks": [{"id": "s", "type": "command_subcommand", "category": "commands"}],
        })
        assert position.is_trigger(canvas.blocks[0])

    def test_each_subcommand_walks_its_own_flow(self, connections, subcommand_canvas):
        canvas = Canvas.model_validate(subcommand_canvas)
        assert connections.linearize(canvas, canvas.get_block("t1")) == []
        assert _ids(connections.linearize(canvas, canvas.get_block("s_ban"))) == ["ban", "ban_done"]
        assert _ids(connections.linearize(canvas, canvas.get_block("s_kick"))) == ["kick"]
