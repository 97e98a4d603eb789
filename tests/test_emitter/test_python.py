"""Tests for the discord.py backend (botexport.emitter.python).

Covers:
- Program layout: imports, bot setup, tree sync, bot.run
- Slash commands, component listeners, event listeners
- Generated source always parses, including escaped strings and comment-only bodies
- Condition translation and event name mapping
- Per-block action output
- Requirements manifest
- Command groups for subcommands and handler error guards
"""

from __future__ import annotations

import ast

import pytest

from botexport.emitter import PythonBackend
from botexport.emitter.base import EmitContext
from botexport.emitter.python import _condition
from botexport.graph.linearizer import FlowLinearizer, TraversalMode
from botexport.graph.models import Block, Canvas

pytestmark = pytest.mark.unit


@pytest.fixture
def backend(catalog) -> PythonBackend:
    return PythonBackend(catalog)


@pytest.fixture
def emit(backend, catalog):
    def _emit(raw: dict, mode: TraversalMode = TraversalMode.POSITION) -> str:
        return backend.emit_program(Canvas.model_validate(raw), FlowLinearizer(catalog, mode))

    return _emit


@pytest.fixture
def action(backend, catalog):
    def _action(block_type: str, **properties) -> str:
        block = Block(id="b", type=block_type, properties=properties)
        return backend.emit_action(block, EmitContext(catalog))

    return _action


# ---------------------------------------------------------------------------
# Program layout
# ---------------------------------------------------------------------------


class TestProgram:
    def test_ping_pong(self, emit, ping_canvas):
        program = emit(ping_canvas)
        assert '@bot.tree.command(name="ping", description="Replies with Pong!")' in program
        assert "async def ping_command(interaction: discord.Interaction):" in program
        assert '    await interaction.response.send_message("Pong!", ephemeral=False)' in program
        ast.parse(program)

    def test_header_and_footer(self, emit, ping_canvas):
        program = emit(ping_canvas)
        assert "from discord.ext import commands" in program
        assert "load_dotenv()" in program
        assert "await bot.tree.sync()" in program
        assert program.rstrip().endswith("bot.run(os.getenv('BOT_TOKEN'))")
        assert "import aiohttp" not in program

    def test_empty_canvas_parses(self, emit):
        program = emit({})
        ast.parse(program)
        assert "bot.run(" in program

    def test_noop_body(self, emit, make_block):
        program = emit({"blocks": [make_block("t", "command_slash", name="ping")]})
        assert "async def ping_command(interaction: discord.Interaction):\n    pass" in program

    def test_unknown_block_still_parses(self, emit, make_block):
        program = emit({
            "blocks": [make_block("t", "command_slash"), make_block("u", "foo_bar_baz", 10)],
        })
        assert "# Block Logic: foo_bar_baz" in program
        ast.parse(program)

    def test_every_block_type_parses(self, emit, catalog, make_block):
        blocks = [
            make_block("t1", "command_slash", name="all"),
            make_block("t2", "on_button_click"),
            make_block("t3", "event_listener", event="messageCreate"),
        ]
        for index, definition in enumerate(catalog):
            if not definition.is_trigger:
                blocks.append(make_block(f"b{index}", definition.type, index + 1))
        program = emit({"blocks": blocks})
        ast.parse(program)
        assert "import aiohttp" in program
        assert "import math" in program

    def test_every_block_type_parses_in_connections_mode(self, emit, catalog, make_block, connect):
        blocks = [make_block("t", "command_slash")]
        connections = []
        previous = "t"
        for index, definition in enumerate(catalog):
            if definition.is_trigger or definition.is_branching or definition.type == "error_handler":
                continue
            block_id = f"b{index}"
            blocks.append(make_block(block_id, definition.type, index + 1))
            connections.append(connect(previous, block_id))
            previous = block_id
        ast.parse(emit({"blocks": blocks, "connections": connections}, TraversalMode.CONNECTIONS))

    def test_escaped_strings_parse(self, emit, make_block):
        program = emit({
            "blocks": [
                make_block("t", "command_slash", name="quote", description='He said "hi"'),
                make_block("a", "action_reply", 10, content='It\'s "quoted"\nand \\ slashed'),
            ],
        })
        tree = ast.parse(program)
        strings = [node.value for node in ast.walk(tree) if isinstance(node, ast.Constant)]
        assert 'It\'s "quoted"\nand \\ slashed' in strings

    def test_deterministic(self, emit, branching_canvas):
        assert emit(branching_canvas) == emit(branching_canvas)

    def test_duplicate_commands_get_unique_functions(self, emit, make_block):
        program = emit({
            "blocks": [
                make_block("t1", "command_slash", name="ping"),
                make_block("t2", "command_slash", name="ping"),
            ],
        })
        assert "async def ping_command(" in program
        assert "async def ping_command2(" in program
        ast.parse(program)


# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------


class TestTriggers:
    def test_component_listener(self, emit, make_block):
        program = emit({"blocks": [make_block("b", "on_button_click", customId="confirm")]})
        assert "@bot.listen('on_interaction')" in program
        assert "interaction.data.get('custom_id') == \"confirm\"" in program
        ast.parse(program)

    def test_event_mapping(self, emit, make_block):
        program = emit({"blocks": [make_block("e", "event_listener", event="guildMemberAdd")]})
        assert "@bot.listen('on_member_join')" in program
        assert "async def member_join_listener(" in program

    def test_unmapped_event_is_snake_cased(self, backend):
        assert backend.event_name("threadCreate") == "thread_create"

    def test_numeric_event_name_is_valid_identifier(self, emit, make_block):
        program = emit({"blocks": [make_block("e", "event_listener", event="123start")]})
        ast.parse(program)


# ---------------------------------------------------------------------------
# Branching
# ---------------------------------------------------------------------------


class TestBranching:
    def test_permission_gate(self, emit, branching_canvas):
        program = emit(branching_canvas, TraversalMode.CONNECTIONS)
        assert "    if not interaction.permissions.administrator:" in program
        assert program.index("Admins only") < program.index("        return") < program.index("Welcome, admin")
        ast.parse(program)

    def test_bot_permission_gate(self, action):
        assert action("check_bot_permissions", permission="ManageGuild").startswith(
            "if not interaction.app_permissions.manage_guild:"
        )

    def test_condition_translation(self):
        assert _condition("a === 1 && b !== null || true") == "a == 1 and b != None or True"
        assert _condition("") == "True"

    def test_condition_string_literals_untouched(self):
        assert _condition('x === "true" && y === \'a  &&  null\'') == 'x == "true" and y == \'a  &&  null\''
        assert _condition('msg === "say \\"false\\" twice" || done') == 'msg == "say \\"false\\" twice" or done'

    def test_if_condition_arms(self, emit, make_block, connect):
        program = emit({
            "blocks": [
                make_block("t", "command_slash"),
                make_block("if", "if_condition", 10, condition="false"),
                make_block("n", "console_log", 20, message="no"),
            ],
            "connections": [connect("t", "if"), connect("if", "n", "else")],
        }, TraversalMode.CONNECTIONS)
        assert "        if False:\n            pass\n        else:\n            print(\"no\")" in program

    def test_error_handler(self, action):
        assert action("error_handler", errorMessage="Boom") == (
            'try:\n    pass\nexcept Exception as error:\n    print("Boom", error)'
        )

    def test_has_role(self, action):
        assert 'str(role.id) == "42"' in action("condition_has_role", roleId="42")


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class TestActions:
    def test_wait_seconds(self, action):
        assert action("wait", duration=3) == "await asyncio.sleep(3)"

    def test_timeout_timedelta(self, action):
        code = action("member_timeout", userId="55", minutes=15)
        assert "member = await interaction.guild.fetch_member(55)" in code
        assert "datetime.timedelta(minutes=15)" in code

    def test_non_numeric_user_id(self, action):
        assert 'fetch_member(int("abc"))' in action("action_kick", userId="abc")

    def test_embed_color(self, action):
        code = action("send_embed", title="Hi", color="#00FF00")
        assert 'embed = discord.Embed(title="Hi", description="", color=0x00ff00)' in code

    def test_send_message_to_channel(self, action):
        code = action("send_message", content="hey", channel_id="99")
        assert "channel = bot.get_channel(99) or await bot.fetch_channel(99)" in code
        assert 'await channel.send(content="hey")' in code

    def test_button_style(self, action):
        assert "style=discord.ButtonStyle.success" in action("add_button", style="Success")

    def test_set_variable_keyword_name(self, action):
        assert action("set_variable", name="class", value="x") == 'class_ = "x"'

    def test_math_random(self, action):
        assert action("math_advanced", operation="random_range", saveTo="roll") == "roll = random.randint(0, 100)"

    def test_http_request(self, action):
        code = action("http_request", url="https://api.example.com")
        assert "async with aiohttp.ClientSession() as session:" in code
        assert "api_result = await resp.json()" in code


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


class TestDependencies:
    def test_base(self, backend):
        assert backend.dependencies("", set()) == {"discord.py": "2.3.2", "python-dotenv": "1.0.0"}

    def test_http_and_voice(self, backend):
        deps = backend.dependencies("", {"http_request", "voice_join"})
        assert deps["aiohttp"] == "3.9.1"
        assert deps["PyNaCl"] == "1.5.0"


# ---------------------------------------------------------------------------
# Subcommands and handler error guard
# ---------------------------------------------------------------------------


class TestSubcommands:
    def test_command_group(self, emit, subcommand_canvas):
        program = emit(subcommand_canvas, TraversalMode.CONNECTIONS)
        assert 'mod_group = discord.app_commands.Group(name="mod", description="Moderation tools")' in program
        assert '@mod_group.command(name="ban", description="Ban a member")' in program
        assert "async def mod_ban_command(interaction: discord.Interaction):" in program
        assert "bot.tree.add_command(mod_group)" in program
        assert '@bot.tree.command(name="mod"' not in program
        ast.parse(program)

    def test_each_subcommand_runs_its_own_flow(self, emit, subcommand_canvas):
        program = emit(subcommand_canvas, TraversalMode.CONNECTIONS)
        tree = ast.parse(program)
        functions = {
            node.name: ast.unparse(node)
            for node in ast.walk(tree)
            if isinstance(node, ast.AsyncFunctionDef)
        }
        assert "Banned" in functions["mod_ban_command"]
        assert "Banned" not in functions["mod_kick_command"]
        assert "member.kick" in functions["mod_kick_command"]

    def test_group_added_after_its_commands(self, emit, subcommand_canvas):
        program = emit(subcommand_canvas)
        assert program.index("async def mod_kick_command(") < program.index("bot.tree.add_command(mod_group)")


class TestErrorGuard:
    def test_slash_handler_guarded(self, emit, ping_canvas):
        program = emit(ping_canvas)
        assert (
            "    try:\n"
            '        await interaction.response.send_message("Pong!", ephemeral=False)\n'
            "    except Exception as error:\n"
            '        print("[ping] Error:", error)\n'
            "        if not interaction.response.is_done():\n"
            '            await interaction.response.send_message("An error occurred!", ephemeral=True)'
        ) in program
        ast.parse(program)

    def test_event_handler_logs_only(self, emit, make_block):
        program = emit({
            "blocks": [
                make_block("e", "event_listener", event="guildMemberAdd"),
                make_block("l", "console_log", 10, message="joined"),
            ],
        })
        assert 'print("[member_join] Error:", error)' in program
        assert "An error occurred!" not in program
        ast.parse(program)

    def test_guarded_comment_only_body_parses(self, emit, make_block):
        program = emit({
            "blocks": [make_block("t", "command_slash"), make_block("u", "foo_bar_baz", 10)],
        })
        assert "try:" in program
        ast.parse(program)
