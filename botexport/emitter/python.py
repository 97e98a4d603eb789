"""discord.py (2.x) backend.

Slash commands are registered on ``bot.tree`` and synced from ``on_ready``.
A slash command with subcommands becomes an ``app_commands.Group`` added to
the tree.  Component triggers and events are attached with ``bot.listen`` so
several handlers for the same gateway event can coexist.  Every handler body
runs under a ``try``/``except`` that logs the error.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

from ..graph.linearizer import FlowStep
from ..graph.models import Block
from ..utils import snake_case, to_identifier
from .base import (
    ERROR_REPLY,
    HTTP_TYPES,
    VOICE_TYPES,
    ActionHandler,
    CommandSpec,
    EmitContext,
    LanguageBackend,
    Subcommand,
    TriggerKind,
    as_bool,
    as_number,
    command_description,
    hex_color,
)

BASE_REQUIREMENTS: dict[str, str] = {
    "discord.py": "2.3.2",
    "python-dotenv": "1.0.0",
}
HTTP_REQUIREMENTS: dict[str, str] = {"aiohttp": "3.9.1"}
VOICE_REQUIREMENTS: dict[str, str] = {"PyNaCl": "1.5.0"}

# discord.js event names -> discord.py event names (without the ``on_`` prefix)
EVENT_NAMES: dict[str, str] = {
    "ready": "ready",
    "messageCreate": "message",
    "messageUpdate": "message_edit",
    "messageDelete": "message_delete",
    "guildMemberAdd": "member_join",
    "guildMemberRemove": "member_remove",
    "messageReactionAdd": "reaction_add",
    "messageReactionRemove": "reaction_remove",
    "interactionCreate": "interaction",
    "guildCreate": "guild_join",
}

_PY_ESCAPES = (
    ("\\", "\\\\"),
    ('"', '\\"'),
    ("'", "\\'"),
    ("\r", "\\r"),
    ("\n", "\\n"),
)

_CONDITION_TOKENS = (
    (r"===", "=="),
    (r"!==", "!="),
    (r"&&", " and "),
    (r"\|\|", " or "),
    (r"\btrue\b", "True"),
    (r"\bfalse\b", "False"),
    (r"\bnull\b", "None"),
)
_STRING_LITERAL = re.compile(r"""("(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')""")

DENIED_MESSAGE = "You do not have permission to use this."


def _permission(value: Any, default: str = "administrator") -> str:
    """Return a ``discord.Permissions`` attribute name."""
    return snake_case(str(value or "")) or default


def _condition(expression: Any) -> str:
    """Translate the common JavaScript operators of a condition to Python.

    Quoted string literals are copied through untouched.
    """
    text = str(expression or "").strip() or "True"
    parts = _STRING_LITERAL.split(text)
    for index in range(0, len(parts), 2):
        code = parts[index]
        for pattern, replacement in _CONDITION_TOKENS:
            code = re.sub(pattern, replacement, code)
        parts[index] = re.sub(r"\s{2,}", " ", code)
    return "".join(parts)


class PythonBackend(LanguageBackend):
    language = "discord.py"
    entry_point = "main.py"
    manifest_path = "requirements.txt"
    indent_unit = "    "
    noop_line = "pass"
    comment_prefix = "#"
    section_separator = "\n\n\n"
    install_command = "pip install -r requirements.txt"
    run_command = "python main.py"
    docs_url = "https://discordpy.readthedocs.io"

    def escape(self, text: Any) -> str:
        result = "" if text is None else str(text)
        for old, new in _PY_ESCAPES:
            result = result.replace(old, new)
        return result

    def event_name(self, event: str) -> str:
        if event in EVENT_NAMES:
            return EVENT_NAMES[event]
        return snake_case(event) or "ready"

    def emit_steps(self, steps: list[FlowStep], ctx: EmitContext) -> str:
        code = super().emit_steps(steps, ctx)
        # A suite made only of comments is not a valid block body.
        if all(not line.strip() or line.lstrip().startswith("#") for line in code.splitlines()):
            return f"{code}\n{self.noop_line}"
        return code

    def _snowflake(self, value: Any) -> str:
        """Return an integer expression for a Discord id property."""
        text = str(value).strip()
        if text.isdigit():
            return text
        return f'int("{self.escape(text)}")'

    # -- program frame -----------------------------------------------------

    def header(self, types: Iterable[str] = ()) -> str:
        types = set(types)
        stdlib = ["asyncio", "datetime", "os"]
        if "math_advanced" in types:
            stdlib += ["math", "random"]
        lines = [f"import {name}" for name in stdlib]
        lines.append("")
        if types & HTTP_TYPES:
            lines.append("import aiohttp")
        lines += [
            "import discord",
            "from discord.ext import commands",
            "from dotenv import load_dotenv",
            "",
            "load_dotenv()",
            "",
            "intents = discord.Intents.default()",
            "intents.message_content = True",
            "intents.members = True",
            "",
            "bot = commands.Bot(command_prefix=os.getenv('PREFIX', '!'), intents=intents)",
            "",
            "",
            "@bot.event",
            "async def on_ready():",
            "    await bot.tree.sync()",
            "    print(f'Logged in as {bot.user}')",
        ]
        return "\n".join(lines)

    def footer(self, commands: Sequence[CommandSpec] = ()) -> str:
        return "bot.run(os.getenv('BOT_TOKEN'))"

    def guarded(self, label: str, body: str, reply: bool) -> str:
        lines = [
            "try:",
            self.indent(body),
            "except Exception as error:",
            f'    print("[{self.escape(label)}] Error:", error)',
        ]
        if reply:
            lines += [
                "    if not interaction.response.is_done():",
                f'        await interaction.response.send_message("{ERROR_REPLY}", ephemeral=True)',
            ]
        return "\n".join(lines)

    def wrap_trigger(
        self,
        kind: TriggerKind,
        guard: str,
        body: str,
        ctx: EmitContext,
        subcommands: Sequence[Subcommand] = (),
    ) -> str:
        if kind is TriggerKind.SLASH:
            stored = ctx.prop(ctx.trigger, "description") if ctx.trigger else None
            summary = command_description(stored, "A bot command")
            base = to_identifier(guard, default="command")
            if subcommands:
                return self._command_group(guard, summary, base, subcommands, ctx)
            function = ctx.function_name(f"{base}_command")
            return (
                f'@bot.tree.command(name="{self.escape(guard)}", description="{self.escape(summary)}")\n'
                f"async def {function}(interaction: discord.Interaction):\n"
                f"{self.indent(self.handler_body(guard, body))}"
            )
        if kind is TriggerKind.COMPONENT:
            prefix = ctx.trigger.type if ctx.trigger else "component"
            function = ctx.function_name(f"{prefix}_{to_identifier(guard, default='component')}")
            return (
                "@bot.listen('on_interaction')\n"
                f"async def {function}(interaction: discord.Interaction):\n"
                f"    if interaction.data and interaction.data.get('custom_id') == \"{self.escape(guard)}\":\n"
                f"{self.indent(self.handler_body(guard, body), 2)}"
            )
        event = self.event_name(guard)
        function = ctx.function_name(to_identifier(f"{event}_listener"))
        return (
            f"@bot.listen('on_{event}')\n"
            f"async def {function}(interaction=None, *args):\n"
            f"{self.indent(self.handler_body(event, body, reply=False))}"
        )

    def _command_group(
        self, guard: str, summary: str, base: str, subcommands: Sequence[Subcommand], ctx: EmitContext
    ) -> str:
        """A slash command with subcommands becomes an ``app_commands.Group``."""
        group = ctx.function_name(f"{base}_group")
        parts = [
            f'{group} = discord.app_commands.Group(name="{self.escape(guard)}", '
            f'description="{self.escape(summary)}")'
        ]
        for sub in subcommands:
            function = ctx.function_name(f"{base}_{to_identifier(sub.name, default='sub')}_command")
            body = self.handler_body(f"{guard} {sub.name}", sub.body)
            parts.append(
                f'@{group}.command(name="{self.escape(sub.name)}", description="{self.escape(sub.description)}")\n'
                f"async def {function}(interaction: discord.Interaction):\n"
                f"{self.indent(body)}"
            )
        parts.append(f"bot.tree.add_command({group})")
        return self.section_separator.join(parts)

    def dependencies(self, text: str, types: Iterable[str]) -> dict[str, str]:
        types = set(types)
        deps = dict(BASE_REQUIREMENTS)
        if types & HTTP_TYPES or "import aiohttp" in text:
            deps.update(HTTP_REQUIREMENTS)
        if types & VOICE_TYPES:
            deps.update(VOICE_REQUIREMENTS)
        return deps

    # -- branching ---------------------------------------------------------

    def emit_branch(self, step: FlowStep, ctx: EmitContext) -> str:
        block = step.block
        if block.type == "error_handler":
            return self._error_handler(step, ctx)
        if block.type in ("check_permissions", "check_bot_permissions"):
            return self._permission_gate(step, ctx)

        if block.type == "condition_has_role":
            role_id = self.text(block, "roleId", ctx)
            condition = f'any(str(role.id) == "{role_id}" for role in interaction.user.roles)'
        elif block.type == "condition_has_permission":
            condition = f"interaction.user.guild_permissions.{_permission(ctx.prop(block, 'permission'))}"
        else:
            condition = _condition(ctx.prop(block, "condition", "True"))
        return (
            f"if {condition}:\n"
            f"{self.indent(self.emit_steps(step.branch('true'), ctx))}\n"
            "else:\n"
            f"{self.indent(self.emit_steps(step.branch('false'), ctx))}"
        )

    def _permission_gate(self, step: FlowStep, ctx: EmitContext) -> str:
        block = step.block
        permission = _permission(ctx.prop(block, "permission"))
        source = "app_permissions" if block.type == "check_bot_permissions" else "permissions"
        denied = step.branch("false")
        if denied:
            on_denied = self.emit_steps(denied, ctx)
        else:
            on_denied = f'await interaction.response.send_message("{DENIED_MESSAGE}", ephemeral=True)'
        lines = [
            f"if not interaction.{source}.{permission}:",
            self.indent(on_denied),
            self.indent("return"),
        ]
        allowed = step.branch("true")
        if allowed:
            lines.append(self.emit_steps(allowed, ctx))
        return "\n".join(lines)

    def _error_handler(self, step: FlowStep, ctx: EmitContext) -> str:
        block = step.block
        if as_bool(ctx.prop(block, "logToConsole")):
            on_error = f'print("{self.text(block, "errorMessage", ctx)}", error)'
        else:
            on_error = self.noop_line
        return (
            "try:\n"
            f"{self.indent(self.emit_steps(step.branch('body'), ctx))}\n"
            "except Exception as error:\n"
            f"{self.indent(on_error)}"
        )

    # -- actions -----------------------------------------------------------

    def _build_handlers(self) -> dict[str, ActionHandler]:
        return {
            "action_reply": self._reply,
            "send_message": self._send_message,
            "action_defer_reply": self._defer_reply,
            "edit_reply": self._edit_reply,
            "follow_up": self._follow_up,
            "send_embed": self._send_embed,
            "edit_message": self._edit_message,
            "delete_message": lambda block, ctx: "await interaction.message.delete()",
            "console_log": self._console_log,
            "add_button": self._add_button,
            "add_select_menu": self._add_select_menu,
            "show_modal": self._show_modal,
            "action_kick": self._kick,
            "action_ban": self._ban,
            "member_timeout": self._timeout,
            "automod_alert": self._automod_alert,
            "role_create": self._role_create,
            "channel_create": self._channel_create,
            "thread_create": self._thread_create,
            "event_schedule": self._event_schedule,
            "voice_join": self._voice_join,
            "voice_leave": self._voice_leave,
            "wait": self._wait,
            "set_variable": self._set_variable,
            "string_manipulation": self._string_op,
            "math_advanced": self._math_op,
            "http_request": self._http_request,
            "webhook_send": self._webhook_send,
        }

    def _ephemeral(self, block: Block, ctx: EmitContext) -> str:
        return "True" if as_bool(ctx.prop(block, "ephemeral")) else "False"

    def _embed(self, title: str, description: str, color: Any, ctx: EmitContext) -> tuple[str, str]:
        name = ctx.local_name("embed")
        value = hex_color(color).replace("#", "0x")
        return name, f'{name} = discord.Embed(title="{title}", description="{description}", color={value})'

    def _message_embed(self, block: Block, ctx: EmitContext) -> tuple[str, str]:
        return self._embed(
            self.text(block, "embed_title", ctx),
            self.text(block, "embed_description", ctx),
            ctx.prop(block, "embed_color"),
            ctx,
        )

    def _reply(self, block: Block, ctx: EmitContext) -> str:
        ephemeral = self._ephemeral(block, ctx)
        if as_bool(ctx.prop(block, "useEmbed")):
            name, code = self._message_embed(block, ctx)
            return f"{code}\nawait interaction.response.send_message(embed={name}, ephemeral={ephemeral})"
        content = self.text(block, "content", ctx)
        return f'await interaction.response.send_message("{content}", ephemeral={ephemeral})'

    def _send_message(self, block: Block, ctx: EmitContext) -> str:
        lines: list[str] = []
        channel_id = str(ctx.prop(block, "channel_id")).strip()
        if channel_id:
            target = ctx.local_name("channel")
            snowflake = self._snowflake(channel_id)
            lines.append(f"{target} = bot.get_channel({snowflake}) or await bot.fetch_channel({snowflake})")
        else:
            target = "interaction.channel"
        if as_bool(ctx.prop(block, "useEmbed")):
            name, code = self._message_embed(block, ctx)
            lines += [code, f"await {target}.send(embed={name})"]
        else:
            lines.append(f'await {target}.send(content="{self.text(block, "content", ctx)}")')
        return "\n".join(lines)

    def _defer_reply(self, block: Block, ctx: EmitContext) -> str:
        return f"await interaction.response.defer(ephemeral={self._ephemeral(block, ctx)})"

    def _edit_reply(self, block: Block, ctx: EmitContext) -> str:
        return f'await interaction.edit_original_response(content="{self.text(block, "content", ctx)}")'

    def _follow_up(self, block: Block, ctx: EmitContext) -> str:
        content = self.text(block, "content", ctx)
        return f'await interaction.followup.send("{content}", ephemeral={self._ephemeral(block, ctx)})'

    def _send_embed(self, block: Block, ctx: EmitContext) -> str:
        title = ctx.prop(block, "title", block.properties.get("embed_title"))
        description = ctx.prop(block, "description", block.properties.get("embed_description"))
        color = block.properties.get("color") or block.properties.get("embed_color")
        name, code = self._embed(self.escape(title), self.escape(description), color, ctx)
        return f"{code}\nawait interaction.response.send_message(embed={name})"

    def _edit_message(self, block: Block, ctx: EmitContext) -> str:
        return f'await interaction.message.edit(content="{self.text(block, "content", ctx)}")'

    def _console_log(self, block: Block, ctx: EmitContext) -> str:
        return f'print("{self.text(block, "message", ctx, "[Log Block]")}")'

    def _add_button(self, block: Block, ctx: EmitContext) -> str:
        view = ctx.local_name("view")
        style = snake_case(str(ctx.prop(block, "style", "Primary"))) or "primary"
        return (
            f"{view} = discord.ui.View()\n"
            f'{view}.add_item(discord.ui.Button(label="{self.text(block, "label", ctx)}", '
            f"style=discord.ButtonStyle.{style}, "
            f'custom_id="{self.text(block, "customId", ctx)}"))\n'
            f'await interaction.response.send_message("{self.text(block, "content", ctx)}", view={view})'
        )

    def _add_select_menu(self, block: Block, ctx: EmitContext) -> str:
        view = ctx.local_name("view")
        return (
            f"{view} = discord.ui.View()\n"
            f"{view}.add_item(discord.ui.Select(\n"
            f'    custom_id="{self.text(block, "customId", ctx)}",\n'
            f'    placeholder="{self.text(block, "placeholder", ctx)}",\n'
            '    options=[discord.SelectOption(label="Option 1", value="option_1")],\n'
            "))\n"
            f'await interaction.response.send_message("{self.text(block, "content", ctx)}", view={view})'
        )

    def _show_modal(self, block: Block, ctx: EmitContext) -> str:
        modal = ctx.local_name("modal")
        style = snake_case(str(ctx.prop(block, "text_input_style", "Short"))) or "short"
        return (
            f'{modal} = discord.ui.Modal(title="{self.text(block, "title", ctx)}", '
            f'custom_id="{self.text(block, "customId", ctx)}")\n'
            f"{modal}.add_item(discord.ui.TextInput(\n"
            f'    label="{self.text(block, "text_input_label", ctx)}",\n'
            f'    custom_id="{self.text(block, "text_input_id", ctx)}",\n'
            f"    style=discord.TextStyle.{style},\n"
            "))\n"
            f"await interaction.response.send_modal({modal})"
        )

    def _fetch_member(self, block: Block, ctx: EmitContext) -> tuple[str, str]:
        member = ctx.local_name("member")
        snowflake = self._snowflake(ctx.prop(block, "userId"))
        return member, f"{member} = await interaction.guild.fetch_member({snowflake})"

    def _kick(self, block: Block, ctx: EmitContext) -> str:
        member, fetch = self._fetch_member(block, ctx)
        return f'{fetch}\nawait {member}.kick(reason="{self.text(block, "reason", ctx)}")'

    def _ban(self, block: Block, ctx: EmitContext) -> str:
        member, fetch = self._fetch_member(block, ctx)
        return f'{fetch}\nawait {member}.ban(reason="{self.text(block, "reason", ctx)}")'

    def _timeout(self, block: Block, ctx: EmitContext) -> str:
        member, fetch = self._fetch_member(block, ctx)
        minutes = as_number(ctx.prop(block, "minutes", 10), 10)
        return (
            f"{fetch}\n"
            f"await {member}.timeout(datetime.timedelta(minutes={minutes}), "
            f'reason="{self.text(block, "reason", ctx)}")'
        )

    def _automod_alert(self, block: Block, ctx: EmitContext) -> str:
        return f'print("[AutoMod Alert]: {self.text(block, "message", ctx)}")'

    def _role_create(self, block: Block, ctx: EmitContext) -> str:
        return f'await interaction.guild.create_role(name="{self.text(block, "name", ctx)}", reason="System action")'

    def _channel_create(self, block: Block, ctx: EmitContext) -> str:
        return f'await interaction.guild.create_text_channel("{self.text(block, "name", ctx)}")'

    def _thread_create(self, block: Block, ctx: EmitContext) -> str:
        name = self.text(block, "name", ctx)
        return f'await interaction.channel.create_thread(name="{name}", auto_archive_duration=60)'

    def _event_schedule(self, block: Block, ctx: EmitContext) -> str:
        start = ctx.local_name("start_time")
        return (
            f'{start} = datetime.datetime.fromisoformat("{self.text(block, "startTime", ctx)}")\n'
            "await interaction.guild.create_scheduled_event(\n"
            f'    name="{self.text(block, "name", ctx)}",\n'
            f"    start_time={start},\n"
            f"    end_time={start} + datetime.timedelta(hours=1),\n"
            "    entity_type=discord.EntityType.external,\n"
            '    location="Discord",\n'
            "    privacy_level=discord.PrivacyLevel.guild_only,\n"
            ")"
        )

    def _voice_join(self, block: Block, ctx: EmitContext) -> str:
        channel = ctx.local_name("voice_channel")
        snowflake = self._snowflake(ctx.prop(block, "channelId"))
        return f"{channel} = interaction.guild.get_channel({snowflake})\nawait {channel}.connect()"

    def _voice_leave(self, block: Block, ctx: EmitContext) -> str:
        return (
            "if interaction.guild.voice_client:\n"
            "    await interaction.guild.voice_client.disconnect()"
        )

    def _wait(self, block: Block, ctx: EmitContext) -> str:
        return f"await asyncio.sleep({as_number(ctx.prop(block, 'duration', 1), 1)})"

    def _set_variable(self, block: Block, ctx: EmitContext) -> str:
        name = to_identifier(ctx.prop(block, "name", "v"), default="v")
        return f'{name} = "{self.text(block, "value", ctx)}"'

    def _string_op(self, block: Block, ctx: EmitContext) -> str:
        target = to_identifier(ctx.prop(block, "saveTo", "str_result"), default="str_result")
        operation = str(ctx.prop(block, "operation"))
        value = self.text(block, "input", ctx)
        expressions = {
            "split": f'"{value}".split(" ")',
            "join": f'" ".join(["{value}"])',
            "replace": f'"{value}".replace("a", "b")',
            "upper": f'"{value}".upper()',
            "lower": f'"{value}".lower()',
        }
        if operation not in expressions:
            return self.comment(f"String Op: {operation}")
        return f"{target} = {expressions[operation]}"

    def _math_op(self, block: Block, ctx: EmitContext) -> str:
        target = to_identifier(ctx.prop(block, "saveTo", "math_result"), default="math_result")
        operation = str(ctx.prop(block, "operation"))
        expressions = {
            "pow": "pow(2, 3)",
            "sqrt": "math.sqrt(16)",
            "round": "round(10.5)",
            "random_range": "random.randint(0, 100)",
        }
        if operation not in expressions:
            return self.comment(f"Math Op: {operation}")
        return f"{target} = {expressions[operation]}"

    def _http_request(self, block: Block, ctx: EmitContext) -> str:
        session = ctx.local_name("session")
        response = ctx.local_name("resp")
        target = to_identifier(ctx.prop(block, "saveTo", "api_result"), default="api_result")
        return (
            f"async with aiohttp.ClientSession() as {session}:\n"
            f'    async with {session}.get("{self.text(block, "url", ctx)}") as {response}:\n'
            f"        {target} = await {response}.json()"
        )

    def _webhook_send(self, block: Block, ctx: EmitContext) -> str:
        session = ctx.local_name("session")
        response = ctx.local_name("resp")
        return (
            f"async with aiohttp.ClientSession() as {session}:\n"
            f'    async with {session}.post("{self.text(block, "url", ctx)}", '
            f'json={{"content": "{self.text(block, "content", ctx)}"}}) as {response}:\n'
            f"        if {response}.status >= 400:\n"
            f'            print("Webhook failed", {response}.status)'
        )
