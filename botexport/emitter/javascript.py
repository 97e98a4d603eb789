"""discord.js (v14) backend.

Every string property is emitted through ``escape`` so the same value is
safe inside single quotes, double quotes and template literals.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

from ..graph.linearizer import FlowStep
from ..graph.models import Block
from ..utils import to_identifier
from .base import (
    DESCRIPTION_LIMIT,
    ERROR_REPLY,
    VOICE_TYPES,
    ActionHandler,
    CommandSpec,
    EmitContext,
    LanguageBackend,
    Subcommand,
    TriggerKind,
    as_bool,
    as_number,
    hex_color,
)

BASE_DEPENDENCIES: dict[str, str] = {
    "discord.js": "^14.14.1",
    "dotenv": "^16.4.5",
}
VOICE_DEPENDENCIES: dict[str, str] = {
    "@discordjs/voice": "^0.16.1",
    "libsodium-wrappers": "^0.7.13",
}

_JS_ESCAPES = (
    ("\\", "\\\\"),
    ("'", "\\'"),
    ('"', '\\"'),
    ("`", "\\`"),
    ("${", "\\${"),
    ("\r", "\\r"),
    ("\n", "\\n"),
)

DENIED_MESSAGE = "You do not have permission to use this."


def _flag(value: Any, default: str = "Administrator") -> str:
    """Return a ``PermissionFlagsBits`` member name."""
    name = re.sub(r"[^A-Za-z0-9]", "", str(value or ""))
    return name or default


class JavaScriptBackend(LanguageBackend):
    language = "discord.js"
    entry_point = "index.js"
    manifest_path = "package.json"
    indent_unit = "  "
    noop_line = "// Define logic components..."
    comment_prefix = "//"
    install_command = "npm install"
    run_command = "npm start"
    docs_url = "https://discord.js.org"

    def escape(self, text: Any) -> str:
        result = "" if text is None else str(text)
        for old, new in _JS_ESCAPES:
            result = result.replace(old, new)
        return result

    def event_name(self, event: str) -> str:
        return re.sub(r"[^A-Za-z0-9_]", "", event) or "ready"

    # -- program frame -----------------------------------------------------

    def header(self, types: Iterable[str] = ()) -> str:
        types = set(types)
        lines = [
            "require('dotenv').config();",
            "const {",
            "  Client,",
            "  GatewayIntentBits,",
            "  EmbedBuilder,",
            "  ActionRowBuilder,",
            "  ButtonBuilder,",
            "  ButtonStyle,",
            "  StringSelectMenuBuilder,",
            "  ModalBuilder,",
            "  TextInputBuilder,",
            "  TextInputStyle,",
            "  PermissionFlagsBits,",
            "  ApplicationCommandOptionType,",
            "} = require('discord.js');",
        ]
        if types & VOICE_TYPES:
            lines.append("const { joinVoiceChannel, getVoiceConnection } = require('@discordjs/voice');")
        lines += [
            "",
            "const client = new Client({",
            "  intents: [",
            "    GatewayIntentBits.Guilds,",
            "    GatewayIntentBits.GuildMessages,",
            "    GatewayIntentBits.MessageContent,",
            "    GatewayIntentBits.GuildMembers,",
            "    GatewayIntentBits.GuildVoiceStates,",
            "  ],",
            "});",
        ]
        return "\n".join(lines)

    def footer(self, commands: Sequence[CommandSpec] = ()) -> str:
        lines = ["const commands = ["]
        seen: set[str] = set()
        for command in commands:
            if command.name in seen:
                continue
            seen.add(command.name)
            entry = f"name: '{self.escape(command.name)}', description: '{self._description(command.description)}'"
            if not command.subcommands:
                lines.append(f"  {{ {entry} }},")
                continue
            lines += [f"  {{ {entry},", "    options: ["]
            for name, description in command.subcommands:
                lines.append(
                    f"      {{ type: ApplicationCommandOptionType.Subcommand, "
                    f"name: '{self.escape(name)}', description: '{self._description(description)}' }},"
                )
            lines += ["    ],", "  },"]
        lines += [
            "];",
            "",
            "client.once('ready', async () => {",
            "  if (commands.length > 0) {",
            "    await client.application.commands.set(commands);",
            "  }",
            "  console.log(`Logged in as ${client.user.tag}`);",
            "});",
            "",
            "client.login(process.env.BOT_TOKEN);",
        ]
        return "\n".join(lines)

    def _description(self, text: str) -> str:
        return self.escape(" ".join(str(text).split())[:DESCRIPTION_LIMIT])

    def guarded(self, label: str, body: str, reply: bool) -> str:
        lines = [
            "try {",
            self.indent(body),
            "} catch (error) {",
            f"  console.error('[{self.escape(label)}] Error:', error);",
        ]
        if reply:
            lines += [
                "  if (!interaction.replied && !interaction.deferred) {",
                f"    await interaction.reply({{ content: '{ERROR_REPLY}', ephemeral: true }});",
                "  }",
            ]
        lines.append("}")
        return "\n".join(lines)

    def wrap_trigger(
        self,
        kind: TriggerKind,
        guard: str,
        body: str,
        ctx: EmitContext,
        subcommands: Sequence[Subcommand] = (),
    ) -> str:
        label = self.escape(guard)
        if kind is TriggerKind.SLASH and subcommands:
            dispatch = ["const subcommand = interaction.options.getSubcommand(false);"]
            for index, sub in enumerate(subcommands):
                opener = "if" if index == 0 else "} else if"
                dispatch += [f"{opener} (subcommand === '{self.escape(sub.name)}') {{", self.indent(sub.body)]
            dispatch.append("}")
            handler = self.guarded(guard, "\n".join(dispatch), True)
            return (
                "client.on('interactionCreate', async (interaction) => {\n"
                f"  if (interaction.isChatInputCommand() && interaction.commandName === '{label}') {{\n"
                f"{self.indent(handler, 2)}\n"
                "  }\n"
                "});"
            )
        if kind is TriggerKind.SLASH:
            inner = self.indent(body)
            chain = (
                "if (interaction.isChatInputCommand()) {\n"
                f"{inner}\n"
                "} else if (interaction.isUserContextMenuCommand()) {\n"
                f"{inner}\n"
                "} else if (interaction.isMessageContextMenuCommand()) {\n"
                f"{inner}\n"
                "}"
            )
            if not self.is_noop(body):
                chain = self.guarded(guard, chain, True)
            return (
                "client.on('interactionCreate', async (interaction) => {\n"
                f"  if (interaction.commandName === '{label}') {{\n"
                f"{self.indent(chain, 2)}\n"
                "  }\n"
                "});"
            )
        if kind is TriggerKind.COMPONENT:
            return (
                "client.on('interactionCreate', async (interaction) => {\n"
                f"  if (interaction.customId === '{label}') {{\n"
                f"{self.indent(self.handler_body(guard, body), 2)}\n"
                "  }\n"
                "});"
            )
        event = self.event_name(guard)
        return (
            f"client.on('{event}', async (interaction) => {{\n"
            f"{self.indent(self.handler_body(event, body, reply=False))}\n"
            "});"
        )

    def dependencies(self, text: str, types: Iterable[str]) -> dict[str, str]:
        deps = dict(BASE_DEPENDENCIES)
        if set(types) & VOICE_TYPES or "@discordjs/voice" in text:
            deps.update(VOICE_DEPENDENCIES)
        return deps

    # -- branching ---------------------------------------------------------

    def emit_branch(self, step: FlowStep, ctx: EmitContext) -> str:
        block = step.block
        if block.type == "error_handler":
            return self._error_handler(step, ctx)
        if block.type in ("check_permissions", "check_bot_permissions"):
            return self._permission_gate(step, ctx)

        if block.type == "condition_has_role":
            condition = f"interaction.member.roles.cache.has('{self.text(block, 'roleId', ctx)}')"
        elif block.type == "condition_has_permission":
            flag = _flag(ctx.prop(block, "permission"))
            condition = f"interaction.member.permissions.has(PermissionFlagsBits.{flag})"
        else:
            condition = str(ctx.prop(block, "condition", "true")).strip() or "true"
        return (
            f"if ({condition}) {{\n"
            f"{self.indent(self.emit_steps(step.branch('true'), ctx))}\n"
            "} else {\n"
            f"{self.indent(self.emit_steps(step.branch('false'), ctx))}\n"
            "}"
        )

    def _permission_gate(self, step: FlowStep, ctx: EmitContext) -> str:
        block = step.block
        flag = _flag(ctx.prop(block, "permission"))
        source = "appPermissions" if block.type == "check_bot_permissions" else "memberPermissions"
        denied = step.branch("false")
        if denied:
            on_denied = self.emit_steps(denied, ctx)
        else:
            on_denied = f"await interaction.reply({{ content: '{DENIED_MESSAGE}', ephemeral: true }});"
        lines = [
            f"if (!interaction.{source}?.has(PermissionFlagsBits.{flag})) {{",
            self.indent(on_denied),
            self.indent("return;"),
            "}",
        ]
        allowed = step.branch("true")
        if allowed:
            lines.append(self.emit_steps(allowed, ctx))
        return "\n".join(lines)

    def _error_handler(self, step: FlowStep, ctx: EmitContext) -> str:
        block = step.block
        message = self.text(block, "errorMessage", ctx)
        if as_bool(ctx.prop(block, "logToConsole")):
            on_error = f"console.error('{message}', error);"
        else:
            on_error = self.noop_line
        return (
            "try {\n"
            f"{self.indent(self.emit_steps(step.branch('body'), ctx))}\n"
            "} catch (error) {\n"
            f"{self.indent(on_error)}\n"
            "}"
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
            "delete_message": lambda block, ctx: "await interaction.message.delete();",
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

    def _embed(self, title: str, description: str, color: str, ctx: EmitContext) -> tuple[str, str]:
        name = ctx.local_name("embed")
        code = (
            f"const {name} = new EmbedBuilder()\n"
            f"  .setTitle(`{title}`)\n"
            f"  .setDescription(`{description}`)\n"
            f"  .setColor('{color}');"
        )
        return name, code

    def _message_embed(self, block: Block, ctx: EmitContext) -> tuple[str, str]:
        return self._embed(
            self.text(block, "embed_title", ctx),
            self.text(block, "embed_description", ctx),
            hex_color(ctx.prop(block, "embed_color")),
            ctx,
        )

    def _ephemeral(self, block: Block, ctx: EmitContext) -> str:
        return "true" if as_bool(ctx.prop(block, "ephemeral")) else "false"

    def _reply(self, block: Block, ctx: EmitContext) -> str:
        ephemeral = self._ephemeral(block, ctx)
        if as_bool(ctx.prop(block, "useEmbed")):
            name, code = self._message_embed(block, ctx)
            return f"{code}\nawait interaction.reply({{ embeds: [{name}], ephemeral: {ephemeral} }});"
        content = self.text(block, "content", ctx)
        return f"await interaction.reply({{ content: `{content}`, ephemeral: {ephemeral} }});"

    def _send_message(self, block: Block, ctx: EmitContext) -> str:
        lines: list[str] = []
        channel_id = str(ctx.prop(block, "channel_id")).strip()
        if channel_id:
            target = ctx.local_name("channel")
            lines.append(f"const {target} = await client.channels.fetch('{self.escape(channel_id)}');")
        else:
            target = "interaction.channel"
        if as_bool(ctx.prop(block, "useEmbed")):
            name, code = self._message_embed(block, ctx)
            lines += [code, f"await {target}.send({{ embeds: [{name}] }});"]
        else:
            lines.append(f"await {target}.send({{ content: `{self.text(block, 'content', ctx)}` }});")
        return "\n".join(lines)

    def _defer_reply(self, block: Block, ctx: EmitContext) -> str:
        return f"await interaction.deferReply({{ ephemeral: {self._ephemeral(block, ctx)} }});"

    def _edit_reply(self, block: Block, ctx: EmitContext) -> str:
        return f"await interaction.editReply({{ content: `{self.text(block, 'content', ctx)}` }});"

    def _follow_up(self, block: Block, ctx: EmitContext) -> str:
        content = self.text(block, "content", ctx)
        return f"await interaction.followUp({{ content: `{content}`, ephemeral: {self._ephemeral(block, ctx)} }});"

    def _send_embed(self, block: Block, ctx: EmitContext) -> str:
        title = ctx.prop(block, "title", block.properties.get("embed_title"))
        description = ctx.prop(block, "description", block.properties.get("embed_description"))
        color = block.properties.get("color") or block.properties.get("embed_color")
        name, code = self._embed(self.escape(title), self.escape(description), hex_color(color), ctx)
        return f"{code}\nawait interaction.reply({{ embeds: [{name}] }});"

    def _edit_message(self, block: Block, ctx: EmitContext) -> str:
        return f"await interaction.message.edit({{ content: `{self.text(block, 'content', ctx)}` }});"

    def _console_log(self, block: Block, ctx: EmitContext) -> str:
        return f"console.log('{self.text(block, 'message', ctx, '[Log Block]')}');"

    def _add_button(self, block: Block, ctx: EmitContext) -> str:
        button = ctx.local_name("button")
        row = ctx.local_name("row")
        style = _flag(ctx.prop(block, "style"), default="Primary")
        return (
            f"const {button} = new ButtonBuilder()\n"
            f"  .setCustomId('{self.text(block, 'customId', ctx)}')\n"
            f"  .setLabel('{self.text(block, 'label', ctx)}')\n"
            f"  .setStyle(ButtonStyle.{style});\n"
            f"const {row} = new ActionRowBuilder().addComponents({button});\n"
            f"await interaction.reply({{ content: `{self.text(block, 'content', ctx)}`, components: [{row}] }});"
        )

    def _add_select_menu(self, block: Block, ctx: EmitContext) -> str:
        select = ctx.local_name("select")
        row = ctx.local_name("rowMenu")
        return (
            f"const {select} = new StringSelectMenuBuilder()\n"
            f"  .setCustomId('{self.text(block, 'customId', ctx)}')\n"
            f"  .setPlaceholder('{self.text(block, 'placeholder', ctx)}')\n"
            "  .addOptions({ label: 'Option 1', value: 'option_1' });\n"
            f"const {row} = new ActionRowBuilder().addComponents({select});\n"
            f"await interaction.reply({{ content: `{self.text(block, 'content', ctx)}`, components: [{row}] }});"
        )

    def _show_modal(self, block: Block, ctx: EmitContext) -> str:
        modal = ctx.local_name("modal")
        field = ctx.local_name("input")
        row = ctx.local_name("modalRow")
        style = _flag(ctx.prop(block, "text_input_style"), default="Short")
        return (
            f"const {modal} = new ModalBuilder()\n"
            f"  .setCustomId('{self.text(block, 'customId', ctx)}')\n"
            f"  .setTitle('{self.text(block, 'title', ctx)}');\n"
            f"const {field} = new TextInputBuilder()\n"
            f"  .setCustomId('{self.text(block, 'text_input_id', ctx)}')\n"
            f"  .setLabel('{self.text(block, 'text_input_label', ctx)}')\n"
            f"  .setStyle(TextInputStyle.{style});\n"
            f"const {row} = new ActionRowBuilder().addComponents({field});\n"
            f"{modal}.addComponents({row});\n"
            f"await interaction.showModal({modal});"
        )

    def _kick(self, block: Block, ctx: EmitContext) -> str:
        user_id = self.text(block, "userId", ctx)
        return f"await interaction.guild.members.kick('{user_id}', '{self.text(block, 'reason', ctx)}');"

    def _ban(self, block: Block, ctx: EmitContext) -> str:
        user_id = self.text(block, "userId", ctx)
        return f"await interaction.guild.members.ban('{user_id}', {{ reason: '{self.text(block, 'reason', ctx)}' }});"

    def _timeout(self, block: Block, ctx: EmitContext) -> str:
        member = ctx.local_name("member")
        milliseconds = as_number(as_number(ctx.prop(block, "minutes", 10), 10) * 60000, 600000)
        return (
            f"const {member} = await interaction.guild.members.fetch('{self.text(block, 'userId', ctx)}');\n"
            f"await {member}.timeout({milliseconds}, '{self.text(block, 'reason', ctx)}');"
        )

    def _automod_alert(self, block: Block, ctx: EmitContext) -> str:
        return f"console.log('[AutoMod Alert]: {self.text(block, 'message', ctx)}');"

    def _role_create(self, block: Block, ctx: EmitContext) -> str:
        return f"await interaction.guild.roles.create({{ name: '{self.text(block, 'name', ctx)}', reason: 'System action' }});"

    def _channel_create(self, block: Block, ctx: EmitContext) -> str:
        return f"await interaction.guild.channels.create({{ name: '{self.text(block, 'name', ctx)}' }});"

    def _thread_create(self, block: Block, ctx: EmitContext) -> str:
        name = self.text(block, "name", ctx)
        return f"await interaction.channel.threads.create({{ name: '{name}', autoArchiveDuration: 60 }});"

    def _event_schedule(self, block: Block, ctx: EmitContext) -> str:
        return (
            "await interaction.guild.scheduledEvents.create({ "
            f"name: '{self.text(block, 'name', ctx)}', "
            f"scheduledStartTime: '{self.text(block, 'startTime', ctx)}', "
            "privacyLevel: 2, entityType: 3 });"
        )

    def _voice_join(self, block: Block, ctx: EmitContext) -> str:
        return (
            "joinVoiceChannel({ "
            f"channelId: '{self.text(block, 'channelId', ctx)}', "
            "guildId: interaction.guildId, "
            "adapterCreator: interaction.guild.voiceAdapterCreator });"
        )

    def _voice_leave(self, block: Block, ctx: EmitContext) -> str:
        connection = ctx.local_name("connection")
        return (
            f"const {connection} = getVoiceConnection(interaction.guildId);\n"
            f"if ({connection}) {connection}.destroy();"
        )

    def _wait(self, block: Block, ctx: EmitContext) -> str:
        seconds = as_number(ctx.prop(block, "duration", 1), 1)
        return f"await new Promise(r => setTimeout(r, {as_number(seconds * 1000, 1000)}));"

    def _assign(self, name: str, expression: str, ctx: EmitContext) -> str:
        keyword = "let " if ctx.declare(name) else ""
        return f"{keyword}{name} = {expression};"

    def _set_variable(self, block: Block, ctx: EmitContext) -> str:
        name = to_identifier(ctx.prop(block, "name", "v"), default="v")
        return self._assign(name, f"`{self.text(block, 'value', ctx)}`", ctx)

    def _string_op(self, block: Block, ctx: EmitContext) -> str:
        target = to_identifier(ctx.prop(block, "saveTo", "strResult"), default="strResult")
        operation = str(ctx.prop(block, "operation"))
        value = self.text(block, "input", ctx)
        expressions = {
            "split": f"\"{value}\".split(' ')",
            "join": f"[\"{value}\"].join(' ')",
            "replace": f"\"{value}\".replace('a', 'b')",
            "upper": f"\"{value}\".toUpperCase()",
            "lower": f"\"{value}\".toLowerCase()",
        }
        if operation not in expressions:
            return self.comment(f"String Op: {operation}")
        return self._assign(target, expressions[operation], ctx)

    def _math_op(self, block: Block, ctx: EmitContext) -> str:
        target = to_identifier(ctx.prop(block, "saveTo", "mathResult"), default="mathResult")
        operation = str(ctx.prop(block, "operation"))
        expressions = {
            "pow": "Math.pow(2, 3)",
            "sqrt": "Math.sqrt(16)",
            "round": "Math.round(10.5)",
            "random_range": "Math.floor(Math.random() * 100)",
        }
        if operation not in expressions:
            return self.comment(f"Math Op: {operation}")
        return self._assign(target, expressions[operation], ctx)

    def _http_request(self, block: Block, ctx: EmitContext) -> str:
        response = ctx.local_name("response")
        target = to_identifier(ctx.prop(block, "saveTo", "apiResult"), default="apiResult")
        return (
            f"const {response} = await fetch('{self.text(block, 'url', ctx)}');\n"
            + self._assign(target, f"await {response}.json()", ctx)
        )

    def _webhook_send(self, block: Block, ctx: EmitContext) -> str:
        response = ctx.local_name("webhookRes")
        content = self.text(block, "content", ctx)
        return (
            f"const {response} = await fetch('{self.text(block, 'url', ctx)}', {{ "
            "method: 'POST', headers: { 'Content-Type': 'application/json' }, "
            f"body: JSON.stringify({{ content: `{content}` }}) }});\n"
            f"if (!{response}.ok) console.error('Webhook failed', {response}.status);"
        )

