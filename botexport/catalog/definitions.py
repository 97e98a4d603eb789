"""Built-in block definitions.

The table below is the data the editor palette is generated from and the
single source of property defaults for the emitter and the validator.
Only block types that the language backends know how to emit (plus the
trigger types they wrap) are listed here.
"""

from __future__ import annotations

from typing import Any

from .models import BlockDefinition, PropertyKind, PropertyOption, PropertySpec

TEXT = PropertyKind.TEXT
TEXTAREA = PropertyKind.TEXTAREA
NUMBER = PropertyKind.NUMBER
BOOLEAN = PropertyKind.BOOLEAN
SELECT = PropertyKind.SELECT
COLOR = PropertyKind.COLOR


def _prop(
    key: str,
    label: str,
    kind: PropertyKind = TEXT,
    *,
    required: bool = False,
    default: Any = None,
    options: list[tuple[str, str]] | None = None,
    placeholder: str | None = None,
    helper_text: str | None = None,
) -> PropertySpec:
    return PropertySpec(
        key=key,
        label=label,
        kind=kind,
        required=required,
        default=default,
        options=tuple(PropertyOption(label=lbl, value=val) for lbl, val in options or []),
        placeholder=placeholder,
        helper_text=helper_text,
    )


def _block(
    type_: str,
    label: str,
    category: str,
    *properties: PropertySpec,
    description: str = "",
    inputs: int = 1,
    outputs: int = 1,
) -> BlockDefinition:
    return BlockDefinition(
        type=type_,
        label=label,
        description=description,
        category=category,
        inputs=inputs,
        outputs=outputs,
        properties=properties,
    )


_EPHEMERAL = _prop("ephemeral", "Ephemeral (only visible to user)", BOOLEAN, default=False)
_CONTENT = _prop("content", "Message Content", TEXTAREA, placeholder="Enter message content...")
_EMBED_PROPS = (
    _prop("useEmbed", "Send as Embed", BOOLEAN, default=False),
    _prop("embed_title", "Embed Title", TEXT),
    _prop("embed_description", "Embed Description", TEXTAREA),
    _prop("embed_color", "Embed Color", COLOR, default="#3b82f6"),
)
_REASON = _prop("reason", "Reason", TEXT, default="No reason provided")
_USER_ID = _prop("userId", "User ID", TEXT, required=True, placeholder="Enter user ID or variable")
_SAVE_TO = _prop("saveTo", "Save Result To", TEXT, placeholder="result")

_PERMISSION_OPTIONS = [
    ("Administrator", "Administrator"),
    ("Manage Server", "ManageGuild"),
    ("Manage Messages", "ManageMessages"),
    ("Kick Members", "KickMembers"),
    ("Ban Members", "BanMembers"),
    ("Moderate Members", "ModerateMembers"),
]


BUILTIN_DEFINITIONS: tuple[BlockDefinition, ...] = (
    # ==================== TRIGGERS ====================
    _block(
        "command_slash", "Slash Command", "triggers",
        _prop("name", "Command Name", TEXT, required=True, default="ping"),
        _prop("description", "Description", TEXT, default="A bot command"),
        description="Runs when a user invokes the command",
        inputs=0,
    ),
    _block(
        "command_subcommand", "Subcommand", "triggers",
        _prop("name", "Subcommand Name", TEXT, required=True, placeholder="add"),
        _prop("description", "Description", TEXT, default="A subcommand"),
        description="Runs when the connected slash command is invoked with this subcommand",
    ),
    _block(
        "event_listener", "Event Listener", "triggers",
        _prop(
            "event", "Event", SELECT, required=True, default="ready",
            options=[
                ("Ready", "ready"),
                ("Message Create", "messageCreate"),
                ("Member Join", "guildMemberAdd"),
                ("Member Leave", "guildMemberRemove"),
                ("Reaction Add", "messageReactionAdd"),
            ],
        ),
        description="Runs when the gateway emits the selected event",
        inputs=0,
    ),
    _block(
        "on_button_click", "On Button Click", "triggers",
        _prop("customId", "Custom ID", TEXT, required=True, default="btn_click_1"),
        description="Runs when a button with this custom id is clicked",
        inputs=0,
    ),
    _block(
        "on_select_menu", "On Select Menu", "triggers",
        _prop("customId", "Custom ID", TEXT, required=True, default="menu_select_1"),
        description="Runs when a select menu with this custom id is used",
        inputs=0,
    ),
    _block(
        "on_modal_submit", "On Modal Submit", "triggers",
        _prop("customId", "Custom ID", TEXT, required=True, default="modal_submit_1"),
        description="Runs when a modal with this custom id is submitted",
        inputs=0,
    ),
    # ==================== MESSAGES ====================
    _block(
        "action_reply", "Reply", "actions",
        _CONTENT, _EPHEMERAL, *_EMBED_PROPS,
        description="Reply to the interaction",
    ),
    _block(
        "send_message", "Send Message", "actions",
        _CONTENT,
        _prop(
            "channel_id", "Channel ID", TEXT,
            helper_text="Leave empty to send to the channel the interaction came from",
        ),
        *_EMBED_PROPS,
        description="Send a message to a channel",
    ),
    _block(
        "action_defer_reply", "Defer Reply", "actions", _EPHEMERAL,
        description="Acknowledge the interaction and reply later",
    ),
    _block("edit_reply", "Edit Reply", "actions", _CONTENT),
    _block("follow_up", "Follow Up", "actions", _CONTENT, _EPHEMERAL),
    _block(
        "send_embed", "Embed Block", "actions",
        _prop("title", "Embed Title", TEXT),
        _prop("description", "Embed Description", TEXTAREA),
        _prop("color", "Embed Color", COLOR, default="#3b82f6"),
        description="Send rich embed messages",
    ),
    _block("edit_message", "Edit Message", "actions", _CONTENT),
    _block("delete_message", "Delete Message", "actions"),
    _block(
        "console_log", "Console Log", "advanced",
        _prop("message", "Message", TEXT, default="[Log Block]"),
    ),
    # ==================== COMPONENTS ====================
    _block(
        "add_button", "Add Button", "components",
        _prop("label", "Button Label", TEXT, required=True, default="Click me"),
        _prop(
            "style", "Button Style", SELECT, required=True, default="Primary",
            options=[
                ("Primary (Blue)", "Primary"),
                ("Secondary (Gray)", "Secondary"),
                ("Success (Green)", "Success"),
                ("Danger (Red)", "Danger"),
            ],
        ),
        _prop("customId", "Custom ID", TEXT, required=True, default="btn_click_1"),
        _CONTENT,
    ),
    _block(
        "add_select_menu", "Add Select Menu", "components",
        _prop("placeholder", "Placeholder", TEXT, default="Select an option..."),
        _prop("customId", "Custom ID", TEXT, required=True, default="menu_select_1"),
        _CONTENT,
    ),
    _block(
        "show_modal", "Show Modal", "components",
        _prop("customId", "Custom ID", TEXT, required=True, default="modal_submit_1"),
        _prop("title", "Modal Title", TEXT, default="My Form"),
        _prop("text_input_id", "Input ID", TEXT, default="name_input"),
        _prop("text_input_label", "Input Label", TEXT, default="Your answer"),
        _prop(
            "text_input_style", "Input Style", SELECT, default="Short",
            options=[("Short", "Short"), ("Paragraph", "Paragraph")],
        ),
    ),
    # ==================== MODERATION ====================
    _block("action_kick", "Kick Member", "moderation", _USER_ID, _REASON),
    _block("action_ban", "Ban Member", "moderation", _USER_ID, _REASON),
    _block(
        "member_timeout", "Timeout Member", "moderation",
        _USER_ID,
        _prop("minutes", "Duration (minutes)", NUMBER, required=True, default=10),
        _prop("reason", "Reason", TEXT, default="Auto timeout"),
    ),
    _block(
        "automod_alert", "AutoMod Alert", "moderation",
        _prop("message", "Alert Message", TEXT, default="Suspicious activity"),
    ),
    # ==================== PERMISSIONS ====================
    _block(
        "check_permissions", "Check Permissions", "permissions",
        _prop(
            "permission", "Permission", SELECT, required=True, default="Administrator",
            options=_PERMISSION_OPTIONS,
        ),
        description="Continue only when the invoking member has the permission",
        outputs=2,
    ),
    _block(
        "check_bot_permissions", "Check Bot Permissions", "permissions",
        _prop(
            "permission", "Permission", SELECT, required=True, default="Administrator",
            options=_PERMISSION_OPTIONS,
        ),
        description="Continue only when the bot has the permission",
        outputs=2,
    ),
    # ==================== GUILD ====================
    _block("role_create", "Create Role", "roles", _prop("name", "Role Name", TEXT, default="new-role")),
    _block(
        "channel_create", "Create Channel", "channels",
        _prop("name", "Channel Name", TEXT, default="new-channel"),
    ),
    _block(
        "thread_create", "Create Thread", "channels",
        _prop("name", "Thread Name", TEXT, default="new-thread"),
    ),
    _block(
        "event_schedule", "Schedule Event", "advanced",
        _prop("name", "Event Name", TEXT, required=True, default="New Event"),
        _prop("startTime", "Start Time (ISO 8601)", TEXT, required=True),
    ),
    # ==================== VOICE ====================
    _block(
        "voice_join", "Join Voice Channel", "voice",
        _prop("channelId", "Voice Channel ID", TEXT, required=True),
    ),
    _block("voice_leave", "Leave Voice Channel", "voice"),
    # ==================== LOGIC ====================
    _block(
        "if_condition", "If Condition", "logic",
        _prop("condition", "Condition", TEXT, required=True, default="true"),
        description="Execute blocks based on a condition",
        outputs=2,
    ),
    _block(
        "condition_has_role", "Has Role", "logic",
        _prop("roleId", "Role ID", TEXT, required=True),
        outputs=2,
    ),
    _block(
        "condition_has_permission", "Has Permission", "logic",
        _prop(
            "permission", "Permission", SELECT, required=True, default="Administrator",
            options=_PERMISSION_OPTIONS,
        ),
        outputs=2,
    ),
    _block(
        "wait", "Wait", "advanced",
        _prop("duration", "Duration (seconds)", NUMBER, required=True, default=1, placeholder="1"),
        description="Pause execution for a duration",
    ),
    _block(
        "error_handler", "Error Handler", "advanced",
        _prop("errorMessage", "Error Message", TEXTAREA, default="An error occurred"),
        _prop("logToConsole", "Log Error to Console", BOOLEAN, default=True),
        description="Catch errors raised by the connected blocks",
    ),
    # ==================== DATA ====================
    _block(
        "set_variable", "Set Variable", "variables",
        _prop("name", "Variable Name", TEXT, required=True, default="myVariable"),
        _prop("value", "Value", TEXT, required=True),
    ),
    _block(
        "string_manipulation", "String Operation", "data",
        _prop(
            "operation", "Operation", SELECT, required=True, default="upper",
            options=[
                ("Split", "split"), ("Join", "join"), ("Replace", "replace"),
                ("Uppercase", "upper"), ("Lowercase", "lower"),
            ],
        ),
        _prop("input", "Input", TEXT),
        _SAVE_TO,
    ),
    _block(
        "math_advanced", "Math Operation", "data",
        _prop(
            "operation", "Operation", SELECT, required=True, default="round",
            options=[
                ("Power", "pow"), ("Square Root", "sqrt"), ("Round", "round"),
                ("Random Range", "random_range"),
            ],
        ),
        _SAVE_TO,
    ),
    _block(
        "http_request", "HTTP Request", "data",
        _prop("url", "URL", TEXT, required=True, placeholder="https://api.example.com"),
        _SAVE_TO,
    ),
    _block(
        "webhook_send", "Send Webhook", "data",
        _prop("url", "Webhook URL", TEXT, required=True),
        _CONTENT,
    ),
)
