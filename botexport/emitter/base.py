"""Language backend strategy and the shared program assembler.

A ``LanguageBackend`` knows how to turn one block into statements of its
target language, how to wrap a body in a trigger handler, and what the
program header and footer look like.  ``emit_program`` drives it over a
canvas: header, slash commands, component triggers, event listeners (each
group in document order), footer.  A slash command wired to subcommand
blocks dispatches on the invoked subcommand instead of running its own flow.

Fragments are produced unindented and without a trailing newline; nesting
is applied with ``textwrap.indent`` by whoever owns the enclosing block.
"""

from __future__ import annotations

import textwrap
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from typing import Any, NamedTuple

from ..catalog import BlockCatalog
from ..graph.linearizer import BRANCHING_TYPES, FlowLinearizer, FlowStep
from ..graph.models import Block, Canvas
from ..utils import as_bool, command_name


class TriggerKind(str, Enum):
    SLASH = "slash"
    COMPONENT = "component"
    EVENT = "event"


TRIGGER_KINDS: dict[str, TriggerKind] = {
    "command_slash": TriggerKind.SLASH,
    "on_button_click": TriggerKind.COMPONENT,
    "on_select_menu": TriggerKind.COMPONENT,
    "on_modal_submit": TriggerKind.COMPONENT,
    "event_listener": TriggerKind.EVENT,
}

VOICE_TYPES = frozenset({"voice_join", "voice_leave"})
HTTP_TYPES = frozenset({"http_request", "webhook_send"})
DEFAULT_COLOR = "#3b82f6"
DESCRIPTION_LIMIT = 100
ERROR_REPLY = "An error occurred!"


class Subcommand(NamedTuple):
    """One subcommand of a slash command, with its emitted body."""

    name: str
    description: str
    body: str = ""


class CommandSpec(NamedTuple):
    """A slash command as it is registered with Discord."""

    name: str
    description: str
    subcommands: tuple[tuple[str, str], ...] = ()


class EmitContext:
    """Scratch state for emitting one program.

    Function names are unique across the whole program; local variable
    names (``embed``, ``embed2``, ...) are unique per trigger.  Use
    ``for_trigger`` to open a fresh local scope.
    """

    def __init__(
        self,
        catalog: BlockCatalog,
        trigger: Block | None = None,
        _functions: dict[str, int] | None = None,
    ) -> None:
        self.catalog = catalog
        self.trigger = trigger
        self._functions = _functions if _functions is not None else {}
        self._locals: dict[str, int] = {}
        self.declared: set[str] = set()

    def for_trigger(self, trigger: Block) -> EmitContext:
        return EmitContext(self.catalog, trigger, self._functions)

    def prop(self, block: Block, key: str, fallback: Any = None) -> Any:
        return self.catalog.resolve_property(block, key, fallback)

    def local_name(self, base: str) -> str:
        return _next_name(self._locals, base)

    def function_name(self, base: str) -> str:
        return _next_name(self._functions, base)

    def declare(self, name: str) -> bool:
        """Record *name* as declared; return ``True`` the first time only."""
        if name in self.declared:
            return False
        self.declared.add(name)
        return True


def _next_name(seen: dict[str, int], base: str) -> str:
    count = seen.get(base, 0) + 1
    seen[base] = count
    return base if count == 1 else f"{base}{count}"


def as_number(value: Any, default: float) -> int | float:
    """Coerce a property value to a number, falling back to *default*.

    Integral floats come back as ``int`` so they render without ``.0``.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = float(default)
    if number != number or number in (float("inf"), float("-inf")):
        number = float(default)
    return int(number) if number.is_integer() else number


def hex_color(value: Any) -> str:
    """Return a ``#rrggbb`` color, or the default when *value* is not one."""
    text = str(value or "").strip().lstrip("#")
    if len(text) == 6 and all(c in "0123456789abcdefABCDEF" for c in text):
        return f"#{text.lower()}"
    return DEFAULT_COLOR


ActionHandler = Callable[[Block, EmitContext], str]


class LanguageBackend(ABC):
    """Strategy for one target language.

    Subclasses register one handler per block type in ``handlers``; a
    handler returns the statements for a single block.  Unknown types
    degrade to a comment naming the type.
    """

    language: str = ""
    entry_point: str = ""
    manifest_path: str = ""
    indent_unit: str = "    "
    noop_line: str = ""
    comment_prefix: str = "#"
    section_separator: str = "\n\n"
    install_command: str = ""
    run_command: str = ""
    docs_url: str = ""

    def __init__(self, catalog: BlockCatalog) -> None:
        self.catalog = catalog
        self.handlers: dict[str, ActionHandler] = self._build_handlers()

    # -- abstract surface --------------------------------------------------

    @abstractmethod
    def _build_handlers(self) -> dict[str, ActionHandler]:
        """Return the block type -> handler table."""

    @abstractmethod
    def escape(self, text: Any) -> str:
        """Escape *text* for use inside any string literal of the language."""

    @abstractmethod
    def emit_branch(self, step: FlowStep, ctx: EmitContext) -> str:
        """Emit a two-way or error-handling block with its traced arms."""

    @abstractmethod
    def wrap_trigger(
        self,
        kind: TriggerKind,
        guard: str,
        body: str,
        ctx: EmitContext,
        subcommands: Sequence[Subcommand] = (),
    ) -> str:
        """Wrap *body* in the handler for one trigger guarded on *guard*.

        A slash command with *subcommands* dispatches to their bodies
        instead of running *body*.  Every non-empty handler body runs under
        an error guard.
        """

    @abstractmethod
    def guarded(self, label: str, body: str, reply: bool) -> str:
        """Wrap *body* so an exception is logged under *label*.

        With *reply* the user also gets an ephemeral error message when the
        interaction has not been answered yet.
        """

    @abstractmethod
    def header(self, types: Iterable[str] = ()) -> str:
        ...

    @abstractmethod
    def footer(self, commands: Sequence[CommandSpec] = ()) -> str:
        ...

    @abstractmethod
    def dependencies(self, text: str, types: Iterable[str]) -> dict[str, str]:
        """Return the ``{package: version}`` manifest implied by a program."""

    @abstractmethod
    def event_name(self, event: str) -> str:
        """Map an editor event name onto the library's native event name."""

    # -- emission ----------------------------------------------------------

    def comment(self, text: str) -> str:
        return f"{self.comment_prefix} {' '.join(str(text).split())}"

    def text(self, block: Block, key: str, ctx: EmitContext, fallback: Any = None) -> str:
        """Resolve a textual property and escape it."""
        return self.escape(ctx.prop(block, key, fallback))

    def indent(self, code: str, levels: int = 1) -> str:
        return textwrap.indent(code, self.indent_unit * levels)

    def is_noop(self, body: str) -> bool:
        return body.strip() == self.noop_line

    def handler_body(self, label: str, body: str, reply: bool = True) -> str:
        """Return *body* under the error guard; a no-op body is left bare."""
        if self.is_noop(body):
            return body
        return self.guarded(label, body, reply)

    def emit_action(self, block: Block, ctx: EmitContext) -> str:
        if block.type in BRANCHING_TYPES:
            return self.emit_branch(FlowStep(block), ctx)
        handler = self.handlers.get(block.type)
        if handler is None:
            return self.comment(f"Block Logic: {block.type}")
        return handler(block, ctx)

    def emit_step(self, step: FlowStep, ctx: EmitContext) -> str:
        if step.type in BRANCHING_TYPES:
            return self.emit_branch(step, ctx)
        return self.emit_action(step.block, ctx)

    def emit_steps(self, steps: list[FlowStep], ctx: EmitContext) -> str:
        """Emit a sequence of steps; an empty sequence is the no-op line."""
        if not steps:
            return self.noop_line
        return "\n".join(self.emit_step(step, ctx) for step in steps)

    def trigger_guard(self, trigger: Block, kind: TriggerKind, ctx: EmitContext) -> str:
        if kind is TriggerKind.SLASH:
            return command_name(ctx.prop(trigger, "name", "ping"), default="ping")
        if kind is TriggerKind.COMPONENT:
            return str(ctx.prop(trigger, "customId"))
        return str(ctx.prop(trigger, "event", "ready"))

    def emit_program(self, canvas: Canvas, linearizer: FlowLinearizer) -> str:
        """Assemble the complete entry file for *canvas*."""
        root = EmitContext(self.catalog)
        grouped: dict[TriggerKind, list[Block]] = {kind: [] for kind in TriggerKind}
        for trigger in linearizer.triggers(canvas):
            kind = TRIGGER_KINDS.get(trigger.type)
            if kind is not None:
                grouped[kind].append(trigger)

        sections = [self.header(canvas.types())]
        commands: dict[str, CommandSpec] = {}
        for kind in (TriggerKind.SLASH, TriggerKind.COMPONENT, TriggerKind.EVENT):
            for trigger in grouped[kind]:
                ctx = root.for_trigger(trigger)
                guard = self.trigger_guard(trigger, kind, ctx)
                subcommands: list[Subcommand] = []
                if kind is TriggerKind.SLASH:
                    subcommands = self.emit_subcommands(canvas, trigger, linearizer, root)
                body = "" if subcommands else self.emit_steps(linearizer.linearize(canvas, trigger), ctx)
                sections.append(self.wrap_trigger(kind, guard, body, ctx, subcommands))
                if kind is TriggerKind.SLASH and guard not in commands:
                    commands[guard] = CommandSpec(
                        guard,
                        command_description(ctx.prop(trigger, "description"), "A bot command"),
                        tuple((sub.name, sub.description) for sub in subcommands),
                    )
        sections.append(self.footer(list(commands.values())))
        return self.section_separator.join(section.rstrip("\n") for section in sections) + "\n"

    def emit_subcommands(
        self, canvas: Canvas, trigger: Block, linearizer: FlowLinearizer, root: EmitContext
    ) -> list[Subcommand]:
        """Emit the subcommands wired to *trigger*; later duplicates of a name are dropped."""
        subcommands: dict[str, Subcommand] = {}
        for index, block in enumerate(linearizer.subcommands(canvas, trigger)):
            ctx = root.for_trigger(block)
            name = command_name(ctx.prop(block, "name"), default=f"sub{index}")
            if name in subcommands:
                continue
            body = self.emit_steps(linearizer.linearize(canvas, block), ctx)
            summary = command_description(ctx.prop(block, "description"), "A subcommand")
            subcommands[name] = Subcommand(name, summary, body)
        return list(subcommands.values())


def command_description(value: Any, default: str) -> str:
    """Return a command description cut to Discord's length limit."""
    text = " ".join(str(value or "").split())
    return (text or default)[:DESCRIPTION_LIMIT]
