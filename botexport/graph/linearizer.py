"""Flow linearization: turn a canvas into an ordered list of action steps.

Two traversal policies are available:

``position`` (default)
    Every block that is not a trigger is an action.  Actions are sorted by
    ascending Y coordinate (ties keep input order) and the resulting list is
    the body of *every* trigger on the canvas.  Connections are ignored, so
    branching blocks come out with empty branches.

``connections``
    Each trigger walks its own outbound edges.  The walk follows the first
    edge leaving each block and stops at a branching block, whose arms are
    traced separately from their output handles.  Each arm carries its own
    copy of the visited set, so arms that rejoin both emit the shared tail
    while a cycle along any single path still stops.

Subcommand blocks wired to a slash command are triggers of their own: the
walk from the slash command stops at them and each one is linearized as a
separate entry point.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..catalog import BlockCatalog
from .models import Block, Canvas, Connection


class TraversalMode(str, Enum):
    POSITION = "position"
    CONNECTIONS = "connections"


SUBCOMMAND_TYPE = "command_subcommand"

BRANCHING_TYPES: frozenset[str] = frozenset({
    "if_condition",
    "condition_has_role",
    "condition_has_permission",
    "check_permissions",
    "check_bot_permissions",
    "error_handler",
})

# Output handle labels accepted for each arm of a two-way block.  An edge
# without a handle counts as the first (true) output.
_TRUE_HANDLES = frozenset({"true", "then", "yes", "output_0", None})
_FALSE_HANDLES = frozenset({"false", "else", "no", "output_1"})


@dataclass
class FlowStep:
    """One action in a linearized flow, with the traced arms of a branching block."""

    block: Block
    branches: dict[str, list[FlowStep]] = field(default_factory=dict)

    @property
    def type(self) -> str:
        return self.block.type

    def branch(self, name: str) -> list[FlowStep]:
        return self.branches.get(name, [])


class FlowLinearizer:
    """Orders the action blocks of a canvas into per-trigger step lists.

    Args:
        catalog: Catalog used to classify blocks that carry no category.
        mode: ``"position"`` or ``"connections"``; see the module docstring.
    """

    def __init__(self, catalog: BlockCatalog, mode: TraversalMode | str = TraversalMode.POSITION) -> None:
        self.catalog = catalog
        self.mode = TraversalMode(mode)

    def is_trigger(self, block: Block) -> bool:
        if block.type == SUBCOMMAND_TYPE:
            return True
        if block.category:
            return block.category == "triggers"
        definition = self.catalog.lookup(block.type)
        return definition is not None and definition.is_trigger

    def triggers(self, canvas: Canvas) -> list[Block]:
        return [b for b in canvas.blocks if self.is_trigger(b)]

    def subcommands(self, canvas: Canvas, command: Block) -> list[Block]:
        """Return the subcommand blocks wired to *command*, in connection order."""
        found: dict[str, Block] = {}
        for edge in canvas.outgoing(command.id):
            block = canvas.get_block(edge.target)
            if block is not None and block.type == SUBCOMMAND_TYPE:
                found.setdefault(block.id, block)
        return list(found.values())

    def actions(self, canvas: Canvas) -> list[Block]:
        """Return every non-trigger block sorted by Y, ties in input order."""
        candidates = [b for b in canvas.blocks if not self.is_trigger(b)]
        return sorted(candidates, key=lambda b: b.position.y)

    def linearize(self, canvas: Canvas, trigger: Block | None = None) -> list[FlowStep]:
        """Return the steps that run when *trigger* fires.

        In ``position`` mode, and whenever *trigger* is ``None``, this is the
        canvas-wide Y-sorted action list.
        """
        if self.mode is TraversalMode.POSITION or trigger is None:
            return [FlowStep(block) for block in self.actions(canvas)]

        visited: set[str] = {trigger.id}
        edge = _first(canvas.outgoing(trigger.id))
        if edge is None:
            return []
        return self._walk(canvas, edge.target, visited)

    # -- connection walking ------------------------------------------------

    def _walk(self, canvas: Canvas, start_id: str, visited: set[str]) -> list[FlowStep]:
        steps: list[FlowStep] = []
        current = canvas.get_block(start_id)
        while current is not None and current.id not in visited:
            visited.add(current.id)
            if self.is_trigger(current):
                break
            if current.type in BRANCHING_TYPES:
                steps.append(FlowStep(current, self._trace_branches(canvas, current, visited)))
                break
            steps.append(FlowStep(current))
            edge = _first(canvas.outgoing(current.id))
            current = canvas.get_block(edge.target) if edge is not None else None
        return steps

    def _trace_branches(
        self, canvas: Canvas, block: Block, visited: set[str]
    ) -> dict[str, list[FlowStep]]:
        edges = canvas.outgoing(block.id)
        if block.type == "error_handler":
            body = _first(edges)
            return {"body": self._walk(canvas, body.target, set(visited)) if body else []}

        branches: dict[str, list[FlowStep]] = {}
        for name, handles in (("true", _TRUE_HANDLES), ("false", _FALSE_HANDLES)):
            edge = _first([e for e in edges if e.source_handle in handles])
            branches[name] = self._walk(canvas, edge.target, set(visited)) if edge else []
        return branches


def _first(edges: list[Connection]) -> Connection | None:
    return edges[0] if edges else None
