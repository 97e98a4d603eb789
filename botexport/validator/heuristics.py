"""Graph-level heuristics.

Each rule inspects the canvas and yields zero or more advisory
``Finding`` objects.  Rules run in declaration order and are pure, so the
same canvas always produces the same ordered list.  Findings never block an
export.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..catalog import BlockCatalog
from ..graph.linearizer import FlowLinearizer
from ..graph.models import Block, Canvas
from ..utils import as_bool


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class RuleCategory(str, Enum):
    OPTIMIZATION = "optimization"
    SECURITY = "security"
    LOGIC = "logic"
    STYLE = "style"
    ACCESSIBILITY = "accessibility"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


PERMISSION_CHECK_TYPES = frozenset({"check_permissions", "check_bot_permissions"})
HEAVY_DATA_THRESHOLD = 5


class Finding(BaseModel):
    """One advisory result of a graph heuristic."""

    rule_id: str = Field(..., description="Stable rule id, e.g. 'orphaned-block'")
    title: str
    description: str
    category: RuleCategory
    severity: Severity
    affected_block_ids: list[str] = Field(default_factory=list)
    fix_suggestion: Optional[str] = None


Rule = Callable[[Canvas], Iterator[Finding]]


class GraphHeuristics:
    """Runs the built-in rule set over a canvas.

    Args:
        catalog: Used to classify blocks that carry no category.
    """

    def __init__(self, catalog: BlockCatalog) -> None:
        self.catalog = catalog
        self._linearizer = FlowLinearizer(catalog)
        self.rules: list[Rule] = [
            self._orphaned_blocks,
            self._dead_end_triggers,
            self._self_loops,
            self._missing_permission_check,
            self._public_replies,
            self._hardcoded_channels,
            self._heavy_data_usage,
        ]

    def analyze(self, canvas: Canvas) -> list[Finding]:
        findings: list[Finding] = []
        for rule in self.rules:
            findings.extend(rule(canvas))
        return findings

    def _category(self, block: Block) -> str:
        if block.category:
            return block.category
        definition = self.catalog.lookup(block.type)
        return definition.category if definition is not None else ""

    @staticmethod
    def _label(block: Block) -> str:
        return block.label or block.type

    # -- rules ---------------------------------------------------------------

    def _orphaned_blocks(self, canvas: Canvas) -> Iterator[Finding]:
        targets = {c.target for c in canvas.connections}
        for block in canvas.blocks:
            if self._linearizer.is_trigger(block) or block.id in targets:
                continue
            yield Finding(
                rule_id="orphaned-block",
                title="Unconnected Logic Block",
                description=f'The block "{self._label(block)}" is floating and won\'t execute.',
                category=RuleCategory.LOGIC,
                severity=Severity.HIGH,
                affected_block_ids=[block.id],
                fix_suggestion="Connect a previous block to this one",
            )

    def _dead_end_triggers(self, canvas: Canvas) -> Iterator[Finding]:
        sources = {c.source for c in canvas.connections}
        for block in canvas.blocks:
            if not self._linearizer.is_trigger(block) or block.id in sources:
                continue
            yield Finding(
                rule_id="dead-end-trigger",
                title="Trigger Does Nothing",
                description=f'The trigger "{self._label(block)}" starts the flow but leads nowhere.',
                category=RuleCategory.LOGIC,
                severity=Severity.MEDIUM,
                affected_block_ids=[block.id],
                fix_suggestion="Add an action block (like Send Message) after this trigger",
            )

    def _self_loops(self, canvas: Canvas) -> Iterator[Finding]:
        for connection in canvas.connections:
            if not connection.is_self_loop:
                continue
            yield Finding(
                rule_id="infinite-loop-self",
                title="Infinite Loop Detected",
                description="A block connects to itself immediately.",
                category=RuleCategory.OPTIMIZATION,
                severity=Severity.CRITICAL,
                affected_block_ids=[connection.source],
                fix_suggestion="Remove the connection feeding back into the same block",
            )

    def _missing_permission_check(self, canvas: Canvas) -> Iterator[Finding]:
        moderation = [b for b in canvas.blocks if self._category(b) == "moderation"]
        if not moderation or canvas.types() & PERMISSION_CHECK_TYPES:
            return
        yield Finding(
            rule_id="missing-perm-check",
            title="Unsafe Moderation Command",
            description="You have kick/ban actions but no permission checks.",
            category=RuleCategory.SECURITY,
            severity=Severity.CRITICAL,
            affected_block_ids=[b.id for b in moderation],
            fix_suggestion='Add a "Check Permissions" block before the moderation action',
        )

    def _public_replies(self, canvas: Canvas) -> Iterator[Finding]:
        for block in canvas.blocks:
            if block.type != "action_reply" or as_bool(block.properties.get("ephemeral")):
                continue
            yield Finding(
                rule_id="public-reply-spam",
                title="Public Reply Considerations",
                description="This reply is public. Frequent usage might spam chat.",
                category=RuleCategory.STYLE,
                severity=Severity.LOW,
                affected_block_ids=[block.id],
                fix_suggestion='Consider enabling "Ephemeral" (Hidden) property for utility commands',
            )

    def _hardcoded_channels(self, canvas: Canvas) -> Iterator[Finding]:
        for block in canvas.blocks:
            if block.type != "send_message":
                continue
            channel_id = str(block.properties.get("channel_id") or "").strip()
            if not channel_id.isdigit():
                continue
            yield Finding(
                rule_id="hardcoded-channel",
                title="Hardcoded Channel ID",
                description="Using a fixed Channel ID means this only works in one server/channel.",
                category=RuleCategory.OPTIMIZATION,
                severity=Severity.MEDIUM,
                affected_block_ids=[block.id],
                fix_suggestion="Use a variable or Option input for Channel ID to make it dynamic",
            )

    def _heavy_data_usage(self, canvas: Canvas) -> Iterator[Finding]:
        data_blocks = [b for b in canvas.blocks if self._category(b) == "data"]
        if len(data_blocks) <= HEAVY_DATA_THRESHOLD:
            return
        yield Finding(
            rule_id="heavy-db-usage",
            title="High Database Load",
            description="Many database operations detected in one flow.",
            category=RuleCategory.OPTIMIZATION,
            severity=Severity.MEDIUM,
            affected_block_ids=[],
            fix_suggestion="Try to combine read/writes or use local variables if persistence is not needed",
        )
