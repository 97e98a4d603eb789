"""Advisory validation of block graphs and generated files."""

from __future__ import annotations

from rich.markup import escape
from rich.table import Table

from ..utils import console
from .file_lint import FileLinter, check_js_brackets, check_python_syntax
from .heuristics import Finding, GraphHeuristics, RuleCategory, Severity

SEVERITY_STYLES: dict[Severity, str] = {
    Severity.LOW: "dim",
    Severity.MEDIUM: "yellow",
    Severity.HIGH: "bold yellow",
    Severity.CRITICAL: "bold red",
}


def print_findings(findings: list[Finding], title: str = "Graph Findings") -> None:
    """Render heuristic findings as a Rich table, in the order given."""
    if not findings:
        console.print("[dim]No graph findings.[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Severity", no_wrap=True)
    table.add_column("Rule", style="dim", no_wrap=True)
    table.add_column("Finding")
    table.add_column("Blocks", style="dim")
    table.add_column("Suggestion")

    for finding in findings:
        style = SEVERITY_STYLES[finding.severity]
        table.add_row(
            f"[{style}]{finding.severity.value}[/{style}]",
            finding.rule_id,
            escape(f"{finding.title}: {finding.description}"),
            ", ".join(finding.affected_block_ids) or "-",
            escape(finding.fix_suggestion or ""),
        )

    console.print(table)
    console.print()


__all__ = [
    "FileLinter",
    "Finding",
    "GraphHeuristics",
    "RuleCategory",
    "Severity",
    "check_js_brackets",
    "check_python_syntax",
    "print_findings",
]
