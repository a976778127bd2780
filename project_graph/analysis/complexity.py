"""Cyclomatic complexity per function, method and block-bodied arrow."""

from __future__ import annotations

from pathlib import Path

from project_graph.analysis.units import iter_units, scoped_files
from project_graph.extractor.node_kinds import NodeKind, visit
from project_graph.models import FilterConfig, Project

_PAGE_SIZE = 30

# Arrow functions are only reported above this score
ARROW_REPORT_THRESHOLD = 5

_LOGICAL_OPERATORS = {"&&", "||", "??"}


def calculate_complexity(body) -> int:
    """1 + one per branch point anywhere in *body*."""
    score = 1

    def bump(_node):
        nonlocal score
        score += 1

    def on_binary(node):
        operator = node.child_by_field_name("operator")
        if operator is not None and operator.type in _LOGICAL_OPERATORS:
            bump(node)

    if body is None:
        return score

    visit(body, {
        NodeKind.IF_STATEMENT: bump,
        NodeKind.TERNARY_EXPRESSION: bump,
        NodeKind.FOR_STATEMENT: bump,
        NodeKind.FOR_IN_STATEMENT: bump,
        NodeKind.WHILE_STATEMENT: bump,
        NodeKind.DO_STATEMENT: bump,
        NodeKind.SWITCH_CASE: bump,  # switch_default is a separate node type
        NodeKind.CATCH_CLAUSE: bump,
        NodeKind.BINARY_EXPRESSION: on_binary,
    })
    return score


def get_rating(complexity: int) -> str:
    if complexity <= 5:
        return "low"
    if complexity <= 10:
        return "moderate"
    if complexity <= 20:
        return "high"
    return "critical"


def score_complexity(
    path: Path | str | None = None,
    min_complexity: int = 1,
    only_problematic: bool = False,
    filters: FilterConfig | None = None,
    project: Project | None = None,
    scope: str = "",
) -> dict:
    """Score every function-like unit; returns {total, stats, items}."""
    items: list[dict] = []
    for source in scoped_files(path, filters, project, scope):
        for unit in iter_units(source.tree.root_node):
            if unit.kind == "method" and unit.method_kind != "method":
                continue
            if unit.kind == "arrow" and not unit.block_bodied:
                continue
            complexity = calculate_complexity(unit.body)
            if unit.kind == "arrow" and complexity <= ARROW_REPORT_THRESHOLD:
                continue
            items.append({
                "name": unit.name,
                "type": "method" if unit.kind == "method" else "function",
                "file": source.rel_path,
                "line": unit.line,
                "complexity": complexity,
                "rating": get_rating(complexity),
            })

    items = [
        item for item in items
        if item["complexity"] >= min_complexity
        and not (only_problematic and item["rating"] in ("low", "moderate"))
    ]
    items.sort(key=lambda item: -item["complexity"])

    stats = {rating: 0 for rating in ("low", "moderate", "high", "critical")}
    for item in items:
        stats[item["rating"]] += 1
    stats["average"] = (
        round(sum(item["complexity"] for item in items) / len(items), 1) if items else 0
    )

    return {"total": len(items), "stats": stats, "items": items[:_PAGE_SIZE]}
