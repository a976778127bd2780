"""File-size pressure: lines, functions, classes and exports per file."""

from __future__ import annotations

from pathlib import Path

from project_graph.analysis.units import iter_units
from project_graph.extractor.node_kinds import NodeKind, visit
from project_graph.models import FilterConfig, Project, SourceFile
from project_graph.pipeline import in_scope, load_project

_PAGE_SIZE = 30

# metric -> (upper threshold, lower threshold); exceeding upper scores 2, lower 1
SIZE_TIERS: dict[str, tuple[int, int]] = {
    "lines": (500, 300),
    "functions": (15, 10),
    "classes": (3, 1),
    "exports": (10, 5),
}

CRITICAL_POINTS = 4
WARNING_POINTS = 2


def measure_file(source: SourceFile) -> dict:
    """Counts, penalty points, rating and reasons for one file."""
    counts = {"lines": len(source.lines), "functions": 0, "classes": 0, "exports": 0}

    if source.tree is not None:
        root = source.tree.root_node
        counts["functions"] = sum(
            1 for unit in iter_units(root)
            if unit.kind == "function" or (unit.kind == "arrow" and unit.block_bodied)
        )

        def count(key):
            def handler(_node):
                counts[key] += 1
            return handler

        visit(root, {
            NodeKind.CLASS_DECLARATION: count("classes"),
            NodeKind.EXPORT_STATEMENT: count("exports"),
        })

    points = 0
    reasons: list[str] = []
    for metric, (upper, lower) in SIZE_TIERS.items():
        value = counts[metric]
        if value > upper:
            points += 2
            reasons.append(f"{value} {metric} (>{upper})")
        elif value > lower:
            points += 1
            reasons.append(f"{value} {metric} (>{lower})")

    if points >= CRITICAL_POINTS:
        rating = "critical"
    elif points >= WARNING_POINTS:
        rating = "warning"
    else:
        rating = "ok"

    return {"file": source.rel_path, **counts, "rating": rating, "reasons": reasons}


def score_file_sizes(
    path: Path | str | None = None,
    only_problematic: bool = False,
    filters: FilterConfig | None = None,
    project: Project | None = None,
    scope: str = "",
) -> dict:
    """Rate every source file; returns {total, stats, items} sorted by line count."""
    if project is None:
        project = load_project(Path(path), filters)
    files = [f for f in project.files if in_scope(f.rel_path, scope)]

    items = [measure_file(f) for f in files]
    if only_problematic:
        items = [item for item in items if item["rating"] != "ok"]
    items.sort(key=lambda item: -item["lines"])

    total_lines = sum(item["lines"] for item in items)
    stats = {
        "totalFiles": len(files),
        "ok": sum(1 for item in items if item["rating"] == "ok"),
        "warning": sum(1 for item in items if item["rating"] == "warning"),
        "critical": sum(1 for item in items if item["rating"] == "critical"),
        "totalLines": total_lines,
        "avgLines": round(total_lines / len(items)) if items else 0,
    }

    return {"total": len(items), "stats": stats, "items": items[:_PAGE_SIZE]}
