"""Undocumented detector: functions and methods lacking JSDoc tags."""

from __future__ import annotations

import re
from collections import Counter
from pathlib import Path
from typing import Iterator

from project_graph.analysis.units import FunctionUnit, iter_units, scoped_files
from project_graph.extractor.node_kinds import node_text
from project_graph.models import FilterConfig, Project

_PAGE_SIZE = 50

LEVELS = ("tests", "params", "all")

_JSDOC_RE = re.compile(r"/\*\*[\s\S]*?\*/")

# A JSDoc block counts for a declaration starting up to this many lines after it ends
_MAX_GAP = 2


def extract_jsdoc_blocks(text: str) -> list[tuple[int, str]]:
    """(end line, text) for every ``/** ... */`` block."""
    blocks: list[tuple[int, str]] = []
    for match in _JSDOC_RE.finditer(text):
        end_line = text.count("\n", 0, match.end()) + 1
        blocks.append((end_line, match.group(0)))
    return blocks


def find_jsdoc_before(blocks: list[tuple[int, str]], line: int) -> str | None:
    for end_line, block in blocks:
        if 0 <= line - end_line <= _MAX_GAP:
            return block
    return None


def jsdoc_above(lines: list[str], line: int) -> str | None:
    """The ``/** ... */`` block directly above 1-based *line*; blank and ``//`` lines may sit between."""
    end = line - 2
    while end >= 0 and (not lines[end].strip() or lines[end].strip().startswith("//")):
        end -= 1
    if end < 0 or not lines[end].rstrip().endswith("*/"):
        return None
    for start in range(end, -1, -1):
        text = lines[start].strip()
        if text.startswith("/**"):
            return "\n".join(lines[start:end + 1]).strip()
        if start != end and not text.startswith("*"):
            return None
    return None


def check_missing(jsdoc: str | None, level: str) -> list[str]:
    """Tags required by *level* that *jsdoc* lacks."""
    missing: list[str] = []
    if jsdoc is None:
        if level == "all":
            missing.append("description")
        if level in ("params", "all"):
            missing += ["@param", "@returns"]
        missing += ["@test", "@expect"]
        return missing

    if "@test" not in jsdoc:
        missing.append("@test")
    if "@expect" not in jsdoc:
        missing.append("@expect")
    if level in ("params", "all"):
        if "@param" not in jsdoc:
            missing.append("@param")
        if "@returns" not in jsdoc and "@return" not in jsdoc:
            missing.append("@returns")
    return missing


def find_undocumented(
    path: Path | str | None = None,
    level: str = "tests",
    filters: FilterConfig | None = None,
    project: Project | None = None,
    scope: str = "",
) -> dict:
    """Returns {total, byMissing, items}."""
    if level not in LEVELS:
        raise ValueError(f"Unknown level {level!r}; expected one of {', '.join(LEVELS)}")

    items: list[dict] = []
    for source in scoped_files(path, filters, project, scope):
        blocks = extract_jsdoc_blocks(source.text)
        for name, unit in documentable_units(source.tree.root_node):
            missing = check_missing(find_jsdoc_before(blocks, unit.line), level)
            if missing:
                items.append({"file": source.rel_path, "name": name, "line": unit.line, "missing": missing})

    by_missing = Counter(tag for item in items for tag in item["missing"])
    return {"total": len(items), "byMissing": dict(by_missing), "items": items[:_PAGE_SIZE]}


def documentable_units(root_node) -> Iterator[tuple[str, FunctionUnit]]:
    """(display name, unit) for named functions and public methods; ``Class.method`` for methods."""
    for unit in iter_units(root_node):
        if unit.kind == "arrow" or unit.name.startswith("_"):
            continue
        if unit.kind == "method":
            if unit.method_kind != "method":
                continue
            yield f"{owner_name(unit.node)}.{unit.name}", unit
        else:
            yield unit.name, unit


def owner_name(method_node) -> str:
    body = method_node.parent
    cls = body.parent if body is not None else None
    name = cls.child_by_field_name("name") if cls is not None else None
    return node_text(name) or "(anonymous)"
