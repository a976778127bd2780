"""Queries over a built Graph, plus the single-slot graph cache."""

from __future__ import annotations

import logging
from pathlib import Path

from project_graph.analysis.graph_models import Graph
from project_graph.analysis.symbol_graph import build_graph
from project_graph.errors import unknown_symbol
from project_graph.models import FilterConfig
from project_graph.pipeline import load_project

logger = logging.getLogger(__name__)

_SKELETON_KEYS = {
    "L": "Legend (symbol -> full name)",
    "s": "Stats (files, classes, functions)",
    "n": "Nodes (class symbol -> {m: methods count, $: properties count})",
    "e": "Edges count (calls between symbols)",
    "o": "Orphans count (unused non-exported functions)",
    "d": "Duplicates count (same method name in multiple classes)",
    "F": "Functions count (standalone)",
}


class GraphCache:
    """Holds the last-built Graph for one root; a different root replaces it."""

    def __init__(self):
        self._root: Path | None = None
        self._graph: Graph | None = None

    @property
    def root(self) -> Path | None:
        return self._root

    def get(self, root: Path, filters: FilterConfig | None = None) -> Graph:
        root = Path(root).resolve()
        if self._graph is not None and self._root == root:
            return self._graph
        project = load_project(root, filters)
        graph = build_graph(project.fact_sheets(), project)
        logger.debug("Built graph for %s: %d nodes, %d edges", root, len(graph.nodes), len(graph.edges))
        self._root = root
        self._graph = graph
        return graph

    def peek(self) -> Graph | None:
        return self._graph

    def invalidate(self) -> None:
        self._root = None
        self._graph = None


def skeleton(graph: Graph) -> dict:
    """Compact project summary: class legend, stats and counts."""
    class_legend: dict[str, str] = {}
    nodes: dict[str, dict] = {}
    for code, node in graph.nodes.items():
        if node.kind != "C":
            continue
        class_legend[code] = node.name
        nodes[code] = {"m": len(node.methods), "$": len(node.properties)}

    return {
        "v": graph.version,
        "_keys": dict(_SKELETON_KEYS),
        "L": class_legend,
        "s": dict(graph.stats),
        "n": nodes,
        "e": len(graph.edges),
        "o": len(graph.orphans),
        "d": len(graph.duplicates),
        "F": sum(1 for node in graph.nodes.values() if node.kind == "F"),
    }


def expand(graph: Graph, symbol: str) -> dict:
    """Details for ``"SN"`` (class or function) or ``"SN.tP"`` (method, with source)."""
    node_key, _, method_key = symbol.partition(".")
    full_name = graph.legend.name(node_key)
    if full_name is None or node_key not in graph.nodes:
        return unknown_symbol(symbol)

    node = graph.nodes[node_key]
    if node.kind == "F":
        fn = graph.functions.get(full_name)
        return {
            "symbol": symbol,
            "fullName": full_name,
            "type": "function",
            "file": node.file,
            "line": node.line,
            "exported": node.exported,
            "calls": [c.key for c in fn.calls] if fn else [],
        }

    cls = graph.classes[full_name]
    if method_key:
        method_name = graph.legend.name(method_key) or method_key
        method = next((m for m in cls.methods if m.name == method_name), None)
        if method is None:
            return unknown_symbol(symbol)
        return {
            "symbol": symbol,
            "fullName": f"{full_name}.{method_name}",
            "file": node.file,
            "line": method.line,
            "code": _source_slice(graph, node.file, method.line, method.end_line),
        }

    return {
        "symbol": symbol,
        "fullName": full_name,
        "type": "class",
        "file": node.file,
        "line": node.line,
        "extends": cls.extends,
        "methods": [m.name for m in cls.methods],
        "properties": list(cls.properties),
        "calls": [c.key for c in cls.calls],
    }


def deps(graph: Graph, symbol: str) -> dict:
    """Imports, incoming callers and outgoing calls for one node code."""
    node = graph.nodes.get(symbol)
    if node is None:
        return unknown_symbol(symbol)

    used_by: list[str] = []
    calls: list[str] = []
    for source, _, target in graph.edges:
        if target == symbol or target.startswith(symbol + "."):
            if source not in used_by:
                used_by.append(source)
        if source == symbol and target not in calls:
            calls.append(target)

    return {
        "symbol": symbol,
        "imports": list(node.imports),
        "usedBy": used_by,
        "calls": calls,
    }


def usages(graph: Graph, symbol: str) -> list[dict] | dict:
    """Declarations whose call sites mention the symbol's full name."""
    full_name = graph.legend.name(symbol) or symbol
    if full_name not in graph.legend:
        return unknown_symbol(symbol)

    results: list[dict] = []
    for cls in graph.classes.values():
        if any(_mentions(call.key, full_name) for call in cls.calls):
            results.append({
                "file": cls.declaration.file,
                "line": cls.declaration.line,
                "context": f"{cls.name} calls {full_name}",
            })
    for fn in graph.functions.values():
        if any(_mentions(call.key, full_name) for call in fn.calls):
            results.append({
                "file": fn.file,
                "line": fn.line,
                "context": f"{fn.name} calls {full_name}",
            })
    return results


def _mentions(call_key: str, name: str) -> bool:
    return call_key == name or name in call_key.split(".")


def _source_slice(graph: Graph, file: str, start: int, end: int | None) -> str:
    if graph.project is None:
        return ""
    source = next((f for f in graph.project.files if f.rel_path == file), None)
    if source is None:
        return ""
    lines = source.lines
    return "\n".join(lines[start - 1:end or start])


def focus_zone(graph: Graph, focus_files: list[str]) -> dict:
    """Classes declared in *focus_files* expanded in full; every other node stays a code."""
    root = graph.project.root if graph.project is not None else None
    wanted = [_relative_to_root(root, f) for f in focus_files]

    expanded: dict[str, dict] = {}
    for code, node in graph.nodes.items():
        if node.kind != "C" or node.file not in wanted:
            continue
        cls = graph.classes[node.name]
        expanded[code] = {
            **node.to_dict(),
            "methods": [m.name for m in cls.methods],
            "properties": list(cls.properties),
            "file": node.file,
            "line": node.line,
        }

    return {
        "focusFiles": wanted,
        "expanded": expanded,
        "expandable": [code for code in graph.nodes if code not in expanded],
    }


def _relative_to_root(root: Path | None, file: str) -> str:
    path = Path(file)
    if path.is_absolute() and root is not None:
        base = root if root.is_dir() else root.parent
        try:
            return path.resolve().relative_to(base.resolve()).as_posix()
        except ValueError:
            return path.as_posix()
    return path.as_posix()
