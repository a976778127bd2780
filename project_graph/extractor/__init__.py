"""Fact extraction: tree-sitter parsing and per-file Fact Sheets."""

from __future__ import annotations

from project_graph.extractor.facts import empty_fact_sheet, extract_facts
from project_graph.extractor.node_kinds import NodeKind, node_kind, visit, walk, walk_with_ancestors
from project_graph.extractor.parser import SourceParser

__all__ = [
    "NodeKind",
    "SourceParser",
    "empty_fact_sheet",
    "extract_facts",
    "node_kind",
    "visit",
    "walk",
    "walk_with_ancestors",
]
