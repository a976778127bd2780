"""Analyzers over a loaded Project: symbol graph, liveness, metrics, health."""

from __future__ import annotations

from project_graph.analysis.checklist import Checklist, get_all_features
from project_graph.analysis.complexity import score_complexity
from project_graph.analysis.dead_code import analyze_liveness
from project_graph.analysis.graph_queries import GraphCache, deps, expand, focus_zone, skeleton, usages
from project_graph.analysis.health import aggregate, compute_health_score, run_full_analysis
from project_graph.analysis.jsdoc import generate_jsdoc, generate_jsdoc_for
from project_graph.analysis.large_files import score_file_sizes
from project_graph.analysis.outdated import find_outdated_patterns
from project_graph.analysis.similarity import score_similarity
from project_graph.analysis.symbol_graph import build_graph, make_short_name, minify_legend
from project_graph.analysis.undocumented import find_undocumented

__all__ = [
    "Checklist",
    "GraphCache",
    "aggregate",
    "analyze_liveness",
    "build_graph",
    "compute_health_score",
    "deps",
    "expand",
    "find_outdated_patterns",
    "find_undocumented",
    "focus_zone",
    "generate_jsdoc",
    "generate_jsdoc_for",
    "get_all_features",
    "make_short_name",
    "minify_legend",
    "run_full_analysis",
    "score_complexity",
    "score_file_sizes",
    "score_similarity",
    "skeleton",
    "usages",
]
