"""Health score: every signal folded into one weighted 0-100 score."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable

from project_graph.analysis.complexity import score_complexity
from project_graph.analysis.dead_code import analyze_liveness
from project_graph.analysis.large_files import score_file_sizes
from project_graph.analysis.outdated import find_outdated_patterns
from project_graph.analysis.similarity import score_similarity
from project_graph.analysis.undocumented import find_undocumented
from project_graph.models import FilterConfig, HealthScore
from project_graph.pipeline import load_enclosing_project
from project_graph.rules.engine import check_rules
from project_graph.rules.store import RuleStore

logger = logging.getLogger(__name__)

SIGNALS = ("dead_code", "undocumented", "similar", "complexity", "large_files", "outdated", "rules")

# Sub-scorer settings used for the overall score
SIMILARITY_THRESHOLD = 70
MIN_COMPLEXITY = 5
UNDOCUMENTED_LEVEL = "tests"

_MAX_WORKERS = 4


def _empty_results() -> dict[str, dict]:
    return {
        "dead_code": {"total": 0, "byType": {}, "items": []},
        "undocumented": {"total": 0, "byMissing": {}, "items": []},
        "similar": {"total": 0, "pairs": []},
        "complexity": {"total": 0, "stats": {}, "items": []},
        "large_files": {"total": 0, "stats": {}, "items": []},
        "outdated": {"codePatterns": [], "redundantDeps": [], "stats": {}},
        "rules": {"total": 0, "bySeverity": {}, "byRule": {}, "violations": []},
    }


def get_rating(score: int) -> str:
    if score >= 90:
        return "excellent"
    if score >= 70:
        return "good"
    if score >= 50:
        return "warning"
    return "critical"


def compute_health_score(results: dict[str, dict]) -> HealthScore:
    """Subtract capped penalties per signal from 100.

    Signals absent from *results* contribute nothing.
    """
    score = 100.0
    top_issues: list[str] = []

    dead = results.get("dead_code")
    if dead is not None:
        total = dead.get("total", 0)
        score -= min(total * 2, 20)
        if total > 0:
            top_issues.append(f"{total} unused functions/classes")

    undocumented = results.get("undocumented")
    if undocumented is not None:
        total = undocumented.get("total", 0)
        score -= min(total * 0.5, 15)
        if total > 10:
            top_issues.append(f"{total} undocumented items")

    similar = results.get("similar")
    if similar is not None:
        total = similar.get("total", 0)
        score -= min(total * 3, 15)
        if total > 0:
            top_issues.append(f"{total} similar function pairs")

    complexity = results.get("complexity")
    if complexity is not None:
        stats = complexity.get("stats") or {}
        critical, high = stats.get("critical", 0), stats.get("high", 0)
        score -= min(critical * 5 + high * 2, 20)
        if critical > 0:
            top_issues.append(f"{critical} critical complexity functions")

    large_files = results.get("large_files")
    if large_files is not None:
        stats = large_files.get("stats") or {}
        critical, warning = stats.get("critical", 0), stats.get("warning", 0)
        score -= min(critical * 4 + warning, 10)
        if critical > 0:
            top_issues.append(f"{critical} files need splitting")

    # Outdated code patterns and custom-rule violations share one budget
    errors = warnings = 0
    outdated = results.get("outdated")
    if outdated is not None:
        by_severity = (outdated.get("stats") or {}).get("bySeverity") or {}
        errors += by_severity.get("error", 0)
        warnings += by_severity.get("warning", 0)
    rules = results.get("rules")
    if rules is not None:
        by_severity = rules.get("bySeverity") or {}
        errors += by_severity.get("error", 0)
        warnings += by_severity.get("warning", 0)
    if outdated is not None or rules is not None:
        score -= min(errors * 3 + warnings, 10)
        if errors > 0:
            top_issues.append(f"{errors} error-level pattern violations")

    if outdated is not None:
        redundant = len(outdated.get("redundantDeps") or [])
        score -= min(redundant, 5)
        if redundant > 0:
            top_issues.append(f"{redundant} redundant npm dependencies")

    final = max(0, min(100, round(score)))
    return HealthScore(score=final, rating=get_rating(final), top_issues=top_issues[:5])


def _run_signals(
    path: Path | str,
    signals: list[str] | tuple[str, ...] | None = None,
    filters: FilterConfig | None = None,
    store: RuleStore | None = None,
) -> dict[str, dict]:
    """Load the project once, then run the selected scorers concurrently."""
    selected = list(SIGNALS) if signals is None else [s for s in signals if s in SIGNALS]
    unknown = set(signals or ()) - set(SIGNALS)
    if unknown:
        raise ValueError(f"Unknown signals: {', '.join(sorted(unknown))}")
    if not selected:
        return {}

    project, scope = load_enclosing_project(Path(path), filters)
    jobs: dict[str, Callable[[], dict]] = {
        "dead_code": lambda: analyze_liveness(path, project=project, scope=scope),
        "undocumented": lambda: find_undocumented(level=UNDOCUMENTED_LEVEL, project=project, scope=scope),
        "similar": lambda: score_similarity(threshold=SIMILARITY_THRESHOLD, project=project, scope=scope),
        "complexity": lambda: score_complexity(min_complexity=MIN_COMPLEXITY, project=project, scope=scope),
        "large_files": lambda: score_file_sizes(project=project, scope=scope),
        "outdated": lambda: find_outdated_patterns(project=project, scope=scope),
        "rules": lambda: check_rules(project.root, filters=filters, store=store, scope=scope),
    }

    empty = _empty_results()
    results: dict[str, dict] = {}
    with ThreadPoolExecutor(max_workers=_MAX_WORKERS) as pool:
        futures = {pool.submit(jobs[name]): name for name in selected}
        for future in as_completed(futures):
            name = futures[future]
            try:
                results[name] = future.result()
            except Exception:
                logger.exception("Signal %s failed for %s", name, path)
                results[name] = empty[name]
    return results


def run_full_analysis(
    path: Path | str,
    include_items: bool = False,
    signals: list[str] | tuple[str, ...] | None = None,
    filters: FilterConfig | None = None,
    store: RuleStore | None = None,
) -> dict:
    """Per-signal summaries plus the overall HealthScore under ``overall``."""
    results = _run_signals(path, signals, filters, store)
    overall = compute_health_score(results)

    summary: dict[str, dict] = {}
    if "dead_code" in results:
        r = results["dead_code"]
        summary["deadCode"] = {"total": r["total"], "byType": r["byType"]}
        if include_items:
            summary["deadCode"]["items"] = r["items"][:10]
    if "undocumented" in results:
        r = results["undocumented"]
        summary["undocumented"] = {"total": r["total"], "byMissing": r["byMissing"]}
        if include_items:
            summary["undocumented"]["items"] = r["items"][:10]
    if "similar" in results:
        r = results["similar"]
        summary["similar"] = {"total": r["total"]}
        if include_items:
            summary["similar"]["pairs"] = r["pairs"][:5]
    if "complexity" in results:
        r = results["complexity"]
        summary["complexity"] = {"total": r["total"], "stats": r["stats"]}
        if include_items:
            summary["complexity"]["items"] = r["items"][:10]
    if "large_files" in results:
        r = results["large_files"]
        summary["largeFiles"] = {"total": r["total"], "stats": r["stats"]}
        if include_items:
            summary["largeFiles"]["items"] = r["items"][:10]
    if "outdated" in results:
        r = results["outdated"]
        summary["outdated"] = {
            "totalPatterns": (r.get("stats") or {}).get("totalPatterns", 0),
            "redundantDeps": r["redundantDeps"],
        }
        if include_items:
            summary["outdated"]["codePatterns"] = r["codePatterns"][:10]
    if "rules" in results:
        r = results["rules"]
        summary["rules"] = {"total": r["total"], "bySeverity": r["bySeverity"]}
        if include_items:
            summary["rules"]["violations"] = r["violations"][:10]

    summary["overall"] = overall.to_dict()
    return summary


def aggregate(
    path: Path | str,
    signals: list[str] | tuple[str, ...] | None = None,
    filters: FilterConfig | None = None,
    store: RuleStore | None = None,
) -> HealthScore:
    """Only the HealthScore for *path*."""
    return compute_health_score(_run_signals(path, signals, filters, store))
