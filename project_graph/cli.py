"""Click CLI: graph queries, analyzers, JSDoc and checklist tools, rule management and the HTTP server."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from project_graph import __version__
from project_graph.analysis.checklist import Checklist, get_all_features
from project_graph.analysis.complexity import score_complexity
from project_graph.analysis.dead_code import analyze_liveness
from project_graph.analysis.graph_queries import GraphCache, deps, expand, focus_zone, skeleton, usages
from project_graph.analysis.health import SIGNALS, run_full_analysis
from project_graph.analysis.jsdoc import generate_jsdoc, generate_jsdoc_for
from project_graph.analysis.large_files import score_file_sizes
from project_graph.analysis.outdated import find_outdated_patterns
from project_graph.analysis.similarity import DEFAULT_THRESHOLD, score_similarity
from project_graph.analysis.undocumented import LEVELS, find_undocumented
from project_graph.config import CHECKLIST_FILE
from project_graph.errors import ProjectGraphError
from project_graph.models import Severity
from project_graph.rules.engine import check_rules
from project_graph.rules.store import RuleStore
from project_graph.scanner.git import DEFAULT_REVISION, changed_files

_PATH = click.Path(exists=True, path_type=Path)
_SEVERITY_CHOICES = [s.value for s in Severity]
_RATING_COLORS = {"excellent": "green", "good": "green", "warning": "yellow", "critical": "red"}


def _emit(data) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr")
def cli(verbose: bool):
    """project-graph: compact symbol graph and quality signals for JS/TS projects."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── Graph ───────────────────────────────────────────────────────


@cli.command("skeleton")
@click.argument("path", type=_PATH, default=".")
def skeleton_cmd(path: Path):
    """Print the compact project skeleton (class legend, stats, counts)."""
    _emit(skeleton(GraphCache().get(path)))


@cli.command("expand")
@click.argument("symbol")
@click.option("--path", "-p", type=_PATH, default=".", help="Project directory")
def expand_cmd(symbol: str, path: Path):
    """Expand a symbol such as SN or SN.tP."""
    _emit(expand(GraphCache().get(path), symbol))


@cli.command("deps")
@click.argument("symbol")
@click.option("--path", "-p", type=_PATH, default=".", help="Project directory")
def deps_cmd(symbol: str, path: Path):
    """Show imports, callers and calls of a symbol."""
    _emit(deps(GraphCache().get(path), symbol))


@cli.command("usages")
@click.argument("symbol")
@click.option("--path", "-p", type=_PATH, default=".", help="Project directory")
def usages_cmd(symbol: str, path: Path):
    """List declarations whose calls mention a symbol."""
    _emit(usages(GraphCache().get(path), symbol))


@cli.command("focus")
@click.argument("path", type=_PATH, default=".")
@click.option("--file", "-f", "files", multiple=True, help="File to focus on, relative to PATH")
@click.option("--git-diff", is_flag=True, help="Focus on source files changed since --since")
@click.option("--since", default=DEFAULT_REVISION, show_default=True, help="Revision for --git-diff")
def focus_cmd(path: Path, files: tuple[str, ...], git_diff: bool, since: str):
    """Expand the classes in recently touched files; list every other node."""
    focus_files = list(files)
    if git_diff:
        focus_files += changed_files(path if path.is_dir() else path.parent, since)
    _emit(focus_zone(GraphCache().get(path), focus_files))


# ── Analyzers ───────────────────────────────────────────────────


@cli.command()
@click.argument("path", type=_PATH, default=".")
def deadcode(path: Path):
    """Report dead functions, classes, exports and unused locals."""
    _emit(analyze_liveness(path))


@cli.command()
@click.argument("path", type=_PATH, default=".")
@click.option("--min", "min_complexity", default=1, show_default=True, help="Minimum complexity to report")
@click.option("--problematic", is_flag=True, help="Only high and critical items")
def complexity(path: Path, min_complexity: int, problematic: bool):
    """Cyclomatic complexity per function and method."""
    _emit(score_complexity(path, min_complexity, problematic))


@cli.command()
@click.argument("path", type=_PATH, default=".")
@click.option("--threshold", "-t", default=DEFAULT_THRESHOLD, show_default=True, help="Minimum similarity (0-100)")
def similar(path: Path, threshold: int):
    """Find structurally similar function pairs."""
    _emit(score_similarity(path, threshold))


@cli.command()
@click.argument("path", type=_PATH, default=".")
@click.option("--problematic", is_flag=True, help="Only warning and critical files")
def largefiles(path: Path, problematic: bool):
    """Rate files by size pressure."""
    _emit(score_file_sizes(path, problematic))


@cli.command()
@click.argument("path", type=_PATH, default=".")
@click.option("--level", type=click.Choice(LEVELS), default="tests", show_default=True)
def undocumented(path: Path, level: str):
    """List functions and methods missing JSDoc tags."""
    _emit(find_undocumented(path, level))


@cli.command()
@click.argument("path", type=_PATH, default=".")
@click.option("--code-only", is_flag=True, help="Skip package.json checks")
@click.option("--deps-only", is_flag=True, help="Only check package.json")
def outdated(path: Path, code_only: bool, deps_only: bool):
    """Find legacy code patterns and redundant dependencies."""
    if code_only and deps_only:
        raise click.UsageError("--code-only and --deps-only are mutually exclusive")
    _emit(find_outdated_patterns(path, code_only, deps_only))


@cli.command()
@click.argument("path", type=_PATH, default=".")
@click.option("--items", "include_items", is_flag=True, help="Include top items per signal")
@click.option("--signal", "signals", multiple=True, type=click.Choice(SIGNALS), help="Run only these signals")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
def analyze(path: Path, include_items: bool, signals: tuple[str, ...], as_json: bool):
    """Run every analyzer and compute the health score."""
    try:
        result = run_full_analysis(path, include_items, signals or None)
    except ProjectGraphError as e:
        raise click.ClickException(str(e))

    if as_json:
        _emit(result)
        return

    overall = result["overall"]
    color = _RATING_COLORS.get(overall["rating"], "white")
    click.echo(f"Health: {click.style(str(overall['score']), fg=color, bold=True)}/100 ({overall['rating']})")
    for issue in overall["topIssues"]:
        click.echo(f"  - {issue}")


@cli.command()
@click.argument("path", type=_PATH, default=".")
@click.option("--name", "-n", help="Only this function or method (bare or Class.method)")
@click.option("--no-tests", is_flag=True, help="Leave out @test/@expect placeholders")
def jsdoc(path: Path, name: str | None, no_tests: bool):
    """Generate JSDoc skeletons for functions and methods without one."""
    if name is None:
        _emit(generate_jsdoc(path, not no_tests))
        return
    template = generate_jsdoc_for(path, name, not no_tests)
    if template is None:
        raise click.ClickException(f"No undocumented function or method named {name!r}")
    _emit(template)


# ── Test checklist ──────────────────────────────────────────────


@cli.group()
def checklist():
    """Track manual test steps declared with @test/@expect."""


@checklist.command("features")
@click.argument("path", type=_PATH, default=".")
def checklist_features(path: Path):
    """List annotated functions with their steps and expectations."""
    _emit([f.to_dict() for f in get_all_features(path)])


@checklist.command("pending")
@click.argument("path", type=_PATH, default=".")
def checklist_pending(path: Path):
    """List steps without a recorded result."""
    _emit(Checklist(CHECKLIST_FILE).pending(get_all_features(path)))


@checklist.command("summary")
@click.argument("path", type=_PATH, default=".")
def checklist_summary(path: Path):
    """Count passed, failed and pending steps."""
    _emit(Checklist(CHECKLIST_FILE).summary(get_all_features(path)))


@checklist.command("markdown")
@click.argument("path", type=_PATH, default=".")
def checklist_markdown(path: Path):
    """Print the checklist as Markdown."""
    click.echo(Checklist(CHECKLIST_FILE).markdown(get_all_features(path)))


@checklist.command("pass")
@click.argument("step_id")
def checklist_pass(step_id: str):
    """Record a step as passed."""
    _emit(Checklist(CHECKLIST_FILE).mark_passed(step_id))


@checklist.command("fail")
@click.argument("step_id")
@click.argument("reason")
def checklist_fail(step_id: str, reason: str):
    """Record a step as failed, with the reason."""
    _emit(Checklist(CHECKLIST_FILE).mark_failed(step_id, reason))


@checklist.command("reset")
def checklist_reset():
    """Forget every recorded result."""
    _emit(Checklist(CHECKLIST_FILE).reset())


# ── Rules ───────────────────────────────────────────────────────


@cli.group()
def rules():
    """Manage custom rule sets."""


@rules.command("list")
def rules_list():
    """List rule sets and their rules."""
    _emit(RuleStore().list_rule_sets())


@rules.command("set")
@click.argument("rule_set")
@click.argument("rule_json")
def rules_set(rule_set: str, rule_json: str):
    """Add or replace a rule, given as a JSON object."""
    try:
        rule = json.loads(rule_json)
    except ValueError as e:
        raise click.BadParameter(f"Invalid JSON: {e}", param_hint="RULE_JSON")
    try:
        _emit(RuleStore().set_rule(rule_set, rule))
    except ProjectGraphError as e:
        raise click.ClickException(str(e))


@rules.command("delete")
@click.argument("rule_set")
@click.argument("rule_id")
def rules_delete(rule_set: str, rule_id: str):
    """Delete a rule by id."""
    result = RuleStore().delete_rule(rule_set, rule_id)
    if not result["success"]:
        raise click.ClickException(result["message"])
    _emit(result)


@cli.command()
@click.argument("path", type=_PATH, default=".")
@click.option("--rule-set", "-r", help="Run only this rule set")
@click.option("--severity", "-s", type=click.Choice(_SEVERITY_CHOICES), help="Only report this severity")
@click.option("--no-detect", is_flag=True, help="Run every rule set instead of auto-detecting")
def check(path: Path, rule_set: str | None, severity: str | None, no_detect: bool):
    """Check files against the applicable rule sets."""
    _emit(check_rules(path, rule_set=rule_set, severity=severity, auto_detect=not no_detect))


# ── Server ──────────────────────────────────────────────────────


@cli.command()
@click.option("--port", "-p", default=8430, help="Port number")
@click.option("--host", default="127.0.0.1", help="Host address")
def serve(port: int, host: str):
    """Start the HTTP API."""
    import uvicorn

    from project_graph.web import create_app

    click.echo(f"Starting project-graph API at http://{host}:{port}")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()
