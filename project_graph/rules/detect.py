"""Project fingerprinting: which rule sets apply to a project."""

from __future__ import annotations

import logging
from itertools import islice
from pathlib import Path

from project_graph.config import find_project_root, read_package_json
from project_graph.models import FilterConfig
from project_graph.rules.models import RuleSet
from project_graph.scanner import iter_source_files

logger = logging.getLogger(__name__)

# Source files read when package.json does not decide
SAMPLE_SIZE = 50


def package_dependencies(root: Path) -> list[str]:
    """dependencies + devDependencies of the nearest package.json."""
    pkg = read_package_json(root)
    if pkg is None:
        pkg = read_package_json(find_project_root(root))
    if pkg is None:
        return []
    return list(pkg.get("dependencies") or {}) + list(pkg.get("devDependencies") or {})


def detect_rule_sets(
    root: Path,
    rule_sets: dict[str, RuleSet],
    filters: FilterConfig | None = None,
) -> dict:
    """Returns {detected: [names], reasons: {name: reason}}.

    Manifest dependencies are checked first; sets still undecided fall back
    to scanning a bounded sample of source files for marker strings.
    """
    root = Path(root)
    deps = set(package_dependencies(root))
    detected: list[str] = []
    reasons: dict[str, str] = {}
    pending: list[RuleSet] = []

    for name, rule_set in rule_sets.items():
        detect = rule_set.detect
        if not detect:
            continue
        dep = next((d for d in detect.get("packageJson") or [] if d in deps), None)
        if dep is not None:
            detected.append(name)
            reasons[name] = f'Found "{dep}" in package.json'
        elif detect.get("imports") or detect.get("patterns"):
            pending.append(rule_set)

    if pending:
        samples = _read_samples(root, filters)
        for rule_set in pending:
            hit = _find_marker(rule_set, samples)
            if hit is not None:
                marker, rel_path = hit
                detected.append(rule_set.name)
                reasons[rule_set.name] = f'Found "{marker}" in {rel_path}'

    return {"detected": detected, "reasons": reasons}


def _find_marker(rule_set: RuleSet, samples: list[tuple[str, str]]) -> tuple[str, str] | None:
    markers = list(rule_set.detect.get("imports") or []) + list(rule_set.detect.get("patterns") or [])
    for rel_path, text in samples:
        for marker in markers:
            if marker in text:
                return marker, rel_path
    return None


def _read_samples(root: Path, filters: FilterConfig | None) -> list[tuple[str, str]]:
    samples: list[tuple[str, str]] = []
    base = root if root.is_dir() else root.parent
    for path in islice(iter_source_files(root, filters), SAMPLE_SIZE):
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.debug("Cannot read %s: %s", path, exc)
            continue
        samples.append((path.relative_to(base).as_posix(), text))
    return samples
