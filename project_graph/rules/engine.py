"""Line-oriented rule matcher over raw file text.

Matching ignores hits inside ``//`` comments and string literals on the
same line, and can require the hit to sit inside a markup block such as
``<template>...</template>``. Multi-line comments and strings are not
tracked.
"""

from __future__ import annotations

import fnmatch
import logging
import re
from collections import Counter
from pathlib import Path

from project_graph.models import FilterConfig, Severity, Violation
from project_graph.rules.detect import detect_rule_sets
from project_graph.rules.models import Rule, RuleSet
from project_graph.rules.store import RuleStore
from project_graph.scanner import iter_files

logger = logging.getLogger(__name__)

_PAGE_SIZE = 50

_QUOTES = "'\"`"


def in_comment_or_string(line: str, offset: int) -> bool:
    """True if *offset* falls inside a ``//`` comment or an open string on *line*."""
    quote: str | None = None
    i = 0
    while i < offset:
        ch = line[i]
        if quote is not None:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch == "/" and line.startswith("//", i):
            return True
        i += 1
    return quote is not None


def markup_depths(lines: list[str], tag: str) -> list[int]:
    """Cumulative ``<tag>`` nesting depth at the end of each line."""
    opening = re.compile(r"<" + re.escape(tag) + r"(?=[\s>/])[^>]*?(/?)>")
    closing = re.compile(r"</" + re.escape(tag) + r"\s*>")
    depths: list[int] = []
    depth = 0
    for line in lines:
        depth += sum(1 for m in opening.finditer(line) if not m.group(1))
        depth -= len(closing.findall(line))
        depths.append(depth)
    return depths


def _candidates(rule: Rule, line: str):
    """(offset, matched text) for every occurrence of the rule's pattern."""
    if rule.is_regex:
        for m in rule.regex.finditer(line):
            yield m.start(), m.group(0)
        return
    start = line.find(rule.pattern)
    while start != -1:
        yield start, rule.pattern
        start = line.find(rule.pattern, start + 1)


def match_line(rule: Rule, line: str) -> str | None:
    """First match of *rule* on *line* outside comments and strings."""
    for offset, text in _candidates(rule, line):
        if not in_comment_or_string(line, offset):
            return text
    return None


def check_text(rule: Rule, text: str, rel_path: str) -> list[Violation]:
    lines = text.split("\n")
    depths = markup_depths(lines, rule.context) if rule.context else None

    violations: list[Violation] = []
    for i, line in enumerate(lines):
        matched = match_line(rule, line)
        if matched is None:
            continue
        if depths is not None and depths[i] <= 0:
            continue
        violations.append(Violation(
            rule_id=rule.id,
            rule_name=rule.name,
            severity=rule.severity,
            file=rel_path,
            line=i + 1,
            match=matched,
            replacement=rule.replacement,
            rule_set=rule.rule_set,
        ))
    return violations


def is_excluded(rel_path: str, patterns: list[str]) -> bool:
    name = rel_path.rsplit("/", 1)[-1]
    return any(fnmatch.fnmatch(name, p) or fnmatch.fnmatch(rel_path, p) for p in patterns)


def select_rule_sets(
    root: Path,
    rule_sets: dict[str, RuleSet],
    rule_set: str | None = None,
    auto_detect: bool = True,
    filters: FilterConfig | None = None,
) -> tuple[list[RuleSet], dict | None]:
    """Rule sets to run, plus the detection result when auto-detection ran."""
    if rule_set:
        selected = rule_sets.get(rule_set)
        return ([selected] if selected else []), None
    if not auto_detect:
        return list(rule_sets.values()), None

    detection = detect_rule_sets(root, rule_sets, filters)
    if not detection["detected"]:
        return list(rule_sets.values()), detection

    names = set(detection["detected"])
    selected = [rs for name, rs in rule_sets.items() if name in names or rs.always_apply]
    return selected, detection


def dedupe_violations(violations: list[Violation]) -> list[Violation]:
    """Keep the first violation per (file, line, matched text)."""
    seen: set[tuple[str, int, str]] = set()
    unique: list[Violation] = []
    for v in violations:
        if v.dedup_key in seen:
            continue
        seen.add(v.dedup_key)
        unique.append(v)
    return unique


def check_rules(
    root: Path | str,
    rule_set: str | None = None,
    severity: str | None = None,
    auto_detect: bool = True,
    filters: FilterConfig | None = None,
    store: RuleStore | None = None,
    scope: str = "",
) -> dict:
    """Run the applicable rule sets over every matching file under *root*.

    Returns {total, bySeverity, byRule, violations, detected?}.
    """
    root = Path(root)
    store = store or RuleStore()
    selected, detection = select_rule_sets(root, store.load(), rule_set, auto_detect, filters)
    wanted = Severity(severity) if severity else None

    rules_by_pattern: dict[str, list[Rule]] = {}
    for rs in selected:
        for rule in rs.rules:
            rules_by_pattern.setdefault(rule.file_pattern, []).append(rule)

    base = root if root.is_dir() else root.parent
    violations: list[Violation] = []
    for pattern, rules in rules_by_pattern.items():
        for path in iter_files(root, filters, pattern=pattern):
            rel_path = path.relative_to(base).as_posix()
            if scope and not (rel_path == scope or rel_path.startswith(scope + "/")):
                continue
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                logger.warning("Cannot read %s: %s", path, exc)
                continue
            for rule in rules:
                if is_excluded(rel_path, rule.exclude):
                    continue
                violations.extend(check_text(rule, text, rel_path))

    violations = dedupe_violations(violations)
    if wanted is not None:
        violations = [v for v in violations if v.severity is wanted]
    violations.sort(key=lambda v: (v.severity.rank, v.file, v.line))

    by_rule = Counter(v.rule_id for v in violations)
    result = {
        "total": len(violations),
        "bySeverity": {s.value: sum(1 for v in violations if v.severity is s) for s in Severity},
        "byRule": dict(by_rule),
        "violations": [v.to_dict() for v in violations[:_PAGE_SIZE]],
    }
    if detection is not None:
        result["detected"] = detection
    return result
