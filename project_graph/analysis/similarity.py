"""Structural similarity between function signatures.

Each function or method is reduced to a Signature (parameters, async flag,
a control-flow token sequence and the set of called names); every pair is
scored 0-100 and pairs at or above the threshold are reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from project_graph.analysis.units import FunctionUnit, iter_units, scoped_files
from project_graph.extractor.node_kinds import NodeKind, node_text, visit
from project_graph.models import FilterConfig, Project

_PAGE_SIZE = 20

DEFAULT_THRESHOLD = 60

# Pairs where both structural hashes are shorter than this are skipped
_MIN_HASH_LENGTH = 3

_WEIGHT_PARAM_COUNT = 30
_WEIGHT_PARAM_NAMES = 20
_WEIGHT_ASYNC = 10
_WEIGHT_STRUCTURE = 25
_WEIGHT_CALLS = 15


@dataclass
class Signature:
    name: str
    file: str
    line: int
    param_names: list[str] = field(default_factory=list)
    is_async: bool = False
    body_hash: str = ""
    calls: list[str] = field(default_factory=list)

    @property
    def param_count(self) -> int:
        return len(self.param_names)

    def to_dict(self) -> dict:
        return {"name": self.name, "file": self.file, "line": self.line}


def hash_body_structure(body) -> str:
    """Ordered control-flow tokens of *body*, joined by ``|``."""
    tokens: list[str] = []
    if body is None:
        return ""

    def token(value):
        return lambda _node: tokens.append(value)

    def on_for_in(node):
        tokens.append("FOROF" if any(c.type == "of" for c in node.children) else "FORIN")

    visit(body, {
        NodeKind.IF_STATEMENT: token("IF"),
        NodeKind.FOR_STATEMENT: token("FOR"),
        NodeKind.FOR_IN_STATEMENT: on_for_in,
        NodeKind.WHILE_STATEMENT: token("WHILE"),
        NodeKind.SWITCH_STATEMENT: token("SWITCH"),
        NodeKind.TRY_STATEMENT: token("TRY"),
        NodeKind.RETURN_STATEMENT: token("RET"),
        NodeKind.THROW_STATEMENT: token("THROW"),
        NodeKind.AWAIT_EXPRESSION: token("AWAIT"),
    })
    return "|".join(tokens)


def build_signature(unit: FunctionUnit, file: str) -> Signature:
    calls: list[str] = []

    def on_call(node):
        callee = node.child_by_field_name("function")
        if callee is None:
            return
        if callee.type == "identifier":
            name = node_text(callee)
        elif callee.type == "member_expression":
            prop = callee.child_by_field_name("property")
            if prop is None or prop.type != "property_identifier":
                return
            name = node_text(prop)
        else:
            return
        if name not in calls:
            calls.append(name)

    if unit.body is not None:
        visit(unit.body, {NodeKind.CALL_EXPRESSION: on_call})

    return Signature(
        name=unit.name,
        file=file,
        line=unit.line,
        param_names=unit.params,
        is_async=unit.is_async,
        body_hash=hash_body_structure(unit.body),
        calls=calls,
    )


def _overlap(a: list[str], b: list[str]) -> tuple[float, list[str]]:
    """Share of *a*'s items found in *b*, over the longer list; nothing if either is empty."""
    if not a or not b:
        return 0.0, []
    common = [item for item in a if item in b]
    return len(common) / max(len(a), len(b)), common


def calculate_similarity(a: Signature, b: Signature) -> tuple[int, list[str]]:
    """Score a pair 0-100 and collect the human-readable reasons."""
    reasons: list[str] = []
    score = 0

    if a.param_count == b.param_count:
        score += _WEIGHT_PARAM_COUNT
        reasons.append("Same param count")

    param_sim, common_params = _overlap(a.param_names, b.param_names)
    score += round(param_sim * _WEIGHT_PARAM_NAMES)
    if common_params and param_sim >= 0.5:
        reasons.append(f"Similar params: {', '.join(common_params)}")

    if a.is_async == b.is_async:
        score += _WEIGHT_ASYNC

    if a.body_hash and a.body_hash == b.body_hash:
        score += _WEIGHT_STRUCTURE
        reasons.append("Identical structure")
    elif a.body_hash and b.body_hash:
        struct_sim, _ = _overlap(a.body_hash.split("|"), b.body_hash.split("|"))
        score += round(struct_sim * _WEIGHT_STRUCTURE)
        if struct_sim >= 0.5:
            reasons.append("Similar control flow")

    call_sim, common_calls = _overlap(a.calls, b.calls)
    score += round(call_sim * _WEIGHT_CALLS)
    if len(common_calls) >= 2:
        reasons.append(f"Common calls: {', '.join(common_calls[:3])}")

    return score, reasons


def collect_signatures(files) -> list[Signature]:
    signatures: list[Signature] = []
    for source in files:
        for unit in iter_units(source.tree.root_node):
            if unit.kind == "arrow":
                continue
            if unit.kind == "method" and (unit.method_kind != "method" or unit.name.startswith("_")):
                continue
            signatures.append(build_signature(unit, source.rel_path))
    return signatures


def find_similar_pairs(signatures: list[Signature], threshold: int = DEFAULT_THRESHOLD) -> list[dict]:
    pairs: list[dict] = []
    for i, a in enumerate(signatures):
        for b in signatures[i + 1:]:
            if a.file == b.file and a.name == b.name:
                continue
            if len(a.body_hash) < _MIN_HASH_LENGTH and len(b.body_hash) < _MIN_HASH_LENGTH:
                continue
            similarity, reasons = calculate_similarity(a, b)
            if similarity >= threshold and reasons:
                pairs.append({
                    "a": a.to_dict(),
                    "b": b.to_dict(),
                    "similarity": similarity,
                    "reasons": reasons,
                })
    pairs.sort(key=lambda pair: -pair["similarity"])
    return pairs


def score_similarity(
    path: Path | str | None = None,
    threshold: int = DEFAULT_THRESHOLD,
    filters: FilterConfig | None = None,
    project: Project | None = None,
    scope: str = "",
) -> dict:
    """Report function pairs scoring at least *threshold*; returns {total, pairs}."""
    signatures = collect_signatures(scoped_files(path, filters, project, scope))
    pairs = find_similar_pairs(signatures, threshold)
    return {"total": len(pairs), "pairs": pairs[:_PAGE_SIZE]}
