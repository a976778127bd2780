"""Legacy code patterns and dependencies superseded by Node built-ins."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from project_graph.analysis.units import scoped_files
from project_graph.config import read_package_json
from project_graph.extractor.node_kinds import NodeKind, has_token, node_kind, node_line, node_text, walk_with_ancestors
from project_graph.models import FilterConfig, Project, Severity

_PAGE_SIZE = 50

REDUNDANT_DEPS: dict[str, tuple[str, str]] = {
    "node-fetch": ("fetch()", "Node 18"),
    "cross-fetch": ("fetch()", "Node 18"),
    "isomorphic-fetch": ("fetch()", "Node 18"),
    "uuid": ("crypto.randomUUID()", "Node 19"),
    "deep-clone": ("structuredClone()", "Node 17"),
    "lodash.clonedeep": ("structuredClone()", "Node 17"),
    "abort-controller": ("AbortController (global)", "Node 15"),
    "form-data": ("FormData (global)", "Node 18"),
    "web-streams-polyfill": ("ReadableStream (global)", "Node 18"),
    "url-parse": ("URL (global)", "Node 10"),
    "querystring": ("URLSearchParams", "Node 10"),
    "rimraf": ("fs.rm({ recursive: true })", "Node 14"),
    "mkdirp": ("fs.mkdir({ recursive: true })", "Node 10"),
    "recursive-readdir": ("fs.readdir({ recursive: true })", "Node 20"),
    "glob": ("fs.glob()", "Node 22"),
}

_ASYNC_SCOPES = {"function_declaration", "function_expression", "function", "arrow_function", "method_definition"}


@dataclass(frozen=True)
class CodePattern:
    name: str
    description: str
    severity: Severity
    replacement: str
    check: Callable[[object, tuple], bool]


def _member_parts(node) -> tuple[str, str] | None:
    if node is None or node.type != "member_expression":
        return None
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    if obj is None or prop is None:
        return None
    return node_text(obj), node_text(prop)


def _is_var(node, ancestors) -> bool:
    return node.type == "variable_declaration"


def _is_require(node, ancestors) -> bool:
    callee = node.child_by_field_name("function")
    return callee is not None and callee.type == "identifier" and node_text(callee) == "require"


def _is_module_exports(node, ancestors) -> bool:
    return _member_parts(node.child_by_field_name("left")) == ("module", "exports")


def _is_buffer_constructor(node, ancestors) -> bool:
    ctor = node.child_by_field_name("constructor")
    return ctor is not None and ctor.type == "identifier" and node_text(ctor) == "Buffer"


def _is_arguments(node, ancestors) -> bool:
    return node_text(node) == "arguments"


def _is_promisify(node, ancestors) -> bool:
    return _member_parts(node.child_by_field_name("function")) == ("util", "promisify")


def _is_sync_in_async(node, ancestors) -> bool:
    parts = _member_parts(node.child_by_field_name("function"))
    if parts is None or not parts[1].endswith("Sync"):
        return False
    return any(a.type in _ASYNC_SCOPES and has_token(a, "async") for a in ancestors)


# NodeKind -> patterns checked on nodes of that kind
CODE_PATTERNS: dict[NodeKind, list[CodePattern]] = {
    NodeKind.VARIABLE_DECLARATION: [
        CodePattern("var-usage", "Use const/let instead of var", Severity.WARNING, "const/let", _is_var),
    ],
    NodeKind.CALL_EXPRESSION: [
        CodePattern("require-usage", "Use ESM import instead of require()", Severity.INFO,
                    "import ... from", _is_require),
        CodePattern("promisify-usage", "Use fs/promises instead of util.promisify", Severity.INFO,
                    "fs/promises module", _is_promisify),
        CodePattern("sync-in-async", "Avoid sync methods in async context (readFileSync, etc.)",
                    Severity.WARNING, "async fs/promises methods", _is_sync_in_async),
    ],
    NodeKind.ASSIGNMENT_EXPRESSION: [
        CodePattern("module-exports", "Use ESM export instead of module.exports", Severity.INFO,
                    "export default/export", _is_module_exports),
    ],
    NodeKind.NEW_EXPRESSION: [
        CodePattern("buffer-constructor", "new Buffer() is deprecated", Severity.ERROR,
                    "Buffer.from() / Buffer.alloc()", _is_buffer_constructor),
    ],
    NodeKind.IDENTIFIER: [
        CodePattern("arguments-usage", "Use rest parameters instead of arguments", Severity.WARNING,
                    "...args", _is_arguments),
    ],
}


def find_code_patterns(source) -> list[dict]:
    matches: list[dict] = []
    for node, ancestors in walk_with_ancestors(source.tree.root_node):
        kind = node_kind(node)
        for pattern in CODE_PATTERNS.get(kind, ()):
            if pattern.check(node, ancestors):
                matches.append({
                    "pattern": pattern.name,
                    "description": pattern.description,
                    "file": source.rel_path,
                    "line": node_line(node),
                    "severity": pattern.severity.value,
                    "replacement": pattern.replacement,
                })
    return matches


def find_redundant_deps(directory: Path) -> list[dict]:
    pkg = read_package_json(directory)
    if pkg is None:
        return []
    names = list(pkg.get("dependencies") or {}) + list(pkg.get("devDependencies") or {})
    redundant: list[dict] = []
    for name in dict.fromkeys(names):
        if name in REDUNDANT_DEPS:
            replacement, since = REDUNDANT_DEPS[name]
            redundant.append({"name": name, "replacement": replacement, "since": since})
    return redundant


def find_outdated_patterns(
    path: Path | str | None = None,
    code_only: bool = False,
    deps_only: bool = False,
    filters: FilterConfig | None = None,
    project: Project | None = None,
    scope: str = "",
) -> dict:
    """Returns {codePatterns, redundantDeps, stats}."""
    code_patterns: list[dict] = []
    redundant_deps: list[dict] = []

    if not deps_only:
        for source in scoped_files(path, filters, project, scope):
            code_patterns.extend(find_code_patterns(source))
        code_patterns.sort(key=lambda p: Severity(p["severity"]).rank)

    if not code_only:
        directory = project.root if project is not None else Path(path)
        redundant_deps = find_redundant_deps(directory if directory.is_dir() else directory.parent)

    by_pattern: dict[str, int] = {}
    for match in code_patterns:
        by_pattern[match["pattern"]] = by_pattern.get(match["pattern"], 0) + 1

    stats = {
        "totalPatterns": len(code_patterns),
        "byPattern": by_pattern,
        "bySeverity": {
            severity.value: sum(1 for p in code_patterns if p["severity"] == severity.value)
            for severity in Severity
        },
        "redundantDeps": len(redundant_deps),
    }
    return {
        "codePatterns": code_patterns[:_PAGE_SIZE],
        "redundantDeps": redundant_deps,
        "stats": stats,
    }
