"""JSDoc skeletons for functions and methods that have no doc block yet.

Parameter types come from TypeScript annotations where present, otherwise
from the default value's literal kind; everything else is ``*``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from project_graph.analysis.undocumented import documentable_units, jsdoc_above
from project_graph.analysis.units import FunctionUnit, scoped_files
from project_graph.extractor.node_kinds import node_text
from project_graph.models import FilterConfig, Project

_LITERAL_TYPES = {
    "string": "string",
    "template_string": "string",
    "number": "number",
    "true": "boolean",
    "false": "boolean",
    "array": "Array",
    "object": "Object",
}


@dataclass
class JSDocTemplate:
    name: str
    kind: str  # "function" | "method"
    file: str
    line: int
    jsdoc: str

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.kind, "file": self.file, "line": self.line, "jsdoc": self.jsdoc}


def param_tag(param) -> tuple[str, str]:
    """(type, display name) for one formal parameter; optional names are bracketed."""
    kind = param.type
    if kind in ("required_parameter", "optional_parameter"):
        pattern = param.child_by_field_name("pattern")
        value = param.child_by_field_name("value")
        annotation = param.child_by_field_name("type")
        type_name, name = param_tag(pattern) if pattern is not None else ("*", "param")
        if annotation is not None:
            type_name = node_text(annotation).lstrip(":").strip()
        elif value is not None:
            type_name = _literal_type(value)
        if (kind == "optional_parameter" or value is not None) and not name.startswith("["):
            name = f"[{name}]"
        return type_name, name
    if kind == "identifier":
        return "*", node_text(param)
    if kind == "assignment_pattern":
        left = param.child_by_field_name("left")
        name = node_text(left) if left is not None and left.type == "identifier" else "param"
        return _literal_type(param.child_by_field_name("right")), f"[{name}]"
    if kind == "rest_pattern":
        inner = param.named_children[0] if param.named_children else None
        if inner is not None and inner.type == "identifier":
            return "Array", f"...{node_text(inner)}"
        return "Array", "param"
    if kind == "object_pattern":
        return "Object", "options"
    if kind == "array_pattern":
        return "Array", "args"
    return "*", "param"


def build_jsdoc(name: str, params: list[tuple[str, str]], is_async: bool, include_tests: bool = True) -> str:
    lines = ["/**", f" * Describe {name}."]
    for type_name, param_name in params:
        lines.append(f" * @param {{{type_name}}} {param_name}")
    lines.append(f" * @returns {{{'Promise<*>' if is_async else '*'}}}")
    if include_tests:
        lines.append(" * @test action: describe the test scenario")
        lines.append(" * @expect result: describe the expected outcome")
    lines.append(" */")
    return "\n".join(lines)


def generate_jsdoc(
    path: Path | str | None = None,
    include_tests: bool = True,
    filters: FilterConfig | None = None,
    project: Project | None = None,
    scope: str = "",
) -> dict:
    """Returns {total, items} with one template per function or method lacking a doc block."""
    items: list[JSDocTemplate] = []
    for source in scoped_files(path, filters, project, scope):
        for name, unit in documentable_units(source.tree.root_node):
            if jsdoc_above(source.lines, unit.line) is not None:
                continue
            items.append(JSDocTemplate(
                name=name,
                kind=unit.kind,
                file=source.rel_path,
                line=unit.line,
                jsdoc=build_jsdoc(unit.name, _param_tags(unit), unit.is_async, include_tests),
            ))
    return {"total": len(items), "items": [t.to_dict() for t in items]}


def generate_jsdoc_for(
    path: Path | str,
    name: str,
    include_tests: bool = True,
    filters: FilterConfig | None = None,
) -> dict | None:
    """Template for one function, or one method given bare or as ``Class.method``."""
    for item in generate_jsdoc(path, include_tests, filters)["items"]:
        if item["name"] == name or item["name"].endswith(f".{name}"):
            return item
    return None


def _param_tags(unit: FunctionUnit) -> list[tuple[str, str]]:
    params = unit.node.child_by_field_name("parameters")
    if params is None:
        return []
    return [param_tag(p) for p in params.named_children if p.type != "comment"]


def _literal_type(value) -> str:
    if value is None:
        return "*"
    return _LITERAL_TYPES.get(value.type, "*")
