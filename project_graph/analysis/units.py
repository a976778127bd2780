"""Function-like units of a syntax tree, shared by the metric scorers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from project_graph.extractor.node_kinds import NodeKind, has_token, node_line, node_text, visit
from project_graph.models import FilterConfig, Project, SourceFile
from project_graph.pipeline import in_scope, load_project


@dataclass
class FunctionUnit:
    name: str
    kind: str  # "function" | "method" | "arrow"
    node: object
    body: object | None
    line: int
    is_async: bool = False
    method_kind: str = "method"

    @property
    def params(self) -> list[str]:
        params = self.node.child_by_field_name("parameters")
        if params is None:
            param = self.node.child_by_field_name("parameter")
            return [node_text(param)] if param is not None else []
        return [_param_name(p) for p in params.named_children if p.type != "comment"]

    @property
    def block_bodied(self) -> bool:
        return self.body is not None and self.body.type == "statement_block"


def iter_units(root_node) -> Iterator[FunctionUnit]:
    """Named function declarations, class methods and arrow functions, in source order."""
    units: list[FunctionUnit] = []

    def on_function(node):
        name = node.child_by_field_name("name")
        if name is None:
            return
        units.append(FunctionUnit(
            name=node_text(name),
            kind="function",
            node=node,
            body=node.child_by_field_name("body"),
            line=node_line(node),
            is_async=has_token(node, "async"),
        ))

    def on_method(node):
        if node.parent is None or node.parent.type != "class_body":
            return
        name = node_text(node.child_by_field_name("name"))
        if name == "constructor":
            method_kind = "constructor"
        elif has_token(node, "get"):
            method_kind = "get"
        elif has_token(node, "set"):
            method_kind = "set"
        else:
            method_kind = "method"
        units.append(FunctionUnit(
            name=name,
            kind="method",
            node=node,
            body=node.child_by_field_name("body"),
            line=node_line(node),
            is_async=has_token(node, "async"),
            method_kind=method_kind,
        ))

    def on_arrow(node):
        units.append(FunctionUnit(
            name="(arrow)",
            kind="arrow",
            node=node,
            body=node.child_by_field_name("body"),
            line=node_line(node),
            is_async=has_token(node, "async"),
        ))

    visit(root_node, {
        NodeKind.FUNCTION_DECLARATION: on_function,
        NodeKind.METHOD_DEFINITION: on_method,
        NodeKind.ARROW_FUNCTION: on_arrow,
    })
    yield from units


def scoped_files(
    path: Path | str | None,
    filters: FilterConfig | None,
    project: Project | None,
    scope: str,
) -> list[SourceFile]:
    """Parsed files of *project* (loaded from *path* if absent) inside *scope*."""
    if project is None:
        project = load_project(Path(path), filters)
    return [f for f in project.parsed_files() if in_scope(f.rel_path, scope)]


def _param_name(param) -> str:
    if param.type == "identifier":
        return node_text(param)
    # TS required_parameter / optional_parameter, defaults and rest params
    for field_name in ("pattern", "left", "name"):
        inner = param.child_by_field_name(field_name)
        if inner is not None:
            return _param_name(inner)
    if param.type == "rest_pattern" and param.named_children:
        return _param_name(param.named_children[0])
    return node_text(param)
