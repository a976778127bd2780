"""Symbol graph builder: Fact Sheets -> Legend, Nodes, Edges, Orphans, Duplicates."""

from __future__ import annotations

import string

from project_graph.analysis.graph_models import EDGE_CALL, Graph, GraphNode, Legend
from project_graph.models import CallSite, ClassFacts, FactSheet, Project

_UPPER = frozenset(string.ascii_uppercase)


def make_short_name(name: str) -> str:
    """Derive the base short code for *name*.

    SymNode -> SN, togglePin -> tP, AbstractBaseHTTPView -> ABH, parse -> pa.
    """
    uppers = [ch for ch in name if ch in _UPPER]
    if len(uppers) >= 2:
        return "".join(uppers[:3])

    later = next((ch for ch in name[1:] if ch in _UPPER), None)
    if later is not None:
        return name[0].lower() + later

    return name[:2]


def minify_legend(names: list[str]) -> Legend:
    """Assign a unique code to every name, in order.

    A colliding name gets the base code plus the first free integer
    suffix; the first claimant keeps the bare code.
    """
    legend = Legend()
    used: set[str] = set()
    for name in names:
        if name in legend:
            continue
        base = make_short_name(name)
        code = base
        suffix = 1
        while code in used:
            code = f"{base}{suffix}"
            suffix += 1
        used.add(code)
        legend.add(name, code)
    return legend


class SymbolGraphBuilder:
    """Build a Graph from the Fact Sheets of one project."""

    def build(self, facts: list[FactSheet], project: Project | None = None) -> Graph:
        classes = [cls for sheet in facts for cls in sheet.classes]
        functions = [fn for sheet in facts for fn in sheet.functions]
        imports_by_file = {
            sheet.file: _dedupe(b.local_alias for b in sheet.imports if b.local_alias)
            for sheet in facts
        }

        # Step 1: Legend over class, function, then method names
        names = [cls.name for cls in classes]
        names += [fn.name for fn in functions]
        names += [m.name for cls in classes for m in cls.methods]
        legend = minify_legend(_dedupe(names))

        graph = Graph(legend=legend, project=project)
        graph.stats = {
            "files": len(facts),
            "classes": len(classes),
            "functions": len(functions),
        }

        # Step 2: Nodes
        for cls in classes:
            code = legend.code(cls.name)
            graph.nodes[code] = GraphNode(
                kind="C",
                name=cls.name,
                file=cls.declaration.file,
                line=cls.declaration.line,
                exported=cls.declaration.exported,
                parent_class=cls.extends,
                methods=[legend.code(m.name) or m.name for m in cls.methods],
                properties=list(cls.properties),
                imports=imports_by_file.get(cls.declaration.file, []),
            )
            graph.classes[cls.name] = cls
        for fn in functions:
            code = legend.code(fn.name)
            if code in graph.nodes and graph.nodes[code].kind == "C":
                continue
            graph.nodes[code] = GraphNode(
                kind="F",
                name=fn.name,
                file=fn.file,
                line=fn.line,
                exported=fn.exported,
            )
            graph.functions.setdefault(fn.name, fn)

        # Step 3: Edges
        seen: set[tuple[str, str, str]] = set()
        for cls in classes:
            self._add_edges(graph, legend.code(cls.name), cls.calls, seen)
        for fn in functions:
            self._add_edges(graph, legend.code(fn.name), fn.calls, seen)

        # Step 4: Orphans
        has_incoming = {edge[2].split(".")[0] for edge in graph.edges}
        for code, node in graph.nodes.items():
            if node.kind == "F" and not node.exported and code not in has_incoming:
                graph.orphans.append(node.name)

        # Step 5: Duplicates
        graph.duplicates = find_duplicates(classes)
        return graph

    def _add_edges(
        self,
        graph: Graph,
        caller: str,
        calls: list[CallSite],
        seen: set[tuple[str, str, str]],
    ) -> None:
        for call in calls:
            target = self._resolve_target(graph, call)
            if target is None:
                continue
            edge = (caller, EDGE_CALL, target)
            if edge in seen:
                continue
            seen.add(edge)
            graph.edges.append(edge)

    @staticmethod
    def _resolve_target(graph: Graph, call: CallSite) -> str | None:
        legend = graph.legend
        if call.qualifier:
            owner = legend.code(call.qualifier)
            if owner is None or owner not in graph.nodes:
                return None
            return f"{owner}.{legend.code(call.callee) or call.callee}"
        code = legend.code(call.callee)
        if code is None or code not in graph.nodes:
            return None
        return code


def find_duplicates(classes: list[ClassFacts]) -> dict[str, list[str]]:
    """Method names declared by two or more classes, with each owner as ``Class:classLine``."""
    locations: dict[str, list[str]] = {}
    owners: dict[str, set[tuple[str, str]]] = {}
    for cls in classes:
        for method in cls.methods:
            owner_key = (cls.name, cls.declaration.file)
            if owner_key in owners.setdefault(method.name, set()):
                continue
            owners[method.name].add(owner_key)
            locations.setdefault(method.name, []).append(f"{cls.name}:{cls.declaration.line}")
    return {name: locs for name, locs in locations.items() if len(locs) > 1}


def build_graph(facts: list[FactSheet], project: Project | None = None) -> Graph:
    return SymbolGraphBuilder().build(facts, project)


def _dedupe(items) -> list:
    seen: set = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
