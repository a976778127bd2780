"""Data models for the symbol graph."""

from __future__ import annotations

from dataclasses import dataclass, field

from project_graph.models import ClassFacts, Declaration, Project

GRAPH_VERSION = 1
EDGE_CALL = "→"


@dataclass
class Legend:
    """Bidirectional full-name <-> short-code mapping."""
    codes: dict[str, str] = field(default_factory=dict)  # name -> code
    names: dict[str, str] = field(default_factory=dict)  # code -> name

    def add(self, name: str, code: str) -> None:
        self.codes[name] = code
        self.names[code] = name

    def code(self, name: str) -> str | None:
        return self.codes.get(name)

    def name(self, code: str) -> str | None:
        return self.names.get(code)

    def __contains__(self, name: str) -> bool:
        return name in self.codes

    def __len__(self) -> int:
        return len(self.codes)


@dataclass
class GraphNode:
    kind: str  # "C" class | "F" function
    name: str
    file: str
    line: int
    exported: bool = False
    parent_class: str | None = None
    methods: list[str] = field(default_factory=list)  # method codes
    properties: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        if self.kind == "F":
            return {"t": "F", "e": self.exported, "f": self.file}
        data: dict = {"t": "C", "m": list(self.methods), "f": self.file}
        if self.parent_class:
            data["x"] = self.parent_class
        if self.properties:
            data["$"] = list(self.properties)
        if self.imports:
            data["i"] = list(self.imports)
        return data


@dataclass
class Graph:
    legend: Legend = field(default_factory=Legend)
    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: list[tuple[str, str, str]] = field(default_factory=list)  # (from, "→", to)
    orphans: list[str] = field(default_factory=list)
    duplicates: dict[str, list[str]] = field(default_factory=dict)  # method -> ["Owner:line"]
    stats: dict[str, int] = field(default_factory=dict)
    version: int = GRAPH_VERSION
    # Declaration lookups for expand/usages; not part of the serialized graph
    classes: dict[str, ClassFacts] = field(default_factory=dict, repr=False)
    functions: dict[str, Declaration] = field(default_factory=dict, repr=False)
    project: Project | None = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {
            "v": self.version,
            "legend": dict(self.legend.codes),
            "stats": dict(self.stats),
            "nodes": {code: node.to_dict() for code, node in self.nodes.items()},
            "edges": [list(edge) for edge in self.edges],
            "orphans": list(self.orphans),
            "duplicates": {name: list(locs) for name, locs in self.duplicates.items()},
        }
