"""Data models for the project-graph analyzers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path


class Language(enum.Enum):
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"


class DeclarationKind(enum.Enum):
    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"


class Severity(enum.Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2}


@dataclass
class SourceFile:
    """One visible file: raw text plus the tree borrowed from the parser."""
    path: Path
    rel_path: str
    text: str
    language: Language | None = None
    tree: object | None = None

    @property
    def lines(self) -> list[str]:
        return self.text.split("\n")


@dataclass
class CallSite:
    caller: str | None  # enclosing declaration, None at module level
    callee: str
    qualifier: str | None = None
    via_this: bool = False

    @property
    def key(self) -> str:
        if self.qualifier:
            return f"{self.qualifier}.{self.callee}"
        return self.callee


@dataclass
class Declaration:
    name: str
    kind: DeclarationKind
    file: str
    line: int
    end_line: int | None = None
    exported: bool = False
    owner: str | None = None  # class name for methods
    method_kind: str = "method"  # method | get | set | constructor
    calls: list[CallSite] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        if self.owner:
            return f"{self.owner}.{self.name}"
        return self.name


@dataclass
class ClassFacts:
    declaration: Declaration
    extends: str | None = None
    methods: list[Declaration] = field(default_factory=list)
    properties: list[str] = field(default_factory=list)
    calls: list[CallSite] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.declaration.name


@dataclass
class ImportBinding:
    imported_name: str  # "default", "*" or the exported name
    local_alias: str | None
    source: str
    file: str
    line: int = 0

    @property
    def is_relative(self) -> bool:
        return self.source.startswith(".")


@dataclass
class ExportBinding:
    name: str  # exported name ("default" for default exports)
    file: str
    line: int
    local_name: str | None = None
    reexport_source: str | None = None

    @property
    def display_name(self) -> str:
        if self.name == "default" and self.local_name:
            return f"{self.local_name} (default)"
        return self.name


@dataclass
class LocalBinding:
    name: str
    kind: str  # "variable" | "import"
    line: int


@dataclass
class FactSheet:
    """Per-file summary of declarations, calls, imports and exports."""
    file: str
    functions: list[Declaration] = field(default_factory=list)
    classes: list[ClassFacts] = field(default_factory=list)
    calls: list[CallSite] = field(default_factory=list)
    references: set[str] = field(default_factory=set)
    imports: list[ImportBinding] = field(default_factory=list)
    exports: list[ExportBinding] = field(default_factory=list)
    bindings: list[LocalBinding] = field(default_factory=list)
    parsed: bool = True

    @property
    def declarations(self) -> list[Declaration]:
        decls: list[Declaration] = list(self.functions)
        for cls in self.classes:
            decls.append(cls.declaration)
            decls.extend(cls.methods)
        decls.sort(key=lambda d: (d.line, d.name))
        return decls

    @property
    def exported_names(self) -> set[str]:
        names: set[str] = set()
        for exp in self.exports:
            if exp.reexport_source:
                continue
            names.add(exp.local_name or exp.name)
        return names


@dataclass
class Project:
    """Everything one top-level query reads: visible files and their facts."""
    root: Path
    files: list[SourceFile] = field(default_factory=list)
    facts: dict[str, FactSheet] = field(default_factory=dict)

    def fact_sheets(self) -> list[FactSheet]:
        return [self.facts[f.rel_path] for f in self.files if f.rel_path in self.facts]

    def parsed_files(self) -> list[SourceFile]:
        return [f for f in self.files if f.tree is not None]


@dataclass
class Violation:
    rule_id: str
    rule_name: str
    severity: Severity
    file: str
    line: int
    match: str
    replacement: str = ""
    rule_set: str = ""

    @property
    def dedup_key(self) -> tuple[str, int, str]:
        return (self.file, self.line, self.match)

    def to_dict(self) -> dict:
        return {
            "ruleId": self.rule_id,
            "ruleName": self.rule_name,
            "ruleSet": self.rule_set,
            "severity": self.severity.value,
            "file": self.file,
            "line": self.line,
            "match": self.match,
            "replacement": self.replacement,
        }


@dataclass
class HealthScore:
    score: int
    rating: str
    top_issues: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"score": self.score, "rating": self.rating, "topIssues": list(self.top_issues)}


def _default_exclude_dirs() -> list[str]:
    return [
        "node_modules", "dist", "build", "coverage", ".next", ".nuxt",
        ".output", "__pycache__", ".cache", ".turbo", "out",
    ]


def _default_exclude_patterns() -> list[str]:
    return [
        "*.test.js", "*.spec.js", "*.min.js", "*.bundle.js", "*.d.ts",
        "*.css.js", "*.tpl.js",
    ]


@dataclass
class FilterConfig:
    """Which files the directory walker treats as visible."""
    exclude_dirs: list[str] = field(default_factory=_default_exclude_dirs)
    exclude_patterns: list[str] = field(default_factory=_default_exclude_patterns)
    include_hidden: bool = False
    use_gitignore: bool = True

    def to_dict(self) -> dict:
        return {
            "excludeDirs": list(self.exclude_dirs),
            "excludePatterns": list(self.exclude_patterns),
            "includeHidden": self.include_hidden,
            "useGitignore": self.use_gitignore,
        }
