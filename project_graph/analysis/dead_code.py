"""Dead code detector: name-based liveness over declarations, exports and locals."""

from __future__ import annotations

import logging
import posixpath
import re
from collections import Counter
from pathlib import Path

from project_graph.models import FactSheet, FilterConfig, Project
from project_graph.pipeline import in_scope, load_enclosing_project
from project_graph.scanner.language_map import DEFAULT_SOURCE_EXTENSION, RESOLVE_EXTENSIONS, SOURCE_EXTENSIONS

logger = logging.getLogger(__name__)

_PAGE_SIZE = 30

# Path fragments marking test/spec or generated files, never reported
_NON_REPORTABLE = (".test.", ".spec.", "__tests__/", ".min.js", ".d.ts", ".generated.")
_NON_REPORTABLE_DIRS = {"tests", "test", "dist", "build"}


def analyze_liveness(
    path: Path | str,
    filters: FilterConfig | None = None,
    project: Project | None = None,
    scope: str = "",
) -> dict:
    """Report dead functions, classes, exports and unused locals under *path*.

    Import resolution always covers the whole enclosing project; only
    reporting is limited to *path*.

    Returns {total, byType, items} with items capped at the page size.
    """
    if project is None:
        project, scope = load_enclosing_project(Path(path), filters)

    items = find_dead_code(project, scope)
    by_type = Counter(item["type"] for item in items)
    return {
        "total": len(items),
        "byType": {
            "function": by_type.get("function", 0),
            "class": by_type.get("class", 0),
            "export": by_type.get("export", 0),
            "variable": by_type.get("variable", 0),
            "import": by_type.get("import", 0),
        },
        "items": items[:_PAGE_SIZE],
    }


def find_dead_code(project: Project, scope: str = "") -> list[dict]:
    """Unpaginated dead-code items, sorted by file, line and name."""
    sheets = project.fact_sheets()
    texts = {f.rel_path: f.text for f in project.files}
    known_files = set(project.facts)

    # Step 1: Every referenced bare name, project-wide
    referenced: set[str] = set()
    for sheet in sheets:
        referenced |= sheet.references

    # Step 2: (imported name, target file) -> importer files
    importers: dict[tuple[str, str], set[str]] = {}
    star_targets: set[str] = set()
    for sheet in sheets:
        for binding in sheet.imports:
            if not binding.is_relative:
                continue
            target = resolve_import(sheet.file, binding.source, known_files)
            if target is None:
                logger.debug("Unresolved import %r in %s", binding.source, sheet.file)
                continue
            if binding.imported_name == "*":
                star_targets.add(target)
            importers.setdefault((binding.imported_name, target), set()).add(sheet.file)

    # Step 3: Classify
    items: list[dict] = []
    for sheet in sheets:
        if not in_scope(sheet.file, scope) or not is_reportable(sheet.file):
            continue
        items.extend(_dead_declarations(sheet, referenced))
        items.extend(_dead_exports(sheet, importers, star_targets))
        items.extend(_unused_locals(sheet, texts.get(sheet.file, "")))

    items.sort(key=lambda item: (item["file"], item["line"], item["name"]))
    return items


def resolve_import(importer: str, specifier: str, known_files: set[str]) -> str | None:
    """Resolve a relative specifier from *importer* to a project-relative file."""
    base = posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier))
    if base.startswith(".."):
        return None

    suffix = posixpath.splitext(base)[1]
    if suffix in SOURCE_EXTENSIONS:
        if base in known_files:
            return base
        # TypeScript sources imported with the emitted ".js" extension
        stem = base[: -len(suffix)]
    else:
        default = base + DEFAULT_SOURCE_EXTENSION
        if default in known_files:
            return default
        stem = base

    for ext in RESOLVE_EXTENSIONS:
        if stem + ext in known_files:
            return stem + ext
    for ext in RESOLVE_EXTENSIONS:
        index = posixpath.join(stem, "index" + ext)
        if index in known_files:
            return index
    return None


def is_reportable(rel_path: str) -> bool:
    """False for test/spec and generated files."""
    path = "/" + rel_path
    if any(fragment in path for fragment in _NON_REPORTABLE):
        return False
    return not any(part in _NON_REPORTABLE_DIRS for part in rel_path.split("/")[:-1])


def _dead_declarations(sheet: FactSheet, referenced: set[str]) -> list[dict]:
    items: list[dict] = []
    for fn in sheet.functions:
        if fn.exported or fn.name in referenced:
            continue
        items.append(_item(fn.name, "function", sheet.file, fn.line, "Never called"))
    for cls in sheet.classes:
        decl = cls.declaration
        if decl.exported or decl.name in referenced:
            continue
        items.append(_item(decl.name, "class", sheet.file, decl.line, "Never instantiated"))
    return items


def _dead_exports(
    sheet: FactSheet,
    importers: dict[tuple[str, str], set[str]],
    star_targets: set[str],
) -> list[dict]:
    if sheet.file in star_targets:
        return []

    # Self-registration: Registry.register(...) in the file exporting Registry
    qualifiers = {c.qualifier for c in sheet.calls if c.qualifier and not c.via_this}

    items: list[dict] = []
    for export in sheet.exports:
        if importers.get((export.name, sheet.file)):
            continue
        if (export.local_name or export.name) in qualifiers:
            continue
        items.append(_item(export.display_name, "export", sheet.file, export.line, "Exported but never imported"))
    return items


def _unused_locals(sheet: FactSheet, text: str) -> list[dict]:
    if not text:
        return []
    exported = sheet.exported_names
    items: list[dict] = []
    seen: set[str] = set()
    for binding in sheet.bindings:
        name = binding.name
        if name.startswith("_") or name in exported or name in seen:
            continue
        seen.add(name)
        if count_word(text, name) != 1:
            continue
        if binding.kind == "import":
            items.append(_item(name, "import", sheet.file, binding.line, "Imported but never used"))
        else:
            items.append(_item(name, "variable", sheet.file, binding.line, "Declared but never used"))
    return items


def count_word(text: str, name: str) -> int:
    """Whole-word occurrences of *name* in *text* ($ and _ count as word characters)."""
    pattern = r"(?<![\w$])" + re.escape(name) + r"(?![\w$])"
    return len(re.findall(pattern, text))


def _item(name: str, kind: str, file: str, line: int, reason: str) -> dict:
    return {"name": name, "type": kind, "file": file, "line": line, "reason": reason}
