"""Project loader: walk -> read -> parse -> extract."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from project_graph.config import find_project_root
from project_graph.errors import ParseFailure
from project_graph.extractor import SourceParser, empty_fact_sheet, extract_facts
from project_graph.models import FilterConfig, Project, SourceFile
from project_graph.scanner import iter_source_files

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


def load_project(
    root: Path,
    filters: FilterConfig | None = None,
    parser: SourceParser | None = None,
    progress: ProgressCallback | None = None,
) -> Project:
    """Build the Project (files + Fact Sheets) for every visible source file under *root*.

    Unreadable files are skipped; unparseable files get an empty Fact Sheet.
    """
    root = Path(root)
    parser = parser or SourceParser()
    project = Project(root=root)

    # Stage 1: Walk
    if progress:
        progress("Scanning", 0, 1)
    paths = list(iter_source_files(root, filters))
    if progress:
        progress("Scanning", 1, 1)

    # Stage 2: Read + parse + extract
    base = root if root.is_dir() else root.parent
    for i, path in enumerate(paths):
        if progress:
            progress("Extracting", i, len(paths))
        source = read_source(path, base)
        if source is None:
            continue
        project.files.append(source)
        project.facts[source.rel_path] = _extract(parser, source)

    if progress:
        progress("Extracting", len(paths), len(paths))

    logger.debug("Loaded %d files from %s", len(project.files), root)
    return project


def load_enclosing_project(
    path: Path,
    filters: FilterConfig | None = None,
    parser: SourceParser | None = None,
) -> tuple[Project, str]:
    """Load the project enclosing *path*; also return *path* relative to its root.

    Import resolution needs the whole project even when a query is scoped
    to a subdirectory.
    """
    path = Path(path).resolve()
    project_root = find_project_root(path)
    project = load_project(project_root, filters, parser)
    scope = path.relative_to(project_root).as_posix() if path != project_root else ""
    return project, "" if scope == "." else scope


def read_source(path: Path, base: Path) -> SourceFile | None:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning("Cannot read %s: %s", path, exc)
        return None
    try:
        rel_path = path.relative_to(base).as_posix()
    except ValueError:
        rel_path = path.name
    return SourceFile(path=path, rel_path=rel_path, text=text)


def _extract(parser: SourceParser, source: SourceFile):
    source.language = parser.language_for(source.path)
    try:
        source.tree = parser.parse(source.text, source.path)
    except ParseFailure as exc:
        logger.warning("%s", exc)
        return empty_fact_sheet(source.rel_path)
    return extract_facts(source.tree, source.rel_path)


def in_scope(rel_path: str, scope: str) -> bool:
    """True if *rel_path* lies under the project-relative directory *scope*."""
    if not scope:
        return True
    return rel_path == scope or rel_path.startswith(scope.rstrip("/") + "/")
