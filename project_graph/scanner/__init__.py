"""Directory walker yielding visible source files."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterator

from project_graph.models import FilterConfig
from project_graph.scanner.filters import PathFilter, parse_gitignore
from project_graph.scanner.language_map import SOURCE_EXTENSIONS

logger = logging.getLogger(__name__)


def iter_files(
    root: Path,
    filters: FilterConfig | None = None,
    extensions: set[str] | None = None,
    pattern: str | None = None,
) -> Iterator[Path]:
    """Yield visible files under *root* in sorted, deterministic order.

    Either *extensions* or a glob *pattern* on the file name narrows the result;
    with neither, every visible file is yielded.
    """
    root = Path(root)
    if root.is_file():
        # A single file passes the same checks as one found by walking its directory
        path_filter = PathFilter.for_root(root.parent, filters)
        if _wanted(root.name, root.name, path_filter, extensions, pattern):
            yield root
        return
    if not root.is_dir():
        logger.debug("Root does not exist: %s", root)
        return

    path_filter = PathFilter.for_root(root, filters)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        rel_dir = os.path.relpath(dirpath, root)
        rel_dir = "" if rel_dir == "." else rel_dir.replace(os.sep, "/")

        dirnames[:] = sorted(
            d for d in dirnames
            if not path_filter.skip_dir(d, f"{rel_dir}/{d}" if rel_dir else d)
        )

        for name in sorted(filenames):
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _wanted(name, rel_path, path_filter, extensions, pattern):
                yield Path(dirpath) / name


def iter_source_files(root: Path, filters: FilterConfig | None = None) -> Iterator[Path]:
    """Yield visible JS/TS source files."""
    yield from iter_files(root, filters, extensions=SOURCE_EXTENSIONS)


def _wanted(
    name: str,
    rel_path: str,
    path_filter: PathFilter,
    extensions: set[str] | None,
    pattern: str | None,
) -> bool:
    if extensions is not None and Path(name).suffix not in extensions:
        return False
    if pattern is not None and not fnmatch.fnmatch(name, pattern):
        return False
    return not path_filter.skip_file(name, rel_path)


def _log_walk_error(exc: OSError) -> None:
    logger.warning("Cannot read directory %s: %s", exc.filename, exc.strerror)


__all__ = [
    "PathFilter",
    "iter_files",
    "iter_source_files",
    "parse_gitignore",
]
