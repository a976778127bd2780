"""Configuration paths and workspace-root resolution."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

BASE_DIR = Path(os.environ.get("PROJECT_GRAPH_HOME", str(Path.home() / ".project-graph"))).expanduser()
RULES_DIR = Path(os.environ.get("PROJECT_GRAPH_RULES_DIR", str(BASE_DIR / "rules"))).expanduser()
BUILTIN_RULES_DIR = Path(__file__).parent / "rules" / "builtin"
CHECKLIST_FILE = Path(os.environ.get("PROJECT_GRAPH_CHECKLIST", str(BASE_DIR / "checklist.json"))).expanduser()

# Manifest files that mark the root of a JS/TS project
PROJECT_MARKERS = ("package.json", ".git")


def workspace_root() -> Path:
    """Workspace root: PROJECT_ROOT env, else the current directory."""
    env_root = os.environ.get("PROJECT_ROOT")
    if env_root:
        return Path(env_root).expanduser()
    return Path.cwd()


def resolve_path(path: str | os.PathLike | None) -> Path:
    """Resolve a query path against the workspace root.

    Absolute paths are returned as-is; an empty path means the root itself.
    """
    if not path:
        return workspace_root().resolve()
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return candidate
    return (workspace_root() / candidate).resolve()


def find_project_root(path: Path) -> Path:
    """Walk up from *path* to the nearest directory holding a project marker."""
    start = path if path.is_dir() else path.parent
    current = start.resolve()
    for candidate in (current, *current.parents):
        if any((candidate / marker).exists() for marker in PROJECT_MARKERS):
            return candidate
    return current


def read_package_json(directory: Path) -> dict | None:
    """Parsed ``package.json`` in *directory*, or None if absent or unreadable."""
    pkg_path = Path(directory) / "package.json"
    if not pkg_path.is_file():
        return None
    try:
        data = json.loads(pkg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Cannot read %s: %s", pkg_path, exc)
        return None
    return data if isinstance(data, dict) else None
