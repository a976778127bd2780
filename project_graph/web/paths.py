"""Request path resolution shared by the routers."""

from __future__ import annotations

from pathlib import Path

from fastapi import HTTPException

from project_graph.config import resolve_path


def validate_path(p: str | None) -> Path:
    """Resolve *p* against the workspace root; 404 if it does not exist."""
    resolved = resolve_path(p)
    if not resolved.exists():
        raise HTTPException(404, f"Path not found: {resolved}")
    return resolved
