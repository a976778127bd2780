"""HTTP transport for the analyzers."""

from __future__ import annotations

from project_graph.web.app import create_app

__all__ = ["create_app"]
