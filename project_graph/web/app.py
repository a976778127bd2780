"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from project_graph import __version__
from project_graph.rules.store import RuleStore
from project_graph.web.api_analysis import router as analysis_router
from project_graph.web.api_checklist import router as checklist_router
from project_graph.web.api_filters import router as filters_router
from project_graph.web.api_graph import router as graph_router
from project_graph.web.api_rules import router as rules_router
from project_graph.web.state import AppState


def create_app(store: RuleStore | None = None) -> FastAPI:
    app = FastAPI(title="project-graph", version=__version__)
    app.state.project_graph = AppState(store)

    app.include_router(graph_router)
    app.include_router(analysis_router)
    app.include_router(rules_router)
    app.include_router(checklist_router)
    app.include_router(filters_router)
    return app


app = create_app()
