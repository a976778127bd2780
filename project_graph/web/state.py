"""Per-app state: graph cache, active filters, rule store and test checklist."""

from __future__ import annotations

from fastapi import Request

from project_graph.analysis.checklist import Checklist
from project_graph.analysis.graph_queries import GraphCache
from project_graph.models import FilterConfig
from project_graph.rules.store import RuleStore


class AppState:
    """State shared by the API routes of one application instance."""

    def __init__(self, store: RuleStore | None = None):
        self.cache = GraphCache()
        self.filters = FilterConfig()
        self.store = store or RuleStore()
        self.checklist = Checklist()

    def set_filters(self, filters: FilterConfig) -> None:
        # The cached graph was built under the old filters
        self.filters = filters
        self.cache.invalidate()

    def reset_filters(self) -> None:
        self.set_filters(FilterConfig())


def get_state(request: Request) -> AppState:
    return request.app.state.project_graph
