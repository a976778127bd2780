"""Graph API: skeleton, expand, deps, usages and focus zone over the cached symbol graph."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from project_graph.analysis.graph_models import Graph
from project_graph.analysis.graph_queries import deps, expand, focus_zone, skeleton, usages
from project_graph.scanner.git import DEFAULT_REVISION, changed_files
from project_graph.web.paths import validate_path
from project_graph.web.state import AppState, get_state

router = APIRouter(prefix="/api/graph")


class PathRequest(BaseModel):
    path: str | None = None


class SymbolRequest(BaseModel):
    symbol: str
    path: str | None = None


class FocusRequest(BaseModel):
    path: str | None = None
    files: list[str] = []
    use_git_diff: bool = False
    since: str = DEFAULT_REVISION


async def _graph_for(path: str | None, app_state: AppState) -> Graph:
    # Symbol queries reuse the last-built root unless a path is given
    if path is None and app_state.cache.root is not None:
        root = app_state.cache.root
    else:
        root = validate_path(path)
    return await asyncio.to_thread(app_state.cache.get, root, app_state.filters)


@router.post("/skeleton")
async def get_skeleton(req: PathRequest, app_state: AppState = Depends(get_state)):
    graph = await _graph_for(req.path, app_state)
    return skeleton(graph)


@router.post("/full")
async def get_full_graph(req: PathRequest, app_state: AppState = Depends(get_state)):
    graph = await _graph_for(req.path, app_state)
    return graph.to_dict()


@router.post("/expand")
async def expand_symbol(req: SymbolRequest, app_state: AppState = Depends(get_state)):
    graph = await _graph_for(req.path, app_state)
    return expand(graph, req.symbol)


@router.post("/deps")
async def symbol_deps(req: SymbolRequest, app_state: AppState = Depends(get_state)):
    graph = await _graph_for(req.path, app_state)
    return deps(graph, req.symbol)


@router.post("/usages")
async def symbol_usages(req: SymbolRequest, app_state: AppState = Depends(get_state)):
    graph = await _graph_for(req.path, app_state)
    result = usages(graph, req.symbol)
    if isinstance(result, dict):
        return result
    return {"symbol": req.symbol, "usages": result}


@router.post("/invalidate")
async def invalidate(app_state: AppState = Depends(get_state)):
    app_state.cache.invalidate()
    return {"success": True}


@router.post("/focus")
async def get_focus_zone(req: FocusRequest, app_state: AppState = Depends(get_state)):
    graph = await _graph_for(req.path, app_state)
    focus_files = list(req.files)
    if req.use_git_diff and graph.project is not None:
        root = graph.project.root
        focus_files += await asyncio.to_thread(changed_files, root if root.is_dir() else root.parent, req.since)
    return focus_zone(graph, focus_files)
