"""Filters API: which directories and files the walker treats as visible."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from project_graph.models import FilterConfig
from project_graph.web.state import AppState, get_state

router = APIRouter(prefix="/api/filters")


class FiltersRequest(BaseModel):
    exclude_dirs: list[str] | None = None
    exclude_patterns: list[str] | None = None
    include_hidden: bool | None = None
    use_gitignore: bool | None = None


class PatternRequest(BaseModel):
    dirs: list[str] = []
    patterns: list[str] = []


@router.get("")
async def get_filters(app_state: AppState = Depends(get_state)):
    return app_state.filters.to_dict()


@router.put("")
async def set_filters(req: FiltersRequest, app_state: AppState = Depends(get_state)):
    current = app_state.filters
    app_state.set_filters(FilterConfig(
        exclude_dirs=req.exclude_dirs if req.exclude_dirs is not None else list(current.exclude_dirs),
        exclude_patterns=(
            req.exclude_patterns if req.exclude_patterns is not None else list(current.exclude_patterns)
        ),
        include_hidden=req.include_hidden if req.include_hidden is not None else current.include_hidden,
        use_gitignore=req.use_gitignore if req.use_gitignore is not None else current.use_gitignore,
    ))
    return app_state.filters.to_dict()


@router.post("/add")
async def add_excludes(req: PatternRequest, app_state: AppState = Depends(get_state)):
    current = app_state.filters
    app_state.set_filters(FilterConfig(
        exclude_dirs=current.exclude_dirs + [d for d in req.dirs if d not in current.exclude_dirs],
        exclude_patterns=current.exclude_patterns + [p for p in req.patterns if p not in current.exclude_patterns],
        include_hidden=current.include_hidden,
        use_gitignore=current.use_gitignore,
    ))
    return app_state.filters.to_dict()


@router.post("/remove")
async def remove_excludes(req: PatternRequest, app_state: AppState = Depends(get_state)):
    current = app_state.filters
    app_state.set_filters(FilterConfig(
        exclude_dirs=[d for d in current.exclude_dirs if d not in req.dirs],
        exclude_patterns=[p for p in current.exclude_patterns if p not in req.patterns],
        include_hidden=current.include_hidden,
        use_gitignore=current.use_gitignore,
    ))
    return app_state.filters.to_dict()


@router.post("/reset")
async def reset_filters(app_state: AppState = Depends(get_state)):
    app_state.reset_filters()
    return app_state.filters.to_dict()
