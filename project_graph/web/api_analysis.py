"""Analysis API: dead code, metrics, documentation, outdated patterns and health."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from project_graph.analysis.complexity import score_complexity
from project_graph.analysis.dead_code import analyze_liveness
from project_graph.analysis.health import SIGNALS, aggregate, run_full_analysis
from project_graph.analysis.jsdoc import generate_jsdoc, generate_jsdoc_for
from project_graph.analysis.large_files import score_file_sizes
from project_graph.analysis.outdated import find_outdated_patterns
from project_graph.analysis.similarity import DEFAULT_THRESHOLD, score_similarity
from project_graph.analysis.undocumented import LEVELS, find_undocumented
from project_graph.web.paths import validate_path
from project_graph.web.state import AppState, get_state

router = APIRouter(prefix="/api/analysis")


class PathRequest(BaseModel):
    path: str | None = None


class ComplexityRequest(PathRequest):
    min_complexity: int = 1
    only_problematic: bool = False


class SimilarRequest(PathRequest):
    threshold: int = DEFAULT_THRESHOLD


class LargeFilesRequest(PathRequest):
    only_problematic: bool = False


class UndocumentedRequest(PathRequest):
    level: str = "tests"


class OutdatedRequest(PathRequest):
    code_only: bool = False
    deps_only: bool = False


class JSDocRequest(PathRequest):
    name: str | None = None
    include_tests: bool = True


class FullAnalysisRequest(PathRequest):
    include_items: bool = False
    signals: list[str] | None = None


def _check_signals(signals: list[str] | None) -> None:
    unknown = set(signals or ()) - set(SIGNALS)
    if unknown:
        raise HTTPException(400, f"Unknown signals: {', '.join(sorted(unknown))}")


@router.post("/dead-code")
async def dead_code(req: PathRequest, app_state: AppState = Depends(get_state)):
    path = validate_path(req.path)
    return await asyncio.to_thread(analyze_liveness, path, app_state.filters)


@router.post("/complexity")
async def complexity(req: ComplexityRequest, app_state: AppState = Depends(get_state)):
    path = validate_path(req.path)
    return await asyncio.to_thread(
        score_complexity, path, req.min_complexity, req.only_problematic, app_state.filters,
    )


@router.post("/similar")
async def similar(req: SimilarRequest, app_state: AppState = Depends(get_state)):
    path = validate_path(req.path)
    return await asyncio.to_thread(score_similarity, path, req.threshold, app_state.filters)


@router.post("/large-files")
async def large_files(req: LargeFilesRequest, app_state: AppState = Depends(get_state)):
    path = validate_path(req.path)
    return await asyncio.to_thread(score_file_sizes, path, req.only_problematic, app_state.filters)


@router.post("/undocumented")
async def undocumented(req: UndocumentedRequest, app_state: AppState = Depends(get_state)):
    if req.level not in LEVELS:
        raise HTTPException(400, f"level must be one of: {', '.join(LEVELS)}")
    path = validate_path(req.path)
    return await asyncio.to_thread(find_undocumented, path, req.level, app_state.filters)


@router.post("/jsdoc")
async def jsdoc(req: JSDocRequest, app_state: AppState = Depends(get_state)):
    path = validate_path(req.path)
    if req.name is None:
        return await asyncio.to_thread(generate_jsdoc, path, req.include_tests, app_state.filters)
    template = await asyncio.to_thread(generate_jsdoc_for, path, req.name, req.include_tests, app_state.filters)
    if template is None:
        raise HTTPException(404, f"No undocumented function or method named {req.name!r}")
    return template


@router.post("/outdated")
async def outdated(req: OutdatedRequest, app_state: AppState = Depends(get_state)):
    path = validate_path(req.path)
    return await asyncio.to_thread(
        find_outdated_patterns, path, req.code_only, req.deps_only, app_state.filters,
    )


@router.post("/full")
async def full_analysis(req: FullAnalysisRequest, app_state: AppState = Depends(get_state)):
    _check_signals(req.signals)
    path = validate_path(req.path)
    return await asyncio.to_thread(
        run_full_analysis, path, req.include_items, req.signals, app_state.filters, app_state.store,
    )


@router.post("/health")
async def health(req: FullAnalysisRequest, app_state: AppState = Depends(get_state)):
    _check_signals(req.signals)
    path = validate_path(req.path)
    score = await asyncio.to_thread(aggregate, path, req.signals, app_state.filters, app_state.store)
    return score.to_dict()
