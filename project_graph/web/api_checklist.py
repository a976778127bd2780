"""Checklist API: annotated test steps and their pass/fail results."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from project_graph.analysis.checklist import get_all_features
from project_graph.web.paths import validate_path
from project_graph.web.state import AppState, get_state

router = APIRouter(prefix="/api/checklist")


class PathRequest(BaseModel):
    path: str | None = None


class FailRequest(BaseModel):
    reason: str = ""


async def _features(path: str | None, app_state: AppState):
    return await asyncio.to_thread(get_all_features, validate_path(path), app_state.filters)


@router.post("/features")
async def features(req: PathRequest, app_state: AppState = Depends(get_state)):
    return [f.to_dict() for f in await _features(req.path, app_state)]


@router.post("/pending")
async def pending(req: PathRequest, app_state: AppState = Depends(get_state)):
    return app_state.checklist.pending(await _features(req.path, app_state))


@router.post("/summary")
async def summary(req: PathRequest, app_state: AppState = Depends(get_state)):
    return app_state.checklist.summary(await _features(req.path, app_state))


@router.post("/markdown")
async def markdown(req: PathRequest, app_state: AppState = Depends(get_state)):
    return {"markdown": app_state.checklist.markdown(await _features(req.path, app_state))}


@router.post("/steps/{step_id}/pass")
async def mark_passed(step_id: str, app_state: AppState = Depends(get_state)):
    return app_state.checklist.mark_passed(step_id)


@router.post("/steps/{step_id}/fail")
async def mark_failed(step_id: str, req: FailRequest, app_state: AppState = Depends(get_state)):
    return app_state.checklist.mark_failed(step_id, req.reason)


@router.post("/reset")
async def reset(app_state: AppState = Depends(get_state)):
    return app_state.checklist.reset()
