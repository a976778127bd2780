"""Rules API: list, check, add/update and delete custom rules."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from project_graph.errors import ConfigurationError
from project_graph.models import Severity
from project_graph.rules.engine import check_rules
from project_graph.web.paths import validate_path
from project_graph.web.state import AppState, get_state

router = APIRouter(prefix="/api/rules")


class CheckRequest(BaseModel):
    path: str | None = None
    rule_set: str | None = None
    severity: str | None = None
    auto_detect: bool = True


class RuleRequest(BaseModel):
    id: str
    name: str | None = None
    description: str = ""
    pattern: str
    patternType: str = "string"
    replacement: str = ""
    severity: str = "warning"
    filePattern: str = "*.js"
    exclude: list[str] | None = None
    context: str | None = None


@router.get("")
async def list_rule_sets(app_state: AppState = Depends(get_state)):
    return await asyncio.to_thread(app_state.store.list_rule_sets)


@router.post("/check")
async def check(req: CheckRequest, app_state: AppState = Depends(get_state)):
    if req.severity and req.severity not in {s.value for s in Severity}:
        raise HTTPException(400, f"Unknown severity: {req.severity}")
    path = validate_path(req.path)
    return await asyncio.to_thread(
        check_rules,
        path,
        rule_set=req.rule_set,
        severity=req.severity,
        auto_detect=req.auto_detect,
        filters=app_state.filters,
        store=app_state.store,
    )


@router.put("/{rule_set}")
async def set_rule(rule_set: str, req: RuleRequest, app_state: AppState = Depends(get_state)):
    rule = req.model_dump(exclude_none=True)
    try:
        return await asyncio.to_thread(app_state.store.set_rule, rule_set, rule)
    except ConfigurationError as e:
        raise HTTPException(400, str(e))


@router.delete("/{rule_set}/{rule_id}")
async def delete_rule(rule_set: str, rule_id: str, app_state: AppState = Depends(get_state)):
    result = await asyncio.to_thread(app_state.store.delete_rule, rule_set, rule_id)
    if not result["success"]:
        raise HTTPException(404, result["message"])
    return result
