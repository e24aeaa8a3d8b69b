"""AI helpers for code snippets: analyze and optimize before saving."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.items.code_analysis import analyze_code, optimize_code, validate_code
from saveit.observability.telemetry import time_block
from saveit.storage.models import ApiModel

router = APIRouter(prefix="/api/code", tags=["code"])


class AnalyzeCodeRequest(ApiModel):
    code: Any = None


class OptimizeCodeRequest(ApiModel):
    code: Any = None
    language: str | None = None


@router.post("/analyze")
def analyze(body: AnalyzeCodeRequest, user: AuthenticatedUser = Depends(get_current_user)):
    code = validate_code(body.code)
    with time_block("code.analyze"):
        analysis = analyze_code(code, user.id)
    return ok(analysis.model_dump(by_alias=True))


@router.post("/optimize")
def optimize(body: OptimizeCodeRequest, user: AuthenticatedUser = Depends(get_current_user)):
    code = validate_code(body.code)
    with time_block("code.optimize"):
        result = optimize_code(code, body.language, user.id)
    return ok(result)
