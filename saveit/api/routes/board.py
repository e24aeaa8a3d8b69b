"""Whiteboard: the saved shape list with per-user undo/redo."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import Field

from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.board import service
from saveit.storage.models import ApiModel

router = APIRouter(prefix="/api/board", tags=["board"])


class BoardRequest(ApiModel):
    shapes: list[dict[str, Any]] = Field(default_factory=list)


@router.get("")
async def get_board(user: AuthenticatedUser = Depends(get_current_user)):
    return ok(service.get_board(user.id))


@router.put("")
async def replace_board(body: BoardRequest, user: AuthenticatedUser = Depends(get_current_user)):
    return ok(service.replace_shapes(user.id, body.shapes))


@router.post("/undo")
async def undo(user: AuthenticatedUser = Depends(get_current_user)):
    return ok(service.undo(user.id))


@router.post("/redo")
async def redo(user: AuthenticatedUser = Depends(get_current_user)):
    return ok(service.redo(user.id))


@router.delete("")
async def clear_board(user: AuthenticatedUser = Depends(get_current_user)):
    return ok(service.clear_board(user.id), message="Board cleared")
