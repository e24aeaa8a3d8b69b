"""
Uploaded files, optionally filed under an industry.

List payloads leave out the base64 body; GET /api/files/{id} includes it.
"""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, Field

from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.errors import NotFoundError, ValidationFailed
from saveit.files.categorize import categorize_file
from saveit.files.models import FileItem
from saveit.files.repository import FileItemRepository, IndustryRepository
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter
from saveit.storage.models import ApiModel
from saveit.utils.validators import is_unassigned

router = APIRouter(prefix="/api/files", tags=["files"])
logger = get_logger(__name__)

_INDUSTRY_KEYS = AliasChoices("industry", "industryId", "industry_id")


class UploadedFile(ApiModel):
    name: str = Field(..., min_length=1)
    path: str | None = None
    size: int = Field(default=0, ge=0)
    type: str = ""
    content: str = ""


class UploadRequest(ApiModel):
    files: list[UploadedFile] = Field(default_factory=list)
    industry_id: str | None = Field(default=None, validation_alias=_INDUSTRY_KEYS)


class MoveFileRequest(ApiModel):
    industry_id: str | None = Field(default=None, validation_alias=_INDUSTRY_KEYS)


def _industry_for(industry_id: str | None, user_id: str, message: str) -> str | None:
    if industry_id is None or is_unassigned(industry_id):
        return None
    if not IndustryRepository.get(industry_id, user_id):
        raise ValidationFailed(message)
    return industry_id


def _payloads(files: list[FileItem], include_content: bool = False) -> list[dict[str, Any]]:
    industries = IndustryRepository.summaries({f.industry_id for f in files if f.industry_id})
    payloads = []
    for f in files:
        payload = f.to_api(include_private=include_content)
        payload["industry"] = industries.get(f.industry_id)
        payloads.append(payload)
    return payloads


@router.get("")
async def list_files(industry: str | None = None, user: AuthenticatedUser = Depends(get_current_user)):
    files = FileItemRepository.list_for_user(
        user.id, industry_id=industry, unassigned=is_unassigned(industry)
    )
    return ok(_payloads(files), count=len(files))


@router.get("/{file_id}")
async def get_file(file_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    f = FileItemRepository.get(file_id, user.id)
    if not f:
        raise NotFoundError("File not found")
    return ok(_payloads([f], include_content=True)[0])


@router.post("/upload")
async def upload_files(body: UploadRequest, user: AuthenticatedUser = Depends(get_current_user)):
    if not body.files:
        raise ValidationFailed("No files provided")
    industry_id = _industry_for(body.industry_id, user.id, "Invalid industry ID")

    stamp = int(time.time() * 1000)
    files = FileItemRepository.create_many(
        [
            FileItem(
                user_id=user.id,
                name=upload.name,
                path=upload.path or f"/uploads/{stamp}-{upload.name}",
                content=upload.content,
                size=upload.size,
                type=upload.type,
                category=categorize_file(upload.name, upload.type),
                industry_id=industry_id,
            )
            for upload in body.files
        ]
    )
    counter("files.uploaded", len(files))
    return ok(_payloads(files), status_code=201)


@router.post("/{file_id}/move")
async def move_file(
    file_id: str, body: MoveFileRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    if not FileItemRepository.get(file_id, user.id):
        raise NotFoundError("File not found")
    industry_id = _industry_for(body.industry_id, user.id, "Target industry not found")
    f = FileItemRepository.move(file_id, user.id, industry_id)
    return ok(_payloads([f])[0], message="File moved successfully")


@router.delete("/{file_id}")
async def delete_file(file_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    if not FileItemRepository.delete(file_id, user.id):
        raise NotFoundError("File not found")
    return ok(message="File deleted successfully")
