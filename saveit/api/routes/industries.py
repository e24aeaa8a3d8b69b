"""Industries: folders that group uploaded files."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.errors import NotFoundError, ValidationFailed
from saveit.files.models import Industry
from saveit.files.repository import IndustryRepository
from saveit.storage.models import ApiModel

router = APIRouter(prefix="/api/industries", tags=["industries"])


class IndustryRequest(ApiModel):
    name: str | None = None
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    position: int | None = None


def _get_or_404(industry_id: str, user_id: str) -> Industry:
    industry = IndustryRepository.get(industry_id, user_id)
    if not industry:
        raise NotFoundError("Industry not found")
    return industry


@router.get("")
async def list_industries(user: AuthenticatedUser = Depends(get_current_user)):
    industries = IndustryRepository.list_for_user(user.id)
    return ok([i.to_api() for i in industries], count=len(industries))


@router.get("/{industry_id}")
async def get_industry(industry_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    return ok(_get_or_404(industry_id, user.id).to_api())


@router.post("")
async def create_industry(body: IndustryRequest, user: AuthenticatedUser = Depends(get_current_user)):
    industry = IndustryRepository.create(
        Industry(user_id=user.id, **body.model_dump(exclude_none=True))
    )
    return ok(industry.to_api(), status_code=201)


@router.put("/{industry_id}")
async def update_industry(
    industry_id: str, body: IndustryRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    current = _get_or_404(industry_id, user.id)
    changes = current.validated_changes(body.model_dump(exclude_none=True))
    industry = IndustryRepository.update(industry_id, user.id, **changes)
    if not industry:
        raise NotFoundError("Industry not found")
    return ok(industry.to_api())


@router.delete("/{industry_id}")
async def delete_industry(industry_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    _get_or_404(industry_id, user.id)
    file_count = IndustryRepository.count_files(industry_id)
    if file_count:
        raise ValidationFailed(
            f"Cannot delete industry with {file_count} file(s). Please move or delete files first."
        )
    IndustryRepository.delete(industry_id, user.id)
    return ok(message="Industry deleted successfully")
