"""Organizations: folders that group projects."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.errors import NotFoundError, ValidationFailed
from saveit.storage.models import ApiModel
from saveit.workspace.models import Organization
from saveit.workspace.repository import OrganizationRepository

router = APIRouter(prefix="/api/organizations", tags=["organizations"])


class OrganizationRequest(ApiModel):
    name: str | None = None
    description: str | None = None
    color: str | None = None
    icon: str | None = None
    position: int | None = None


def _get_or_404(org_id: str, user_id: str) -> Organization:
    org = OrganizationRepository.get(org_id, user_id)
    if not org:
        raise NotFoundError("Organization not found")
    return org


@router.get("")
async def list_organizations(user: AuthenticatedUser = Depends(get_current_user)):
    orgs = OrganizationRepository.list_for_user(user.id)
    return ok([o.to_api() for o in orgs], count=len(orgs))


@router.get("/{org_id}")
async def get_organization(org_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    return ok(_get_or_404(org_id, user.id).to_api())


@router.post("")
async def create_organization(
    body: OrganizationRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    org = OrganizationRepository.create(
        Organization(user_id=user.id, **body.model_dump(exclude_none=True))
    )
    return ok(org.to_api(), status_code=201, message="Organization created successfully")


@router.put("/{org_id}")
async def update_organization(
    org_id: str, body: OrganizationRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    current = _get_or_404(org_id, user.id)
    changes = current.validated_changes(body.model_dump(exclude_none=True))
    org = OrganizationRepository.update(org_id, user.id, **changes)
    if not org:
        raise NotFoundError("Organization not found")
    return ok(org.to_api(), message="Organization updated successfully")


@router.delete("/{org_id}")
async def delete_organization(org_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    _get_or_404(org_id, user.id)
    project_count = OrganizationRepository.count_projects(org_id)
    if project_count:
        raise ValidationFailed(
            f"Cannot delete organization with {project_count} project(s). "
            "Please move or delete projects first."
        )
    OrganizationRepository.delete(org_id, user.id)
    return ok(message="Organization deleted successfully")
