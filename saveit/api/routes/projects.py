"""
Projects, optionally filed under an organization.

Project payloads embed their organization as {id, name, color, icon}.
Opening a project stamps last_accessed.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, Field

from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.errors import NotFoundError, ValidationFailed
from saveit.storage.models import ApiModel
from saveit.utils.validators import is_unassigned, normalize_tags
from saveit.workspace.models import (
    CanvasPosition,
    Project,
    ProjectPriority,
    ProjectStatus,
    ProjectType,
)
from saveit.workspace.repository import OrganizationRepository, ProjectRepository

router = APIRouter(prefix="/api/projects", tags=["projects"])

_ORGANIZATION_KEYS = AliasChoices("organization", "organizationId", "organization_id")


class ProjectRequest(ApiModel):
    name: str | None = None
    description: str | None = None
    type: ProjectType | None = None
    organization_id: str | None = Field(default=None, validation_alias=_ORGANIZATION_KEYS)
    url: str | None = None
    repository: str | None = None
    tags: list[str] | None = None
    color: str | None = None
    icon: str | None = None
    status: ProjectStatus | None = None
    priority: ProjectPriority | None = None
    position: CanvasPosition | None = None


class MoveProjectRequest(ApiModel):
    organization_id: str | None = Field(default=None, validation_alias=_ORGANIZATION_KEYS)


def _organization_for(org_id: str | None, user_id: str, message: str) -> str | None:
    """Resolve a parent reference: None for unassigned, else an org the user owns."""
    if org_id is None or is_unassigned(org_id):
        return None
    if not OrganizationRepository.get(org_id, user_id):
        raise ValidationFailed(message)
    return org_id


def _payloads(projects: list[Project]) -> list[dict[str, Any]]:
    orgs = OrganizationRepository.summaries({p.organization_id for p in projects if p.organization_id})
    payloads = []
    for project in projects:
        payload = project.to_api()
        payload["organization"] = orgs.get(project.organization_id)
        payloads.append(payload)
    return payloads


def _changes(body: ProjectRequest) -> dict[str, Any]:
    changes = body.model_dump(exclude_none=True, exclude={"organization_id"})
    if "tags" in changes:
        changes["tags"] = normalize_tags(changes["tags"])
    return changes


@router.get("")
async def list_projects(
    organization: str | None = None,
    type: ProjectType | None = None,
    status: ProjectStatus | None = None,
    user: AuthenticatedUser = Depends(get_current_user),
):
    projects = ProjectRepository.list_for_user(
        user.id,
        organization_id=organization,
        unassigned=is_unassigned(organization),
        project_type=type.value if type else None,
        status=status.value if status else None,
    )
    return ok(_payloads(projects), count=len(projects))


@router.get("/{project_id}")
async def get_project(project_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    if not ProjectRepository.get(project_id, user.id):
        raise NotFoundError("Project not found")
    ProjectRepository.touch(project_id, user.id)
    return ok(_payloads([ProjectRepository.get(project_id, user.id)])[0])


@router.post("")
async def create_project(body: ProjectRequest, user: AuthenticatedUser = Depends(get_current_user)):
    org_id = _organization_for(body.organization_id, user.id, "Invalid organization ID")
    project = ProjectRepository.create(
        Project(user_id=user.id, organization_id=org_id, **_changes(body))
    )
    return ok(_payloads([project])[0], status_code=201, message="Project created successfully")


@router.put("/{project_id}")
async def update_project(
    project_id: str, body: ProjectRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    current = ProjectRepository.get(project_id, user.id)
    if not current:
        raise NotFoundError("Project not found")

    changes = current.validated_changes(_changes(body))
    if "organization_id" in body.model_fields_set:
        changes["organization_id"] = _organization_for(
            body.organization_id, user.id, "Invalid organization ID"
        )

    project = ProjectRepository.update(project_id, user.id, **changes)
    return ok(_payloads([project])[0], message="Project updated successfully")


@router.delete("/{project_id}")
async def delete_project(project_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    if not ProjectRepository.delete(project_id, user.id):
        raise NotFoundError("Project not found")
    return ok(message="Project deleted successfully")


@router.post("/{project_id}/move")
async def move_project(
    project_id: str, body: MoveProjectRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    if not ProjectRepository.get(project_id, user.id):
        raise NotFoundError("Project not found")
    org_id = _organization_for(body.organization_id, user.id, "Target organization not found")
    project = ProjectRepository.update(project_id, user.id, organization_id=org_id)
    return ok(_payloads([project])[0], message="Project moved successfully")
