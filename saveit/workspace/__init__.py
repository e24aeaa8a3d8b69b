"""
SaveIt.AI workspace - projects grouped into organizations.
"""

from saveit.workspace.models import Organization, Project, ProjectPriority, ProjectStatus, ProjectType
from saveit.workspace.repository import OrganizationRepository, ProjectRepository

__all__ = [
    "Organization",
    "OrganizationRepository",
    "Project",
    "ProjectPriority",
    "ProjectRepository",
    "ProjectStatus",
    "ProjectType",
]
