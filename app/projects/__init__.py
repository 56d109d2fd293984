"""Client project and milestone tracking."""

from .models import Project, Milestone
from .schemas import (
    ProjectRequest,
    ProjectCreate,
    ProjectUpdate,
    ProjectResponse,
    ProjectDetailResponse,
    MilestoneCreate,
    MilestoneUpdate,
    MilestoneResponse,
)
from .crud import ProjectCRUD, MilestoneCRUD, milestone_progress

__all__ = [
    "Project",
    "Milestone",
    "ProjectRequest",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectResponse",
    "ProjectDetailResponse",
    "MilestoneCreate",
    "MilestoneUpdate",
    "MilestoneResponse",
    "ProjectCRUD",
    "MilestoneCRUD",
    "milestone_progress",
]
