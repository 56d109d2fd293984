"""Client dashboard project endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.dependencies import ensure_project_access, get_current_user
from app.core.database import get_db
from app.core.exceptions import UnauthorizedError
from app.models.enums import UserRole
from app.models.user import User
from app.projects import (
    MilestoneCRUD,
    MilestoneResponse,
    ProjectCRUD,
    ProjectDetailResponse,
    ProjectRequest,
    ProjectResponse,
    milestone_progress,
)


router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Clients see their own projects; staff see every project."""
    if current_user.is_staff:
        return ProjectCRUD.list_all(db)
    return ProjectCRUD.list_for_client(db, current_user.id)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def request_project(
    payload: ProjectRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """A client requests a new project."""
    if current_user.role != UserRole.CLIENT:
        raise UnauthorizedError("Only client accounts can request projects")
    return ProjectCRUD.create(
        db,
        client_id=current_user.id,
        name=payload.name,
        description=payload.description,
        requirements=payload.requirements,
        start_date=payload.start_date,
    )


@router.get("/{project_id}", response_model=ProjectDetailResponse)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = ProjectCRUD.get_by_id(db, project_id)
    ensure_project_access(project, current_user)
    milestones = MilestoneCRUD.list_for_project(db, project_id)
    return {
        "project": project,
        "milestones": milestones,
        "progress": milestone_progress(milestones),
    }


@router.get("/{project_id}/milestones", response_model=List[MilestoneResponse])
def list_milestones(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = ProjectCRUD.get_by_id(db, project_id)
    ensure_project_access(project, current_user)
    return MilestoneCRUD.list_for_project(db, project_id)
