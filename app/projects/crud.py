"""CRUD operations for projects and milestones."""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidInputError, NotFoundError
from app.models.enums import MilestoneStatus, ProjectStatus, UserRole
from app.models.user import User
from .models import Milestone, Project


logger = logging.getLogger("app.projects.crud")


class ProjectCRUD:
    """CRUD operations for projects."""

    @staticmethod
    def get_by_id(db: Session, project_id: int) -> Project:
        """Get project by ID."""
        project = db.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    @staticmethod
    def list_for_client(db: Session, client_id: uuid.UUID) -> List[Project]:
        return (
            db.query(Project)
            .filter(Project.client_id == client_id)
            .order_by(desc(Project.created_at), desc(Project.id))
            .all()
        )

    @staticmethod
    def list_all(db: Session, status: Optional[ProjectStatus] = None) -> List[Project]:
        query = db.query(Project)
        if status is not None:
            query = query.filter(Project.status == status)
        return query.order_by(desc(Project.created_at), desc(Project.id)).all()

    @staticmethod
    def create(
        db: Session,
        client_id: uuid.UUID,
        name: str,
        description: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
        **fields,
    ) -> Project:
        """Create a project for a client account."""
        client = db.get(User, client_id)
        if client is None or client.is_deleted:
            raise NotFoundError("Client", client_id)
        if client.role != UserRole.CLIENT:
            raise InvalidInputError("Projects can only belong to client accounts")

        if fields.get("start_date") is None:
            fields["start_date"] = datetime.now(timezone.utc)

        project = Project(
            client_id=client_id,
            name=name,
            description=description,
            created_by=str(created_by or client_id),
            **fields,
        )
        db.add(project)
        db.commit()
        db.refresh(project)

        logger.info("Project created: project_id=%s, client_id=%s", project.id, client_id)
        return project

    @staticmethod
    def update(
        db: Session,
        project_id: int,
        updated_by: uuid.UUID,
        **updates,
    ) -> Project:
        """Update project fields; moving to ``completed`` stamps ``completed_date``."""
        project = ProjectCRUD.get_by_id(db, project_id)

        for key, value in updates.items():
            if hasattr(project, key):
                setattr(project, key, value)

        new_status = updates.get("status")
        if new_status == ProjectStatus.COMPLETED and project.completed_date is None:
            project.completed_date = datetime.now(timezone.utc)
        elif new_status is not None and new_status != ProjectStatus.COMPLETED:
            project.completed_date = None

        project.updated_by = str(updated_by)
        db.add(project)
        db.commit()
        db.refresh(project)
        return project


class MilestoneCRUD:
    """CRUD operations for milestones."""

    @staticmethod
    def get_by_id(db: Session, milestone_id: int) -> Milestone:
        milestone = db.get(Milestone, milestone_id)
        if milestone is None:
            raise NotFoundError("Milestone", milestone_id)
        return milestone

    @staticmethod
    def list_for_project(db: Session, project_id: int) -> List[Milestone]:
        return (
            db.query(Milestone)
            .filter(Milestone.project_id == project_id)
            .order_by(Milestone.id)
            .all()
        )

    @staticmethod
    def create(
        db: Session,
        project_id: int,
        title: str,
        created_by: uuid.UUID,
        status: MilestoneStatus = MilestoneStatus.PENDING,
        **fields,
    ) -> Milestone:
        """Create a milestone under an existing project."""
        ProjectCRUD.get_by_id(db, project_id)

        milestone = Milestone(
            project_id=project_id,
            title=title,
            status=status,
            completed_date=datetime.now(timezone.utc) if status == MilestoneStatus.COMPLETED else None,
            created_by=str(created_by),
            **fields,
        )
        db.add(milestone)
        db.commit()
        db.refresh(milestone)
        return milestone

    @staticmethod
    def update(
        db: Session,
        milestone_id: int,
        updated_by: uuid.UUID,
        **updates,
    ) -> Milestone:
        milestone = MilestoneCRUD.get_by_id(db, milestone_id)

        for key, value in updates.items():
            if hasattr(milestone, key):
                setattr(milestone, key, value)

        new_status = updates.get("status")
        if new_status == MilestoneStatus.COMPLETED and milestone.completed_date is None:
            milestone.completed_date = datetime.now(timezone.utc)
        elif new_status is not None and new_status != MilestoneStatus.COMPLETED:
            milestone.completed_date = None

        milestone.updated_by = str(updated_by)
        db.add(milestone)
        db.commit()
        db.refresh(milestone)
        return milestone


def milestone_progress(milestones: List[Milestone]) -> int:
    """Percentage of completed milestones, rounded down. 0 when there are none."""
    if not milestones:
        return 0
    done = sum(1 for m in milestones if m.status == MilestoneStatus.COMPLETED)
    return done * 100 // len(milestones)
