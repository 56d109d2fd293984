"""Administration endpoints: client accounts, leads, projects and milestones."""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from app.api.dependencies import require_admin
from app.api.v1.contacts import ContactResponse
from app.api.v1.users import UserResponse
from app.core.database import get_db
from app.core.exceptions import InvalidInputError, NotFoundError
from app.core.messages import REG_EMAIL_EXISTS
from app.core.security import check_password_policy, get_password_hash
from app.core.validators import reject_null
from app.models.contact import Contact
from app.models.enums import ContactStatus, ProjectStatus, UserRole
from app.models.user import User
from app.projects import (
    MilestoneCRUD,
    MilestoneCreate,
    MilestoneResponse,
    MilestoneUpdate,
    ProjectCreate,
    ProjectCRUD,
    ProjectResponse,
    ProjectUpdate,
)
from app.services.audit_service import record_event


logger = logging.getLogger("app.admin")

router = APIRouter(prefix="/admin", tags=["admin"])


class ClientCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_policy(v)


class ClientUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator("email", "first_name")
    @classmethod
    def required_fields_not_null(cls, v):
        return reject_null(v)


class ClientStatusUpdate(BaseModel):
    is_active: bool


class ContactUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Optional[ContactStatus] = None
    assigned_to: Optional[uuid.UUID] = None

    @field_validator("status")
    @classmethod
    def status_not_null(cls, v):
        return reject_null(v)


def _get_client(db: Session, client_id: uuid.UUID) -> User:
    client = (
        db.query(User)
        .filter(User.id == client_id, User.role == UserRole.CLIENT, User.is_deleted.is_(False))
        .first()
    )
    if client is None:
        raise NotFoundError("Client", client_id)
    return client


def _get_contact(db: Session, contact_id: int) -> Contact:
    contact = db.get(Contact, contact_id)
    if contact is None:
        raise NotFoundError("Contact", contact_id)
    return contact


# ---- Clients ----


@router.get("/clients", response_model=List[UserResponse])
def list_clients(
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """List client accounts, newest first."""
    query = db.query(User).filter(User.role == UserRole.CLIENT, User.is_deleted.is_(False))
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                User.email.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.company.ilike(pattern),
            )
        )
    return query.order_by(desc(User.created_at)).offset(offset).limit(limit).all()


@router.get("/clients/{client_id}", response_model=UserResponse)
def get_client(
    client_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return _get_client(db, client_id)


@router.post("/clients", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_client(
    payload: ClientCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=REG_EMAIL_EXISTS)

    client = User(
        email=email,
        password_hash=get_password_hash(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        company=payload.company,
        phone=payload.phone,
        role=UserRole.CLIENT,
        created_by=str(current_user.id),
    )
    db.add(client)
    db.commit()
    db.refresh(client)

    logger.info("Client created by admin: client_id=%s, admin_id=%s", client.id, current_user.id)
    return client


@router.patch("/clients/{client_id}", response_model=UserResponse)
def update_client(
    client_id: uuid.UUID,
    payload: ClientUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    client = _get_client(db, client_id)
    updates = payload.model_dump(exclude_unset=True)

    if "email" in updates:
        updates["email"] = updates["email"].lower()
        taken = db.query(User).filter(User.email == updates["email"], User.id != client.id).first()
        if taken:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=REG_EMAIL_EXISTS)

    for key, value in updates.items():
        setattr(client, key, value)
    client.updated_by = str(current_user.id)
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


@router.put("/clients/{client_id}/status", response_model=UserResponse)
def set_client_status(
    client_id: uuid.UUID,
    payload: ClientStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Activate or deactivate a client account."""
    client = _get_client(db, client_id)
    client.is_active = payload.is_active
    client.updated_by = str(current_user.id)
    db.add(client)
    db.commit()
    db.refresh(client)

    record_event(
        db,
        actor_id=current_user.id,
        action_type="CLIENT_STATUS",
        resource_type="user",
        resource_id=client.id,
        details={"is_active": client.is_active},
    )
    logger.info("Client status changed: client_id=%s, is_active=%s", client.id, client.is_active)
    return client


@router.delete("/clients/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(
    client_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Soft-delete a client. Projects and conversation history are kept."""
    client = _get_client(db, client_id)
    client.is_deleted = True
    client.is_active = False
    client.deleted_at = datetime.now(timezone.utc)
    client.deleted_by = str(current_user.id)
    db.add(client)
    db.commit()

    record_event(
        db,
        actor_id=current_user.id,
        action_type="CLIENT_DELETE",
        resource_type="user",
        resource_id=client_id,
    )
    logger.info("Client soft-deleted: client_id=%s, admin_id=%s", client_id, current_user.id)
    return None


# ---- Contacts ----


@router.get("/contacts", response_model=List[ContactResponse])
def list_contacts(
    contact_status: Optional[ContactStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    query = db.query(Contact)
    if contact_status is not None:
        query = query.filter(Contact.status == contact_status)
    return query.order_by(desc(Contact.created_at), desc(Contact.id)).all()


@router.get("/contacts/{contact_id}", response_model=ContactResponse)
def get_contact(
    contact_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return _get_contact(db, contact_id)


@router.patch("/contacts/{contact_id}", response_model=ContactResponse)
def update_contact(
    contact_id: int,
    payload: ContactUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Move a lead through its pipeline and/or hand it to a staff member."""
    contact = _get_contact(db, contact_id)
    updates = payload.model_dump(exclude_unset=True)

    assignee_id = updates.get("assigned_to")
    if assignee_id is not None:
        assignee = db.get(User, assignee_id)
        if assignee is None or assignee.is_deleted:
            raise NotFoundError("User", assignee_id)
        if not assignee.is_staff:
            raise InvalidInputError("Contacts can only be assigned to staff members")

    for key, value in updates.items():
        setattr(contact, key, value)
    contact.updated_by = str(current_user.id)
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


# ---- Projects & milestones ----


@router.get("/projects", response_model=List[ProjectResponse])
def list_all_projects(
    project_status: Optional[ProjectStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return ProjectCRUD.list_all(db, status=project_status)


@router.post("/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return ProjectCRUD.create(
        db,
        client_id=payload.client_id,
        name=payload.name,
        description=payload.description,
        created_by=current_user.id,
        **payload.model_dump(exclude={"client_id", "name", "description"}),
    )


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return ProjectCRUD.update(
        db,
        project_id,
        updated_by=current_user.id,
        **payload.model_dump(exclude_unset=True),
    )


@router.post(
    "/projects/{project_id}/milestones",
    response_model=MilestoneResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_milestone(
    project_id: int,
    payload: MilestoneCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return MilestoneCRUD.create(
        db,
        project_id=project_id,
        created_by=current_user.id,
        **payload.model_dump(),
    )


@router.patch("/milestones/{milestone_id}", response_model=MilestoneResponse)
def update_milestone(
    milestone_id: int,
    payload: MilestoneUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return MilestoneCRUD.update(
        db,
        milestone_id,
        updated_by=current_user.id,
        **payload.model_dump(exclude_unset=True),
    )
