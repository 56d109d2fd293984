"""Pydantic schemas for projects and milestones."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.validators import reject_null
from app.models.enums import MilestoneStatus, ProjectStatus


class ProjectRequest(BaseModel):
    """Schema for a client requesting a new project."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10)
    requirements: Optional[str] = None
    start_date: Optional[datetime] = None


class ProjectCreate(ProjectRequest):
    """Schema for an admin creating a project on behalf of a client."""
    client_id: UUID
    budget: Optional[Decimal] = Field(None, ge=0)
    status: ProjectStatus = ProjectStatus.IN_PROGRESS
    due_date: Optional[datetime] = None


class ProjectUpdate(BaseModel):
    """Schema for updating a project."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    requirements: Optional[str] = None
    budget: Optional[Decimal] = Field(None, ge=0)
    status: Optional[ProjectStatus] = None
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None

    @field_validator("name", "status")
    @classmethod
    def required_fields_not_null(cls, v):
        return reject_null(v)


class ProjectResponse(BaseModel):
    """Schema for project response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: UUID
    name: str
    description: Optional[str] = None
    requirements: Optional[str] = None
    budget: Optional[Decimal] = None
    status: ProjectStatus
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class MilestoneCreate(BaseModel):
    """Schema for creating a milestone."""
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    status: MilestoneStatus = MilestoneStatus.PENDING
    due_date: Optional[datetime] = None


class MilestoneUpdate(BaseModel):
    """Schema for updating a milestone."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[MilestoneStatus] = None
    due_date: Optional[datetime] = None

    @field_validator("title", "status")
    @classmethod
    def required_fields_not_null(cls, v):
        return reject_null(v)


class MilestoneResponse(BaseModel):
    """Schema for milestone response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    title: str
    description: Optional[str] = None
    status: MilestoneStatus
    due_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ProjectDetailResponse(BaseModel):
    """Project with its milestones and completion percentage."""
    project: ProjectResponse
    milestones: List[MilestoneResponse]
    progress: int
