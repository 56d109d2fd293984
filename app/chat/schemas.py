"""Pydantic schemas for chat sessions, messages and tickets."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ChatSessionStatus, TicketPriority


class ChatSessionCreate(BaseModel):
    """Body of ``POST /chat/sessions``. Identity comes from the token, never the body."""
    model_config = ConfigDict(extra="forbid")

    project_id: Optional[int] = None
    subject: Optional[str] = Field(None, max_length=200)


class ChatMessageCreate(BaseModel):
    """Only content is client supplied; ids and timestamps are server assigned."""
    model_config = ConfigDict(extra="forbid")

    content: str = Field(..., max_length=10000)


class SupportAssign(BaseModel):
    model_config = ConfigDict(extra="forbid")

    support_id: UUID


class TicketCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    subject: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=10000)
    priority: TicketPriority = TicketPriority.MEDIUM
    project_id: Optional[int] = None


class ChatSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: UUID
    support_id: Optional[UUID] = None
    project_id: Optional[int] = None
    subject: Optional[str] = None
    priority: TicketPriority
    status: ChatSessionStatus
    last_activity: datetime
    closed_at: Optional[datetime] = None
    created_at: datetime


class ChatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: Optional[int] = None
    sender_id: UUID
    receiver_id: Optional[UUID] = None
    content: str
    is_read: bool
    created_at: datetime


class TicketResponse(BaseModel):
    session: ChatSessionResponse
    message: ChatMessageResponse


class ChatSessionListResponse(BaseModel):
    sessions: List[ChatSessionResponse]
    total: int


class UnreadCountResponse(BaseModel):
    unread: int
