"""Closed set of events exchanged over the real-time chat channel.

Client -> server: ``join-session``, ``leave-session``, ``send-message``,
``mark-read``. Server -> client: ``new-message``, ``support-joined``,
``session-closed``, ``status``, ``error``. Anything else fails to parse.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .schemas import ChatMessageResponse


class _Event(BaseModel):
    model_config = ConfigDict(extra="forbid")


# Client -> server

class JoinSessionEvent(_Event):
    type: Literal["join-session"]
    session_id: int


class LeaveSessionEvent(_Event):
    type: Literal["leave-session"]
    session_id: int


class SendMessageEvent(_Event):
    type: Literal["send-message"]
    session_id: int
    content: str = Field(..., max_length=10000)


class MarkReadEvent(_Event):
    type: Literal["mark-read"]
    message_id: int


ClientEvent = Annotated[
    Union[JoinSessionEvent, LeaveSessionEvent, SendMessageEvent, MarkReadEvent],
    Field(discriminator="type"),
]

client_event_adapter: TypeAdapter[ClientEvent] = TypeAdapter(ClientEvent)


# Server -> client

class NewMessageEvent(_Event):
    type: Literal["new-message"] = "new-message"
    message: ChatMessageResponse


class SupportJoinedEvent(_Event):
    type: Literal["support-joined"] = "support-joined"
    session_id: int
    support_id: UUID


class SessionClosedEvent(_Event):
    type: Literal["session-closed"] = "session-closed"
    session_id: int
    closed_at: datetime


class StatusEvent(_Event):
    type: Literal["status"] = "status"
    status: str
    session_id: Optional[int] = None


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    message: str
    error_code: Optional[str] = None


ServerEvent = Union[NewMessageEvent, SupportJoinedEvent, SessionClosedEvent, StatusEvent, ErrorEvent]
