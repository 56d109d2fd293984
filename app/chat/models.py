"""Chat models for client support conversations."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import TimestampedSerialModel
from app.models.enums import ChatSessionStatus, TicketPriority, enum_column_type


class ChatSession(TimestampedSerialModel):
    """Bounded conversation between a client and, optionally, a support agent."""

    __tablename__ = "chat_sessions"

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    support_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    project_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("projects.id"), nullable=True
    )

    # Ticket metadata (set when the session was opened as a support ticket)
    subject: Mapped[str | None] = mapped_column(String(200), nullable=True)
    priority: Mapped[TicketPriority] = mapped_column(
        enum_column_type(TicketPriority), nullable=False, default=TicketPriority.MEDIUM
    )

    # Status: active -> closed, never back
    status: Mapped[ChatSessionStatus] = mapped_column(
        enum_column_type(ChatSessionStatus), nullable=False, default=ChatSessionStatus.ACTIVE
    )
    last_activity: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ChatMessage(TimestampedSerialModel):
    """Message in a chat session. Only ``is_read`` changes after insert.

    ``session_id`` is nullable for direct user-to-user messages; no
    operation creates those yet.
    """

    __tablename__ = "chat_messages"

    session_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=True, index=True
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    receiver_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
