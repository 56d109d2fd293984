"""Support tickets: a chat session opened with a subject and a first message."""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidInputError
from app.models.enums import TicketPriority
from .messages import MessageHandler
from .models import ChatMessage, ChatSession
from .sessions import ChatSessionManager


logger = logging.getLogger("app.chat.tickets")


def open_ticket(
    db: Session,
    client_id: uuid.UUID,
    subject: str,
    description: str,
    priority: TicketPriority = TicketPriority.MEDIUM,
    project_id: Optional[int] = None,
) -> Tuple[ChatSession, ChatMessage]:
    """Open a ticket as a fresh session whose first message is the description."""
    # Validate before any row is written
    if not description or not description.strip():
        raise InvalidInputError("Message content is required")

    chat_session = ChatSessionManager.create_session(
        db,
        client_id=client_id,
        project_id=project_id,
        subject=subject,
        priority=priority,
        reuse_active=False,
    )
    message = MessageHandler.send_message(db, chat_session.id, client_id, description)
    db.refresh(chat_session)

    logger.info(
        "Support ticket opened: session_id=%s, client_id=%s, priority=%s",
        chat_session.id,
        client_id,
        priority.value,
    )
    return chat_session, message


def list_tickets(db: Session, client_id: Optional[uuid.UUID] = None) -> List[ChatSession]:
    """Sessions opened as tickets (those carrying a subject)."""
    query = db.query(ChatSession).filter(ChatSession.subject.is_not(None))
    if client_id is not None:
        query = query.filter(ChatSession.client_id == client_id)
    return query.order_by(desc(ChatSession.last_activity), desc(ChatSession.id)).all()
