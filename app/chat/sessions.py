"""Chat session management."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import InvalidInputError, InvalidStateError, NotFoundError
from app.models.enums import STAFF_ROLES, ChatSessionStatus, TicketPriority
from app.models.user import User
from app.projects.models import Project
from .models import ChatSession


logger = logging.getLogger("app.chat.sessions")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatSessionManager:
    """Manages chat session lifecycle: ``active -> closed``, nothing else."""

    @staticmethod
    def create_session(
        db: Session,
        client_id: uuid.UUID,
        project_id: Optional[int] = None,
        subject: Optional[str] = None,
        priority: TicketPriority = TicketPriority.MEDIUM,
        reuse_active: Optional[bool] = None,
    ) -> ChatSession:
        """Create a new active chat session for a client.

        When ``reuse_active`` (default: ``CHAT_SINGLE_ACTIVE_SESSION``) is on,
        the client's most recent active session is returned instead of
        creating a second one.
        """
        client = db.get(User, client_id)
        if client is None or client.is_deleted:
            raise NotFoundError("User", client_id)

        if project_id is not None:
            project = db.get(Project, project_id)
            if project is None or project.client_id != client_id:
                raise NotFoundError("Project", project_id)

        if reuse_active is None:
            reuse_active = settings.CHAT_SINGLE_ACTIVE_SESSION
        if reuse_active:
            existing = (
                db.query(ChatSession)
                .filter(
                    ChatSession.client_id == client_id,
                    ChatSession.status == ChatSessionStatus.ACTIVE,
                )
                .order_by(desc(ChatSession.last_activity), desc(ChatSession.id))
                .first()
            )
            if existing is not None:
                return existing

        chat_session = ChatSession(
            client_id=client_id,
            project_id=project_id,
            subject=subject,
            priority=priority,
            status=ChatSessionStatus.ACTIVE,
            last_activity=utcnow(),
            created_by=str(client_id),
        )

        db.add(chat_session)
        db.commit()
        db.refresh(chat_session)

        logger.info(
            "Chat session created: session_id=%s, client_id=%s, project_id=%s",
            chat_session.id,
            client_id,
            project_id,
        )

        return chat_session

    @staticmethod
    def get_session(db: Session, session_id: int) -> ChatSession:
        """Get a chat session by ID."""
        chat_session = db.get(ChatSession, session_id)
        if chat_session is None:
            raise NotFoundError("Chat session", session_id)
        return chat_session

    @staticmethod
    def list_sessions(db: Session, client_id: uuid.UUID) -> List[ChatSession]:
        """List one client's sessions, most recent activity first.

        Callers must only pass the authenticated client's own id.
        """
        return (
            db.query(ChatSession)
            .filter(ChatSession.client_id == client_id)
            .order_by(desc(ChatSession.last_activity), desc(ChatSession.id))
            .all()
        )

    @staticmethod
    def list_active_sessions(db: Session) -> List[ChatSession]:
        """Active sessions across all clients (support queue)."""
        return (
            db.query(ChatSession)
            .filter(ChatSession.status == ChatSessionStatus.ACTIVE)
            .order_by(desc(ChatSession.last_activity), desc(ChatSession.id))
            .all()
        )

    @staticmethod
    def list_all_sessions(db: Session, limit: int = 50, offset: int = 0) -> List[ChatSession]:
        return (
            db.query(ChatSession)
            .order_by(desc(ChatSession.last_activity), desc(ChatSession.id))
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def list_project_sessions(db: Session, project_id: int) -> List[ChatSession]:
        return (
            db.query(ChatSession)
            .filter(ChatSession.project_id == project_id)
            .order_by(desc(ChatSession.last_activity), desc(ChatSession.id))
            .all()
        )

    @staticmethod
    def assign_support(
        db: Session,
        session_id: int,
        support_id: uuid.UUID,
    ) -> ChatSession:
        """Attach a support agent to an active session."""
        chat_session = ChatSessionManager.get_session(db, session_id)
        if chat_session.status != ChatSessionStatus.ACTIVE:
            raise InvalidStateError(
                "Cannot assign support to a closed session",
                details={"session_id": session_id},
            )

        agent = db.get(User, support_id)
        if agent is None or agent.is_deleted:
            raise NotFoundError("User", support_id)
        if agent.role not in STAFF_ROLES:
            raise InvalidInputError("Assignee must be a support or admin user")

        chat_session.support_id = support_id
        chat_session.last_activity = utcnow()
        chat_session.updated_by = str(support_id)
        db.add(chat_session)
        db.commit()
        db.refresh(chat_session)

        logger.info("Support assigned: session_id=%s, support_id=%s", session_id, support_id)
        return chat_session

    @staticmethod
    def close_session(
        db: Session,
        session_id: int,
        closed_by: Optional[uuid.UUID] = None,
    ) -> ChatSession:
        """Transition ``active -> closed``. Closing twice is an error."""
        chat_session = ChatSessionManager.get_session(db, session_id)
        if chat_session.status == ChatSessionStatus.CLOSED:
            raise InvalidStateError(
                "Chat session is already closed",
                details={"session_id": session_id},
            )

        chat_session.status = ChatSessionStatus.CLOSED
        chat_session.closed_at = utcnow()
        if closed_by is not None:
            chat_session.updated_by = str(closed_by)
        db.add(chat_session)
        db.commit()
        db.refresh(chat_session)

        logger.info("Chat session closed: session_id=%s", session_id)
        return chat_session

    @staticmethod
    def close_idle_sessions(
        db: Session,
        idle_minutes: int,
        now: Optional[datetime] = None,
    ) -> int:
        """Close active sessions with no activity for ``idle_minutes``."""
        if idle_minutes <= 0:
            raise InvalidInputError("idle_minutes must be positive")

        now = now or utcnow()
        cutoff = now - timedelta(minutes=idle_minutes)
        idle = (
            db.query(ChatSession)
            .filter(
                ChatSession.status == ChatSessionStatus.ACTIVE,
                ChatSession.last_activity < cutoff,
            )
            .all()
        )
        for chat_session in idle:
            chat_session.status = ChatSessionStatus.CLOSED
            chat_session.closed_at = now
            db.add(chat_session)
        db.commit()

        if idle:
            logger.info("Closed %d idle chat sessions (cutoff=%s)", len(idle), cutoff.isoformat())
        return len(idle)
