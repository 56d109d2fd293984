"""Message handling for chat system."""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidInputError, InvalidStateError, NotFoundError
from app.models.enums import ChatSessionStatus
from .models import ChatMessage
from .sessions import ChatSessionManager, utcnow


logger = logging.getLogger("app.chat.messages")


class MessageHandler:
    """Handles message creation, retrieval and read state."""

    @staticmethod
    def send_message(
        db: Session,
        session_id: int,
        sender_id: uuid.UUID,
        content: str,
    ) -> ChatMessage:
        """Persist a message in a session and bump the session's activity.

        The receiver is the other party: messages from the client go to the
        assigned agent (if any), messages from staff go to the client.
        """
        chat_session = ChatSessionManager.get_session(db, session_id)

        if content is None or not content.strip():
            raise InvalidInputError("Message content is required")

        if chat_session.status == ChatSessionStatus.CLOSED:
            raise InvalidStateError(
                "Chat session is closed",
                details={"session_id": session_id},
            )

        if sender_id == chat_session.client_id:
            receiver_id = chat_session.support_id
        else:
            receiver_id = chat_session.client_id

        message = ChatMessage(
            session_id=session_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            is_read=False,
            created_at=utcnow(),
            created_by=str(sender_id),
        )
        db.add(message)
        db.flush()

        # Last writer wins; concurrent senders only race on a recent timestamp
        chat_session.last_activity = utcnow()
        db.add(chat_session)

        db.commit()
        db.refresh(message)

        logger.info(
            "Message created: message_id=%s, session_id=%s, sender_id=%s",
            message.id,
            session_id,
            sender_id,
        )

        return message

    @staticmethod
    def get_message(db: Session, message_id: int) -> ChatMessage:
        message = db.get(ChatMessage, message_id)
        if message is None:
            raise NotFoundError("Chat message", message_id)
        return message

    @staticmethod
    def get_session_messages(
        db: Session,
        session_id: int,
        limit: Optional[int] = None,
    ) -> List[ChatMessage]:
        """Get all messages for a session in commit order."""
        ChatSessionManager.get_session(db, session_id)

        query = (
            db.query(ChatMessage)
            .filter(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.id)
        )

        if limit:
            query = query.limit(limit)

        return query.all()

    @staticmethod
    def count_session_messages(db: Session, session_id: int) -> int:
        return (
            db.query(func.count(ChatMessage.id))
            .filter(ChatMessage.session_id == session_id)
            .scalar()
        )

    @staticmethod
    def mark_read(
        db: Session,
        message_id: int,
        reader_id: uuid.UUID,
    ) -> ChatMessage:
        """Mark one message read. Marking an already read message is a no-op."""
        message = MessageHandler.get_message(db, message_id)
        if message.is_read:
            return message

        message.is_read = True
        message.updated_by = str(reader_id)
        db.add(message)
        db.commit()
        db.refresh(message)

        logger.debug("Message read: message_id=%s, reader_id=%s", message_id, reader_id)
        return message

    @staticmethod
    def mark_session_read(
        db: Session,
        session_id: int,
        reader_id: uuid.UUID,
    ) -> int:
        """Mark every unread message addressed to ``reader_id`` in a session."""
        ChatSessionManager.get_session(db, session_id)

        unread = (
            db.query(ChatMessage)
            .filter(
                ChatMessage.session_id == session_id,
                ChatMessage.receiver_id == reader_id,
                ChatMessage.is_read.is_(False),
            )
            .all()
        )
        for message in unread:
            message.is_read = True
            message.updated_by = str(reader_id)
            db.add(message)
        db.commit()
        return len(unread)

    @staticmethod
    def unread_count(db: Session, user_id: uuid.UUID) -> int:
        return (
            db.query(func.count(ChatMessage.id))
            .filter(
                ChatMessage.receiver_id == user_id,
                ChatMessage.is_read.is_(False),
            )
            .scalar()
        )
