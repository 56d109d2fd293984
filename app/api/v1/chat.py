"""Support chat endpoints: sessions, messages, read state and tickets.

Endpoints that publish to the relay are ``async`` so the publish runs on
the event loop that owns the subscriber queues.
"""

from typing import List, Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.dependencies import ensure_session_access, get_current_user, require_staff
from app.chat import ChatSessionManager, MessageHandler, chat_relay
from app.chat.events import NewMessageEvent, SessionClosedEvent, SupportJoinedEvent
from app.chat.schemas import (
    ChatMessageCreate,
    ChatMessageResponse,
    ChatSessionCreate,
    ChatSessionListResponse,
    ChatSessionResponse,
    SupportAssign,
    TicketCreate,
    TicketResponse,
    UnreadCountResponse,
)
from app.chat.tickets import list_tickets, open_ticket
from app.core.database import get_db
from app.core.exceptions import UnauthorizedError
from app.models.enums import UserRole
from app.models.user import User


router = APIRouter(prefix="/chat", tags=["chat"])


def _require_client(user: User) -> None:
    if user.role != UserRole.CLIENT:
        raise UnauthorizedError("Only client accounts can open chat sessions")


@router.post("/sessions", response_model=ChatSessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: ChatSessionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Start a new conversation with support."""
    _require_client(current_user)
    return ChatSessionManager.create_session(
        db,
        client_id=current_user.id,
        project_id=payload.project_id,
        subject=payload.subject,
    )


@router.get("/sessions", response_model=ChatSessionListResponse)
def list_sessions(
    scope: Literal["own", "active", "all"] = "own",
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Clients always get their own sessions; staff may ask for the active queue or everything."""
    if not current_user.is_staff or scope == "own":
        sessions = ChatSessionManager.list_sessions(db, current_user.id)
    elif scope == "active":
        sessions = ChatSessionManager.list_active_sessions(db)
    else:
        sessions = ChatSessionManager.list_all_sessions(db, limit=limit, offset=offset)
    return {"sessions": sessions, "total": len(sessions)}


@router.get("/sessions/{session_id}", response_model=ChatSessionResponse)
def get_session(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    chat_session = ChatSessionManager.get_session(db, session_id)
    ensure_session_access(chat_session, current_user)
    return chat_session


@router.post(
    "/sessions/{session_id}/messages",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    session_id: int,
    payload: ChatMessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Persist a message, then relay it to live subscribers of the session."""
    chat_session = ChatSessionManager.get_session(db, session_id)
    ensure_session_access(chat_session, current_user)

    message = MessageHandler.send_message(db, session_id, current_user.id, payload.content)
    response = ChatMessageResponse.model_validate(message)
    chat_relay.publish(session_id, NewMessageEvent(message=response))
    return response


@router.get("/sessions/{session_id}/messages", response_model=List[ChatMessageResponse])
def list_messages(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    chat_session = ChatSessionManager.get_session(db, session_id)
    ensure_session_access(chat_session, current_user)
    return MessageHandler.get_session_messages(db, session_id)


@router.post("/sessions/{session_id}/read")
def mark_session_read(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    chat_session = ChatSessionManager.get_session(db, session_id)
    ensure_session_access(chat_session, current_user)
    marked = MessageHandler.mark_session_read(db, session_id, current_user.id)
    return {"marked": marked}


@router.post("/messages/{message_id}/read", response_model=ChatMessageResponse)
def mark_message_read(
    message_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    message = MessageHandler.get_message(db, message_id)
    if message.session_id is not None:
        ensure_session_access(ChatSessionManager.get_session(db, message.session_id), current_user)
    elif current_user.id not in (message.sender_id, message.receiver_id):
        raise UnauthorizedError()
    return MessageHandler.mark_read(db, message_id, current_user.id)


@router.post("/sessions/{session_id}/close", response_model=ChatSessionResponse)
async def close_session(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    chat_session = ChatSessionManager.get_session(db, session_id)
    ensure_session_access(chat_session, current_user)

    chat_session = ChatSessionManager.close_session(db, session_id, closed_by=current_user.id)
    chat_relay.publish(
        session_id,
        SessionClosedEvent(session_id=session_id, closed_at=chat_session.closed_at),
    )
    return chat_session


@router.post("/sessions/{session_id}/assign", response_model=ChatSessionResponse)
async def assign_support(
    session_id: int,
    payload: SupportAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Attach a support agent. Support staff may only assign themselves."""
    if current_user.role == UserRole.SUPPORT and payload.support_id != current_user.id:
        raise UnauthorizedError("Support staff can only assign themselves")

    chat_session = ChatSessionManager.assign_support(db, session_id, payload.support_id)
    chat_relay.publish(
        session_id,
        SupportJoinedEvent(session_id=session_id, support_id=payload.support_id),
    )
    return chat_session


@router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"unread": MessageHandler.unread_count(db, current_user.id)}


@router.post("/tickets", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
def create_ticket(
    payload: TicketCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """File a support ticket: a new session whose first message is the description."""
    _require_client(current_user)
    chat_session, message = open_ticket(
        db,
        client_id=current_user.id,
        subject=payload.subject,
        description=payload.description,
        priority=payload.priority,
        project_id=payload.project_id,
    )
    return {"session": chat_session, "message": message}


@router.get("/tickets", response_model=List[ChatSessionResponse])
def get_tickets(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    client_id = None if current_user.is_staff else current_user.id
    return list_tickets(db, client_id=client_id)
