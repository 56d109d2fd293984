"""WebSocket endpoint for real-time chat."""

import asyncio
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.api.dependencies import ensure_session_access, resolve_user_from_token
from app.chat import ChatSessionManager, MessageHandler, chat_relay
from app.chat.events import (
    ErrorEvent,
    JoinSessionEvent,
    LeaveSessionEvent,
    MarkReadEvent,
    NewMessageEvent,
    SendMessageEvent,
    StatusEvent,
    client_event_adapter,
)
from app.chat.schemas import ChatMessageResponse
from app.core.database import get_db
from app.core.exceptions import AppException
from app.core.messages import CHAT_INVALID_EVENT
from app.models.user import User


logger = logging.getLogger("app.chat.websocket")

router = APIRouter()


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """Forward the connection's relay queue to the socket."""
    while True:
        payload = await queue.get()
        try:
            await websocket.send_json(payload)
        except (WebSocketDisconnect, RuntimeError) as e:
            # Socket already closed; the reader loop sees the disconnect
            logger.debug("Relay pump stopped: %r", e)
            return


def _handle_event(db: Session, user: User, connection_id: str, event) -> None:
    """Apply one client event. Replies go through the connection's relay queue."""
    if isinstance(event, JoinSessionEvent):
        chat_session = ChatSessionManager.get_session(db, event.session_id)
        ensure_session_access(chat_session, user)
        chat_relay.join(connection_id, event.session_id)
        MessageHandler.mark_session_read(db, event.session_id, user.id)
        chat_relay.send(connection_id, StatusEvent(status="joined", session_id=event.session_id))

    elif isinstance(event, LeaveSessionEvent):
        chat_relay.leave(connection_id, event.session_id)
        chat_relay.send(connection_id, StatusEvent(status="left", session_id=event.session_id))

    elif isinstance(event, SendMessageEvent):
        chat_session = ChatSessionManager.get_session(db, event.session_id)
        ensure_session_access(chat_session, user)
        message = MessageHandler.send_message(db, event.session_id, user.id, event.content)
        chat_relay.publish(
            event.session_id,
            NewMessageEvent(message=ChatMessageResponse.model_validate(message)),
        )

    elif isinstance(event, MarkReadEvent):
        message = MessageHandler.get_message(db, event.message_id)
        if message.session_id is not None:
            ensure_session_access(ChatSessionManager.get_session(db, message.session_id), user)
        MessageHandler.mark_read(db, event.message_id, user.id)
        chat_relay.send(connection_id, StatusEvent(status="read", session_id=message.session_id))


@router.websocket("/ws/chat")
async def chat_websocket(
    websocket: WebSocket,
    token: str = Query(...),
    db: Session = Depends(get_db),
):
    """
    WebSocket endpoint for real-time chat.

    Connection URL: ws://localhost:8000/api/v1/ws/chat?token={access_token}

    Client -> server:
        {"type": "join-session", "session_id": 1}
        {"type": "leave-session", "session_id": 1}
        {"type": "send-message", "session_id": 1, "content": "hello"}
        {"type": "mark-read", "message_id": 42}

    Server -> client:
        {"type": "new-message", "message": {...ChatMessage...}}
        {"type": "support-joined" | "session-closed" | "status" | "error", ...}
    """
    try:
        user = resolve_user_from_token(db, token)
    except HTTPException as e:
        logger.warning("WebSocket authentication failed: %s", e.detail)
        await websocket.close(code=1008, reason=str(e.detail))
        return

    await websocket.accept()

    connection_id = uuid.uuid4().hex
    queue = chat_relay.register(connection_id)
    pump = asyncio.create_task(_pump(websocket, queue))
    logger.info("WebSocket connected: connection_id=%s, user_id=%s", connection_id, user.id)

    chat_relay.send(connection_id, StatusEvent(status="connected"))

    try:
        while True:
            data = await websocket.receive_text()

            try:
                event = client_event_adapter.validate_json(data)
            except ValidationError:
                chat_relay.send(connection_id, ErrorEvent(message=CHAT_INVALID_EVENT, error_code="INVALID_INPUT"))
                continue

            try:
                _handle_event(db, user, connection_id, event)
            except AppException as e:
                # Failed sends surface here; nothing was written
                chat_relay.send(connection_id, ErrorEvent(message=e.message, error_code=e.error_code))

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected: connection_id=%s, user_id=%s", connection_id, user.id)
    finally:
        pump.cancel()
        try:
            await pump
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Relay pump failed: connection_id=%s", connection_id)
        chat_relay.disconnect(connection_id)
