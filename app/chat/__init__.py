"""Support chat: sessions, messages and the real-time relay."""

from .models import ChatSession, ChatMessage
from .sessions import ChatSessionManager
from .messages import MessageHandler
from .websocket import ChatRelay, chat_relay

__all__ = [
    "ChatSession",
    "ChatMessage",
    "ChatSessionManager",
    "MessageHandler",
    "ChatRelay",
    "chat_relay",
]
