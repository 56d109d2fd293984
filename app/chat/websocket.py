"""In-process relay fanning chat events out to live connections."""

import asyncio
import logging
from typing import Dict, Set

from app.core.config import settings
from .events import ServerEvent


logger = logging.getLogger("app.chat.websocket")


class ChatRelay:
    """Topic-per-session broadcast over per-connection outbound queues.

    The relay is not the system of record: events are published after the
    message commit and delivery is best effort. A subscriber whose queue is
    full misses the event and catches up from the store on its next read.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        # connection_id -> outbound queue of JSON-ready dicts
        self.subscribers: Dict[str, asyncio.Queue] = {}
        # session_id -> connection ids joined to it
        self.topics: Dict[int, Set[str]] = {}
        # connection_id -> session ids, for cleanup
        self.memberships: Dict[str, Set[int]] = {}

    def register(self, connection_id: str) -> asyncio.Queue:
        """Create (or return) the outbound queue for a connection."""
        queue = self.subscribers.get(connection_id)
        if queue is None:
            queue = asyncio.Queue(maxsize=self.queue_size)
            self.subscribers[connection_id] = queue
            self.memberships[connection_id] = set()
        return queue

    def join(self, connection_id: str, session_id: int) -> None:
        """Bind a connection to a session's broadcast group."""
        self.register(connection_id)
        self.topics.setdefault(session_id, set()).add(connection_id)
        self.memberships[connection_id].add(session_id)
        logger.info(
            "Connection joined session: connection_id=%s, session_id=%s, subscribers=%d",
            connection_id,
            session_id,
            len(self.topics[session_id]),
        )

    def leave(self, connection_id: str, session_id: int) -> None:
        members = self.topics.get(session_id)
        if members is not None:
            members.discard(connection_id)
            if not members:
                del self.topics[session_id]
        if connection_id in self.memberships:
            self.memberships[connection_id].discard(session_id)

    def disconnect(self, connection_id: str) -> None:
        """Drop a connection and all of its memberships."""
        for session_id in list(self.memberships.get(connection_id, ())):
            self.leave(connection_id, session_id)
        self.memberships.pop(connection_id, None)
        self.subscribers.pop(connection_id, None)
        logger.info("Connection removed from relay: connection_id=%s", connection_id)

    def send(self, connection_id: str, event: ServerEvent) -> bool:
        """Queue an event for a single connection."""
        queue = self.subscribers.get(connection_id)
        if queue is None:
            return False
        return self._offer(queue, connection_id, event.model_dump(mode="json"))

    def publish(self, session_id: int, event: ServerEvent) -> int:
        """
        Fan an event out to every connection joined to ``session_id``.

        Never blocks and never raises on delivery problems.

        Returns:
            Number of connections the event was queued for
        """
        members = self.topics.get(session_id)
        if not members:
            return 0

        payload = event.model_dump(mode="json")
        delivered = 0
        for connection_id in list(members):
            queue = self.subscribers.get(connection_id)
            if queue is None:
                continue
            if self._offer(queue, connection_id, payload):
                delivered += 1
        return delivered

    def subscriber_count(self, session_id: int) -> int:
        return len(self.topics.get(session_id, ()))

    @staticmethod
    def _offer(queue: asyncio.Queue, connection_id: str, payload: dict) -> bool:
        try:
            queue.put_nowait(payload)
            return True
        except asyncio.QueueFull:
            logger.warning(
                "Dropping %s event for slow connection %s",
                payload.get("type"),
                connection_id,
            )
            return False


# Global relay instance
chat_relay = ChatRelay(queue_size=settings.CHAT_RELAY_QUEUE_SIZE)
