#!/usr/bin/env python3
"""Close chat sessions with no activity for CHAT_IDLE_TIMEOUT_MINUTES.

Meant to run from cron. Accepts an optional minutes argument that
overrides the setting.
"""

import logging
import sys
from pathlib import Path

# Add parent directory to path so we can import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.chat import ChatSessionManager
from app.core.config import settings
from app.core.database import SessionLocal
from app.core.logging import configure_logging
import app.projects.models  # noqa: F401

logger = logging.getLogger("app.scripts.close_idle_sessions")


def main():
    configure_logging(settings.LOG_LEVEL)

    idle_minutes = int(sys.argv[1]) if len(sys.argv) > 1 else settings.CHAT_IDLE_TIMEOUT_MINUTES
    if not idle_minutes:
        logger.info("Idle timeout disabled; nothing to do")
        return

    db = SessionLocal()
    try:
        closed = ChatSessionManager.close_idle_sessions(db, idle_minutes)
        logger.info("Closed %s idle chat sessions (idle_minutes=%s)", closed, idle_minutes)
    finally:
        db.close()


if __name__ == "__main__":
    main()
