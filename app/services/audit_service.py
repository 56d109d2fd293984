"""Append-only audit trail for authentication and admin actions."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog


logger = logging.getLogger("app.audit")


def record_event(
    db: Session,
    *,
    actor_id: Optional[uuid.UUID],
    action_type: str,
    resource_type: str,
    resource_id: Any = None,
    details: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    entry = AuditLog(
        user_id=actor_id,
        action_type=action_type,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details or {},
        ip_address=ip_address,
        user_agent=user_agent,
        created_by=str(actor_id) if actor_id is not None else None,
    )
    db.add(entry)
    db.commit()

    logger.debug("Audit event: %s on %s %s", action_type, resource_type, resource_id)
    return entry


def log_auth_event(
    db: Session,
    *,
    user_id: Optional[uuid.UUID],
    action_type: str,
    success: bool,
    ip_address: Optional[str],
    user_agent: Optional[str],
    details: Optional[dict[str, Any]] = None,
) -> AuditLog:
    return record_event(
        db,
        actor_id=user_id,
        action_type=action_type,
        resource_type="auth",
        details={"success": success, **(details or {})},
        ip_address=ip_address,
        user_agent=user_agent,
    )
