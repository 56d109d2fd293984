from __future__ import annotations

import logging
import uuid
from typing import Annotated, Callable, List

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import UnauthorizedError
from app.core.messages import (
    AUTH_INSUFFICIENT_PERMISSIONS,
    AUTH_REFRESH_TOKEN_MISSING,
    AUTH_TOKEN_INVALID,
    AUTH_TOKEN_PAYLOAD_INVALID,
    AUTH_TOO_MANY_ATTEMPTS,
    AUTH_USER_ID_INVALID,
    AUTH_USER_NOT_FOUND_OR_INACTIVE,
    CHAT_SESSION_ACCESS_DENIED,
    PROJECT_ACCESS_DENIED,
)
from app.core.redis import get_redis_client
from app.core.security import decode_token
from app.chat.models import ChatSession
from app.models.enums import UserRole
from app.models.user import User
from app.projects.models import Project


logger = logging.getLogger("app.dependencies")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def _token_error(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def resolve_user_from_token(db: Session, token: str) -> User:
    """Turn an access token into an active user or raise 401.

    Shared by the bearer-auth dependency and the chat WebSocket handshake.
    """
    try:
        subject = decode_token(token, expected_type="access").get("sub")
    except JWTError:
        raise _token_error(AUTH_TOKEN_INVALID)
    if subject is None:
        raise _token_error(AUTH_TOKEN_PAYLOAD_INVALID)

    try:
        user_uuid = uuid.UUID(subject)
    except (ValueError, TypeError):
        raise _token_error(AUTH_USER_ID_INVALID)

    user = db.get(User, user_uuid)
    if user is None or not user.is_active or user.is_deleted:
        raise _token_error(AUTH_USER_NOT_FOUND_OR_INACTIVE)
    return user


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Session = Depends(get_db),
) -> User:
    return resolve_user_from_token(db, token)


def require_roles(allowed_roles: List[UserRole]) -> Callable[[User], User]:
    def dependency(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=AUTH_INSUFFICIENT_PERMISSIONS,
            )
        return current_user

    return dependency


require_admin = require_roles([UserRole.ADMIN])
require_staff = require_roles([UserRole.ADMIN, UserRole.SUPPORT])


def ensure_session_access(chat_session: ChatSession, user: User) -> None:
    """A session is visible to its client and to staff (admin/support)."""
    if chat_session.client_id == user.id or user.is_staff:
        return
    raise UnauthorizedError(CHAT_SESSION_ACCESS_DENIED)


def ensure_project_access(project: Project, user: User) -> None:
    if project.client_id == user.id or user.is_staff:
        return
    raise UnauthorizedError(PROJECT_ACCESS_DENIED)


def get_refresh_token_from_cookie(
    refresh_token: str | None = Cookie(default=None, alias="refresh_token"),
) -> str:
    if not refresh_token:
        logger.warning("Refresh token cookie missing")
        raise _token_error(AUTH_REFRESH_TOKEN_MISSING)
    return refresh_token


def enforce_login_attempt_limit(email: str) -> None:
    """Limit login attempts: 5 attempts over rolling 15 minutes."""
    r = get_redis_client()
    if r is None:
        return
    key = f"auth:login_attempts:{email}"
    attempts = r.incr(key)
    if attempts == 1:
        r.expire(key, 15 * 60)
    if attempts > 5:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=AUTH_TOO_MANY_ATTEMPTS,
        )


def reset_login_attempts(email: str) -> None:
    r = get_redis_client()
    if r is None:
        return
    r.delete(f"auth:login_attempts:{email}")


def store_refresh_token(user_id: str, jti: str, ttl_seconds: int) -> None:
    """Store refresh token in Redis. No-op if Redis is unavailable."""
    r = get_redis_client()
    if r is None:
        return
    r.set(f"auth:refresh:{user_id}:{jti}", "1", ex=ttl_seconds)


def revoke_refresh_token(user_id: str, jti: str) -> None:
    """Revoke refresh token in Redis. No-op if Redis is unavailable."""
    r = get_redis_client()
    if r is None:
        return
    r.delete(f"auth:refresh:{user_id}:{jti}")


def is_refresh_token_active(user_id: str, jti: str) -> bool:
    """Check if refresh token is active. Returns True if Redis is unavailable (allow all)."""
    r = get_redis_client()
    if r is None:
        return True
    return r.exists(f"auth:refresh:{user_id}:{jti}") == 1
