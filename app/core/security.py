from datetime import datetime, timedelta, timezone
from typing import Any
import re
import uuid

import bcrypt
from jose import JWTError, jwt

from .config import settings

PASSWORD_POLICY_REGEX = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9]).{12,}$"
)
PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 12 characters long and contain upper, "
    "lower, digit, and special character."
)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def check_password_policy(password: str) -> str:
    """Return the password unchanged or raise ValueError (usable as a pydantic validator body)."""
    if not PASSWORD_POLICY_REGEX.match(password):
        raise ValueError(PASSWORD_POLICY_MESSAGE)
    return password


def _truncate(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_truncate(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    check_password_policy(password)
    return bcrypt.hashpw(_truncate(password), bcrypt.gensalt()).decode("utf-8")


def create_token(subject: Any, expires_delta: timedelta, token_type: str) -> str:
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": str(subject),
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "iat": int(issued.timestamp()),
        "exp": int((issued + expires_delta).timestamp()),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(subject: Any) -> str:
    return create_token(
        subject, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES), ACCESS_TOKEN
    )


def create_refresh_token(subject: Any) -> str:
    return create_token(
        subject, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS), REFRESH_TOKEN
    )


def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    """Decode and verify a JWT; raises JWTError on bad signature, expiry or wrong type."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise JWTError("Invalid or expired token") from exc
    if claims.get("type") != expected_type:
        raise JWTError("Invalid token type")
    return claims
