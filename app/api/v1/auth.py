from datetime import datetime, timezone
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from jose import JWTError
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from app.api.dependencies import (
    enforce_login_attempt_limit,
    get_current_user,
    get_refresh_token_from_cookie,
    is_refresh_token_active,
    reset_login_attempts,
    revoke_refresh_token,
    store_refresh_token,
)
from app.api.v1.users import UserResponse
from app.core.config import settings
from app.core.database import get_db
from app.core.messages import (
    AUTH_INVALID_CREDENTIALS,
    AUTH_LOGOUT_SUCCESS,
    AUTH_REFRESH_TOKEN_INVALID,
    AUTH_REFRESH_TOKEN_PAYLOAD_INVALID,
    AUTH_REFRESH_TOKEN_REVOKED,
    AUTH_USER_ID_INVALID,
    AUTH_USER_INACTIVE,
    AUTH_USER_NOT_FOUND_OR_INACTIVE,
    REG_EMAIL_EXISTS,
)
from app.core.security import (
    check_password_policy,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from app.models.enums import UserRole
from app.models.user import User
from app.services.audit_service import log_auth_event


logger = logging.getLogger("app.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str
    company: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=30)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_policy(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _audit(db: Session, request: Request, user_id, action_type: str, success: bool = True, **details) -> None:
    log_auth_event(
        db,
        user_id=user_id,
        action_type=action_type,
        success=success,
        details=details,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    max_age = settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
    # Insecure cookies only in local development (plain HTTP)
    is_secure = settings.ENVIRONMENT.lower() not in ("development", "dev", "local", "test")
    response.set_cookie(
        "refresh_token",
        refresh_token,
        httponly=True,
        secure=is_secure,
        samesite="lax",
        max_age=max_age,
    )


def _issue_tokens(response: Response, user_id: str) -> dict:
    access_token = create_access_token(subject=user_id)
    refresh_token = create_refresh_token(subject=user_id)

    # store refresh token jti in Redis for rotation
    refresh_payload = decode_token(refresh_token, expected_type="refresh")
    ttl_seconds = settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
    store_refresh_token(user_id, refresh_payload["jti"], ttl_seconds)

    _set_refresh_cookie(response, refresh_token)
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
    }


def _session_payload(response: Response, user: User) -> dict:
    tokens = _issue_tokens(response, str(user.id))
    return {**tokens, "user": UserResponse.model_validate(user)}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """Create a client account and log it in."""
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=REG_EMAIL_EXISTS)

    user_id = uuid.uuid4()
    user = User(
        id=user_id,
        email=email,
        password_hash=get_password_hash(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        company=payload.company,
        phone=payload.phone,
        role=UserRole.CLIENT,
        last_login=datetime.now(timezone.utc),
        created_by=str(user_id),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    _audit(db, request, user.id, "AUTH_REGISTER")
    logger.info("Client registered: user_id=%s", user.id)
    return _session_payload(response, user)


@router.post("/login")
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    email = payload.email.lower()
    enforce_login_attempt_limit(email)

    user = db.query(User).filter(User.email == email, User.is_deleted.is_(False)).first()
    if not user or not verify_password(payload.password, user.password_hash):
        _audit(db, request, user.id if user else None, "AUTH_LOGIN", success=False, email=email)
        raise _unauthorized(AUTH_INVALID_CREDENTIALS)

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=AUTH_USER_INACTIVE)

    reset_login_attempts(email)
    user.last_login = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)

    _audit(db, request, user.id, "AUTH_LOGIN")
    return _session_payload(response, user)


def _user_for_refresh(db: Session, refresh_token: str) -> tuple[User, str]:
    """Validate a refresh token against Redis and the user table; returns the user and the token's jti."""
    try:
        payload = decode_token(refresh_token, expected_type="refresh")
    except JWTError as e:
        logger.warning("Invalid refresh token: %s", e)
        raise _unauthorized(AUTH_REFRESH_TOKEN_INVALID)

    subject, jti = payload.get("sub"), payload.get("jti")
    if not subject or not jti:
        raise _unauthorized(AUTH_REFRESH_TOKEN_PAYLOAD_INVALID)
    if not is_refresh_token_active(subject, jti):
        raise _unauthorized(AUTH_REFRESH_TOKEN_REVOKED)

    try:
        user = db.get(User, uuid.UUID(subject))
    except (ValueError, TypeError):
        raise _unauthorized(AUTH_USER_ID_INVALID)
    if user is None or not user.is_active or user.is_deleted:
        raise _unauthorized(AUTH_USER_NOT_FOUND_OR_INACTIVE)
    return user, jti


@router.post("/refresh")
def refresh_token(
    request: Request,
    response: Response,
    refresh_token: str = Depends(get_refresh_token_from_cookie),
    db: Session = Depends(get_db),
):
    user, jti = _user_for_refresh(db, refresh_token)

    # rotate: revoke old and issue new
    revoke_refresh_token(str(user.id), jti)
    tokens = _issue_tokens(response, str(user.id))

    _audit(db, request, user.id, "AUTH_REFRESH")
    return tokens


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    refresh_token: str = Depends(get_refresh_token_from_cookie),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        jti = decode_token(refresh_token, expected_type="refresh").get("jti")
    except JWTError:
        jti = None
    if jti:
        revoke_refresh_token(str(current_user.id), jti)

    response.delete_cookie("refresh_token")
    _audit(db, request, current_user.id, "AUTH_LOGOUT")
    return {"detail": AUTH_LOGOUT_SUCCESS}


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
