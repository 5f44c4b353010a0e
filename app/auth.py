"""
JWT sessions and password hashing for approvers and administrators.

Email-link approvals do not use these tokens; see ``services.tokens``.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models.user import User
from .config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _encode(data: dict, token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({
        "exp": datetime.now(timezone.utc) + expires_delta,
        "type": token_type,
    })
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived session token."""
    return _encode(data, "access", expires_delta or timedelta(minutes=settings.access_token_expire_minutes))


def create_refresh_token(data: dict) -> str:
    return _encode(data, "refresh", timedelta(days=settings.refresh_token_expire_days))


def create_tokens(user_id: int) -> Tuple[str, str]:
    """Create both access and refresh tokens for a user."""
    data = {"sub": str(user_id)}  # JWT sub claim must be a string
    return create_access_token(data), create_refresh_token(data)


def verify_token(token: str, expected_type: str = "access") -> Optional[dict]:
    """Decode a session token, returning None if invalid, expired or of another type."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("type", "access") != expected_type:
        return None
    return payload


def _user_from_payload(payload: Optional[dict], db: Session) -> Optional[User]:
    if not payload:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        return None

    user = db.get(User, user_id)
    if not user or not user.is_active:
        return None
    return user


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """The signed-in user, or None (optional auth)."""
    if not token:
        return None
    return _user_from_payload(verify_token(token, "access"), db)


def get_required_user(
    current_user: Optional[User] = Depends(get_current_user)
) -> User:
    """The signed-in user; 401 otherwise."""
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user


def refresh_access_token(refresh_token: str, db: Session) -> Optional[Tuple[str, str]]:
    """Issue a new token pair if the refresh token and its user are still valid."""
    user = _user_from_payload(verify_token(refresh_token, "refresh"), db)
    if not user:
        return None
    return create_tokens(user.id)
