"""
Authentication routes for approvers and administrators.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ..database import get_db
from ..limiter import limiter
from ..logging_config import api_logger
from ..models.approver import Approver
from ..models.user import User
from ..schemas.auth import UserCreate, UserLogin, UserResponse, TokenResponse, RefreshRequest
from ..auth import (
    verify_password,
    get_password_hash,
    create_tokens,
    get_required_user,
    refresh_access_token,
)
from ..config import get_settings

settings = get_settings()

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_response(user: User) -> UserResponse:
    response = UserResponse.model_validate(user)
    if user.approver:
        response.approver_role = user.approver.role
    return response


def _authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.hashed_password):
        api_logger.warning("Failed login", email=email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")
    return user


@router.post("/register", response_model=UserResponse)
@limiter.limit("3/minute")
def register(request: Request, user_data: UserCreate, db: Session = Depends(get_db)):
    """Register an account. An approver with the same email is linked to it."""
    existing = db.query(User).filter(User.email == user_data.email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        display_name=user_data.display_name or user_data.email.split("@")[0],
    )
    db.add(user)
    db.flush()

    approver = db.query(Approver).filter(Approver.email == user.email).first()
    if approver and approver.user_id is None:
        approver.user_id = user.id

    db.commit()
    db.refresh(user)
    api_logger.info("User registered", user_id=user.id, approver=bool(approver))
    return _user_response(user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """Login with OAuth2 form (username/password)."""
    user = _authenticate(db, form_data.username, form_data.password)
    access_token, refresh_token = create_tokens(user.id)
    return TokenResponse(access_token=access_token, refresh_token=refresh_token)


@router.post("/login/json", response_model=TokenResponse)
@limiter.limit(settings.login_rate_limit)
def login_json(request: Request, credentials: UserLogin, db: Session = Depends(get_db)):
    """Login with JSON body (email/password)."""
    user = _authenticate(db, credentials.email, credentials.password)
    access_token, refresh_token = create_tokens(user.id)
    return TokenResponse(access_token=access_token, refresh_token=refresh_token)


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit("10/minute")
def refresh_tokens(request: Request, refresh_request: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a valid refresh token for a new token pair."""
    tokens = refresh_access_token(refresh_request.refresh_token, db)
    if not tokens:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    access_token, refresh_token = tokens
    return TokenResponse(access_token=access_token, refresh_token=refresh_token)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_required_user)):
    return _user_response(current_user)
