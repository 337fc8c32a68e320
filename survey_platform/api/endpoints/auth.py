"""
Authentication Endpoints

Dashboard user registration and login. Tokens identify the user only;
team access is checked per request.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from datetime import timedelta

from survey_platform.database import get_db
from survey_platform.models.user import User
from survey_platform.schemas.auth import LoginRequest, Token, RegisterRequest
from survey_platform.schemas.user import UserResponse
from survey_platform.core.security import (
    verify_password,
    get_password_hash,
    create_access_token
)
from survey_platform.core.exceptions import AuthenticationError, DuplicateResourceError
from survey_platform.config import get_settings
from survey_platform.utils.datetime import utcnow
from survey_platform.utils.logging import log_security_event, get_logger

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=Token)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return JWT token.

    SECURITY: Unknown email and wrong password produce the same error to
    prevent user enumeration.
    """
    user = db.query(User).filter(User.email == credentials.email).first()

    if not user:
        log_security_event(
            "failed_login",
            {"reason": "user_not_found", "email": credentials.email},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    if not verify_password(credentials.password, user.hashed_password):
        log_security_event(
            "failed_login",
            {"reason": "invalid_password", "user_id": user.id},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        log_security_event(
            "failed_login",
            {"reason": "user_inactive", "user_id": user.id},
            logger
        )
        raise AuthenticationError("User account is inactive")

    access_token = create_access_token(
        {"sub": user.id, "email": user.email},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    user.last_login_at = utcnow()
    db.commit()

    logger.info(f"Successful login: user={user.id}")

    return Token(access_token=access_token, token_type="bearer")


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    registration: RegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new dashboard user.

    The user belongs to no team until they create one or are added to one.
    """
    existing_user = db.query(User).filter(User.email == registration.email).first()

    if existing_user:
        raise DuplicateResourceError("User with this email already exists")

    new_user = User(
        email=registration.email,
        hashed_password=get_password_hash(registration.password),
        full_name=registration.full_name,
        is_active=True,
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info(f"New user registered: {new_user.id}")

    return new_user
