"""
Security Module

Handles password hashing, JWT token generation/validation.
Uses industry-standard libraries (passlib with bcrypt, python-jose).

SECURITY NOTES:
- Passwords are hashed with bcrypt (slow by design to prevent brute force)
- JWT tokens have expiration (prevent replay attacks)
- Tokens carry only the user id; team access is resolved per request
"""
from datetime import timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from survey_platform.config import get_settings
from survey_platform.utils.datetime import utcnow

settings = get_settings()

# bcrypt with default rounds (12)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Uses constant-time comparison to prevent timing attacks.
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    NOTE: This is intentionally slow (100ms+). Don't call this in hot paths.
    """
    return pwd_context.hash(password)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Token payload includes:
    - sub: user_id
    - exp: expiration timestamp
    - iat: issued at timestamp
    """
    to_encode = data.copy()
    now = utcnow()

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": now
    })

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns the payload if valid, None if invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        # Token invalid, expired, or tampered with
        return None
