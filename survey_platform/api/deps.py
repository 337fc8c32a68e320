"""
API Dependencies

Reusable FastAPI dependencies for authentication and authorization.

Management routes are scoped either by environment (path parameter
environment_id) or by an entity id; both end in ensure_environment_access(),
which resolves the caller's team role for the environment and rejects
non-members, and viewers on writes.
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from survey_platform.database import get_db
from survey_platform.models.team import MembershipRole
from survey_platform.models.user import User
from survey_platform.core.security import decode_access_token
from survey_platform.core.exceptions import AuthenticationError
from survey_platform.core.permissions import PermissionDenied, can_manage_team, can_write_environment
from survey_platform.services.access import get_membership_role
from survey_platform.services.team import get_membership
from survey_platform.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user.

    This dependency:
    1. Validates JWT token
    2. Loads user from database
    3. Checks user is active
    """
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()

    if not user:
        logger.warning(f"User not found: {user_id}")
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    return user


def ensure_environment_access(
    db: Session,
    user: User,
    environment_id: str,
    write: bool = False,
) -> MembershipRole:
    """
    Return the user's role for the environment or raise PermissionDenied.

    Unknown environments are indistinguishable from foreign ones.
    """
    role = get_membership_role(db, user.id, environment_id)

    if role is None:
        log_security_event(
            "access_denied",
            {"user_id": user.id, "environment_id": environment_id},
            logger
        )
        raise PermissionDenied("Not authorized to access this environment")

    if write and not can_write_environment(role):
        log_security_event(
            "access_denied",
            {"user_id": user.id, "environment_id": environment_id, "reason": "read_only_role"},
            logger
        )
        raise PermissionDenied(f"The {role.value} role cannot modify environment data")

    return role


async def require_environment_read(
    environment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> User:
    ensure_environment_access(db, current_user, environment_id)
    return current_user


async def require_environment_write(
    environment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> User:
    """Viewers may read but not change environment data."""
    ensure_environment_access(db, current_user, environment_id, write=True)
    return current_user


async def require_team_admin(
    team_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> User:
    """Require an accepted admin or owner membership of the team in the path."""
    membership = get_membership(db, team_id, current_user.id)

    if not membership or not membership.accepted:
        log_security_event(
            "access_denied",
            {"user_id": current_user.id, "team_id": team_id},
            logger
        )
        raise PermissionDenied("Not a member of this team")

    if not can_manage_team(membership.role):
        raise PermissionDenied("Team management requires admin role or higher")

    return current_user
