"""
Permission System (RBAC)

Team roles, highest first: owner > admin > developer > editor > viewer.

Reading environment data needs any accepted membership of the owning team.
Writing it needs editor or higher. Managing the team itself (memberships,
products) needs admin or higher.

These helpers only compare roles; resolving the role of a user for an
environment or team happens in services.access and services.team.
"""
from typing import Optional
from fastapi import HTTPException, status
from survey_platform.models.team import MembershipRole, ROLE_HIERARCHY


class PermissionDenied(HTTPException):
    """Custom exception for permission denied errors."""

    def __init__(self, detail: str = "Permission denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


def has_role(role: Optional[MembershipRole], required_role: MembershipRole) -> bool:
    if role is None:
        return False
    return ROLE_HIERARCHY[MembershipRole(role)] >= ROLE_HIERARCHY[required_role]


def require_role(role: Optional[MembershipRole], required_role: MembershipRole) -> None:
    """
    Raise PermissionDenied unless role is at least required_role.

    A missing role (no membership) never passes.
    """
    if not has_role(role, required_role):
        raise PermissionDenied(
            detail=f"This action requires {required_role.value} role or higher"
        )


def can_write_environment(role: Optional[MembershipRole]) -> bool:
    """Viewers are read-only."""
    return has_role(role, MembershipRole.EDITOR)


def can_manage_team(role: Optional[MembershipRole]) -> bool:
    return has_role(role, MembershipRole.ADMIN)
