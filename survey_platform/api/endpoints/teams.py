"""
Team Management Endpoints

RBAC:
- Create team: any authenticated user (becomes owner)
- List teams: own accepted memberships only
- Add/remove members, create products: admin or owner of the team
- Add or remove owners: owners only; the last owner cannot leave
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from survey_platform.database import get_db
from survey_platform.models.user import User
from survey_platform.models.team import MembershipRole
from survey_platform.schemas.team import (
    MembershipCreate,
    MembershipResponse,
    ProductCreate,
    ProductResponse,
    TeamCreate,
    TeamResponse,
)
from survey_platform.api.deps import get_current_user, require_team_admin
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.core.permissions import require_role
from survey_platform.services import team as team_service
from survey_platform.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/teams", tags=["teams"])


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    team_data: TeamCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return team_service.create_team(db, team_data.name, current_user.id)


@router.get("", response_model=List[TeamResponse])
async def list_teams(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return team_service.get_teams_by_user_id(db, current_user.id)


@router.post(
    "/{team_id}/memberships",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_member(
    team_id: str,
    membership_data: MembershipCreate,
    current_user: User = Depends(require_team_admin),
    db: Session = Depends(get_db)
):
    """
    Add an existing user to the team.

    Only owners can hand out the owner role.
    """
    if membership_data.role == MembershipRole.OWNER:
        caller = team_service.get_membership(db, team_id, current_user.id)
        require_role(caller.role, MembershipRole.OWNER)

    user = db.query(User).filter(User.email == membership_data.email).first()
    if not user:
        raise ResourceNotFoundError("User", membership_data.email)

    return team_service.create_membership(db, team_id, user.id, membership_data.role)


@router.delete("/{team_id}/memberships/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    team_id: str,
    user_id: str,
    current_user: User = Depends(require_team_admin),
    db: Session = Depends(get_db)
):
    """
    Remove a member. The removed user loses environment access immediately.

    Only owners can remove owners, and the last owner stays.
    """
    target = team_service.get_membership(db, team_id, user_id)
    if target and target.role == MembershipRole.OWNER:
        caller = team_service.get_membership(db, team_id, current_user.id)
        require_role(caller.role, MembershipRole.OWNER)

    team_service.delete_membership(db, team_id, user_id)
    logger.info(f"Member {user_id} removed from team {team_id} by {current_user.id}")
    return None


@router.post(
    "/{team_id}/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_product(
    team_id: str,
    product_data: ProductCreate,
    current_user: User = Depends(require_team_admin),
    db: Session = Depends(get_db)
):
    """Create a product with its production and development environments."""
    return team_service.create_product(db, team_id, product_data.name)
