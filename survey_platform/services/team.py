"""
Team Service

Teams, memberships and products. Membership writes revalidate the user's
team tag, which every access check depends on.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from survey_platform.core.cache import cached
from survey_platform.core.exceptions import (
    DuplicateResourceError,
    OperationNotAllowedError,
    ResourceNotFoundError,
)
from survey_platform.core.validation import Id, NonEmptyString, validate_inputs
from survey_platform.database import database_errors
from survey_platform.models.team import Membership, MembershipRole, Team
from survey_platform.models.product import Environment, EnvironmentType, Product
from survey_platform.schemas.team import MembershipResponse, ProductResponse, TeamResponse
from survey_platform.services.caches import environment_cache, team_cache
from survey_platform.services.environment import seed_environment
from survey_platform.utils.logging import get_logger

logger = get_logger(__name__)


def create_team(db: Session, name: str, owner_user_id: str) -> TeamResponse:
    """Create a team and make the creator its owner."""
    validate_inputs((name, NonEmptyString), (owner_user_id, Id))

    with database_errors(db, "create_team"):
        team = Team(name=name)
        team.memberships.append(
            Membership(user_id=owner_user_id, role=MembershipRole.OWNER, accepted=True)
        )
        db.add(team)
        db.commit()

    team_cache.revalidate(id=team.id, user_id=owner_user_id)
    logger.info(f"Team created: {team.id} by {owner_user_id}")

    return TeamResponse.model_validate(team)


@cached(
    key=lambda db, user_id: f"teams:by_user:{user_id}",
    tags=lambda db, user_id: [team_cache.tag_by_user_id(user_id)],
)
def get_teams_by_user_id(db: Session, user_id: str) -> List[TeamResponse]:
    validate_inputs((user_id, Id))

    with database_errors(db, "get_teams_by_user_id"):
        teams = (
            db.query(Team)
            .join(Membership, Membership.team_id == Team.id)
            .filter(Membership.user_id == user_id, Membership.accepted.is_(True))
            .order_by(Team.created_at.asc())
            .all()
        )
    return [TeamResponse.model_validate(team) for team in teams]


@cached(
    key=lambda db, environment_id: f"team:by_environment:{environment_id}",
    tags=lambda db, environment_id: [environment_cache.tag_by_id(environment_id)],
)
def get_team_by_environment_id(db: Session, environment_id: str) -> Optional[TeamResponse]:
    validate_inputs((environment_id, Id))

    with database_errors(db, "get_team_by_environment_id"):
        team = (
            db.query(Team)
            .join(Product, Product.team_id == Team.id)
            .join(Environment, Environment.product_id == Product.id)
            .filter(Environment.id == environment_id)
            .first()
        )
    return TeamResponse.model_validate(team) if team else None


def get_membership(db: Session, team_id: str, user_id: str) -> Optional[MembershipResponse]:
    validate_inputs((team_id, Id), (user_id, Id))

    with database_errors(db, "get_membership"):
        membership = db.query(Membership).filter(
            Membership.team_id == team_id,
            Membership.user_id == user_id
        ).first()
    return MembershipResponse.model_validate(membership) if membership else None


def create_membership(
    db: Session,
    team_id: str,
    user_id: str,
    role: MembershipRole = MembershipRole.DEVELOPER,
) -> MembershipResponse:
    validate_inputs((team_id, Id), (user_id, Id), (role, MembershipRole))

    with database_errors(db, "create_membership"):
        if not db.query(Team).filter(Team.id == team_id).first():
            raise ResourceNotFoundError("Team", team_id)

        existing = db.query(Membership).filter(
            Membership.team_id == team_id,
            Membership.user_id == user_id
        ).first()
        if existing:
            raise DuplicateResourceError("User is already a member of this team")

        membership = Membership(team_id=team_id, user_id=user_id, role=role, accepted=True)
        db.add(membership)
        db.commit()

    team_cache.revalidate(id=team_id, user_id=user_id)
    logger.info(f"Membership created: user={user_id} team={team_id} role={role.value}")

    return MembershipResponse.model_validate(membership)


def delete_membership(db: Session, team_id: str, user_id: str) -> MembershipResponse:
    """Remove a member. The last owner of a team cannot be removed."""
    validate_inputs((team_id, Id), (user_id, Id))

    with database_errors(db, "delete_membership"):
        membership = db.query(Membership).filter(
            Membership.team_id == team_id,
            Membership.user_id == user_id
        ).first()
        if not membership:
            raise ResourceNotFoundError("Membership", f"{team_id}/{user_id}")

        if membership.role == MembershipRole.OWNER:
            owners = db.query(Membership).filter(
                Membership.team_id == team_id,
                Membership.role == MembershipRole.OWNER
            ).count()
            if owners <= 1:
                raise OperationNotAllowedError("A team must keep at least one owner")

        result = MembershipResponse.model_validate(membership)
        db.delete(membership)
        db.commit()

    # Access checks for this user are tagged with their team list
    team_cache.revalidate(id=team_id, user_id=user_id)
    logger.info(f"Membership deleted: user={user_id} team={team_id}")

    return result


def create_product(db: Session, team_id: str, name: str) -> ProductResponse:
    """
    Create a product with its production and development environments.

    Each environment is seeded with the platform's automatic classes.
    """
    validate_inputs((team_id, Id), (name, NonEmptyString))

    with database_errors(db, "create_product"):
        if not db.query(Team).filter(Team.id == team_id).first():
            raise ResourceNotFoundError("Team", team_id)

        duplicate = db.query(Product).filter(
            Product.team_id == team_id,
            Product.name == name
        ).first()
        if duplicate:
            raise DuplicateResourceError(f"Product already exists: {name}")

        product = Product(team_id=team_id, name=name)
        for environment_type in (EnvironmentType.PRODUCTION, EnvironmentType.DEVELOPMENT):
            environment = Environment(type=environment_type)
            seed_environment(environment)
            product.environments.append(environment)

        db.add(product)
        db.commit()

    environment_cache.revalidate(product_id=product.id)
    team_cache.revalidate(id=team_id)
    logger.info(f"Product created: {product.id} in team {team_id}")

    return ProductResponse.model_validate(product)
