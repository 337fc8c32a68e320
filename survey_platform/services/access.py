"""
Access Checks

Boolean answers to "may this dashboard user see this entity". Every check
reduces to one question: is the user an accepted member of the team that
owns the entity's environment. Results are cached and tagged with the user's
team list, so a membership change is visible immediately.
"""
from typing import Optional

from sqlalchemy.orm import Session

from survey_platform.core.cache import cached
from survey_platform.core.validation import Id, validate_inputs
from survey_platform.database import database_errors
from survey_platform.models.product import Environment, Product
from survey_platform.models.team import Membership, MembershipRole
from survey_platform.services.action_class import get_action_class
from survey_platform.services.attribute_class import get_attribute_class
from survey_platform.services.caches import (
    action_class_cache,
    attribute_class_cache,
    environment_cache,
    person_cache,
    team_cache,
    webhook_cache,
)
from survey_platform.services.person import get_person
from survey_platform.services.webhook import get_webhook


def _membership_query(db: Session, user_id: str, environment_id: str):
    return (
        db.query(Membership)
        .join(Product, Product.team_id == Membership.team_id)
        .join(Environment, Environment.product_id == Product.id)
        .filter(
            Environment.id == environment_id,
            Membership.user_id == user_id,
            Membership.accepted.is_(True),
        )
    )


@cached(
    key=lambda db, user_id, environment_id: f"access:environment:{user_id}:{environment_id}",
    tags=lambda db, user_id, environment_id: [
        team_cache.tag_by_user_id(user_id),
        environment_cache.tag_by_id(environment_id),
    ],
)
def has_user_environment_access(db: Session, user_id: str, environment_id: str) -> bool:
    validate_inputs((user_id, Id), (environment_id, Id))

    with database_errors(db, "has_user_environment_access"):
        return _membership_query(db, user_id, environment_id).first() is not None


@cached(
    key=lambda db, user_id, environment_id: f"access:role:{user_id}:{environment_id}",
    tags=lambda db, user_id, environment_id: [
        team_cache.tag_by_user_id(user_id),
        environment_cache.tag_by_id(environment_id),
    ],
)
def get_membership_role(db: Session, user_id: str, environment_id: str) -> Optional[MembershipRole]:
    """Role of the user in the team owning the environment, None without access."""
    validate_inputs((user_id, Id), (environment_id, Id))

    with database_errors(db, "get_membership_role"):
        membership = _membership_query(db, user_id, environment_id).first()
    return membership.role if membership else None


@cached(
    key=lambda db, user_id, webhook_id: f"access:webhook:{user_id}:{webhook_id}",
    tags=lambda db, user_id, webhook_id: [
        webhook_cache.tag_by_id(webhook_id),
        team_cache.tag_by_user_id(user_id),
    ],
)
def can_user_access_webhook(db: Session, user_id: str, webhook_id: str) -> bool:
    validate_inputs((user_id, Id), (webhook_id, Id))

    webhook = get_webhook(db, webhook_id)
    if not webhook:
        return False

    return has_user_environment_access(db, user_id, webhook.environment_id)


@cached(
    key=lambda db, user_id, attribute_class_id: f"access:attribute_class:{user_id}:{attribute_class_id}",
    tags=lambda db, user_id, attribute_class_id: [
        attribute_class_cache.tag_by_id(attribute_class_id),
        team_cache.tag_by_user_id(user_id),
    ],
)
def can_user_access_attribute_class(db: Session, user_id: Optional[str], attribute_class_id: str) -> bool:
    if not user_id:
        return False
    validate_inputs((user_id, Id), (attribute_class_id, Id))

    attribute_class = get_attribute_class(db, attribute_class_id)
    if not attribute_class:
        return False

    return has_user_environment_access(db, user_id, attribute_class.environment_id)


@cached(
    key=lambda db, user_id, action_class_id: f"access:action_class:{user_id}:{action_class_id}",
    tags=lambda db, user_id, action_class_id: [
        action_class_cache.tag_by_id(action_class_id),
        team_cache.tag_by_user_id(user_id),
    ],
)
def can_user_access_action_class(db: Session, user_id: str, action_class_id: str) -> bool:
    validate_inputs((user_id, Id), (action_class_id, Id))

    action_class = get_action_class(db, action_class_id)
    if not action_class:
        return False

    return has_user_environment_access(db, user_id, action_class.environment_id)


@cached(
    key=lambda db, user_id, person_id: f"access:person:{user_id}:{person_id}",
    tags=lambda db, user_id, person_id: [
        person_cache.tag_by_id(person_id),
        team_cache.tag_by_user_id(user_id),
    ],
)
def can_user_access_person(db: Session, user_id: str, person_id: str) -> bool:
    validate_inputs((user_id, Id), (person_id, Id))

    person = get_person(db, person_id)
    if not person:
        return False

    return has_user_environment_access(db, user_id, person.environment_id)
