"""
Action Service

Records actions sent by the SDK and answers the count questions survey
targeting asks: how often did this action happen in a window, how often did
this person do it, how long ago did they first/last do it.

Every count is cached under the action class id and the class's action tag;
create_action revalidates the latter so counts never lag behind a write.
Windows relative to "now" are additionally bounded by the cache TTL.
"""
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from survey_platform.core.cache import cached
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.core.validation import Id, OptionalPage, validate_inputs
from survey_platform.database import database_errors
from survey_platform.models.action import Action, ActionClass, ActionClassType
from survey_platform.models.person import Person
from survey_platform.schemas.action import ActionInput, ActionResponse
from survey_platform.schemas.action_class import ActionClassCreate
from survey_platform.services.action_class import (
    create_action_class,
    get_action_class_by_environment_id_and_name,
)
from survey_platform.services.action_utils import (
    get_start_date_of_last_month,
    get_start_date_of_last_quarter,
    get_start_date_of_last_week,
)
from survey_platform.services.caches import action_cache, action_class_cache, active_person_cache
from survey_platform.services.person import get_is_person_monthly_active
from survey_platform.utils.datetime import days_between, utcnow
from survey_platform.utils.logging import get_logger
from survey_platform.utils.pagination import paginate

logger = get_logger(__name__)

# Emitted by the SDK itself rather than by customer code
AUTOMATIC_ACTION_NAMES = ("Exit Intent (Desktop)", "50% Scroll")


def _count_tags(action_class_id: str) -> List[str]:
    return [
        action_class_cache.tag_by_id(action_class_id),
        action_cache.tag_by_action_class_id(action_class_id),
    ]


@cached(
    key=lambda db, person_id, page=None: f"actions:by_person:{person_id}:{page}",
    tags=lambda db, person_id, page=None: [action_cache.tag_by_person_id(person_id)],
)
def get_actions_by_person_id(db: Session, person_id: str, page: Optional[int] = None) -> List[ActionResponse]:
    validate_inputs((person_id, Id), (page, OptionalPage))

    with database_errors(db, "get_actions_by_person_id"):
        query = (
            db.query(Action)
            .options(joinedload(Action.action_class))
            .filter(Action.person_id == person_id)
            .order_by(Action.created_at.desc(), Action.id.asc())
        )
        actions = paginate(query, page).all()

    return [ActionResponse.model_validate(action) for action in actions]


@cached(
    key=lambda db, environment_id, page=None: f"actions:by_environment:{environment_id}:{page}",
    tags=lambda db, environment_id, page=None: [action_cache.tag_by_environment_id(environment_id)],
)
def get_actions_by_environment_id(
    db: Session, environment_id: str, page: Optional[int] = None
) -> List[ActionResponse]:
    validate_inputs((environment_id, Id), (page, OptionalPage))

    with database_errors(db, "get_actions_by_environment_id"):
        query = (
            db.query(Action)
            .join(ActionClass, ActionClass.id == Action.action_class_id)
            .options(joinedload(Action.action_class))
            .filter(ActionClass.environment_id == environment_id)
            .order_by(Action.created_at.desc(), Action.id.asc())
        )
        actions = paginate(query, page).all()

    return [ActionResponse.model_validate(action) for action in actions]


def create_action(db: Session, data: ActionInput) -> ActionResponse:
    """
    Record one action for the person (environment_id, user_id).

    The action class is looked up by name and created on first use; SDK
    events in AUTOMATIC_ACTION_NAMES get an automatic class, everything else
    a code class.
    """
    validate_inputs((data, ActionInput))
    environment_id = data.environment_id

    action_type = ActionClassType.AUTOMATIC if data.name in AUTOMATIC_ACTION_NAMES else ActionClassType.CODE

    action_class = get_action_class_by_environment_id_and_name(db, environment_id, data.name)
    if not action_class:
        action_class = create_action_class(
            db,
            environment_id,
            ActionClassCreate(name=data.name),
            action_type=action_type,
        )

    with database_errors(db, "create_action"):
        person = db.query(Person).filter(
            Person.environment_id == environment_id,
            Person.user_id == data.user_id
        ).first()
        if not person:
            raise ResourceNotFoundError("Person", data.user_id)

        was_monthly_active = get_is_person_monthly_active(db, person.id)

        action = Action(
            action_class_id=action_class.id,
            person_id=person.id,
            properties=data.properties,
        )
        db.add(action)
        db.commit()

    if not was_monthly_active:
        active_person_cache.revalidate(id=person.id, environment_id=environment_id)

    action_cache.revalidate(
        environment_id=environment_id,
        person_id=person.id,
        action_class_id=action_class.id,
    )

    logger.debug(
        f"Action recorded: {action_class.name} for person {person.id}",
        extra={"environment_id": environment_id}
    )

    return ActionResponse(
        id=action.id,
        created_at=action.created_at,
        person_id=action.person_id,
        properties=action.properties,
        action_class=action_class,
    )


def _count_actions(db: Session, operation: str, action_class_id: str, person_id: Optional[str] = None, since=None) -> int:
    with database_errors(db, operation):
        query = db.query(Action).filter(Action.action_class_id == action_class_id)
        if person_id is not None:
            query = query.filter(Action.person_id == person_id)
        if since is not None:
            query = query.filter(Action.created_at >= since)
        return query.count()


@cached(
    key=lambda db, action_class_id: f"actions:count_last_hour:{action_class_id}",
    tags=lambda db, action_class_id: _count_tags(action_class_id),
)
def get_action_count_in_last_hour(db: Session, action_class_id: str) -> int:
    validate_inputs((action_class_id, Id))
    return _count_actions(
        db, "get_action_count_in_last_hour", action_class_id,
        since=utcnow() - timedelta(hours=1),
    )


@cached(
    key=lambda db, action_class_id: f"actions:count_last_24_hours:{action_class_id}",
    tags=lambda db, action_class_id: _count_tags(action_class_id),
)
def get_action_count_in_last_24_hours(db: Session, action_class_id: str) -> int:
    validate_inputs((action_class_id, Id))
    return _count_actions(
        db, "get_action_count_in_last_24_hours", action_class_id,
        since=utcnow() - timedelta(hours=24),
    )


@cached(
    key=lambda db, action_class_id: f"actions:count_last_7_days:{action_class_id}",
    tags=lambda db, action_class_id: _count_tags(action_class_id),
)
def get_action_count_in_last_7_days(db: Session, action_class_id: str) -> int:
    validate_inputs((action_class_id, Id))
    return _count_actions(
        db, "get_action_count_in_last_7_days", action_class_id,
        since=utcnow() - timedelta(days=7),
    )


@cached(
    key=lambda db, action_class_id, person_id: f"actions:count_last_quarter:{action_class_id}:{person_id}",
    tags=lambda db, action_class_id, person_id: _count_tags(action_class_id),
)
def get_action_count_in_last_quarter(db: Session, action_class_id: str, person_id: str) -> int:
    validate_inputs((action_class_id, Id), (person_id, Id))
    return _count_actions(
        db, "get_action_count_in_last_quarter", action_class_id,
        person_id=person_id, since=get_start_date_of_last_quarter(),
    )


@cached(
    key=lambda db, action_class_id, person_id: f"actions:count_last_month:{action_class_id}:{person_id}",
    tags=lambda db, action_class_id, person_id: _count_tags(action_class_id),
)
def get_action_count_in_last_month(db: Session, action_class_id: str, person_id: str) -> int:
    validate_inputs((action_class_id, Id), (person_id, Id))
    return _count_actions(
        db, "get_action_count_in_last_month", action_class_id,
        person_id=person_id, since=get_start_date_of_last_month(),
    )


@cached(
    key=lambda db, action_class_id, person_id: f"actions:count_last_week:{action_class_id}:{person_id}",
    tags=lambda db, action_class_id, person_id: _count_tags(action_class_id),
)
def get_action_count_in_last_week(db: Session, action_class_id: str, person_id: str) -> int:
    validate_inputs((action_class_id, Id), (person_id, Id))
    return _count_actions(
        db, "get_action_count_in_last_week", action_class_id,
        person_id=person_id, since=get_start_date_of_last_week(),
    )


@cached(
    key=lambda db, action_class_id, person_id: f"actions:total:{action_class_id}:{person_id}",
    tags=lambda db, action_class_id, person_id: _count_tags(action_class_id),
)
def get_total_occurrences_for_action(db: Session, action_class_id: str, person_id: str) -> int:
    validate_inputs((action_class_id, Id), (person_id, Id))
    return _count_actions(db, "get_total_occurrences_for_action", action_class_id, person_id=person_id)


def _occurrence_days_ago(db: Session, operation: str, action_class_id: str, person_id: str, newest: bool) -> Optional[int]:
    order = Action.created_at.desc() if newest else Action.created_at.asc()
    with database_errors(db, operation):
        row = (
            db.query(Action.created_at)
            .filter(Action.action_class_id == action_class_id, Action.person_id == person_id)
            .order_by(order)
            .first()
        )
    if row is None:
        return None
    return days_between(utcnow(), row[0])


@cached(
    key=lambda db, action_class_id, person_id: f"actions:last_occurrence:{action_class_id}:{person_id}",
    tags=lambda db, action_class_id, person_id: _count_tags(action_class_id),
)
def get_last_occurrence_days_ago(db: Session, action_class_id: str, person_id: str) -> Optional[int]:
    validate_inputs((action_class_id, Id), (person_id, Id))
    return _occurrence_days_ago(db, "get_last_occurrence_days_ago", action_class_id, person_id, newest=True)


@cached(
    key=lambda db, action_class_id, person_id: f"actions:first_occurrence:{action_class_id}:{person_id}",
    tags=lambda db, action_class_id, person_id: _count_tags(action_class_id),
)
def get_first_occurrence_days_ago(db: Session, action_class_id: str, person_id: str) -> Optional[int]:
    validate_inputs((action_class_id, Id), (person_id, Id))
    return _occurrence_days_ago(db, "get_first_occurrence_days_ago", action_class_id, person_id, newest=False)
