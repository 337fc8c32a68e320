"""
Action Class Service

CRUD for action classes. Names are unique per environment; automatic
classes belong to the platform and reject updates and deletes.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from survey_platform.core.cache import cached
from survey_platform.core.exceptions import (
    DuplicateResourceError,
    OperationNotAllowedError,
    ResourceNotFoundError,
)
from survey_platform.core.validation import Id, NonEmptyString, OptionalPage, validate_inputs
from survey_platform.database import database_errors
from survey_platform.models.action import Action, ActionClass, ActionClassType
from survey_platform.models.product import Environment
from survey_platform.schemas.action_class import (
    ActionClassCreate,
    ActionClassResponse,
    ActionClassUpdate,
)
from survey_platform.services.caches import action_cache, action_class_cache
from survey_platform.utils.logging import get_logger
from survey_platform.utils.pagination import paginate

logger = get_logger(__name__)


@cached(
    key=lambda db, environment_id, page=None: f"action_classes:by_environment:{environment_id}:{page}",
    tags=lambda db, environment_id, page=None: [action_class_cache.tag_by_environment_id(environment_id)],
)
def get_action_classes(db: Session, environment_id: str, page: Optional[int] = None) -> List[ActionClassResponse]:
    validate_inputs((environment_id, Id), (page, OptionalPage))

    with database_errors(db, "get_action_classes"):
        query = (
            db.query(ActionClass)
            .filter(ActionClass.environment_id == environment_id)
            .order_by(ActionClass.created_at.asc(), ActionClass.name.asc())
        )
        action_classes = paginate(query, page).all()

    return [ActionClassResponse.model_validate(ac) for ac in action_classes]


@cached(
    key=lambda db, action_class_id: f"action_class:{action_class_id}",
    tags=lambda db, action_class_id: [action_class_cache.tag_by_id(action_class_id)],
)
def get_action_class(db: Session, action_class_id: str) -> Optional[ActionClassResponse]:
    validate_inputs((action_class_id, Id))

    with database_errors(db, "get_action_class"):
        action_class = db.query(ActionClass).filter(ActionClass.id == action_class_id).first()

    return ActionClassResponse.model_validate(action_class) if action_class else None


@cached(
    key=lambda db, environment_id, name: f"action_class:by_name:{environment_id}:{name}",
    tags=lambda db, environment_id, name: [
        action_class_cache.tag_by_name_and_environment_id(name, environment_id)
    ],
)
def get_action_class_by_environment_id_and_name(
    db: Session, environment_id: str, name: str
) -> Optional[ActionClassResponse]:
    validate_inputs((environment_id, Id), (name, NonEmptyString))

    with database_errors(db, "get_action_class_by_environment_id_and_name"):
        action_class = db.query(ActionClass).filter(
            ActionClass.environment_id == environment_id,
            ActionClass.name == name
        ).first()

    return ActionClassResponse.model_validate(action_class) if action_class else None


def create_action_class(
    db: Session,
    environment_id: str,
    data: ActionClassCreate,
    action_type: Optional[ActionClassType] = None,
) -> ActionClassResponse:
    """
    Create an action class.

    action_type overrides data.type; the action service uses it to create
    automatic classes on first sight of an SDK event.
    """
    validate_inputs((environment_id, Id), (data, ActionClassCreate))
    class_type = action_type or ActionClassType(data.type)

    with database_errors(db, "create_action_class"):
        if not db.query(Environment).filter(Environment.id == environment_id).first():
            raise ResourceNotFoundError("Environment", environment_id)

        duplicate = db.query(ActionClass).filter(
            ActionClass.environment_id == environment_id,
            ActionClass.name == data.name
        ).first()
        if duplicate:
            raise DuplicateResourceError(f"Action class already exists: {data.name}")

        action_class = ActionClass(
            environment_id=environment_id,
            name=data.name,
            description=data.description,
            type=class_type,
            no_code_config=data.no_code_config,
        )
        db.add(action_class)
        db.commit()

    action_class_cache.revalidate(
        id=action_class.id,
        environment_id=environment_id,
        name=action_class.name,
    )
    logger.info(f"Action class created: {action_class.id} ({class_type.value}) in {environment_id}")

    return ActionClassResponse.model_validate(action_class)


def _load_for_write(db: Session, environment_id: str, action_class_id: str) -> ActionClass:
    action_class = db.query(ActionClass).filter(
        ActionClass.id == action_class_id,
        ActionClass.environment_id == environment_id
    ).first()
    if not action_class:
        raise ResourceNotFoundError("Action class", action_class_id)
    if action_class.type == ActionClassType.AUTOMATIC:
        raise OperationNotAllowedError("Automatic action classes cannot be modified")
    return action_class


def update_action_class(
    db: Session,
    environment_id: str,
    action_class_id: str,
    data: ActionClassUpdate,
) -> ActionClassResponse:
    validate_inputs((environment_id, Id), (action_class_id, Id), (data, ActionClassUpdate))

    with database_errors(db, "update_action_class"):
        action_class = _load_for_write(db, environment_id, action_class_id)
        previous_name = action_class.name

        update_data = data.model_dump(exclude_unset=True)
        new_name = update_data.get("name")
        if new_name and new_name != previous_name:
            duplicate = db.query(ActionClass).filter(
                ActionClass.environment_id == environment_id,
                ActionClass.name == new_name
            ).first()
            if duplicate:
                raise DuplicateResourceError(f"Action class already exists: {new_name}")

        for field, value in update_data.items():
            setattr(action_class, field, value)

        db.commit()

    action_class_cache.revalidate(id=action_class.id, environment_id=environment_id, name=previous_name)
    if action_class.name != previous_name:
        action_class_cache.revalidate(environment_id=environment_id, name=action_class.name)
    # Actions embed their class
    action_cache.revalidate(environment_id=environment_id, action_class_id=action_class.id)

    logger.info(f"Action class updated: {action_class.id}")

    return ActionClassResponse.model_validate(action_class)


def delete_action_class(db: Session, environment_id: str, action_class_id: str) -> ActionClassResponse:
    """Delete an action class together with all its recorded actions."""
    validate_inputs((environment_id, Id), (action_class_id, Id))

    with database_errors(db, "delete_action_class"):
        action_class = _load_for_write(db, environment_id, action_class_id)
        result = ActionClassResponse.model_validate(action_class)

        person_ids = [
            row[0]
            for row in db.query(Action.person_id)
            .filter(Action.action_class_id == action_class_id)
            .distinct()
            .all()
        ]

        db.delete(action_class)
        db.commit()

    action_class_cache.revalidate(id=result.id, environment_id=environment_id, name=result.name)
    action_cache.revalidate(environment_id=environment_id, action_class_id=result.id)
    for person_id in person_ids:
        action_cache.revalidate(person_id=person_id)

    logger.info(f"Action class deleted: {result.id} ({len(person_ids)} people affected)")

    return result
