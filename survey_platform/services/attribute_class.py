"""
Attribute Class Service
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
from survey_platform.models.attribute_class import AttributeClass, AttributeClassType
from survey_platform.models.person import Attribute, Person
from survey_platform.models.product import Environment
from survey_platform.schemas.attribute_class import (
    AttributeClassCreate,
    AttributeClassResponse,
    AttributeClassUpdate,
)
from survey_platform.services.caches import attribute_class_cache, person_cache
from survey_platform.utils.logging import get_logger
from survey_platform.utils.pagination import paginate

logger = get_logger(__name__)


@cached(
    key=lambda db, environment_id, page=None: f"attribute_classes:by_environment:{environment_id}:{page}",
    tags=lambda db, environment_id, page=None: [attribute_class_cache.tag_by_environment_id(environment_id)],
)
def get_attribute_classes(
    db: Session, environment_id: str, page: Optional[int] = None
) -> List[AttributeClassResponse]:
    validate_inputs((environment_id, Id), (page, OptionalPage))

    with database_errors(db, "get_attribute_classes"):
        query = (
            db.query(AttributeClass)
            .filter(AttributeClass.environment_id == environment_id)
            .order_by(AttributeClass.created_at.asc(), AttributeClass.name.asc())
        )
        attribute_classes = paginate(query, page).all()

    return [AttributeClassResponse.model_validate(ac) for ac in attribute_classes]


@cached(
    key=lambda db, attribute_class_id: f"attribute_class:{attribute_class_id}",
    tags=lambda db, attribute_class_id: [attribute_class_cache.tag_by_id(attribute_class_id)],
)
def get_attribute_class(db: Session, attribute_class_id: str) -> Optional[AttributeClassResponse]:
    validate_inputs((attribute_class_id, Id))

    with database_errors(db, "get_attribute_class"):
        attribute_class = db.query(AttributeClass).filter(AttributeClass.id == attribute_class_id).first()

    return AttributeClassResponse.model_validate(attribute_class) if attribute_class else None


@cached(
    key=lambda db, environment_id, name: f"attribute_class:by_name:{environment_id}:{name}",
    tags=lambda db, environment_id, name: [
        attribute_class_cache.tag_by_name_and_environment_id(name, environment_id)
    ],
)
def get_attribute_class_by_name(db: Session, environment_id: str, name: str) -> Optional[AttributeClassResponse]:
    validate_inputs((environment_id, Id), (name, NonEmptyString))

    with database_errors(db, "get_attribute_class_by_name"):
        attribute_class = db.query(AttributeClass).filter(
            AttributeClass.environment_id == environment_id,
            AttributeClass.name == name
        ).first()

    return AttributeClassResponse.model_validate(attribute_class) if attribute_class else None


def create_attribute_class(
    db: Session,
    environment_id: str,
    data: AttributeClassCreate,
) -> AttributeClassResponse:
    validate_inputs((environment_id, Id), (data, AttributeClassCreate))

    with database_errors(db, "create_attribute_class"):
        if not db.query(Environment).filter(Environment.id == environment_id).first():
            raise ResourceNotFoundError("Environment", environment_id)

        duplicate = db.query(AttributeClass).filter(
            AttributeClass.environment_id == environment_id,
            AttributeClass.name == data.name
        ).first()
        if duplicate:
            raise DuplicateResourceError(f"Attribute class already exists: {data.name}")

        attribute_class = AttributeClass(
            environment_id=environment_id,
            name=data.name,
            description=data.description,
            type=AttributeClassType(data.type),
        )
        db.add(attribute_class)
        db.commit()

    attribute_class_cache.revalidate(
        id=attribute_class.id,
        environment_id=environment_id,
        name=attribute_class.name,
    )
    logger.info(f"Attribute class created: {attribute_class.id} in {environment_id}")

    return AttributeClassResponse.model_validate(attribute_class)


def update_attribute_class(
    db: Session,
    attribute_class_id: str,
    data: AttributeClassUpdate,
) -> AttributeClassResponse:
    validate_inputs((attribute_class_id, Id), (data, AttributeClassUpdate))

    with database_errors(db, "update_attribute_class"):
        attribute_class = db.query(AttributeClass).filter(AttributeClass.id == attribute_class_id).first()
        if not attribute_class:
            raise ResourceNotFoundError("Attribute class", attribute_class_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(attribute_class, field, value)

        db.commit()

    attribute_class_cache.revalidate(
        id=attribute_class.id,
        environment_id=attribute_class.environment_id,
        name=attribute_class.name,
    )
    logger.info(f"Attribute class updated: {attribute_class.id}")

    return AttributeClassResponse.model_validate(attribute_class)


def delete_attribute_class(db: Session, attribute_class_id: str) -> AttributeClassResponse:
    """Delete a non-automatic attribute class and every value stored under it."""
    validate_inputs((attribute_class_id, Id))

    with database_errors(db, "delete_attribute_class"):
        attribute_class = db.query(AttributeClass).filter(AttributeClass.id == attribute_class_id).first()
        if not attribute_class:
            raise ResourceNotFoundError("Attribute class", attribute_class_id)
        if attribute_class.type == AttributeClassType.AUTOMATIC:
            raise OperationNotAllowedError("Automatic attribute classes cannot be deleted")

        result = AttributeClassResponse.model_validate(attribute_class)
        affected_people = (
            db.query(Person.id, Person.user_id)
            .join(Attribute, Attribute.person_id == Person.id)
            .filter(Attribute.attribute_class_id == attribute_class_id)
            .all()
        )

        db.delete(attribute_class)
        db.commit()

    attribute_class_cache.revalidate(id=result.id, environment_id=result.environment_id, name=result.name)
    for person_id, user_id in affected_people:
        person_cache.revalidate(id=person_id, environment_id=result.environment_id, user_id=user_id)
    person_cache.revalidate(environment_id=result.environment_id)

    logger.info(f"Attribute class deleted: {result.id}")

    return result
