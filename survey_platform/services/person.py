"""
Person Service

People are identified per environment by the customer's user_id. Their
attributes are flattened into {class name: value} on the way out.
"""
from typing import List, Optional

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session, selectinload

from survey_platform.core.cache import cached
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.core.validation import Id, Name, OptionalPage, validate_inputs
from survey_platform.database import database_errors
from survey_platform.models.action import Action
from survey_platform.models.attribute_class import AttributeClass, AttributeClassType
from survey_platform.models.person import Attribute, Person
from survey_platform.models.product import Environment
from survey_platform.schemas.person import PersonResponse
from survey_platform.services.action_utils import get_start_date_of_current_month
from survey_platform.services.caches import (
    action_cache,
    active_person_cache,
    attribute_class_cache,
    person_cache,
)
from survey_platform.utils.logging import get_logger
from survey_platform.utils.pagination import paginate

logger = get_logger(__name__)


def _to_response(person: Person) -> PersonResponse:
    return PersonResponse(
        id=person.id,
        environment_id=person.environment_id,
        user_id=person.user_id,
        attributes={a.attribute_class.name: a.value for a in person.attributes},
        created_at=person.created_at,
        updated_at=person.updated_at,
    )


def _person_query(db: Session):
    # populate_existing: attributes deleted through their class must not
    # linger on people already loaded in this session
    return db.query(Person).populate_existing().options(
        selectinload(Person.attributes).selectinload(Attribute.attribute_class)
    )


@cached(
    key=lambda db, person_id: f"person:{person_id}",
    tags=lambda db, person_id: [person_cache.tag_by_id(person_id)],
)
def get_person(db: Session, person_id: str) -> Optional[PersonResponse]:
    validate_inputs((person_id, Id))

    with database_errors(db, "get_person"):
        person = _person_query(db).filter(Person.id == person_id).first()

    return _to_response(person) if person else None


@cached(
    key=lambda db, environment_id, page=None: f"people:by_environment:{environment_id}:{page}",
    tags=lambda db, environment_id, page=None: [person_cache.tag_by_environment_id(environment_id)],
)
def get_people(db: Session, environment_id: str, page: Optional[int] = None) -> List[PersonResponse]:
    validate_inputs((environment_id, Id), (page, OptionalPage))

    with database_errors(db, "get_people"):
        query = (
            _person_query(db)
            .filter(Person.environment_id == environment_id)
            .order_by(Person.created_at.desc(), Person.id.asc())
        )
        people = paginate(query, page).all()

    return [_to_response(person) for person in people]


@cached(
    key=lambda db, environment_id, user_id: f"person:by_user_id:{environment_id}:{user_id}",
    tags=lambda db, environment_id, user_id: [
        person_cache.tag_by_environment_id_and_user_id(environment_id, user_id)
    ],
)
def get_person_by_user_id(db: Session, environment_id: str, user_id: str) -> Optional[PersonResponse]:
    validate_inputs((environment_id, Id), (user_id, Name))

    with database_errors(db, "get_person_by_user_id"):
        person = _person_query(db).filter(
            Person.environment_id == environment_id,
            Person.user_id == user_id
        ).first()

    return _to_response(person) if person else None


def create_person(db: Session, environment_id: str, user_id: str) -> PersonResponse:
    """
    Create the person for (environment_id, user_id), or return the existing one.

    The automatic "userId" attribute is filled when the environment has it.
    """
    validate_inputs((environment_id, Id), (user_id, Name))

    with database_errors(db, "create_person"):
        existing = _person_query(db).filter(
            Person.environment_id == environment_id,
            Person.user_id == user_id
        ).first()
        if existing:
            return _to_response(existing)

        if not db.query(Environment).filter(Environment.id == environment_id).first():
            raise ResourceNotFoundError("Environment", environment_id)

        person = Person(environment_id=environment_id, user_id=user_id)
        user_id_class = db.query(AttributeClass).filter(
            AttributeClass.environment_id == environment_id,
            AttributeClass.name == "userId"
        ).first()
        if user_id_class:
            person.attributes.append(Attribute(attribute_class=user_id_class, value=user_id))

        db.add(person)
        db.commit()

    person_cache.revalidate(id=person.id, environment_id=environment_id, user_id=user_id)
    logger.info(f"Person created: {person.id} in {environment_id}", extra={"environment_id": environment_id})

    return _to_response(person)


def delete_person(db: Session, person_id: str) -> PersonResponse:
    validate_inputs((person_id, Id))

    with database_errors(db, "delete_person"):
        person = _person_query(db).filter(Person.id == person_id).first()
        if not person:
            raise ResourceNotFoundError("Person", person_id)

        result = _to_response(person)
        action_class_ids = [
            row[0]
            for row in db.query(Action.action_class_id)
            .filter(Action.person_id == person_id)
            .distinct()
            .all()
        ]

        db.delete(person)
        db.commit()

    person_cache.revalidate(id=result.id, environment_id=result.environment_id, user_id=result.user_id)
    active_person_cache.revalidate(id=result.id, environment_id=result.environment_id)
    action_cache.revalidate(environment_id=result.environment_id, person_id=result.id)
    for action_class_id in action_class_ids:
        action_cache.revalidate(action_class_id=action_class_id)

    logger.info(f"Person deleted: {result.id}")

    return result


def update_person_attribute(
    db: Session,
    environment_id: str,
    user_id: str,
    key: str,
    value: str,
) -> PersonResponse:
    """
    Set one attribute on a person, creating the attribute class as "code"
    when the environment does not know the key yet.
    """
    validate_inputs((environment_id, Id), (user_id, Name), (key, Name), (value, str))

    created_class = None
    with database_errors(db, "update_person_attribute"):
        person = _person_query(db).filter(
            Person.environment_id == environment_id,
            Person.user_id == user_id
        ).first()
        if not person:
            raise ResourceNotFoundError("Person", user_id)

        attribute_class = db.query(AttributeClass).filter(
            AttributeClass.environment_id == environment_id,
            AttributeClass.name == key
        ).first()
        if not attribute_class:
            attribute_class = AttributeClass(
                environment_id=environment_id,
                name=key,
                type=AttributeClassType.CODE,
            )
            db.add(attribute_class)
            created_class = attribute_class

        attribute = None
        if created_class is None:
            attribute = next(
                (a for a in person.attributes if a.attribute_class_id == attribute_class.id),
                None,
            )
        if attribute:
            attribute.value = value
        else:
            person.attributes.append(Attribute(attribute_class=attribute_class, value=value))

        db.commit()

    if created_class is not None:
        attribute_class_cache.revalidate(id=created_class.id, environment_id=environment_id, name=key)
    person_cache.revalidate(id=person.id, environment_id=environment_id, user_id=user_id)

    return _to_response(person)


@cached(
    key=lambda db, person_id: f"person:monthly_active:{person_id}",
    tags=lambda db, person_id: [active_person_cache.tag_by_id(person_id)],
)
def get_is_person_monthly_active(db: Session, person_id: str) -> bool:
    """Whether the person has any action since the start of the current month."""
    validate_inputs((person_id, Id))

    with database_errors(db, "get_is_person_monthly_active"):
        latest = db.query(Action.id).filter(
            Action.person_id == person_id,
            Action.created_at >= get_start_date_of_current_month()
        ).first()
    return latest is not None


@cached(
    key=lambda db, environment_id: f"people:monthly_active_count:{environment_id}",
    tags=lambda db, environment_id: [active_person_cache.tag_by_environment_id(environment_id)],
)
def get_monthly_active_people_count(db: Session, environment_id: str) -> int:
    validate_inputs((environment_id, Id))

    with database_errors(db, "get_monthly_active_people_count"):
        count = (
            db.query(func.count(distinct(Action.person_id)))
            .select_from(Action)
            .join(Person, Person.id == Action.person_id)
            .filter(
                Person.environment_id == environment_id,
                Action.created_at >= get_start_date_of_current_month()
            )
            .scalar()
        )
    return count or 0
