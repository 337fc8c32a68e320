"""
Environment Service
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from survey_platform.core.cache import cached
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.core.validation import Id, validate_inputs
from survey_platform.database import database_errors
from survey_platform.models.action import ActionClass, ActionClassType
from survey_platform.models.attribute_class import AttributeClass, AttributeClassType
from survey_platform.models.product import Environment
from survey_platform.schemas.team import EnvironmentResponse
from survey_platform.services.caches import environment_cache
from survey_platform.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ACTION_CLASSES = [
    ("New Session", "Gets fired when a new session is created"),
]

DEFAULT_ATTRIBUTE_CLASSES = [
    ("userId", "The internal ID of the person"),
    ("email", "The email of the person"),
]


def seed_environment(environment: Environment) -> None:
    """Attach the automatic action and attribute classes to a new environment."""
    for name, description in DEFAULT_ACTION_CLASSES:
        environment.action_classes.append(
            ActionClass(name=name, description=description, type=ActionClassType.AUTOMATIC)
        )
    for name, description in DEFAULT_ATTRIBUTE_CLASSES:
        environment.attribute_classes.append(
            AttributeClass(name=name, description=description, type=AttributeClassType.AUTOMATIC)
        )


@cached(
    key=lambda db, environment_id: f"environment:{environment_id}",
    tags=lambda db, environment_id: [environment_cache.tag_by_id(environment_id)],
)
def get_environment(db: Session, environment_id: str) -> Optional[EnvironmentResponse]:
    validate_inputs((environment_id, Id))

    with database_errors(db, "get_environment"):
        environment = db.query(Environment).filter(Environment.id == environment_id).first()
    return EnvironmentResponse.model_validate(environment) if environment else None


@cached(
    key=lambda db, product_id: f"environments:by_product:{product_id}",
    tags=lambda db, product_id: [environment_cache.tag_by_product_id(product_id)],
)
def get_environments(db: Session, product_id: str) -> List[EnvironmentResponse]:
    validate_inputs((product_id, Id))

    with database_errors(db, "get_environments"):
        environments = (
            db.query(Environment)
            .filter(Environment.product_id == product_id)
            .order_by(Environment.type.asc())
            .all()
        )
    return [EnvironmentResponse.model_validate(e) for e in environments]


def mark_widget_setup_completed(db: Session, environment_id: str) -> EnvironmentResponse:
    """Record that the SDK has reached this environment. No-op once set."""
    validate_inputs((environment_id, Id))

    with database_errors(db, "mark_widget_setup_completed"):
        environment = db.query(Environment).filter(Environment.id == environment_id).first()
        if not environment:
            raise ResourceNotFoundError("Environment", environment_id)

        if environment.widget_setup_completed:
            return EnvironmentResponse.model_validate(environment)

        environment.widget_setup_completed = True
        db.commit()

    environment_cache.revalidate(id=environment.id, product_id=environment.product_id)
    logger.info(f"Widget setup completed for environment {environment_id}")

    return EnvironmentResponse.model_validate(environment)
