"""
Client API Endpoints

Public routes called by the embedded SDK. They carry no bearer token; the
environment id in the path is the only credential, and the rate limiter
throttles each environment separately.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from survey_platform.config import get_settings
from survey_platform.database import get_db
from survey_platform.models.action import ActionClassType
from survey_platform.schemas.action import ActionCreateRequest, ActionInput, ActionResponse
from survey_platform.schemas.client import SyncResponse
from survey_platform.schemas.person import AttributeUpdate, PersonCreate, PersonResponse
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.core.validation import Id, validate_inputs
from survey_platform.services import action as action_service
from survey_platform.services import person as person_service
from survey_platform.services.action_class import get_action_classes
from survey_platform.services.analytics import send_free_limit_reached_event_bi_weekly
from survey_platform.services.environment import get_environment, mark_widget_setup_completed
from survey_platform.services.team import get_team_by_environment_id
from survey_platform.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/client/{environment_id}", tags=["client"])


def _is_user_targeting_limit_reached(db: Session, environment_id: str) -> bool:
    """Free teams may target at most PRICING_USERTARGETING_FREE_MTU people a month."""
    team = get_team_by_environment_id(db, environment_id)
    if not team or team.user_targeting_subscription:
        return False

    monthly_active = person_service.get_monthly_active_people_count(db, environment_id)
    return monthly_active >= settings.PRICING_USERTARGETING_FREE_MTU


@router.post("/people", response_model=PersonResponse, status_code=status.HTTP_201_CREATED)
async def create_person(
    environment_id: str,
    person_data: PersonCreate,
    db: Session = Depends(get_db)
):
    """Identify a user. Repeated calls return the existing person."""
    return person_service.create_person(db, environment_id, person_data.user_id)


@router.post("/actions", response_model=ActionResponse, status_code=status.HTTP_201_CREATED)
async def create_action(
    environment_id: str,
    action_data: ActionCreateRequest,
    db: Session = Depends(get_db)
):
    validate_inputs((environment_id, Id))
    return action_service.create_action(
        db,
        ActionInput(environment_id=environment_id, **action_data.model_dump()),
    )


@router.put("/people/{user_id}/attributes/{key}", response_model=PersonResponse)
async def set_person_attribute(
    environment_id: str,
    user_id: str,
    key: str,
    attribute_data: AttributeUpdate,
    db: Session = Depends(get_db)
):
    return person_service.update_person_attribute(db, environment_id, user_id, key, attribute_data.value)


@router.get("/app/sync/{user_id}", response_model=SyncResponse)
async def sync(
    environment_id: str,
    user_id: str,
    db: Session = Depends(get_db)
):
    """
    State the SDK needs on page load.

    The first sync marks the widget as set up. Once a free team reaches its
    monthly active people limit, unknown users are no longer created and the
    limit event is reported (at most once per FREE_LIMIT_EVENT_INTERVAL).
    """
    environment = get_environment(db, environment_id)
    if not environment:
        raise ResourceNotFoundError("Environment", environment_id)

    if not environment.widget_setup_completed:
        mark_widget_setup_completed(db, environment_id)

    limit_reached = _is_user_targeting_limit_reached(db, environment_id)
    if limit_reached:
        send_free_limit_reached_event_bi_weekly(environment_id, "userTargeting")

    person = person_service.get_person_by_user_id(db, environment_id, user_id)
    if not person and not limit_reached:
        person = person_service.create_person(db, environment_id, user_id)

    action_classes = [
        action_class
        for action_class in get_action_classes(db, environment_id)
        if action_class.type == ActionClassType.NO_CODE
    ]

    logger.debug(
        f"Sync for user {user_id} (limit reached: {limit_reached})",
        extra={"environment_id": environment_id}
    )

    return SyncResponse(
        person=person,
        action_classes=action_classes,
        user_targeting_limit_reached=limit_reached,
    )
