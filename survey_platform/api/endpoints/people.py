"""
People and Action Endpoints (dashboard)

Read access for any member of the owning team; creating or deleting people
and recording actions by hand needs editor or higher.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from survey_platform.database import get_db
from survey_platform.models.user import User
from survey_platform.schemas.action import (
    ActionCreateRequest,
    ActionInput,
    ActionListResponse,
    ActionResponse,
    PersonActionStats,
)
from survey_platform.schemas.person import PersonCreate, PersonListResponse, PersonResponse
from survey_platform.api.deps import (
    ensure_environment_access,
    get_current_user,
    require_environment_read,
    require_environment_write,
)
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.services import action as action_service
from survey_platform.services import person as person_service
from survey_platform.services.access import can_user_access_action_class, can_user_access_person

router = APIRouter(tags=["people"])


def _load_person(db: Session, user: User, person_id: str, write: bool = False) -> PersonResponse:
    person = None
    if can_user_access_person(db, user.id, person_id):
        person = person_service.get_person(db, person_id)
    if not person:
        raise ResourceNotFoundError("Person", person_id)

    ensure_environment_access(db, user, person.environment_id, write=write)
    return person


@router.get("/environments/{environment_id}/people", response_model=PersonListResponse)
async def list_people(
    environment_id: str,
    page: Optional[int] = Query(None, ge=1),
    current_user: User = Depends(require_environment_read),
    db: Session = Depends(get_db)
):
    people = person_service.get_people(db, environment_id, page)
    return PersonListResponse(people=people, page=page)


@router.post(
    "/environments/{environment_id}/people",
    response_model=PersonResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_person(
    environment_id: str,
    person_data: PersonCreate,
    current_user: User = Depends(require_environment_write),
    db: Session = Depends(get_db)
):
    return person_service.create_person(db, environment_id, person_data.user_id)


@router.get("/environments/{environment_id}/actions", response_model=ActionListResponse)
async def list_environment_actions(
    environment_id: str,
    page: Optional[int] = Query(None, ge=1),
    current_user: User = Depends(require_environment_read),
    db: Session = Depends(get_db)
):
    actions = action_service.get_actions_by_environment_id(db, environment_id, page)
    return ActionListResponse(actions=actions, page=page)


@router.post(
    "/environments/{environment_id}/actions",
    response_model=ActionResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_action(
    environment_id: str,
    action_data: ActionCreateRequest,
    current_user: User = Depends(require_environment_write),
    db: Session = Depends(get_db)
):
    return action_service.create_action(
        db,
        ActionInput(environment_id=environment_id, **action_data.model_dump()),
    )


@router.get("/people/{person_id}", response_model=PersonResponse)
async def get_person(
    person_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _load_person(db, current_user, person_id)


@router.delete("/people/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_person(
    person_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Deletes the person with all their attributes and actions."""
    _load_person(db, current_user, person_id, write=True)
    person_service.delete_person(db, person_id)
    return None


@router.get("/people/{person_id}/actions", response_model=ActionListResponse)
async def list_person_actions(
    person_id: str,
    page: Optional[int] = Query(None, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _load_person(db, current_user, person_id)
    actions = action_service.get_actions_by_person_id(db, person_id, page)
    return ActionListResponse(actions=actions, page=page)


@router.get(
    "/people/{person_id}/action-classes/{action_class_id}/stats",
    response_model=PersonActionStats
)
async def get_person_action_stats(
    person_id: str,
    action_class_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """How often and how recently this person performed one action."""
    _load_person(db, current_user, person_id)
    if not can_user_access_action_class(db, current_user.id, action_class_id):
        raise ResourceNotFoundError("Action class", action_class_id)

    return PersonActionStats(
        last_quarter=action_service.get_action_count_in_last_quarter(db, action_class_id, person_id),
        last_month=action_service.get_action_count_in_last_month(db, action_class_id, person_id),
        last_week=action_service.get_action_count_in_last_week(db, action_class_id, person_id),
        total=action_service.get_total_occurrences_for_action(db, action_class_id, person_id),
        last_occurrence_days_ago=action_service.get_last_occurrence_days_ago(db, action_class_id, person_id),
        first_occurrence_days_ago=action_service.get_first_occurrence_days_ago(db, action_class_id, person_id),
    )
