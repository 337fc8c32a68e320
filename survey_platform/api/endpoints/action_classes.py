"""
Action Class Endpoints

RBAC:
- List/view/stats: any member of the owning team
- Create/update/delete: editor or higher; automatic classes are read-only

Entities outside the caller's teams answer 404, never 403, so ids from other
teams cannot be probed.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from survey_platform.database import get_db
from survey_platform.models.user import User
from survey_platform.schemas.action_class import (
    ActionClassCreate,
    ActionClassListResponse,
    ActionClassResponse,
    ActionClassStats,
    ActionClassUpdate,
)
from survey_platform.api.deps import (
    ensure_environment_access,
    get_current_user,
    require_environment_read,
    require_environment_write,
)
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.services import action as action_service
from survey_platform.services import action_class as action_class_service
from survey_platform.services.access import can_user_access_action_class

router = APIRouter(tags=["action classes"])


def _load_action_class(
    db: Session,
    user: User,
    action_class_id: str,
    write: bool = False,
) -> ActionClassResponse:
    action_class = None
    if can_user_access_action_class(db, user.id, action_class_id):
        action_class = action_class_service.get_action_class(db, action_class_id)
    if not action_class:
        raise ResourceNotFoundError("Action class", action_class_id)

    ensure_environment_access(db, user, action_class.environment_id, write=write)
    return action_class


@router.get("/environments/{environment_id}/action-classes", response_model=ActionClassListResponse)
async def list_action_classes(
    environment_id: str,
    page: Optional[int] = Query(None, ge=1),
    current_user: User = Depends(require_environment_read),
    db: Session = Depends(get_db)
):
    action_classes = action_class_service.get_action_classes(db, environment_id, page)
    return ActionClassListResponse(action_classes=action_classes, page=page)


@router.post(
    "/environments/{environment_id}/action-classes",
    response_model=ActionClassResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_action_class(
    environment_id: str,
    action_class_data: ActionClassCreate,
    current_user: User = Depends(require_environment_write),
    db: Session = Depends(get_db)
):
    return action_class_service.create_action_class(db, environment_id, action_class_data)


@router.get("/action-classes/{action_class_id}", response_model=ActionClassResponse)
async def get_action_class(
    action_class_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _load_action_class(db, current_user, action_class_id)


@router.patch("/action-classes/{action_class_id}", response_model=ActionClassResponse)
async def update_action_class(
    action_class_id: str,
    action_class_data: ActionClassUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    action_class = _load_action_class(db, current_user, action_class_id, write=True)
    return action_class_service.update_action_class(
        db, action_class.environment_id, action_class_id, action_class_data
    )


@router.delete("/action-classes/{action_class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_action_class(
    action_class_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Deleting a class also deletes every action recorded under it."""
    action_class = _load_action_class(db, current_user, action_class_id, write=True)
    action_class_service.delete_action_class(db, action_class.environment_id, action_class_id)
    return None


@router.get("/action-classes/{action_class_id}/stats", response_model=ActionClassStats)
async def get_action_class_stats(
    action_class_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _load_action_class(db, current_user, action_class_id)
    return ActionClassStats(
        last_hour=action_service.get_action_count_in_last_hour(db, action_class_id),
        last_24_hours=action_service.get_action_count_in_last_24_hours(db, action_class_id),
        last_7_days=action_service.get_action_count_in_last_7_days(db, action_class_id),
    )
