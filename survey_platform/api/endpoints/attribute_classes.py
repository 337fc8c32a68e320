"""
Attribute Class Endpoints

Same access rules as action classes: members read, editors and above write.
Only the description and the archived flag are editable.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from survey_platform.database import get_db
from survey_platform.models.user import User
from survey_platform.schemas.attribute_class import (
    AttributeClassCreate,
    AttributeClassListResponse,
    AttributeClassResponse,
    AttributeClassUpdate,
)
from survey_platform.api.deps import (
    ensure_environment_access,
    get_current_user,
    require_environment_read,
    require_environment_write,
)
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.services import attribute_class as attribute_class_service
from survey_platform.services.access import can_user_access_attribute_class

router = APIRouter(tags=["attribute classes"])


def _load_attribute_class(
    db: Session,
    user: User,
    attribute_class_id: str,
    write: bool = False,
) -> AttributeClassResponse:
    attribute_class = None
    if can_user_access_attribute_class(db, user.id, attribute_class_id):
        attribute_class = attribute_class_service.get_attribute_class(db, attribute_class_id)
    if not attribute_class:
        raise ResourceNotFoundError("Attribute class", attribute_class_id)

    ensure_environment_access(db, user, attribute_class.environment_id, write=write)
    return attribute_class


@router.get("/environments/{environment_id}/attribute-classes", response_model=AttributeClassListResponse)
async def list_attribute_classes(
    environment_id: str,
    page: Optional[int] = Query(None, ge=1),
    current_user: User = Depends(require_environment_read),
    db: Session = Depends(get_db)
):
    attribute_classes = attribute_class_service.get_attribute_classes(db, environment_id, page)
    return AttributeClassListResponse(attribute_classes=attribute_classes, page=page)


@router.post(
    "/environments/{environment_id}/attribute-classes",
    response_model=AttributeClassResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_attribute_class(
    environment_id: str,
    attribute_class_data: AttributeClassCreate,
    current_user: User = Depends(require_environment_write),
    db: Session = Depends(get_db)
):
    return attribute_class_service.create_attribute_class(db, environment_id, attribute_class_data)


@router.get("/attribute-classes/{attribute_class_id}", response_model=AttributeClassResponse)
async def get_attribute_class(
    attribute_class_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _load_attribute_class(db, current_user, attribute_class_id)


@router.patch("/attribute-classes/{attribute_class_id}", response_model=AttributeClassResponse)
async def update_attribute_class(
    attribute_class_id: str,
    attribute_class_data: AttributeClassUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _load_attribute_class(db, current_user, attribute_class_id, write=True)
    return attribute_class_service.update_attribute_class(db, attribute_class_id, attribute_class_data)


@router.delete("/attribute-classes/{attribute_class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attribute_class(
    attribute_class_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _load_attribute_class(db, current_user, attribute_class_id, write=True)
    attribute_class_service.delete_attribute_class(db, attribute_class_id)
    return None
