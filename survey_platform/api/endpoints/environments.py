"""
Environment Endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Dict

from survey_platform.database import get_db
from survey_platform.models.user import User
from survey_platform.schemas.team import EnvironmentResponse
from survey_platform.api.deps import require_environment_read
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.services.environment import get_environment
from survey_platform.services.person import get_monthly_active_people_count

router = APIRouter(prefix="/environments", tags=["environments"])


@router.get("/{environment_id}", response_model=EnvironmentResponse)
async def read_environment(
    environment_id: str,
    current_user: User = Depends(require_environment_read),
    db: Session = Depends(get_db)
):
    environment = get_environment(db, environment_id)
    if not environment:
        raise ResourceNotFoundError("Environment", environment_id)
    return environment


@router.get("/{environment_id}/monthly-active-people", response_model=Dict[str, int])
async def read_monthly_active_people(
    environment_id: str,
    current_user: User = Depends(require_environment_read),
    db: Session = Depends(get_db)
):
    """People with at least one action in the current calendar month."""
    return {"count": get_monthly_active_people_count(db, environment_id)}
