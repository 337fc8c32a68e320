"""
Action Schemas
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from survey_platform.core.validation import Id
from survey_platform.schemas.action_class import ActionClassResponse


class ActionInput(BaseModel):
    """Service input for recording one action."""
    environment_id: Id
    name: str = Field(..., min_length=1, max_length=255)
    user_id: str = Field(..., min_length=1, max_length=255)
    properties: Dict[str, Any] = Field(default_factory=dict)


class ActionCreateRequest(BaseModel):
    """Client API body; the environment comes from the path."""
    user_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    properties: Dict[str, Any] = Field(default_factory=dict)


class ActionResponse(BaseModel):
    id: str
    created_at: datetime
    person_id: str
    properties: Dict[str, Any]
    action_class: ActionClassResponse

    class Config:
        from_attributes = True


class ActionListResponse(BaseModel):
    actions: List[ActionResponse]
    page: Optional[int] = None


class PersonActionStats(BaseModel):
    """Occurrences of one action class by one person."""
    last_quarter: int
    last_month: int
    last_week: int
    total: int
    last_occurrence_days_ago: Optional[int] = None
    first_occurrence_days_ago: Optional[int] = None
