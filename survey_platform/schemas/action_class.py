"""
Action Class Schemas
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

from survey_platform.models.action import ActionClassType


class ActionClassCreate(BaseModel):
    """Users create code and noCode classes; automatic ones come from the platform."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: Literal["code", "noCode"] = "code"
    no_code_config: Optional[Dict[str, Any]] = None


class ActionClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    no_code_config: Optional[Dict[str, Any]] = None


class ActionClassResponse(BaseModel):
    id: str
    environment_id: str
    name: str
    description: Optional[str] = None
    type: ActionClassType
    no_code_config: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ActionClassListResponse(BaseModel):
    action_classes: List[ActionClassResponse]
    page: Optional[int] = None


class ActionClassStats(BaseModel):
    """Occurrences of one action class across all people."""
    last_hour: int
    last_24_hours: int
    last_7_days: int
