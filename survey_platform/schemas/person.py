"""
Person Schemas
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime


class PersonCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=255)


class AttributeUpdate(BaseModel):
    value: str = Field(..., max_length=10000)


class PersonResponse(BaseModel):
    id: str
    environment_id: str
    user_id: str
    attributes: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class PersonListResponse(BaseModel):
    people: List[PersonResponse]
    page: Optional[int] = None
