"""
Attribute Class Schemas
"""
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime

from survey_platform.models.attribute_class import AttributeClassType


class AttributeClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: Literal["code", "noCode"] = "code"


class AttributeClassUpdate(BaseModel):
    """Names are immutable; stored attribute values reference them."""
    description: Optional[str] = None
    archived: Optional[bool] = None


class AttributeClassResponse(BaseModel):
    id: str
    environment_id: str
    name: str
    description: Optional[str] = None
    type: AttributeClassType
    archived: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AttributeClassListResponse(BaseModel):
    attribute_classes: List[AttributeClassResponse]
    page: Optional[int] = None
