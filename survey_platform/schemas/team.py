"""
Team, Membership, Product and Environment Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import List
from datetime import datetime

from survey_platform.models.team import MembershipRole
from survey_platform.models.product import EnvironmentType


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class TeamResponse(BaseModel):
    id: str
    name: str
    in_app_survey_subscription: bool
    user_targeting_subscription: bool
    created_at: datetime

    class Config:
        from_attributes = True


class MembershipCreate(BaseModel):
    """Add an existing user to a team by email."""
    email: EmailStr
    role: MembershipRole = MembershipRole.DEVELOPER


class MembershipResponse(BaseModel):
    team_id: str
    user_id: str
    role: MembershipRole
    accepted: bool

    class Config:
        from_attributes = True


class EnvironmentResponse(BaseModel):
    id: str
    product_id: str
    type: EnvironmentType
    widget_setup_completed: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ProductResponse(BaseModel):
    id: str
    team_id: str
    name: str
    environments: List[EnvironmentResponse]
    created_at: datetime

    class Config:
        from_attributes = True
