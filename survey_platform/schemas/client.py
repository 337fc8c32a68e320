"""
Client API Schemas

Payloads exchanged with the embedded SDK.
"""
from pydantic import BaseModel
from typing import List, Optional

from survey_platform.schemas.action_class import ActionClassResponse
from survey_platform.schemas.person import PersonResponse


class SyncResponse(BaseModel):
    # None when the user is unknown and the free targeting limit is reached
    person: Optional[PersonResponse] = None
    action_classes: List[ActionClassResponse]
    user_targeting_limit_reached: bool
