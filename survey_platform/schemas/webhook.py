"""
Webhook Schemas
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from survey_platform.models.webhook import WebhookSource, WebhookTrigger

URL_PATTERN = r"^https?://\S+$"


class WebhookCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    url: str = Field(..., pattern=URL_PATTERN, max_length=2048)
    source: WebhookSource = WebhookSource.USER
    triggers: List[WebhookTrigger] = Field(..., min_length=1)
    survey_ids: List[str] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Slack relay",
                "url": "https://hooks.example.com/responses",
                "source": "user",
                "triggers": ["responseFinished"],
                "survey_ids": []
            }
        }


class WebhookUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    url: Optional[str] = Field(None, pattern=URL_PATTERN, max_length=2048)
    triggers: Optional[List[WebhookTrigger]] = Field(None, min_length=1)
    survey_ids: Optional[List[str]] = None


class WebhookResponse(BaseModel):
    id: str
    environment_id: str
    name: Optional[str] = None
    url: str
    source: WebhookSource
    triggers: List[WebhookTrigger]
    survey_ids: List[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WebhookListResponse(BaseModel):
    webhooks: List[WebhookResponse]
    page: Optional[int] = None
