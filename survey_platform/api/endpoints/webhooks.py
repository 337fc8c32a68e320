"""
Webhook Endpoints

Webhooks notify external systems about survey responses. Integrations
(zapier, make, n8n) register theirs with a matching source.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Dict, Optional

from survey_platform.database import get_db
from survey_platform.models.user import User
from survey_platform.models.webhook import WebhookSource
from survey_platform.schemas.webhook import (
    WebhookCreate,
    WebhookListResponse,
    WebhookResponse,
    WebhookUpdate,
)
from survey_platform.api.deps import (
    ensure_environment_access,
    get_current_user,
    require_environment_read,
    require_environment_write,
)
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.services import webhook as webhook_service
from survey_platform.services.access import can_user_access_webhook

router = APIRouter(tags=["webhooks"])


def _load_webhook(db: Session, user: User, webhook_id: str, write: bool = False) -> WebhookResponse:
    webhook = None
    if can_user_access_webhook(db, user.id, webhook_id):
        webhook = webhook_service.get_webhook(db, webhook_id)
    if not webhook:
        raise ResourceNotFoundError("Webhook", webhook_id)

    ensure_environment_access(db, user, webhook.environment_id, write=write)
    return webhook


@router.get("/environments/{environment_id}/webhooks", response_model=WebhookListResponse)
async def list_webhooks(
    environment_id: str,
    page: Optional[int] = Query(None, ge=1),
    current_user: User = Depends(require_environment_read),
    db: Session = Depends(get_db)
):
    webhooks = webhook_service.get_webhooks(db, environment_id, page)
    return WebhookListResponse(webhooks=webhooks, page=page)


@router.get("/environments/{environment_id}/webhooks/count", response_model=Dict[str, int])
async def count_webhooks(
    environment_id: str,
    source: WebhookSource = Query(...),
    current_user: User = Depends(require_environment_read),
    db: Session = Depends(get_db)
):
    """Number of webhooks registered by one source, e.g. to show an integration as connected."""
    return {"count": webhook_service.get_webhook_count_by_source(db, environment_id, source)}


@router.post(
    "/environments/{environment_id}/webhooks",
    response_model=WebhookResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_webhook(
    environment_id: str,
    webhook_data: WebhookCreate,
    current_user: User = Depends(require_environment_write),
    db: Session = Depends(get_db)
):
    return webhook_service.create_webhook(db, environment_id, webhook_data)


@router.get("/webhooks/{webhook_id}", response_model=WebhookResponse)
async def get_webhook(
    webhook_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _load_webhook(db, current_user, webhook_id)


@router.patch("/webhooks/{webhook_id}", response_model=WebhookResponse)
async def update_webhook(
    webhook_id: str,
    webhook_data: WebhookUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _load_webhook(db, current_user, webhook_id, write=True)
    return webhook_service.update_webhook(db, webhook_id, webhook_data)


@router.delete("/webhooks/{webhook_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_webhook(
    webhook_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _load_webhook(db, current_user, webhook_id, write=True)
    webhook_service.delete_webhook(db, webhook_id)
    return None
