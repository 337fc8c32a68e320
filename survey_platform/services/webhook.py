"""
Webhook Service
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from survey_platform.core.cache import cached
from survey_platform.core.exceptions import ResourceNotFoundError
from survey_platform.core.validation import Id, OptionalPage, validate_inputs
from survey_platform.database import database_errors
from survey_platform.models.product import Environment
from survey_platform.models.webhook import Webhook, WebhookSource
from survey_platform.schemas.webhook import WebhookCreate, WebhookResponse, WebhookUpdate
from survey_platform.services.caches import webhook_cache
from survey_platform.utils.logging import get_logger
from survey_platform.utils.pagination import paginate

logger = get_logger(__name__)


@cached(
    key=lambda db, environment_id, page=None: f"webhooks:by_environment:{environment_id}:{page}",
    tags=lambda db, environment_id, page=None: [webhook_cache.tag_by_environment_id(environment_id)],
)
def get_webhooks(db: Session, environment_id: str, page: Optional[int] = None) -> List[WebhookResponse]:
    validate_inputs((environment_id, Id), (page, OptionalPage))

    with database_errors(db, "get_webhooks"):
        query = (
            db.query(Webhook)
            .filter(Webhook.environment_id == environment_id)
            .order_by(Webhook.created_at.desc(), Webhook.id.asc())
        )
        webhooks = paginate(query, page).all()

    return [WebhookResponse.model_validate(w) for w in webhooks]


def _source_value(source) -> str:
    return source.value if isinstance(source, WebhookSource) else str(source)


@cached(
    key=lambda db, environment_id, source: f"webhooks:count_by_source:{environment_id}:{_source_value(source)}",
    tags=lambda db, environment_id, source: [
        webhook_cache.tag_by_environment_id_and_source(environment_id, _source_value(source))
    ],
)
def get_webhook_count_by_source(db: Session, environment_id: str, source: WebhookSource) -> int:
    validate_inputs((environment_id, Id), (source, WebhookSource))

    with database_errors(db, "get_webhook_count_by_source"):
        return db.query(Webhook).filter(
            Webhook.environment_id == environment_id,
            Webhook.source == WebhookSource(source)
        ).count()


@cached(
    key=lambda db, webhook_id: f"webhook:{webhook_id}",
    tags=lambda db, webhook_id: [webhook_cache.tag_by_id(webhook_id)],
)
def get_webhook(db: Session, webhook_id: str) -> Optional[WebhookResponse]:
    validate_inputs((webhook_id, Id))

    with database_errors(db, "get_webhook"):
        webhook = db.query(Webhook).filter(Webhook.id == webhook_id).first()

    return WebhookResponse.model_validate(webhook) if webhook else None


def _revalidate(webhook: WebhookResponse) -> None:
    webhook_cache.revalidate(
        id=webhook.id,
        environment_id=webhook.environment_id,
        source=webhook.source.value,
    )


def create_webhook(db: Session, environment_id: str, data: WebhookCreate) -> WebhookResponse:
    validate_inputs((environment_id, Id), (data, WebhookCreate))

    with database_errors(db, "create_webhook"):
        if not db.query(Environment).filter(Environment.id == environment_id).first():
            raise ResourceNotFoundError("Environment", environment_id)

        webhook = Webhook(
            environment_id=environment_id,
            name=data.name,
            url=data.url,
            source=data.source,
            triggers=[trigger.value for trigger in data.triggers],
            survey_ids=list(data.survey_ids),
        )
        db.add(webhook)
        db.commit()

    result = WebhookResponse.model_validate(webhook)
    _revalidate(result)
    logger.info(f"Webhook created: {result.id} ({result.source.value}) in {environment_id}")

    return result


def update_webhook(db: Session, webhook_id: str, data: WebhookUpdate) -> WebhookResponse:
    validate_inputs((webhook_id, Id), (data, WebhookUpdate))

    with database_errors(db, "update_webhook"):
        webhook = db.query(Webhook).filter(Webhook.id == webhook_id).first()
        if not webhook:
            raise ResourceNotFoundError("Webhook", webhook_id)

        update_data = data.model_dump(exclude_unset=True, mode="json")
        for field, value in update_data.items():
            # name is the only nullable column; null elsewhere means unchanged
            if value is None and field != "name":
                continue
            setattr(webhook, field, value)

        db.commit()

    result = WebhookResponse.model_validate(webhook)
    _revalidate(result)
    logger.info(f"Webhook updated: {result.id}")

    return result


def delete_webhook(db: Session, webhook_id: str) -> WebhookResponse:
    validate_inputs((webhook_id, Id))

    with database_errors(db, "delete_webhook"):
        webhook = db.query(Webhook).filter(Webhook.id == webhook_id).first()
        if not webhook:
            raise ResourceNotFoundError("Webhook", webhook_id)

        result = WebhookResponse.model_validate(webhook)
        db.delete(webhook)
        db.commit()

    _revalidate(result)
    logger.info(f"Webhook deleted: {result.id}")

    return result
