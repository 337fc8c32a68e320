"""
Tests for webhook CRUD and its cache invalidation.
"""
import pytest

from survey_platform.core.exceptions import InvalidInputError, ResourceNotFoundError
from survey_platform.models.webhook import WebhookSource, WebhookTrigger
from survey_platform.schemas.webhook import WebhookCreate, WebhookUpdate
from survey_platform.services import webhook as webhook_service


def make_webhook(db_session, environment_id, source=WebhookSource.USER, **overrides):
    data = {
        "name": "Responses",
        "url": "https://hooks.example.com/responses",
        "source": source,
        "triggers": [WebhookTrigger.RESPONSE_FINISHED],
    }
    data.update(overrides)
    return webhook_service.create_webhook(db_session, environment_id, WebhookCreate(**data))


def test_create_and_get_webhook(db_session, environment_id):
    webhook = make_webhook(db_session, environment_id, survey_ids=["survey-1"])
    fetched = webhook_service.get_webhook(db_session, webhook.id)

    assert fetched.id == webhook.id
    assert fetched.environment_id == environment_id
    assert fetched.triggers == [WebhookTrigger.RESPONSE_FINISHED]
    assert fetched.survey_ids == ["survey-1"]


def test_get_missing_webhook_returns_none(db_session):
    assert webhook_service.get_webhook(db_session, "missing") is None


def test_create_webhook_in_unknown_environment(db_session):
    with pytest.raises(ResourceNotFoundError):
        make_webhook(db_session, "no-such-environment")


def test_list_refreshes_after_create_and_delete(db_session, environment_id):
    assert webhook_service.get_webhooks(db_session, environment_id) == []

    webhook = make_webhook(db_session, environment_id)
    assert [w.id for w in webhook_service.get_webhooks(db_session, environment_id)] == [webhook.id]

    webhook_service.delete_webhook(db_session, webhook.id)
    assert webhook_service.get_webhooks(db_session, environment_id) == []
    assert webhook_service.get_webhook(db_session, webhook.id) is None


def test_count_by_source(db_session, environment_id):
    make_webhook(db_session, environment_id, source=WebhookSource.ZAPIER)
    assert webhook_service.get_webhook_count_by_source(db_session, environment_id, WebhookSource.ZAPIER) == 1
    assert webhook_service.get_webhook_count_by_source(db_session, environment_id, WebhookSource.N8N) == 0

    make_webhook(db_session, environment_id, source=WebhookSource.ZAPIER)
    assert webhook_service.get_webhook_count_by_source(db_session, environment_id, "zapier") == 2


def test_count_by_unknown_source_is_invalid(db_session, environment_id):
    with pytest.raises(InvalidInputError):
        webhook_service.get_webhook_count_by_source(db_session, environment_id, "carrier-pigeon")


def test_update_webhook_changes_only_given_fields(db_session, environment_id):
    webhook = make_webhook(db_session, environment_id)
    webhook_service.get_webhook(db_session, webhook.id)

    updated = webhook_service.update_webhook(
        db_session,
        webhook.id,
        WebhookUpdate(triggers=[WebhookTrigger.RESPONSE_CREATED, WebhookTrigger.RESPONSE_UPDATED]),
    )

    assert updated.url == webhook.url
    assert updated.triggers == [WebhookTrigger.RESPONSE_CREATED, WebhookTrigger.RESPONSE_UPDATED]
    assert webhook_service.get_webhook(db_session, webhook.id).triggers == updated.triggers


def test_update_can_clear_name(db_session, environment_id):
    webhook = make_webhook(db_session, environment_id)
    webhook_service.get_webhook(db_session, webhook.id)

    updated = webhook_service.update_webhook(db_session, webhook.id, WebhookUpdate(name=None))

    assert updated.name is None
    assert updated.url == webhook.url
    assert webhook_service.get_webhook(db_session, webhook.id).name is None


def test_update_ignores_null_for_required_fields(db_session, environment_id):
    webhook = make_webhook(db_session, environment_id)

    updated = webhook_service.update_webhook(
        db_session, webhook.id, WebhookUpdate(url=None, triggers=None, survey_ids=None)
    )

    assert updated.url == webhook.url
    assert updated.triggers == webhook.triggers
    assert updated.survey_ids == webhook.survey_ids


def test_update_missing_webhook(db_session):
    with pytest.raises(ResourceNotFoundError):
        webhook_service.update_webhook(db_session, "missing", WebhookUpdate(name="x"))


def test_webhook_requires_a_trigger():
    with pytest.raises(ValueError):
        WebhookCreate(url="https://hooks.example.com", triggers=[])
