"""
Tests for the public client API used by the SDK.
"""
import pytest
from fastapi import status

from survey_platform.config import get_settings
from survey_platform.models.team import Team
from survey_platform.schemas.action_class import ActionClassCreate
from survey_platform.services import analytics
from survey_platform.services.action_class import create_action_class
from survey_platform.services.environment import get_environment


@pytest.fixture
def captured(monkeypatch):
    events = []

    def fake_capture(environment_id, event, properties=None):
        events.append((environment_id, event, properties))

    monkeypatch.setattr(analytics, "capture_environment_event", fake_capture)
    return events


def client_url(environment_id, path):
    return f"/api/v1/client/{environment_id}{path}"


def test_create_person(client, environment_id):
    response = client.post(client_url(environment_id, "/people"), json={"user_id": "user-1"})

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["user_id"] == "user-1"
    assert data["attributes"] == {"userId": "user-1"}


def test_create_person_in_unknown_environment(client):
    response = client.post(client_url("missing-env", "/people"), json={"user_id": "user-1"})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_create_action(client, environment_id):
    client.post(client_url(environment_id, "/people"), json={"user_id": "user-1"})

    response = client.post(
        client_url(environment_id, "/actions"),
        json={"user_id": "user-1", "name": "Clicked Upgrade", "properties": {"plan": "pro"}},
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["action_class"]["name"] == "Clicked Upgrade"
    assert data["action_class"]["type"] == "code"
    assert data["properties"] == {"plan": "pro"}


def test_create_action_for_unknown_person(client, environment_id):
    response = client.post(
        client_url(environment_id, "/actions"),
        json={"user_id": "nobody", "name": "Clicked Upgrade"},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_create_action_with_oversized_environment_id(client):
    response = client.post(
        client_url("x" * 40, "/actions"),
        json={"user_id": "user-1", "name": "Clicked Upgrade"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_set_person_attribute(client, environment_id):
    client.post(client_url(environment_id, "/people"), json={"user_id": "user-1"})

    response = client.put(
        client_url(environment_id, "/people/user-1/attributes/plan"),
        json={"value": "enterprise"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["attributes"]["plan"] == "enterprise"


def test_set_person_attribute_with_oversized_key(client, environment_id):
    client.post(client_url(environment_id, "/people"), json={"user_id": "user-1"})

    response = client.put(
        client_url(environment_id, f"/people/user-1/attributes/{'k' * 256}"),
        json={"value": "enterprise"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_sync_creates_person_and_marks_widget_setup(client, db_session, environment_id):
    create_action_class(
        db_session,
        environment_id,
        ActionClassCreate(name="Viewed pricing", type="noCode", no_code_config={"url": "/pricing"}),
    )
    assert get_environment(db_session, environment_id).widget_setup_completed is False

    response = client.get(client_url(environment_id, "/app/sync/user-1"))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["person"]["user_id"] == "user-1"
    assert data["user_targeting_limit_reached"] is False
    # Only noCode classes are matched in the browser
    assert [c["name"] for c in data["action_classes"]] == ["Viewed pricing"]
    assert get_environment(db_session, environment_id).widget_setup_completed is True


def test_sync_for_unknown_environment(client):
    response = client.get(client_url("missing-env", "/app/sync/user-1"))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_sync_reports_user_targeting_limit(client, environment_id, captured, monkeypatch):
    monkeypatch.setattr(get_settings(), "PRICING_USERTARGETING_FREE_MTU", 1)
    client.post(client_url(environment_id, "/people"), json={"user_id": "user-1"})
    client.post(client_url(environment_id, "/actions"), json={"user_id": "user-1", "name": "Clicked"})

    first = client.get(client_url(environment_id, "/app/sync/newcomer"))
    second = client.get(client_url(environment_id, "/app/sync/newcomer"))

    assert first.status_code == status.HTTP_200_OK
    assert first.json()["user_targeting_limit_reached"] is True
    # Unknown users are not created once the limit is reached
    assert first.json()["person"] is None
    assert second.json()["person"] is None
    assert len(captured) == 1

    known = client.get(client_url(environment_id, "/app/sync/user-1"))
    assert known.json()["person"]["user_id"] == "user-1"


def test_sync_ignores_limit_with_subscription(client, db_session, team, environment_id, captured, monkeypatch):
    monkeypatch.setattr(get_settings(), "PRICING_USERTARGETING_FREE_MTU", 1)
    db_session.query(Team).filter(Team.id == team.id).update({"user_targeting_subscription": True})
    db_session.commit()
    client.post(client_url(environment_id, "/people"), json={"user_id": "user-1"})
    client.post(client_url(environment_id, "/actions"), json={"user_id": "user-1", "name": "Clicked"})

    response = client.get(client_url(environment_id, "/app/sync/newcomer"))

    assert response.json()["user_targeting_limit_reached"] is False
    assert response.json()["person"]["user_id"] == "newcomer"
    assert captured == []
