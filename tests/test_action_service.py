"""
Tests for recording actions and the time-window counts.
"""
from datetime import timedelta

import pytest

from survey_platform.config import get_settings
from survey_platform.core.exceptions import InvalidInputError, ResourceNotFoundError
from survey_platform.models.action import Action, ActionClassType
from survey_platform.schemas.action import ActionInput
from survey_platform.services import action as action_service
from survey_platform.services.action_class import get_action_class_by_environment_id_and_name
from survey_platform.services.person import (
    create_person,
    get_is_person_monthly_active,
    get_monthly_active_people_count,
)
from survey_platform.utils.datetime import utcnow


@pytest.fixture
def person(db_session, environment_id):
    return create_person(db_session, environment_id, "user-1")


def record(db_session, environment_id, name="Clicked Upgrade", user_id="user-1", **properties):
    return action_service.create_action(
        db_session,
        ActionInput(environment_id=environment_id, name=name, user_id=user_id, properties=properties),
    )


def backdate(db_session, action_class_id, person_id, **delta):
    db_session.add(Action(
        action_class_id=action_class_id,
        person_id=person_id,
        created_at=utcnow() - timedelta(**delta),
    ))
    db_session.commit()


def test_create_action_creates_code_class_on_first_use(db_session, environment_id, person):
    action = record(db_session, environment_id, plan="pro")

    assert action.person_id == person.id
    assert action.properties == {"plan": "pro"}
    assert action.action_class.name == "Clicked Upgrade"
    assert action.action_class.type == ActionClassType.CODE


def test_create_action_reuses_existing_class(db_session, environment_id, person):
    first = record(db_session, environment_id)
    second = record(db_session, environment_id)

    assert first.action_class.id == second.action_class.id


def test_sdk_events_get_automatic_classes(db_session, environment_id, person):
    action = record(db_session, environment_id, name="50% Scroll")
    assert action.action_class.type == ActionClassType.AUTOMATIC

    action = record(db_session, environment_id, name="Exit Intent (Desktop)")
    assert action.action_class.type == ActionClassType.AUTOMATIC


def test_seeded_session_class_is_reused(db_session, environment_id, person):
    seeded = get_action_class_by_environment_id_and_name(db_session, environment_id, "New Session")
    action = record(db_session, environment_id, name="New Session")

    assert action.action_class.id == seeded.id


def test_create_action_for_unknown_person_fails(db_session, environment_id):
    with pytest.raises(ResourceNotFoundError):
        record(db_session, environment_id, user_id="nobody")


def test_actions_listed_newest_first(db_session, environment_id, person):
    first = record(db_session, environment_id, name="First")
    backdate(db_session, first.action_class.id, person.id, days=3)
    latest = record(db_session, environment_id, name="Second")

    by_person = action_service.get_actions_by_person_id(db_session, person.id)
    by_environment = action_service.get_actions_by_environment_id(db_session, environment_id)

    assert [a.id for a in by_person][0] == latest.id
    assert len(by_person) == 3
    assert [a.id for a in by_environment] == [a.id for a in by_person]


def test_action_lists_refresh_after_create(db_session, environment_id, person):
    assert action_service.get_actions_by_person_id(db_session, person.id) == []

    record(db_session, environment_id)

    assert len(action_service.get_actions_by_person_id(db_session, person.id)) == 1
    assert len(action_service.get_actions_by_environment_id(db_session, environment_id)) == 1


def test_action_lists_paginate(db_session, environment_id, person, monkeypatch):
    monkeypatch.setattr(get_settings(), "ITEMS_PER_PAGE", 2)
    for _ in range(3):
        record(db_session, environment_id)

    assert len(action_service.get_actions_by_person_id(db_session, person.id, 1)) == 2
    assert len(action_service.get_actions_by_person_id(db_session, person.id, 2)) == 1


def test_invalid_page_is_rejected(db_session, person):
    with pytest.raises(InvalidInputError):
        action_service.get_actions_by_person_id(db_session, person.id, 0)


def test_rolling_window_counts(db_session, environment_id, person):
    action_class_id = record(db_session, environment_id).action_class.id
    backdate(db_session, action_class_id, person.id, hours=2)
    backdate(db_session, action_class_id, person.id, days=3)
    backdate(db_session, action_class_id, person.id, days=10)

    assert action_service.get_action_count_in_last_hour(db_session, action_class_id) == 1
    assert action_service.get_action_count_in_last_24_hours(db_session, action_class_id) == 2
    assert action_service.get_action_count_in_last_7_days(db_session, action_class_id) == 3


def test_counts_refresh_when_an_action_is_recorded(db_session, environment_id, person):
    action_class_id = record(db_session, environment_id).action_class.id

    assert action_service.get_action_count_in_last_hour(db_session, action_class_id) == 1
    assert action_service.get_total_occurrences_for_action(db_session, action_class_id, person.id) == 1

    record(db_session, environment_id)

    assert action_service.get_action_count_in_last_hour(db_session, action_class_id) == 2
    assert action_service.get_total_occurrences_for_action(db_session, action_class_id, person.id) == 2


def test_per_person_counts_only_include_that_person(db_session, environment_id, person):
    create_person(db_session, environment_id, "user-2")
    action_class_id = record(db_session, environment_id).action_class.id
    record(db_session, environment_id, user_id="user-2")

    assert action_service.get_action_count_in_last_week(db_session, action_class_id, person.id) == 1
    assert action_service.get_action_count_in_last_month(db_session, action_class_id, person.id) == 1
    assert action_service.get_action_count_in_last_quarter(db_session, action_class_id, person.id) == 1
    assert action_service.get_action_count_in_last_7_days(db_session, action_class_id) == 2


def test_old_actions_only_count_toward_total(db_session, environment_id, person):
    action_class_id = record(db_session, environment_id).action_class.id
    backdate(db_session, action_class_id, person.id, days=400)

    assert action_service.get_action_count_in_last_week(db_session, action_class_id, person.id) == 1
    assert action_service.get_action_count_in_last_month(db_session, action_class_id, person.id) == 1
    assert action_service.get_action_count_in_last_quarter(db_session, action_class_id, person.id) == 1
    assert action_service.get_total_occurrences_for_action(db_session, action_class_id, person.id) == 2


def test_occurrence_days_ago(db_session, environment_id, person):
    action_class_id = record(db_session, environment_id).action_class.id
    backdate(db_session, action_class_id, person.id, days=12, hours=1)

    assert action_service.get_last_occurrence_days_ago(db_session, action_class_id, person.id) == 0
    assert action_service.get_first_occurrence_days_ago(db_session, action_class_id, person.id) == 12


def test_occurrence_days_ago_without_actions(db_session, environment_id, person):
    action_class_id = get_action_class_by_environment_id_and_name(db_session, environment_id, "New Session").id

    assert action_service.get_last_occurrence_days_ago(db_session, action_class_id, person.id) is None
    assert action_service.get_first_occurrence_days_ago(db_session, action_class_id, person.id) is None


def test_first_action_of_month_marks_person_active(db_session, environment_id, person):
    assert get_is_person_monthly_active(db_session, person.id) is False
    assert get_monthly_active_people_count(db_session, environment_id) == 0

    record(db_session, environment_id)

    assert get_is_person_monthly_active(db_session, person.id) is True
    assert get_monthly_active_people_count(db_session, environment_id) == 1
