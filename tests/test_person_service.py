"""
Tests for people and their attributes.
"""
import pytest

from survey_platform.core.exceptions import InvalidInputError, ResourceNotFoundError
from survey_platform.models.attribute_class import AttributeClassType
from survey_platform.schemas.action import ActionInput
from survey_platform.services import person as person_service
from survey_platform.services.action import create_action, get_actions_by_environment_id
from survey_platform.services.attribute_class import get_attribute_class_by_name


def test_create_person_sets_user_id_attribute(db_session, environment_id):
    person = person_service.create_person(db_session, environment_id, "user-1")

    assert person.user_id == "user-1"
    assert person.attributes == {"userId": "user-1"}


def test_create_person_is_idempotent(db_session, environment_id):
    first = person_service.create_person(db_session, environment_id, "user-1")
    second = person_service.create_person(db_session, environment_id, "user-1")

    assert first.id == second.id
    assert len(person_service.get_people(db_session, environment_id)) == 1


def test_create_person_in_unknown_environment(db_session):
    with pytest.raises(ResourceNotFoundError):
        person_service.create_person(db_session, "no-such-environment", "user-1")


def test_empty_user_id_is_invalid(db_session, environment_id):
    with pytest.raises(InvalidInputError):
        person_service.create_person(db_session, environment_id, "")


def test_lookup_by_user_id_refreshes_after_create(db_session, environment_id):
    assert person_service.get_person_by_user_id(db_session, environment_id, "user-1") is None

    created = person_service.create_person(db_session, environment_id, "user-1")

    assert person_service.get_person_by_user_id(db_session, environment_id, "user-1").id == created.id


def test_update_attribute_creates_code_class(db_session, environment_id):
    person_service.create_person(db_session, environment_id, "user-1")
    assert get_attribute_class_by_name(db_session, environment_id, "plan") is None

    person = person_service.update_person_attribute(db_session, environment_id, "user-1", "plan", "free")

    assert person.attributes["plan"] == "free"
    plan = get_attribute_class_by_name(db_session, environment_id, "plan")
    assert plan.type == AttributeClassType.CODE


def test_update_attribute_overwrites_value(db_session, environment_id):
    created = person_service.create_person(db_session, environment_id, "user-1")
    person_service.update_person_attribute(db_session, environment_id, "user-1", "email", "a@example.com")
    assert person_service.get_person(db_session, created.id).attributes["email"] == "a@example.com"

    person_service.update_person_attribute(db_session, environment_id, "user-1", "email", "b@example.com")

    cached = person_service.get_person(db_session, created.id)
    assert cached.attributes == {"userId": "user-1", "email": "b@example.com"}


def test_update_attribute_for_unknown_person(db_session, environment_id):
    with pytest.raises(ResourceNotFoundError):
        person_service.update_person_attribute(db_session, environment_id, "nobody", "plan", "free")


def test_delete_person_removes_actions(db_session, environment_id):
    person = person_service.create_person(db_session, environment_id, "user-1")
    create_action(db_session, ActionInput(environment_id=environment_id, name="Clicked", user_id="user-1"))
    assert len(get_actions_by_environment_id(db_session, environment_id)) == 1

    deleted = person_service.delete_person(db_session, person.id)

    assert deleted.id == person.id
    assert person_service.get_person(db_session, person.id) is None
    assert person_service.get_person_by_user_id(db_session, environment_id, "user-1") is None
    assert get_actions_by_environment_id(db_session, environment_id) == []


def test_delete_missing_person(db_session):
    with pytest.raises(ResourceNotFoundError):
        person_service.delete_person(db_session, "missing")


def test_monthly_active_count_is_per_environment(db_session, environment_id, other_environment_id):
    for user_id in ("user-1", "user-2"):
        person_service.create_person(db_session, environment_id, user_id)
        create_action(db_session, ActionInput(environment_id=environment_id, name="Clicked", user_id=user_id))
    person_service.create_person(db_session, environment_id, "idle")

    assert person_service.get_monthly_active_people_count(db_session, environment_id) == 2
    assert person_service.get_monthly_active_people_count(db_session, other_environment_id) == 0


def test_attribute_key_longer_than_column_is_invalid(db_session, environment_id):
    person_service.create_person(db_session, environment_id, "user-1")

    with pytest.raises(InvalidInputError):
        person_service.update_person_attribute(db_session, environment_id, "user-1", "k" * 256, "value")

    person = person_service.update_person_attribute(db_session, environment_id, "user-1", "k" * 255, "value")
    assert person.attributes["k" * 255] == "value"
