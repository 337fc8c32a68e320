"""
Cache Tags

One object per cached entity. Each exposes the tag builders its readers
attach to cached entries and a revalidate() that writers call with whatever
identifiers they know; tags whose identifiers are missing are skipped.
"""
from typing import List, Optional

from survey_platform.core.cache import get_cache


class _EntityCache:
    def _revalidate(self, tags: List[str]) -> None:
        get_cache().revalidate_tags(tags)


class ActionCache(_EntityCache):
    @staticmethod
    def tag_by_environment_id(environment_id: str) -> str:
        return f"environments-{environment_id}-actions"

    @staticmethod
    def tag_by_person_id(person_id: str) -> str:
        return f"people-{person_id}-actions"

    @staticmethod
    def tag_by_action_class_id(action_class_id: str) -> str:
        return f"actionClasses-{action_class_id}-actions"

    def revalidate(
        self,
        environment_id: Optional[str] = None,
        person_id: Optional[str] = None,
        action_class_id: Optional[str] = None,
    ) -> None:
        tags = []
        if environment_id:
            tags.append(self.tag_by_environment_id(environment_id))
        if person_id:
            tags.append(self.tag_by_person_id(person_id))
        if action_class_id:
            tags.append(self.tag_by_action_class_id(action_class_id))
        self._revalidate(tags)


class ActionClassCache(_EntityCache):
    @staticmethod
    def tag_by_id(action_class_id: str) -> str:
        return f"actionClasses-{action_class_id}"

    @staticmethod
    def tag_by_environment_id(environment_id: str) -> str:
        return f"environments-{environment_id}-actionClasses"

    @staticmethod
    def tag_by_name_and_environment_id(name: str, environment_id: str) -> str:
        return f"environments-{environment_id}-actionClass-{name}"

    def revalidate(
        self,
        id: Optional[str] = None,
        environment_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> None:
        tags = []
        if id:
            tags.append(self.tag_by_id(id))
        if environment_id:
            tags.append(self.tag_by_environment_id(environment_id))
        if name and environment_id:
            tags.append(self.tag_by_name_and_environment_id(name, environment_id))
        self._revalidate(tags)


class AttributeClassCache(_EntityCache):
    @staticmethod
    def tag_by_id(attribute_class_id: str) -> str:
        return f"attributeClasses-{attribute_class_id}"

    @staticmethod
    def tag_by_environment_id(environment_id: str) -> str:
        return f"environments-{environment_id}-attributeClasses"

    @staticmethod
    def tag_by_name_and_environment_id(name: str, environment_id: str) -> str:
        return f"environments-{environment_id}-attributeClass-{name}"

    def revalidate(
        self,
        id: Optional[str] = None,
        environment_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> None:
        tags = []
        if id:
            tags.append(self.tag_by_id(id))
        if environment_id:
            tags.append(self.tag_by_environment_id(environment_id))
        if name and environment_id:
            tags.append(self.tag_by_name_and_environment_id(name, environment_id))
        self._revalidate(tags)


class PersonCache(_EntityCache):
    @staticmethod
    def tag_by_id(person_id: str) -> str:
        return f"people-{person_id}"

    @staticmethod
    def tag_by_environment_id(environment_id: str) -> str:
        return f"environments-{environment_id}-people"

    @staticmethod
    def tag_by_environment_id_and_user_id(environment_id: str, user_id: str) -> str:
        return f"environments-{environment_id}-personByUserId-{user_id}"

    def revalidate(
        self,
        id: Optional[str] = None,
        environment_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        tags = []
        if id:
            tags.append(self.tag_by_id(id))
        if environment_id:
            tags.append(self.tag_by_environment_id(environment_id))
        if environment_id and user_id:
            tags.append(self.tag_by_environment_id_and_user_id(environment_id, user_id))
        self._revalidate(tags)


class ActivePersonCache(_EntityCache):
    """Monthly-active flags; refreshed the first time a person acts in a month."""

    @staticmethod
    def tag_by_id(person_id: str) -> str:
        return f"people-{person_id}-active"

    @staticmethod
    def tag_by_environment_id(environment_id: str) -> str:
        return f"environments-{environment_id}-activePeople"

    def revalidate(self, id: Optional[str] = None, environment_id: Optional[str] = None) -> None:
        tags = []
        if id:
            tags.append(self.tag_by_id(id))
        if environment_id:
            tags.append(self.tag_by_environment_id(environment_id))
        self._revalidate(tags)


class WebhookCache(_EntityCache):
    @staticmethod
    def tag_by_id(webhook_id: str) -> str:
        return f"webhooks-{webhook_id}"

    @staticmethod
    def tag_by_environment_id(environment_id: str) -> str:
        return f"environments-{environment_id}-webhooks"

    @staticmethod
    def tag_by_environment_id_and_source(environment_id: str, source: str) -> str:
        return f"environments-{environment_id}-sources-{source}-webhooks"

    def revalidate(
        self,
        id: Optional[str] = None,
        environment_id: Optional[str] = None,
        source: Optional[str] = None,
    ) -> None:
        tags = []
        if id:
            tags.append(self.tag_by_id(id))
        if environment_id:
            tags.append(self.tag_by_environment_id(environment_id))
        if environment_id and source:
            tags.append(self.tag_by_environment_id_and_source(environment_id, source))
        self._revalidate(tags)


class EnvironmentCache(_EntityCache):
    @staticmethod
    def tag_by_id(environment_id: str) -> str:
        return f"environments-{environment_id}"

    @staticmethod
    def tag_by_product_id(product_id: str) -> str:
        return f"products-{product_id}-environments"

    def revalidate(self, id: Optional[str] = None, product_id: Optional[str] = None) -> None:
        tags = []
        if id:
            tags.append(self.tag_by_id(id))
        if product_id:
            tags.append(self.tag_by_product_id(product_id))
        self._revalidate(tags)


class TeamCache(_EntityCache):
    @staticmethod
    def tag_by_id(team_id: str) -> str:
        return f"teams-{team_id}"

    @staticmethod
    def tag_by_user_id(user_id: str) -> str:
        return f"users-{user_id}-teams"

    def revalidate(self, id: Optional[str] = None, user_id: Optional[str] = None) -> None:
        tags = []
        if id:
            tags.append(self.tag_by_id(id))
        if user_id:
            tags.append(self.tag_by_user_id(user_id))
        self._revalidate(tags)


action_cache = ActionCache()
action_class_cache = ActionClassCache()
attribute_class_cache = AttributeClassCache()
person_cache = PersonCache()
active_person_cache = ActivePersonCache()
webhook_cache = WebhookCache()
environment_cache = EnvironmentCache()
team_cache = TeamCache()
