"""
Database Models

Everything below Environment carries environment_id; access to an
environment is granted through team membership.
"""
from survey_platform.models.user import User
from survey_platform.models.team import Team, Membership, MembershipRole
from survey_platform.models.product import Product, Environment, EnvironmentType
from survey_platform.models.person import Person, Attribute
from survey_platform.models.action import Action, ActionClass, ActionClassType
from survey_platform.models.attribute_class import AttributeClass, AttributeClassType
from survey_platform.models.webhook import Webhook, WebhookSource, WebhookTrigger

__all__ = [
    "User",
    "Team",
    "Membership",
    "MembershipRole",
    "Product",
    "Environment",
    "EnvironmentType",
    "Person",
    "Attribute",
    "Action",
    "ActionClass",
    "ActionClassType",
    "AttributeClass",
    "AttributeClassType",
    "Webhook",
    "WebhookSource",
    "WebhookTrigger",
]
