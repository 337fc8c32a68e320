"""
Product Analytics

Server-side events sent to PostHog. Without POSTHOG_API_KEY every capture is
a logged no-op so development and tests never reach the network.
"""
from functools import lru_cache
from typing import Any, Dict, Literal, Optional

from posthog import Posthog

from survey_platform.config import get_settings
from survey_platform.core.cache import cached
from survey_platform.core.validation import Id, validate_inputs
from survey_platform.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

FREE_LIMIT_REACHED_EVENT = "free limit reached"

Plan = Literal["inAppSurvey", "userTargeting"]


@lru_cache()
def get_posthog_client() -> Optional[Posthog]:
    if not settings.POSTHOG_API_KEY:
        return None
    return Posthog(settings.POSTHOG_API_KEY, host=settings.POSTHOG_HOST)


def capture_environment_event(
    environment_id: str,
    event: str,
    properties: Optional[Dict[str, Any]] = None,
) -> None:
    """Capture an event attributed to an environment rather than a person."""
    client = get_posthog_client()
    if client is None:
        logger.debug(f"Analytics disabled, dropping event: {event}", extra={"environment_id": environment_id})
        return

    client.capture(
        distinct_id=environment_id,
        event=event,
        properties=properties or {},
        groups={"environment": environment_id},
    )


@cached(
    key=lambda environment_id, plan: f"free_limit_event:{plan}:{environment_id}",
    revalidate=settings.FREE_LIMIT_EVENT_INTERVAL,
)
def send_free_limit_reached_event_bi_weekly(environment_id: str, plan: Plan) -> str:
    """
    Report that an environment hit a free-plan limit.

    The "success" marker is cached for FREE_LIMIT_EVENT_INTERVAL, so the
    event goes out at most once per interval and plan. A failed capture is
    not cached and will be retried on the next call.
    """
    validate_inputs((environment_id, Id), (plan, Plan))

    try:
        capture_environment_event(environment_id, FREE_LIMIT_REACHED_EVENT, {"plan": plan})
    except Exception as e:
        logger.error(
            f"Failed to send free limit event ({plan}): {e}",
            extra={"environment_id": environment_id}
        )
        raise

    return "success"
