"""
Rate Limiting Middleware

Per-environment rate limiting of the public client API using Redis.

ARCHITECTURE: Token bucket per environment id. The SDK calls the client API
without credentials, so the environment in the path is the only stable key.
Dashboard routes are authenticated and not limited here.

PRODUCTION NOTES:
- Redis is single point of failure (use Redis Cluster/Sentinel)
- Fails open when Redis is unreachable
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from typing import Optional, Tuple
import re
import redis
import time

from survey_platform.config import get_settings
from survey_platform.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)
settings = get_settings()

CLIENT_PATH = re.compile(r"^/api/v1/client/(?P<environment_id>[^/]+)")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Token bucket rate limiter per environment.

    - Bucket holds RATE_LIMIT_BURST tokens
    - Refills at RATE_LIMIT_PER_MINUTE
    - Each client API request consumes one token
    """

    def __init__(self, app, redis_client: Optional["redis.Redis"] = None):
        super().__init__(app)
        self.enabled = settings.RATE_LIMIT_ENABLED
        self.redis_client = redis_client
        self.redis_available = False

        if not self.enabled:
            logger.info("Rate limiting disabled by configuration")
            return

        if self.redis_client is None:
            self.redis_client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )

        try:
            self.redis_client.ping()
            self.redis_available = True
            logger.info("Redis connection established for rate limiting")
        except (redis.ConnectionError, redis.TimeoutError) as e:
            # FALLBACK: availability over strict limiting
            logger.error(f"Redis connection failed, rate limiting disabled: {e}")

    async def dispatch(self, request: Request, call_next):
        if not self.enabled or not self.redis_available:
            return await call_next(request)

        environment_id = self._get_environment_id(request)
        if not environment_id:
            return await call_next(request)

        allowed, retry_after = self._check_rate_limit(environment_id)

        if not allowed:
            log_security_event(
                "rate_limit_exceeded",
                {"environment_id": environment_id, "path": request.url.path},
                logger
            )
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded",
                    "retry_after": retry_after
                },
                headers={"Retry-After": str(retry_after)}
            )

        return await call_next(request)

    @staticmethod
    def _get_environment_id(request: Request) -> Optional[str]:
        match = CLIENT_PATH.match(request.url.path)
        return match.group("environment_id") if match else None

    def _check_rate_limit(self, environment_id: str) -> Tuple[bool, int]:
        """
        Check if request is allowed under rate limit.

        Returns: (allowed, retry_after_seconds)
        """
        rate_limit = settings.RATE_LIMIT_PER_MINUTE
        burst = settings.RATE_LIMIT_BURST

        key = f"{settings.CACHE_KEY_PREFIX}:rate_limit:{environment_id}"
        key_timestamp = f"{key}:timestamp"

        try:
            current_tokens = self.redis_client.get(key)
            last_update = self.redis_client.get(key_timestamp)

            now = time.time()

            if current_tokens is None:
                # First request - initialize bucket and consume one token
                self.redis_client.setex(key, 60, burst - 1)
                self.redis_client.setex(key_timestamp, 60, now)
                return True, 0

            current_tokens = float(current_tokens)
            last_update = float(last_update) if last_update else now

            elapsed = now - last_update
            tokens_to_add = elapsed * (rate_limit / 60.0)
            new_tokens = min(burst, current_tokens + tokens_to_add)

            if new_tokens >= 1:
                new_tokens -= 1
                self.redis_client.setex(key, 60, new_tokens)
                self.redis_client.setex(key_timestamp, 60, now)
                return True, 0

            tokens_needed = 1 - new_tokens
            retry_after = int((tokens_needed / (rate_limit / 60.0)) + 1)
            return False, retry_after

        except redis.RedisError as e:
            logger.error(f"Redis error in rate limiting: {e}")
            # Fail open
            return True, 0
