"""
Tests for the per-environment client API rate limiter.
"""
import pytest
import redis
from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from survey_platform.config import get_settings
from survey_platform.middleware.rate_limit import RateLimitMiddleware


class FakeRedis:
    def __init__(self, reachable=True):
        self.reachable = reachable
        self.store = {}

    def ping(self):
        if not self.reachable:
            raise redis.ConnectionError("connection refused")
        return True

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = str(value)


@pytest.fixture
def limits(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(settings, "RATE_LIMIT_BURST", 2)
    monkeypatch.setattr(settings, "RATE_LIMIT_PER_MINUTE", 1)
    return settings


def build_client(redis_client):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, redis_client=redis_client)

    @app.get("/api/v1/client/{environment_id}/ping")
    async def client_ping(environment_id: str):
        return {"environment_id": environment_id}

    @app.get("/api/v1/teams")
    async def teams():
        return []

    return TestClient(app)


def test_burst_then_throttled(limits):
    client = build_client(FakeRedis())

    assert client.get("/api/v1/client/env-1/ping").status_code == status.HTTP_200_OK
    assert client.get("/api/v1/client/env-1/ping").status_code == status.HTTP_200_OK

    response = client.get("/api/v1/client/env-1/ping")
    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert int(response.headers["Retry-After"]) >= 1


def test_environments_have_separate_buckets(limits):
    client = build_client(FakeRedis())
    for _ in range(2):
        client.get("/api/v1/client/env-1/ping")

    assert client.get("/api/v1/client/env-1/ping").status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert client.get("/api/v1/client/env-2/ping").status_code == status.HTTP_200_OK


def test_management_routes_are_not_limited(limits):
    client = build_client(FakeRedis())

    for _ in range(5):
        assert client.get("/api/v1/teams").status_code == status.HTTP_200_OK


def test_unreachable_redis_fails_open(limits):
    client = build_client(FakeRedis(reachable=False))

    for _ in range(5):
        assert client.get("/api/v1/client/env-1/ping").status_code == status.HTTP_200_OK
