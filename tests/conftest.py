"""
Pytest configuration and fixtures.

Settings are read once at import time, so the test environment is set up
before anything from survey_platform is imported. Each test gets a fresh
in-memory SQLite database and an empty in-process cache.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["POSTHOG_API_KEY"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import survey_platform.models  # noqa: F401  registers mappers
from survey_platform.core.cache import get_cache
from survey_platform.core.security import create_access_token, get_password_hash
from survey_platform.database import Base, get_db, register_connection_hooks
from survey_platform.models.product import EnvironmentType
from survey_platform.models.team import MembershipRole
from survey_platform.models.user import User
from survey_platform.services.team import create_membership, create_product, create_team

TEST_PASSWORD = "password123"


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt is slow; hash once per session
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def test_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    register_connection_hooks(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    SessionLocal = sessionmaker(bind=test_engine, autoflush=False, expire_on_commit=False)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def clear_cache():
    get_cache().clear()
    yield
    get_cache().clear()


@pytest.fixture
def client(db_session):
    """FastAPI test client bound to the test session."""
    from survey_platform.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session, password_hash):
    def _make_user(email: str, full_name: str = "Test User") -> User:
        user = User(email=email, hashed_password=password_hash, full_name=full_name)
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def owner(make_user):
    return make_user("owner@example.com", "Team Owner")


@pytest.fixture
def team(db_session, owner):
    return create_team(db_session, "Acme", owner.id)


@pytest.fixture
def product(db_session, team):
    return create_product(db_session, team.id, "Web App")


@pytest.fixture
def environment(product):
    return next(e for e in product.environments if e.type == EnvironmentType.PRODUCTION)


@pytest.fixture
def environment_id(environment):
    return environment.id


@pytest.fixture
def other_environment_id(db_session, make_user):
    """An environment owned by an unrelated team."""
    stranger = make_user("stranger@example.com", "Stranger")
    other_team = create_team(db_session, "Globex", stranger.id)
    other_product = create_product(db_session, other_team.id, "Other App")
    return other_product.environments[0].id


@pytest.fixture
def viewer(db_session, make_user, team):
    user = make_user("viewer@example.com", "Read Only")
    create_membership(db_session, team.id, user.id, MembershipRole.VIEWER)
    return user


def auth_headers_for(user: User) -> dict:
    token = create_access_token({"sub": user.id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers(owner):
    return auth_headers_for(owner)


@pytest.fixture
def viewer_headers(viewer):
    return auth_headers_for(viewer)


@pytest.fixture
def headers_for():
    return auth_headers_for
