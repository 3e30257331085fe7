"""
Pytest configuration.

Settings are read when app.core.config is first imported, so the environment
is prepared before anything from the app package is imported. Every test gets
a fresh in-memory SQLite database shared by the test and the app under test.
"""

import os

os.environ.setdefault("JWT_SECRET", "propeleri-test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.throttle import admin_limiter
from app.club.accounts import login_to_email
from app.core.database import Base, get_db
from app.core.jwt import create_profile_token
from app.core.security import hash_password
from app.models.profile import Profile


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    admin_limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    admin_limiter.reset()


def make_profile(db, login, password="secret-pass", app_role="player", team_role="player", **extra):
    profile = Profile(
        email=login_to_email(login),
        password_hash=hash_password(password),
        first_name=extra.pop("first_name", "Marko"),
        last_name=extra.pop("last_name", "Petrović"),
        app_role=app_role,
        team_role=team_role,
        is_active=extra.pop("is_active", True),
        **extra,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def auth_headers(profile):
    token = create_profile_token(profile)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def profile_factory(db_session):
    def _make(login, **kwargs):
        return make_profile(db_session, login, **kwargs)
    return _make


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def admin_profile(db_session):
    return make_profile(db_session, "coach", app_role="admin")


@pytest.fixture
def player_profile(db_session):
    return make_profile(db_session, "marko.p", jersey_number=17)


@pytest.fixture
def admin_headers(admin_profile):
    return auth_headers(admin_profile)


@pytest.fixture
def player_headers(player_profile):
    return auth_headers(player_profile)
