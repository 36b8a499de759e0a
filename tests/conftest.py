"""
Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database. API tests go through
FastAPI's TestClient with get_db / get_settings overridden; bearer tokens are
real (unsigned-checked) JWTs built with python-jose.

Running tests:
    pytest tests/
"""
import random

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, Settings, get_db, get_settings
import models  # noqa: F401  registers the tables on Base.metadata
from schemas import TournamentCreate, ParticipantRegister
from core.tournament_manager import TournamentManager
from core.participant_manager import ParticipantManager

ADMIN_GROUP = "admin-group-id"


class IdentityRandom(random.Random):
    """Random source whose shuffle keeps the roster order (predictable pairings)."""

    def shuffle(self, x, *args, **kwargs):
        return None


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite://",
        admin_group_id=ADMIN_GROUP,
        dev_mode=False
    )


def make_token(name="Test User", email="test.user@example.com", groups=None):
    claims = {
        "name": name,
        "preferred_username": email,
        "NAVident": "T123456",
        "groups": groups or [],
    }
    return jwt.encode(claims, "not-verified", algorithm="HS256")


@pytest.fixture
def app(db_session, test_settings):
    from main import app as fastapi_app

    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_settings] = lambda: test_settings
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def admin_client(app):
    token = make_token(name="Admin", email="admin@example.com", groups=[ADMIN_GROUP])
    return TestClient(app, headers={"Authorization": f"Bearer {token}"})


@pytest.fixture
def user_client(app):
    token = make_token(name="Player", email="player@example.com", groups=["some-other-group"])
    return TestClient(app, headers={"Authorization": f"Bearer {token}"})


@pytest.fixture
def anon_client(app):
    return TestClient(app)


@pytest.fixture
def make_tournament(db_session):
    """Factory: tournament with `players` registered participants P1..Pn."""
    def _make(rounds=2, players=0, name="Spring Cup"):
        tournament = TournamentManager.create_tournament(
            db_session, TournamentCreate(name=name, rounds=rounds)
        )
        for i in range(1, players + 1):
            ParticipantManager.register(
                db_session,
                ParticipantRegister(
                    tournament_id=tournament.id,
                    name=f"P{i}",
                    email=f"p{i}@example.com"
                )
            )
        return tournament
    return _make
