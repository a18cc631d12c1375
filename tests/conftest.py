import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import get_db, sqlite_connect_args
from main import app
from models.scheduled_event import Base


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args=sqlite_connect_args("sqlite://"),
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner_a():
    return uuid.uuid4()


@pytest.fixture
def owner_b():
    return uuid.uuid4()


@pytest.fixture
def sprint_review():
    return {
        "title": "Sprint Review",
        "date": "2024-06-01",
        "time": "14:00",
        "duration": 60,
        "type": "team_meeting",
        "priority": "medium",
    }


@pytest.fixture
def client(session_factory):
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
