import os

# must be set before chatboard.config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-bytes")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chatboard.main import app
from chatboard.models import Base
from chatboard.storage import get_db


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def override_get_db():
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    return TestClient(app)


@pytest.fixture()
def make_client(session_factory):
    """Build extra clients, each with its own cookie jar."""

    def _make(**kwargs):
        return TestClient(app, **kwargs)

    return _make


def signup(client, email="a@x.com", username="alice", password="pw1"):
    return client.post(
        "/signup",
        data={"username": username, "email": email, "password": password},
        follow_redirects=False,
    )


def login(client, email="a@x.com", password="pw1"):
    return client.post(
        "/login",
        data={"email": email, "password": password},
        follow_redirects=False,
    )


def submit_chat(client, sender="e", recipient="a", msg="hi"):
    return client.post(
        "/submitchat",
        data={"from": sender, "to": recipient, "msg": msg},
        follow_redirects=False,
    )
