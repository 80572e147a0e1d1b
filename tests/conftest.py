"""Shared fixtures: an in-memory database and an API client with a fake mailer."""

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

from fastapi.testclient import TestClient

from paycheck import app
from paycheck.db.session import Base, get_db
from paycheck.services.mailer import EmailDeliveryError, get_email_service


class FakeMailer:
    """Collects outgoing mail instead of talking to SMTP."""

    def __init__(self):
        self.outbox = []
        self.fail = False

    def _deliver(self, kind, to, **context):
        if self.fail:
            raise EmailDeliveryError("smtp unavailable")
        self.outbox.append({"kind": kind, "to": to, **context})

    def send_welcome_email(self, email, name):
        self._deliver("welcome", email, name=name)

    def send_password_reset_email(self, email, name, new_password):
        self._deliver("reset", email, name=name, new_password=new_password)


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def client(db_session, mailer):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_email_service] = lambda: mailer
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def register_and_login(client, email="ada@example.com", password="hunter22", name="Ada"):
    client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}
