from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("INTERNAL_API_TOKEN", "test-internal-token")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskhub.config import settings
from taskhub.database import get_db, get_session_factory
from taskhub.main import app
from taskhub.middleware.auth import create_access_token
from taskhub.models import Base
from taskhub.services.email_client import EmailDeliveryError, get_email_client


class FakeEmailSender:
    """Records every email instead of calling Resend; addresses in ``failing`` raise."""

    def __init__(self) -> None:
        self.sent: list[dict[str, str]] = []
        self.failing: set[str] = set()

    def send(self, to: str, subject: str, html: str) -> str:
        if to in self.failing:
            raise EmailDeliveryError(f"Email to {to} rejected: HTTP 500")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return f"msg-{len(self.sent)}"

    def recipients(self) -> list[str]:
        return [message["to"] for message in self.sent]


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def email_sender():
    return FakeEmailSender()


@pytest.fixture()
def client(session_factory, email_sender):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_email_client] = lambda: email_sender
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def internal_headers() -> dict[str, str]:
    return {"X-Internal-Token": settings.INTERNAL_API_TOKEN}


def sync_user(client: TestClient, user_id: str, name: str | None = None) -> dict:
    r = client.post(
        "/api/v1/users/sync",
        json={"id": user_id, "email": f"{user_id}@example.com", "name": name or user_id.title()},
        headers=internal_headers(),
    )
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture()
def team(client):
    """Workspace "acme" owned by ``owner`` (ADMIN) with ``lead``, ``member`` and ``assignee`` as MEMBERs.

    Project "Launch" has ``lead`` as team lead and ``member`` and ``assignee``
    as project members. ``outsider`` belongs to no workspace but the default one.
    """
    for user_id in ("owner", "lead", "member", "assignee", "outsider"):
        sync_user(client, user_id)

    r = client.post(
        "/api/v1/workspaces",
        json={"name": "Acme", "slug": "acme"},
        headers=auth_headers("owner"),
    )
    assert r.status_code == 201, r.text
    workspace_id = r.json()["id"]

    for user_id in ("lead", "member", "assignee"):
        r = client.post(
            f"/api/v1/workspaces/{workspace_id}/members",
            json={"email": f"{user_id}@example.com"},
            headers=auth_headers("owner"),
        )
        assert r.status_code == 201, r.text

    r = client.post(
        "/api/v1/projects",
        json={
            "workspace_id": workspace_id,
            "name": "Launch",
            "team_lead": {"kind": "id", "id": "lead"},
            "team_members": [
                {"kind": "id", "id": "member"},
                {"kind": "email", "email": "assignee@example.com"},
            ],
        },
        headers=auth_headers("owner"),
    )
    assert r.status_code == 201, r.text
    project_id = r.json()["id"]

    return {"workspace_id": workspace_id, "project_id": project_id}
