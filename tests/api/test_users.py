from __future__ import annotations

import pytest

from conftest import auth_headers, internal_headers, sync_user
from taskhub.config import settings


def test_sync_requires_internal_token(client):
    body = {"id": "alice", "email": "alice@example.com", "name": "Alice"}
    assert client.post("/api/v1/users/sync", json=body).status_code == 403
    r = client.post("/api/v1/users/sync", json=body, headers={"X-Internal-Token": "guess"})
    assert r.status_code == 403
    assert client.get("/api/v1/users/me", headers=auth_headers("alice")).status_code == 404


def test_signed_in_user_cannot_rewrite_another_users_email(client):
    sync_user(client, "alice")
    sync_user(client, "mallory")
    r = client.post(
        "/api/v1/users/sync",
        json={"id": "alice", "email": "mallory-inbox@example.com"},
        headers=auth_headers("mallory"),
    )
    assert r.status_code == 403
    assert client.get("/api/v1/users/me", headers=auth_headers("alice")).json()["email"] == "alice@example.com"


def test_internal_endpoints_disabled_without_configured_token(client, monkeypatch):
    monkeypatch.setattr(settings, "INTERNAL_API_TOKEN", "")
    r = client.post(
        "/api/v1/users/sync",
        json={"id": "alice", "email": "alice@example.com"},
        headers={"X-Internal-Token": ""},
    )
    assert r.status_code == 403


def test_update_profile_changes_only_sent_fields(client):
    sync_user(client, "alice")
    r = client.put("/api/v1/users/profile", json={"name": "Alice Liddell"}, headers=auth_headers("alice"))
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Alice Liddell"
    assert r.json()["email"] == "alice@example.com"

    r = client.put(
        "/api/v1/users/profile",
        json={"image": "https://cdn.example.com/alice.png"},
        headers=auth_headers("alice"),
    )
    assert r.json()["name"] == "Alice Liddell"
    assert r.json()["image"] == "https://cdn.example.com/alice.png"


def test_update_profile_rejects_blank_name(client):
    sync_user(client, "alice")
    r = client.put("/api/v1/users/profile", json={"name": "   "}, headers=auth_headers("alice"))
    assert r.status_code == 422


def test_update_profile_requires_token_and_known_user(client):
    assert client.put("/api/v1/users/profile", json={"name": "X"}).status_code == 401
    assert client.put("/api/v1/users/profile", json={"name": "X"}, headers=auth_headers("ghost")).status_code == 404


@pytest.mark.parametrize("path", ["/api/v1/notifications/dispatch", "/api/v1/notifications/reminders/sweep"])
def test_notification_triggers_need_internal_token(client, path):
    sync_user(client, "alice")
    assert client.post(path, headers=auth_headers("alice")).status_code == 403
    assert client.post(path, headers={"X-Internal-Token": "wrong"}).status_code == 403
    assert client.post(path, headers=internal_headers()).status_code == 200


def test_dispatch_delivers_queued_events(client, team, email_sender):
    r = client.post(
        "/api/v1/tasks",
        json={"project_id": team["project_id"], "title": "Plan", "assignees": ["assignee"]},
        headers=auth_headers("lead"),
    )
    assert r.status_code == 201
    r = client.post("/api/v1/notifications/dispatch", headers=internal_headers())
    assert r.status_code == 200
    assert r.json()["failed"] == 0
    assert "assignee@example.com" in email_sender.recipients()
