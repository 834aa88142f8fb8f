from __future__ import annotations

from sqlalchemy import select

from conftest import auth_headers, internal_headers, sync_user
from taskhub.config import settings
from taskhub.models import Project, ProjectMember, TaskAssignee, Workspace, WorkspaceMember
from taskhub.schemas.workspace import WorkspaceDescriptor
from taskhub.services import workspace_service
from taskhub.services.workspace_service import ensure_workspace


def test_first_synced_user_owns_default_workspace(client):
    sync_user(client, "alice")
    sync_user(client, "bob")

    r = client.get("/api/v1/workspaces", headers=auth_headers("bob"))
    assert r.status_code == 200
    [workspace] = r.json()
    assert workspace["slug"] == settings.DEFAULT_WORKSPACE_SLUG
    assert workspace["owner_id"] == "alice"
    roles = {m["user_id"]: m["role"] for m in workspace["members"]}
    assert roles == {"alice": "ADMIN", "bob": "MEMBER"}


def test_repeated_sync_does_not_duplicate_membership(client, db_session):
    sync_user(client, "alice")
    sync_user(client, "alice", name="Alice Renamed")

    members = db_session.scalars(select(WorkspaceMember).where(WorkspaceMember.user_id == "alice")).all()
    assert len(members) == 1
    r = client.get("/api/v1/users/me", headers=auth_headers("alice"))
    assert r.json()["name"] == "Alice Renamed"


def test_sync_rejects_email_taken_by_another_user(client):
    sync_user(client, "alice")
    r = client.post(
        "/api/v1/users/sync",
        json={"id": "imposter", "email": "alice@example.com"},
        headers=internal_headers(),
    )
    assert r.status_code == 400


def test_create_workspace_and_duplicate_slug(client):
    sync_user(client, "alice")
    r = client.post("/api/v1/workspaces", json={"name": "Studio", "slug": "Studio"}, headers=auth_headers("alice"))
    assert r.status_code == 201, r.text
    assert r.json()["slug"] == "studio"
    assert r.json()["members"][0]["role"] == "ADMIN"

    r = client.post("/api/v1/workspaces", json={"name": "Again", "slug": "studio"}, headers=auth_headers("alice"))
    assert r.status_code == 400


def test_workspace_visible_to_members_only(client, team):
    url = f"/api/v1/workspaces/{team['workspace_id']}"
    assert client.get(url, headers=auth_headers("member")).status_code == 200
    assert client.get(url, headers=auth_headers("outsider")).status_code == 403
    assert client.get("/api/v1/workspaces/missing", headers=auth_headers("owner")).status_code == 404


def test_add_member_rules(client, team):
    url = f"/api/v1/workspaces/{team['workspace_id']}/members"
    r = client.post(url, json={"email": "outsider@example.com"}, headers=auth_headers("member"))
    assert r.status_code == 403
    r = client.post(url, json={"email": "ghost@example.com"}, headers=auth_headers("owner"))
    assert r.status_code == 404
    r = client.post(url, json={"email": "member@example.com"}, headers=auth_headers("owner"))
    assert r.status_code == 400
    r = client.post(url, json={"email": "outsider@example.com", "role": "ADMIN"}, headers=auth_headers("owner"))
    assert r.status_code == 201
    assert r.json()["role"] == "ADMIN"


def test_promoted_admin_can_create_projects(client, team):
    r = client.patch(
        f"/api/v1/workspaces/{team['workspace_id']}/members/lead",
        json={"role": "ADMIN"},
        headers=auth_headers("owner"),
    )
    assert r.status_code == 200
    r = client.post(
        "/api/v1/projects",
        json={"workspace_id": team["workspace_id"], "name": "Lead's project"},
        headers=auth_headers("lead"),
    )
    assert r.status_code == 201


def test_owner_keeps_admin_role(client, team):
    r = client.patch(
        f"/api/v1/workspaces/{team['workspace_id']}/members/owner",
        json={"role": "MEMBER"},
        headers=auth_headers("owner"),
    )
    assert r.status_code == 400


def test_remove_member_rules(client, team):
    base = f"/api/v1/workspaces/{team['workspace_id']}/members"
    assert client.delete(f"{base}/owner", headers=auth_headers("owner")).status_code == 400
    assert client.delete(f"{base}/member", headers=auth_headers("lead")).status_code == 403
    assert client.delete(f"{base}/outsider", headers=auth_headers("owner")).status_code == 404


def test_removing_workspace_member_cleans_up_project_access(client, team, db_session):
    r = client.post(
        "/api/v1/tasks",
        json={"project_id": team["project_id"], "title": "Plan", "assignees": ["assignee"]},
        headers=auth_headers("lead"),
    )
    task_id = r.json()["id"]

    r = client.delete(f"/api/v1/workspaces/{team['workspace_id']}/members/assignee", headers=auth_headers("owner"))
    assert r.status_code == 204

    assert db_session.scalars(select(TaskAssignee).where(TaskAssignee.user_id == "assignee")).all() == []
    assert db_session.scalars(select(ProjectMember).where(ProjectMember.user_id == "assignee")).all() == []
    assert client.get(f"/api/v1/tasks/{task_id}", headers=auth_headers("assignee")).status_code == 403


def test_ensure_workspace_is_idempotent(client, db_session):
    sync_user(client, "alice")
    sync_user(client, "bob")
    descriptor = WorkspaceDescriptor(name="Ops", slug="ops")

    first = ensure_workspace(db_session, descriptor, "alice")
    again = ensure_workspace(db_session, descriptor, "alice")
    joined = ensure_workspace(db_session, descriptor, "bob")

    assert first.id == again.id == joined.id
    assert first.owner_id == "alice"
    roles = sorted((m.user_id, m.role) for m in joined.members)
    assert roles == [("alice", "ADMIN"), ("bob", "MEMBER")]


def test_ensure_workspace_absorbs_concurrent_creation(client, db_session, session_factory, monkeypatch):
    sync_user(client, "alice")
    sync_user(client, "bob")
    descriptor = WorkspaceDescriptor(name="Ops", slug="ops")
    real_lookup = workspace_service.get_workspace_by_slug
    calls = []

    def lookup_losing_the_race(db, slug):
        calls.append(slug)
        if len(calls) == 1:
            # Another request provisions the workspace between our read and our insert.
            other = session_factory()
            workspace = Workspace(name="Ops", slug="ops", owner_id="alice")
            workspace.members.append(WorkspaceMember(user_id="alice", role="ADMIN"))
            other.add(workspace)
            other.commit()
            other.close()
            return None
        return real_lookup(db, slug)

    monkeypatch.setattr(workspace_service, "get_workspace_by_slug", lookup_losing_the_race)

    workspace = ensure_workspace(db_session, descriptor, "bob")

    assert len(calls) == 2
    [stored] = db_session.scalars(select(Workspace).where(Workspace.slug == "ops")).all()
    assert workspace.id == stored.id
    assert stored.owner_id == "alice"
    members = db_session.scalars(select(WorkspaceMember).where(WorkspaceMember.workspace_id == stored.id)).all()
    assert sorted((m.user_id, m.role) for m in members) == [("alice", "ADMIN"), ("bob", "MEMBER")]


def test_admin_updates_workspace(client, team):
    url = f"/api/v1/workspaces/{team['workspace_id']}"
    r = client.patch(url, json={"name": "Acme Corp"}, headers=auth_headers("member"))
    assert r.status_code == 403
    r = client.patch(url, json={"name": "Acme Corp", "description": "Marketing"}, headers=auth_headers("owner"))
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Acme Corp"
    assert r.json()["slug"] == "acme"

    r = client.patch(url, json={"description": "Sales"}, headers=auth_headers("owner"))
    assert r.json()["name"] == "Acme Corp"
    assert r.json()["description"] == "Sales"
    assert client.patch("/api/v1/workspaces/missing", json={}, headers=auth_headers("owner")).status_code == 404


def test_delete_workspace_removes_projects(client, team, db_session):
    url = f"/api/v1/workspaces/{team['workspace_id']}"
    assert client.delete(url, headers=auth_headers("lead")).status_code == 403
    assert client.delete(url, headers=auth_headers("owner")).status_code == 204

    assert client.get(url, headers=auth_headers("owner")).status_code == 404
    assert db_session.get(Project, team["project_id"]) is None
    assert db_session.scalars(
        select(WorkspaceMember).where(WorkspaceMember.workspace_id == team["workspace_id"])
    ).all() == []


def _assigned_task(client, team, title, assignee="assignee", **fields):
    body = {"project_id": team["project_id"], "title": title, "assignees": [assignee], **fields}
    r = client.post("/api/v1/tasks", json=body, headers=auth_headers("lead"))
    assert r.status_code == 201, r.text
    return r.json()


def test_member_tasks_and_stats(client, team):
    _assigned_task(client, team, "Draft")
    _assigned_task(client, team, "Ship", status="DONE")
    _assigned_task(client, team, "Late", due_date="2020-01-01T00:00:00Z")
    _assigned_task(client, team, "Someone else's", assignee="member")

    base = f"/api/v1/workspaces/{team['workspace_id']}/members/assignee"
    r = client.get(f"{base}/tasks", headers=auth_headers("member"))
    assert r.status_code == 200, r.text
    assert r.json()["member"]["email"] == "assignee@example.com"
    assert r.json()["member"]["role"] == "MEMBER"
    assert sorted(t["title"] for t in r.json()["tasks"]) == ["Draft", "Late", "Ship"]

    r = client.get(f"{base}/stats", headers=auth_headers("member"))
    assert r.status_code == 200
    assert r.json() == {
        "total_tasks": 3,
        "todo": 2,
        "in_progress": 0,
        "in_review": 0,
        "done": 1,
        "cancelled": 0,
        "overdue": 1,
    }


def test_member_views_check_access_and_membership(client, team):
    base = f"/api/v1/workspaces/{team['workspace_id']}/members"
    assert client.get(f"{base}/assignee/tasks", headers=auth_headers("outsider")).status_code == 403
    assert client.get(f"{base}/assignee/stats", headers=auth_headers("outsider")).status_code == 403
    assert client.get(f"{base}/outsider/tasks", headers=auth_headers("member")).status_code == 404
    assert client.get("/api/v1/workspaces/missing/members/assignee/tasks", headers=auth_headers("member")).status_code == 404


def test_team_members_report_completion(client, team):
    _assigned_task(client, team, "Draft")
    _assigned_task(client, team, "Ship", status="DONE")
    _assigned_task(client, team, "Polish", status="DONE")

    r = client.get(f"/api/v1/workspaces/{team['workspace_id']}/team-members", headers=auth_headers("member"))
    assert r.status_code == 200, r.text
    rows = r.json()
    assert [row["user_id"] for row in rows] == ["owner", "assignee", "lead", "member"]
    assignee = rows[1]
    assert (assignee["task_count"], assignee["completed_tasks"], assignee["completion_rate"]) == (3, 2, 67)
    assert rows[3]["completion_rate"] == 0
    assert rows[0]["role"] == "ADMIN"

    r = client.get(f"/api/v1/workspaces/{team['workspace_id']}/team-members", headers=auth_headers("outsider"))
    assert r.status_code == 403
