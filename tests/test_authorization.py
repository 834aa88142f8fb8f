from __future__ import annotations

import pytest

from taskhub.models import Comment, Project, ProjectMember, Task, TaskAssignee, Workspace, WorkspaceMember
from taskhub.services import authorization as authz
from taskhub.utils.errors import AccessDenied


@pytest.fixture()
def project():
    workspace = Workspace(
        name="Acme",
        slug="acme",
        owner_id="owner",
        members=[
            WorkspaceMember(user_id="admin", role="ADMIN"),
            WorkspaceMember(user_id="lead", role="MEMBER"),
            WorkspaceMember(user_id="member", role="MEMBER"),
            WorkspaceMember(user_id="viewer", role="MEMBER"),
        ],
    )
    return Project(
        workspace=workspace,
        name="Launch",
        team_lead="lead",
        members=[ProjectMember(user_id="lead"), ProjectMember(user_id="member")],
    )


@pytest.fixture()
def task(project):
    # "contractor" is assigned but belongs to neither the project nor the workspace.
    return Task(project=project, title="Ship", assignees=[TaskAssignee(user_id="contractor")])


@pytest.fixture()
def comment(task):
    return Comment(task=task, user_id="member", content="hi")


def test_owner_without_member_row_counts_as_admin(project):
    assert authz.is_workspace_admin_or_owner(project.workspace, "owner")
    assert authz.is_workspace_member(project.workspace, "owner")
    assert authz.is_workspace_admin_or_owner(project.workspace, "admin")
    assert not authz.is_workspace_admin_or_owner(project.workspace, "lead")


@pytest.mark.parametrize(
    "user_id, expected",
    [("owner", True), ("admin", True), ("lead", True), ("member", False), ("viewer", False)],
)
def test_can_mutate_project(project, user_id, expected):
    assert authz.can_mutate_project(project, user_id) is expected


def test_project_access_via_workspace_membership(project):
    assert authz.has_project_access(project, "viewer")
    assert not authz.has_project_access(project, "stranger")


def test_can_create_task(project):
    assert authz.can_create_task(project, "member")
    assert authz.can_create_task(project, "admin")
    assert not authz.can_create_task(project, "viewer")


def test_assignee_can_access_and_mutate_but_not_delete(task):
    assert authz.has_task_access(task, "contractor")
    assert authz.can_mutate_task(task, "contractor")
    assert not authz.can_delete_task(task, "contractor")


def test_project_member_reads_but_cannot_mutate_unassigned_task(task):
    assert authz.has_task_access(task, "member")
    assert not authz.can_mutate_task(task, "member")
    assert authz.can_delete_task(task, "lead")


def test_comment_delete_is_wider_than_edit(comment):
    assert authz.can_edit_comment(comment, "member")
    assert authz.can_edit_comment(comment, "admin")
    assert not authz.can_edit_comment(comment, "lead")

    assert authz.can_delete_comment(comment, "lead")
    assert authz.can_delete_comment(comment, "owner")
    assert not authz.can_delete_comment(comment, "viewer")


def test_require_raises_access_denied():
    authz.require(True, "fine")
    with pytest.raises(AccessDenied, match="nope"):
        authz.require(False, "nope")
