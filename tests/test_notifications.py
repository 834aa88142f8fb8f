"""Outbox delivery and due-date reminders, exercised directly against the service layer."""
from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select

from conftest import FakeEmailSender
from taskhub.models import Comment, NotificationEvent, Project, ProjectMember, Task, TaskAssignee, TaskReminder, User, Workspace
from taskhub.models.base import utcnow
from taskhub.services import notification_service as ns


@pytest.fixture()
def task(db_session):
    users = [User(id=u, name=u.title(), email=f"{u}@example.com") for u in ("lead", "ann", "bob")]
    workspace = Workspace(name="W", slug="w", owner_id="lead")
    project = Project(
        workspace=workspace,
        name="P",
        team_lead="lead",
        members=[ProjectMember(user_id=u) for u in ("lead", "ann", "bob")],
    )
    task = Task(
        project=project,
        title="Quarterly report",
        due_date=utcnow() + timedelta(hours=2),
        assignees=[TaskAssignee(user_id="ann"), TaskAssignee(user_id="bob")],
    )
    db_session.add_all(users)
    db_session.add(task)
    db_session.commit()
    return task


def test_status_change_events_only_on_real_change():
    assert ns.status_change_events("t1", "TODO", None, "u1", None) == []
    assert ns.status_change_events("t1", "TODO", "TODO", "u1", None) == []
    [(name, payload)] = ns.status_change_events("t1", "TODO", "DONE", "u1", "https://app.example.com/")
    assert name == ns.TASK_STATUS_UPDATED
    assert payload == {
        "taskId": "t1",
        "oldStatus": "TODO",
        "newStatus": "DONE",
        "updaterId": "u1",
        "origin": "https://app.example.com",
    }


def test_assignment_events_fall_back_to_frontend_url():
    events = ns.assignment_events("t1", ["a", "b"], None)
    assert [payload["assigneeId"] for _, payload in events] == ["a", "b"]
    assert events[0][1]["origin"] == ns.resolve_origin(None)


def test_deliver_pending_isolates_failures(db_session, task):
    ns.enqueue_events(db_session, ns.assignment_events(task.id, ["ann", "bob"], None))
    db_session.commit()
    sender = FakeEmailSender()
    sender.failing = {"ann@example.com"}

    report = ns.deliver_pending(db_session, sender)

    assert report["delivered"] == 1
    assert report["failed"] == 1
    assert sender.recipients() == ["bob@example.com"]
    failed = db_session.scalars(select(NotificationEvent).where(NotificationEvent.status == "failed")).one()
    assert failed.payload["assigneeId"] == "ann"
    assert failed.attempts == 1
    assert "ann@example.com" in failed.last_error

    # Failed events are not retried.
    assert ns.deliver_pending(db_session, sender)["delivered"] == 0


def test_unknown_event_is_marked_failed(db_session, task):
    ns.enqueue_event(db_session, "task.archived", {"taskId": task.id})
    db_session.commit()
    report = ns.deliver_pending(db_session, FakeEmailSender())
    assert report["failed"] == 1


def test_event_for_deleted_task_is_skipped(db_session, task):
    ns.enqueue_events(db_session, ns.status_change_events(task.id, "TODO", "DONE", "lead", None))
    db_session.delete(task)
    db_session.commit()
    sender = FakeEmailSender()

    report = ns.deliver_pending(db_session, sender)
    assert report["delivered"] == 1
    assert sender.sent == []


def test_assignment_schedules_one_reminder_per_due_date(db_session, task):
    ns.enqueue_events(db_session, ns.assignment_events(task.id, ["ann", "bob"], None))
    db_session.commit()
    ns.deliver_pending(db_session, FakeEmailSender())

    reminders = db_session.scalars(select(TaskReminder)).all()
    assert len(reminders) == 1
    assert reminders[0].status == "scheduled"


def test_reminder_survives_failed_assignment_email(db_session, task):
    ns.enqueue_events(db_session, ns.assignment_events(task.id, ["ann"], None))
    db_session.commit()
    sender = FakeEmailSender()
    sender.failing = {"ann@example.com"}

    report = ns.deliver_pending(db_session, sender)

    assert report["failed"] == 1
    reminder = db_session.scalars(select(TaskReminder)).one()
    assert reminder.task_id == task.id
    assert reminder.status == "scheduled"


def test_comment_email_escapes_user_content(db_session, task):
    task.title = "Q3 <b>report</b>"
    comment = Comment(task=task, user_id="bob", content='<img src=x onerror="alert(1)">')
    db_session.add(comment)
    db_session.commit()
    ns.enqueue_events(db_session, ns.comment_events(comment, None))
    db_session.commit()
    sender = FakeEmailSender()

    assert ns.deliver_pending(db_session, sender)["delivered"] == 1

    [message] = sender.sent
    assert message["to"] == "ann@example.com"
    assert "<img" not in message["html"]
    assert "&lt;img src=x onerror=&quot;alert(1)&quot;&gt;" in message["html"]
    assert "&lt;b&gt;report&lt;/b&gt;" in message["html"]


def test_no_reminder_for_past_due_date(db_session, task):
    task.due_date = utcnow() - timedelta(minutes=5)
    db_session.commit()
    assert ns.schedule_reminder(db_session, task) is None


def _fire_time():
    return utcnow() + timedelta(hours=3)


def test_due_reminder_emails_all_assignees(db_session, task):
    ns.schedule_reminder(db_session, task)
    db_session.commit()
    sender = FakeEmailSender()

    assert ns.sweep_reminders(db_session, sender, now=utcnow())["sent"] == 0

    report = ns.sweep_reminders(db_session, sender, now=_fire_time())
    assert report["sent"] == 1
    assert sorted(sender.recipients()) == ["ann@example.com", "bob@example.com"]
    assert sender.sent[0]["subject"] == "Task due: Quarterly report"

    assert ns.sweep_reminders(db_session, sender, now=_fire_time())["sent"] == 0


@pytest.mark.parametrize("status", ["DONE", "CANCELLED"])
def test_reminder_suppressed_for_finished_task(db_session, task, status):
    ns.schedule_reminder(db_session, task)
    task.status = status
    db_session.commit()
    sender = FakeEmailSender()

    report = ns.sweep_reminders(db_session, sender, now=_fire_time())
    assert report["suppressed"] == 1
    assert sender.sent == []
    assert db_session.scalars(select(TaskReminder)).one().status == "suppressed"


def test_reminder_suppressed_when_due_date_moved(db_session, task):
    ns.schedule_reminder(db_session, task)
    db_session.commit()
    task.due_date = utcnow() + timedelta(days=5)
    db_session.commit()

    report = ns.sweep_reminders(db_session, FakeEmailSender(), now=_fire_time())
    assert report["suppressed"] == 1
    assert report["details"][0]["reason"] == "due date changed"


def test_reminder_suppressed_without_assignees(db_session, task):
    ns.schedule_reminder(db_session, task)
    task.assignees.clear()
    db_session.commit()

    report = ns.sweep_reminders(db_session, FakeEmailSender(), now=_fire_time())
    assert report["suppressed"] == 1


def test_dispatch_in_background_never_raises(session_factory, task):
    class ExplodingSender:
        def send(self, to, subject, html):
            raise RuntimeError("boom")

    db = session_factory()
    ns.enqueue_events(db, ns.assignment_events(task.id, ["ann"], None))
    db.commit()
    db.close()

    ns.dispatch_in_background(session_factory, ExplodingSender())

    db = session_factory()
    assert db.scalars(select(NotificationEvent)).one().status == "failed"
    db.close()
