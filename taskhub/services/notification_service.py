"""Notification triggers, outbox delivery and due-date reminders.

Mutations call the ``*_events`` helpers and :func:`enqueue_event` inside
their own transaction, so an event exists if and only if the mutation
committed. :func:`deliver_pending` later hands each pending event to its
handler; every event settles on its own and a failure is recorded and
logged, never raised to the caller. Reminders are rows keyed by
(task, due date) that :func:`sweep_reminders` fires once the due date has
passed, re-checking the task at that moment.
"""
from __future__ import annotations

import html
import logging
from datetime import datetime
from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from taskhub.config import settings
from taskhub.models.base import as_utc, utcnow
from taskhub.models.comment import Comment
from taskhub.models.enums import TERMINAL_TASK_STATUSES, EventStatus, ReminderStatus
from taskhub.models.notification import NotificationEvent, TaskReminder
from taskhub.models.task import Task
from taskhub.models.user import User
from taskhub.services.email_client import EmailSender
from taskhub.utils.errors import NotificationDispatchFailure

logger = logging.getLogger(__name__)

TASK_ASSIGNED = "task.assigned"
TASK_STATUS_UPDATED = "task.status.updated"
TASK_COMMENT_ADDED = "task.comment.added"

Event = tuple[str, dict[str, Any]]


# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------

def resolve_origin(origin: str | None) -> str:
    return (origin or settings.FRONTEND_URL).rstrip("/")


def assignment_events(task_id: str, assignee_ids: list[str], origin: str | None) -> list[Event]:
    """One ``task.assigned`` event per newly added assignee."""
    return [
        (TASK_ASSIGNED, {"taskId": task_id, "assigneeId": assignee_id, "origin": resolve_origin(origin)})
        for assignee_id in assignee_ids
    ]


def status_change_events(
    task_id: str,
    old_status: str,
    new_status: str | None,
    updater_id: str,
    origin: str | None,
) -> list[Event]:
    """A ``task.status.updated`` event when a status was provided and differs."""
    if new_status is None or new_status == old_status:
        return []
    payload = {
        "taskId": task_id,
        "oldStatus": old_status,
        "newStatus": new_status,
        "updaterId": updater_id,
        "origin": resolve_origin(origin),
    }
    return [(TASK_STATUS_UPDATED, payload)]


def comment_events(comment: Comment, origin: str | None) -> list[Event]:
    folder = comment.task.folder
    payload = {
        "taskId": comment.task_id,
        "commentId": comment.id,
        "commenterId": comment.user_id,
        "containsLinks": len(comment.links) > 0,
        "taskFolder": folder.name if folder else None,
        "origin": resolve_origin(origin),
    }
    return [(TASK_COMMENT_ADDED, payload)]


def enqueue_event(db: Session, name: str, payload: dict[str, Any]) -> NotificationEvent:
    event = NotificationEvent(name=name, payload=payload, status=EventStatus.PENDING.value)
    db.add(event)
    return event


def enqueue_events(db: Session, events: list[Event]) -> list[NotificationEvent]:
    return [enqueue_event(db, name, payload) for name, payload in events]


def schedule_reminder(db: Session, task: Task, origin: str | None = None) -> TaskReminder | None:
    """Schedule a reminder for the task's due date unless one exists or the date has passed."""
    due = as_utc(task.due_date)
    if due is None or due <= utcnow():
        return None
    existing = db.scalars(
        select(TaskReminder).where(TaskReminder.task_id == task.id, TaskReminder.due_date == due)
    ).first()
    if existing:
        return existing
    reminder = TaskReminder(
        task_id=task.id,
        due_date=due,
        status=ReminderStatus.SCHEDULED.value,
        origin=resolve_origin(origin),
    )
    db.add(reminder)
    logger.info("Reminder scheduled for task %s at %s", task.id, due.isoformat())
    return reminder


# ---------------------------------------------------------------------------
# Email fan-out
# ---------------------------------------------------------------------------

def _task_url(origin: str, task: Task) -> str:
    return f"{origin}/taskDetails?projectId={task.project_id}&taskId={task.id}"


def _task_email(heading: str, task: Task, origin: str, extra: str = "") -> str:
    due = as_utc(task.due_date)
    due_line = f"<p>Due: {due.strftime('%Y-%m-%d %H:%M UTC')}</p>" if due else ""
    return (
        f"<h2>{heading}</h2>"
        f"<p><strong>{html.escape(task.title)}</strong></p>"
        f"{due_line}{extra}"
        f'<p><a href="{html.escape(_task_url(origin, task))}">View task</a></p>'
    )


def _send_to_all(sender: EmailSender, recipients: list[User], subject: str, body: str) -> int:
    """Send to every recipient, then raise once if any of them failed."""
    failures: list[str] = []
    for user in recipients:
        try:
            sender.send(user.email, subject, body)
        except Exception as exc:
            logger.warning("Email to %s failed: %s", user.email, exc)
            failures.append(f"{user.email}: {exc}")
    if failures:
        raise NotificationDispatchFailure(
            f"{len(failures)} of {len(recipients)} emails failed: {'; '.join(failures)}"
        )
    return len(recipients)


def handle_task_assigned(db: Session, sender: EmailSender, payload: dict[str, Any]) -> None:
    task = db.get(Task, payload["taskId"])
    assignee = db.get(User, payload["assigneeId"])
    if task is None or assignee is None:
        logger.info("Skipping %s: task or assignee no longer exists", TASK_ASSIGNED)
        return
    origin = resolve_origin(payload.get("origin"))
    # The reminder outlives a failed email: commit it before sending.
    if schedule_reminder(db, task, origin) is not None:
        db.commit()
    _send_to_all(
        sender,
        [assignee],
        f"New task assignment: {task.title}",
        _task_email(f"Hi {html.escape(assignee.name)}, you've been assigned a task", task, origin),
    )


def handle_task_status_updated(db: Session, sender: EmailSender, payload: dict[str, Any]) -> None:
    task = db.get(Task, payload["taskId"])
    if task is None:
        logger.info("Skipping %s: task %s no longer exists", TASK_STATUS_UPDATED, payload["taskId"])
        return
    origin = resolve_origin(payload.get("origin"))
    recipients = [a.user for a in task.assignees]
    extra = (
        f"<p>Status: {html.escape(str(payload['oldStatus']))} &rarr; "
        f"{html.escape(str(payload['newStatus']))}</p>"
    )
    _send_to_all(
        sender,
        recipients,
        f"Task status updated: {task.title}",
        _task_email("A task you're assigned to changed status", task, origin, extra),
    )


def handle_task_comment_added(db: Session, sender: EmailSender, payload: dict[str, Any]) -> None:
    task = db.get(Task, payload["taskId"])
    comment = db.get(Comment, payload["commentId"])
    if task is None or comment is None:
        logger.info("Skipping %s: task or comment no longer exists", TASK_COMMENT_ADDED)
        return
    origin = resolve_origin(payload.get("origin"))
    recipients = [a.user for a in task.assignees if a.user_id != payload["commenterId"]]
    extra = (
        f"<p>{html.escape(comment.user.name)} wrote:</p>"
        f"<blockquote>{html.escape(comment.content)}</blockquote>"
    )
    _send_to_all(
        sender,
        recipients,
        f"New comment on: {task.title}",
        _task_email("New comment on a task you're assigned to", task, origin, extra),
    )


Handler = Callable[[Session, EmailSender, dict[str, Any]], None]

HANDLERS: dict[str, Handler] = {
    TASK_ASSIGNED: handle_task_assigned,
    TASK_STATUS_UPDATED: handle_task_status_updated,
    TASK_COMMENT_ADDED: handle_task_comment_added,
}


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------

def deliver_event(db: Session, sender: EmailSender, event: NotificationEvent) -> None:
    handler = HANDLERS.get(event.name)
    if handler is None:
        raise NotificationDispatchFailure(f"No handler registered for event '{event.name}'")
    handler(db, sender, event.payload)


def deliver_pending(db: Session, sender: EmailSender, limit: int | None = None) -> dict[str, Any]:
    """Deliver pending outbox events one at a time and tally the outcome.

    A failing event is rolled back on its own, marked ``failed`` and logged;
    the remaining events are still attempted.
    """
    stmt = (
        select(NotificationEvent)
        .where(NotificationEvent.status == EventStatus.PENDING.value)
        .order_by(NotificationEvent.created_at.asc())
        .limit(limit or settings.OUTBOX_BATCH_SIZE)
        .with_for_update(skip_locked=True)
    )
    events = list(db.scalars(stmt).all())

    delivered = 0
    failed = 0
    details: list[dict[str, Any]] = []
    for event in events:
        event_id, name = event.id, event.name
        try:
            deliver_event(db, sender, event)
        except Exception as exc:
            db.rollback()
            logger.error("Notification %s (%s) failed: %s", event_id, name, exc)
            event.status = EventStatus.FAILED.value
            event.last_error = str(exc)
            event.attempts += 1
            failed += 1
            details.append({"event_id": event_id, "name": name, "status": "failed", "error": str(exc)})
        else:
            event.status = EventStatus.DELIVERED.value
            event.delivered_at = utcnow()
            event.attempts += 1
            delivered += 1
            details.append({"event_id": event_id, "name": name, "status": "delivered"})
        db.commit()

    if failed:
        logger.warning("%d of %d notification events failed", failed, len(events))
    return {"delivered": delivered, "failed": failed, "details": details}


def sweep_reminders(db: Session, sender: EmailSender, now: datetime | None = None) -> dict[str, Any]:
    """Fire every scheduled reminder whose due date has passed.

    The task is re-read at fire time; the reminder is suppressed when the
    task is DONE or CANCELLED, has no assignees, or its due date moved since
    the reminder was scheduled.
    """
    now = as_utc(now) or utcnow()
    stmt = (
        select(TaskReminder)
        .where(TaskReminder.status == ReminderStatus.SCHEDULED.value, TaskReminder.due_date <= now)
        .order_by(TaskReminder.due_date.asc())
        .with_for_update(skip_locked=True)
    )
    reminders = list(db.scalars(stmt).all())

    sent = 0
    suppressed = 0
    failed = 0
    details: list[dict[str, Any]] = []
    for reminder in reminders:
        reminder_id, task = reminder.id, reminder.task
        reason = None
        if task.status in TERMINAL_TASK_STATUSES:
            reason = f"task is {task.status}"
        elif as_utc(task.due_date) != as_utc(reminder.due_date):
            reason = "due date changed"
        elif not task.assignees:
            reason = "task has no assignees"

        if reason:
            reminder.status = ReminderStatus.SUPPRESSED.value
            suppressed += 1
            details.append({"reminder_id": reminder_id, "task_id": task.id, "status": "suppressed", "reason": reason})
            logger.info("Reminder %s suppressed: %s", reminder_id, reason)
        else:
            origin = resolve_origin(reminder.origin)
            try:
                _send_to_all(
                    sender,
                    [a.user for a in task.assignees],
                    f"Task due: {task.title}",
                    _task_email("A task you're assigned to is due", task, origin),
                )
            except Exception as exc:
                logger.error("Reminder %s failed: %s", reminder_id, exc)
                reminder.status = ReminderStatus.FAILED.value
                failed += 1
                details.append({"reminder_id": reminder_id, "task_id": task.id, "status": "failed", "error": str(exc)})
            else:
                reminder.status = ReminderStatus.SENT.value
                sent += 1
                details.append({"reminder_id": reminder_id, "task_id": task.id, "status": "sent"})
        reminder.processed_at = utcnow()
        db.commit()

    return {"sent": sent, "suppressed": suppressed, "failed": failed, "details": details}


def dispatch_in_background(session_factory: sessionmaker, sender: EmailSender) -> None:
    """Post-commit delivery scheduled by the HTTP layer; never raises."""
    db = session_factory()
    try:
        report = deliver_pending(db, sender)
        logger.debug("Background delivery: %d delivered, %d failed", report["delivered"], report["failed"])
    except Exception:
        logger.exception("Background notification delivery aborted")
    finally:
        db.close()
