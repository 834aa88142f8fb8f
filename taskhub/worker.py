"""Background notification worker.

Delivers outbox events left pending (for example when the API process died
before its post-response delivery ran) and fires due-date reminders.

    python -m taskhub.worker
"""
import logging
import time

from taskhub.config import settings
from taskhub.database import SessionLocal
from taskhub.services.email_client import EmailClient, EmailSender
from taskhub.services.notification_service import deliver_pending, sweep_reminders

logger = logging.getLogger(__name__)


def run_once(sender: EmailSender) -> None:
    db = SessionLocal()
    try:
        delivery = deliver_pending(db, sender)
        reminders = sweep_reminders(db, sender)
    finally:
        db.close()
    if delivery["delivered"] or delivery["failed"] or reminders["sent"] or reminders["suppressed"]:
        logger.info(
            "Worker pass: %d delivered, %d failed, %d reminders sent, %d suppressed",
            delivery["delivered"],
            delivery["failed"],
            reminders["sent"],
            reminders["suppressed"],
        )


def run_forever(sender: EmailSender, interval: int | None = None) -> None:
    interval = interval or settings.WORKER_POLL_INTERVAL_SECONDS
    logger.info("Notification worker started, polling every %ss", interval)
    while True:
        try:
            run_once(sender)
        except Exception:
            logger.exception("Worker pass failed")
        time.sleep(interval)


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_forever(EmailClient())
