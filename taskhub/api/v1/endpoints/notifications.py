from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.middleware.auth import require_internal_token
from taskhub.schemas.notification import DeliveryReport, ReminderSweepReport
from taskhub.services.email_client import EmailSender, get_email_client
from taskhub.services.notification_service import deliver_pending, sweep_reminders

router = APIRouter(
    prefix="/notifications", tags=["notifications"], dependencies=[Depends(require_internal_token)]
)


@router.post("/dispatch", response_model=DeliveryReport)
def dispatch_notifications_endpoint(
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_client),
) -> DeliveryReport:
    """Deliver pending notification events now instead of waiting for the worker."""
    return deliver_pending(db, sender)


@router.post("/reminders/sweep", response_model=ReminderSweepReport)
def sweep_reminders_endpoint(
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_client),
) -> ReminderSweepReport:
    return sweep_reminders(db, sender)
