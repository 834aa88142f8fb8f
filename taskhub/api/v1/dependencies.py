from typing import Callable

from fastapi import BackgroundTasks, Depends
from sqlalchemy.orm import sessionmaker

from taskhub.database import get_session_factory
from taskhub.services.email_client import EmailSender, get_email_client
from taskhub.services.notification_service import dispatch_in_background


def get_notification_dispatcher(
    background_tasks: BackgroundTasks,
    session_factory: sessionmaker = Depends(get_session_factory),
    sender: EmailSender = Depends(get_email_client),
) -> Callable[[], None]:
    """Return a callable that queues outbox delivery to run after the response is sent."""

    def dispatch() -> None:
        background_tasks.add_task(dispatch_in_background, session_factory, sender)

    return dispatch
