"""Thin HTTP client for the Resend transactional email API."""
from __future__ import annotations

import logging
from typing import Protocol

import httpx

from taskhub.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    pass


class EmailSender(Protocol):
    def send(self, to: str, subject: str, html: str) -> str: ...


class EmailClient:
    """Wraps Resend's POST /emails endpoint. Failed sends are raised, never retried."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        sender: str | None = None,
        timeout: int | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.base_url = (base_url or settings.RESEND_BASE_URL).rstrip("/")
        self.sender = sender or settings.SENDER_EMAIL
        self.timeout = timeout if timeout is not None else settings.EMAIL_TIMEOUT

    def send(self, to: str, subject: str, html: str) -> str:
        """Send one HTML email and return the provider's message id."""
        if not self.api_key:
            raise EmailDeliveryError("RESEND_API_KEY is not configured")
        try:
            response = httpx.post(
                f"{self.base_url}/emails",
                json={"from": self.sender, "to": [to], "subject": subject, "html": html},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise EmailDeliveryError(
                f"Email to {to} rejected: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Email to {to} failed: {exc}") from exc
        message_id = response.json().get("id", "")
        logger.info("Email sent to %s (%s)", to, message_id)
        return message_id


def get_email_client() -> EmailSender:
    return EmailClient()
