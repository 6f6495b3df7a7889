"""Transactional email via the SendGrid HTTP API."""

import logging
from collections.abc import Callable
from typing import Any

import httpx

from app.config import Settings, get_settings

logger = logging.getLogger("task_manager")

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
REQUEST_TIMEOUT_SECONDS = 10.0


class EmailService:
    """Sends account emails. Delivery is best effort: failures are logged, never raised."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.api_key = settings.SENDGRID_API_KEY
        self.sender = settings.EMAIL_FROM

    def send(self, to: str, subject: str, text: str) -> bool:
        """Send a plain-text email. Returns True if the provider accepted it."""
        if not self.api_key:
            logger.info("Email disabled, skipping '%s' to %s", subject, to)
            return False

        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.sender},
            "subject": subject,
            "content": [{"type": "text/plain", "value": text}],
        }
        try:
            response = httpx.post(
                SENDGRID_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to send '%s' to %s: %s", subject, to, e)
            return False
        except Exception:
            logger.exception("Unexpected error sending '%s' to %s", subject, to)
            return False

        logger.info("Sent '%s' to %s", subject, to)
        return True

    def send_welcome_email(self, email: str, name: str) -> bool:
        return self.send(
            to=email,
            subject="Welcome!",
            text=f"Welcome to the app, {name}. Let me know how you like, or don't like, things.",
        )

    def send_cancellation_email(self, email: str, name: str) -> bool:
        return self.send(
            to=email,
            subject="Sorry to see you go",
            text=f"Goodbye, {name}. Is there anything we could have done to keep you on board?",
        )


def deliver(send: Callable[..., bool], *args: Any) -> None:
    """Run an email send as a background task. Errors are logged and dropped."""
    try:
        send(*args)
    except Exception:
        logger.exception("Email dispatch failed")


_email_service: EmailService | None = None


def get_email_service() -> EmailService:
    """Get singleton email service instance."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
