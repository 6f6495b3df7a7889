"""Tests for best-effort account emails."""

import logging

from unittest.mock import MagicMock, patch

import httpx
import pytest

from app.config import Settings
from app.services.email import SENDGRID_URL, EmailService, deliver


@pytest.fixture(name="email_service")
def email_service_fixture() -> EmailService:
    settings = Settings()
    settings.SENDGRID_API_KEY = "test-key"
    settings.EMAIL_FROM = "team@example.com"
    return EmailService(settings)


class TestEmailService:
    """Tests for the SendGrid-backed email service."""

    @patch("app.services.email.httpx.post")
    def test_welcome_email_request(self, mock_post, email_service: EmailService):
        mock_post.return_value = MagicMock(spec=httpx.Response)

        assert email_service.send_welcome_email("chris@example.com", "Chris") is True

        args, kwargs = mock_post.call_args
        assert args[0] == SENDGRID_URL
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"
        payload = kwargs["json"]
        assert payload["personalizations"][0]["to"][0]["email"] == "chris@example.com"
        assert payload["from"]["email"] == "team@example.com"
        assert "Chris" in payload["content"][0]["value"]

    @patch("app.services.email.httpx.post")
    def test_cancellation_email_request(self, mock_post, email_service: EmailService):
        mock_post.return_value = MagicMock(spec=httpx.Response)

        assert email_service.send_cancellation_email("chris@example.com", "Chris") is True
        assert mock_post.call_args.kwargs["json"]["personalizations"][0]["to"][0]["email"] == "chris@example.com"

    @patch("app.services.email.httpx.post")
    def test_transport_failure_is_swallowed(self, mock_post, email_service: EmailService):
        mock_post.side_effect = httpx.ConnectError("connection refused")
        assert email_service.send_welcome_email("chris@example.com", "Chris") is False

    @patch("app.services.email.httpx.post")
    def test_error_status_is_swallowed(self, mock_post, email_service: EmailService):
        request = httpx.Request("POST", SENDGRID_URL)
        mock_post.return_value = httpx.Response(401, request=request)
        assert email_service.send_welcome_email("chris@example.com", "Chris") is False

    @patch("app.services.email.httpx.post")
    def test_disabled_without_api_key(self, mock_post):
        settings = Settings()
        settings.SENDGRID_API_KEY = ""
        assert EmailService(settings).send_welcome_email("chris@example.com", "Chris") is False
        mock_post.assert_not_called()

    @patch("app.services.email.httpx.post")
    def test_unexpected_error_is_logged(self, mock_post, email_service: EmailService, caplog):
        mock_post.side_effect = ValueError("bad header value")
        with caplog.at_level(logging.ERROR, logger="task_manager"):
            assert email_service.send_welcome_email("chris@example.com", "Chris") is False
        assert "Unexpected error sending" in caplog.text


class TestDeliver:
    """Tests for background email dispatch."""

    def test_passes_arguments(self):
        send = MagicMock(return_value=True)
        deliver(send, "chris@example.com", "Chris")
        send.assert_called_once_with("chris@example.com", "Chris")

    def test_swallows_and_logs_errors(self, caplog):
        send = MagicMock(side_effect=RuntimeError("boom"))
        with caplog.at_level(logging.ERROR, logger="task_manager"):
            deliver(send, "chris@example.com", "Chris")
        assert "Email dispatch failed" in caplog.text
