"""Tests for the Resend email client and notification templates."""

import json

import httpx
import pytest
from pydantic import SecretStr

from jobmarket.core.config import settings
from jobmarket.core.email import (
    EmailDeliveryError,
    ResendEmailSender,
    get_email_sender,
)
from jobmarket.core.errors import ConfigurationError
from jobmarket.services.email_templates import (
    NOTIFICATION_TYPES,
    UnknownTemplateError,
    render_email,
)

_APP_URL = "https://jobs.example.com"


def _sender(handler) -> ResendEmailSender:
    return ResendEmailSender(
        api_key="re_test_key",
        from_address="Job Market <notify@example.com>",
        transport=httpx.MockTransport(handler),
    )


async def _send(sender: ResendEmailSender) -> str | None:
    return await sender.send(
        to_email="owner@test.com",
        subject="Hello",
        html="<p>Hi</p>",
        text="Hi",
    )


# =============================================================================
# ResendEmailSender
# =============================================================================


class TestResendEmailSender:
    """HTTP contract with the Resend API."""

    async def test_posts_message_with_bearer_key(self):
        """The request carries the key, sender, recipient and both bodies."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"id": "msg_123"})

        message_id = await _send(_sender(handler))

        assert message_id == "msg_123"
        [request] = captured
        assert str(request.url) == "https://api.resend.com/emails"
        assert request.headers["Authorization"] == "Bearer re_test_key"
        assert json.loads(request.content) == {
            "from": "Job Market <notify@example.com>",
            "to": ["owner@test.com"],
            "subject": "Hello",
            "html": "<p>Hi</p>",
            "text": "Hi",
        }

    async def test_missing_id_returns_none(self):
        """A success without a message ID still counts as sent."""
        message_id = await _send(_sender(lambda _request: httpx.Response(200, json={})))

        assert message_id is None

    async def test_non_json_success_returns_none(self):
        """A delivered email whose response body is not JSON still succeeds."""

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="queued")

        message_id = await _send(_sender(handler))

        assert message_id is None

    async def test_provider_rejection_raises(self):
        """Non-2xx responses raise EmailDeliveryError with the status."""

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"message": "invalid to"})

        with pytest.raises(EmailDeliveryError, match="provider returned 422"):
            await _send(_sender(handler))

    async def test_transport_failure_raises(self):
        """Network errors raise EmailDeliveryError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(EmailDeliveryError, match="ConnectError"):
            await _send(_sender(handler))


class TestGetEmailSender:
    """Sender construction from settings."""

    def test_missing_key_raises_configuration_error(self, monkeypatch):
        """Without RESEND_API_KEY no sender is built."""
        monkeypatch.setattr(settings, "resend_api_key", SecretStr(""))

        with pytest.raises(ConfigurationError) as exc_info:
            get_email_sender()

        assert exc_info.value.code == "CONFIGURATION_ERROR"
        assert "RESEND_API_KEY" in exc_info.value.message

    def test_configured_key_builds_resend_sender(self, monkeypatch):
        """With a key the Resend sender is returned."""
        monkeypatch.setattr(settings, "resend_api_key", SecretStr("re_live"))

        assert isinstance(get_email_sender(), ResendEmailSender)


# =============================================================================
# Templates
# =============================================================================


class TestJobExpirationTemplate:
    """Expiry reminder email."""

    @pytest.mark.parametrize(
        ("days", "phrase"),
        [(1, "1 day"), (2, "2 days"), (0, "0 days")],
    )
    def test_subject_pluralizes_days(self, days, phrase):
        """Singular for one day, plural otherwise."""
        email = render_email(
            "job_expiration",
            {"job_title": "Welder", "days_until_expiration": days},
            app_url=_APP_URL,
        )

        assert email.subject == f'Your job "Welder" expires in {phrase}'

    def test_links_are_absolute(self):
        """Relative links are prefixed with the app URL."""
        email = render_email(
            "job_expiration",
            {
                "job_title": "Welder",
                "company_name": "Acme",
                "days_until_expiration": 2,
                "expires_at": "2026-03-03T12:00:00+00:00",
                "extend_url": "/jobs/42/extend",
            },
            app_url=_APP_URL + "/",
        )

        assert f"{_APP_URL}/jobs/42/extend" in email.text
        assert f"{_APP_URL}/dashboard/company" in email.text
        assert f"{_APP_URL}/privacy-centre" in email.text
        assert "Tuesday, March 03, 2026 12:00 UTC" in email.text
        assert "Hi Acme," in email.text

    def test_html_escapes_values(self):
        """User-supplied values cannot inject markup."""
        email = render_email(
            "job_expiration",
            {"job_title": "<script>x</script>", "company_name": "A & B"},
            app_url=_APP_URL,
        )

        assert "<script>" not in email.html
        assert "&lt;script&gt;" in email.html
        assert "A &amp; B" in email.html

    def test_missing_company_greets_generically(self):
        """No name renders a neutral greeting."""
        email = render_email("job_expiration", {}, app_url=_APP_URL)

        assert email.text.startswith("Hi there,")


class TestOtherTemplates:
    """Application and message emails."""

    def test_new_application(self):
        """Subject names the job; body links to the application."""
        email = render_email(
            "new_applications",
            {
                "job_title": "Welder",
                "company_name": "Acme",
                "application_id": "app-7",
                "view_url": "/applications/app-7",
            },
            app_url=_APP_URL,
        )

        assert email.subject == 'New application for "Welder"'
        assert "Application ID: app-7" in email.text
        assert f"{_APP_URL}/applications/app-7" in email.html

    def test_message_uses_message_subject(self):
        """The message subject becomes the email subject."""
        email = render_email(
            "messages", {"subject": "Shift swap"}, app_url=_APP_URL
        )

        assert email.subject == "Shift swap"

    def test_message_without_subject(self):
        """Missing subjects fall back to a generic line."""
        email = render_email("messages", {}, app_url=_APP_URL)

        assert email.subject == "New message"
        assert "No subject" in email.text

    def test_known_types(self):
        assert NOTIFICATION_TYPES == {"job_expiration", "new_applications", "messages"}

    def test_unknown_type_raises(self):
        """Types without a template raise UnknownTemplateError."""
        with pytest.raises(UnknownTemplateError, match="weekly_digest"):
            render_email("weekly_digest", {}, app_url=_APP_URL)
