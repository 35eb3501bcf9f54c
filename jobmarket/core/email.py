"""Email sending via Resend API.

Simple HTTP POST to Resend for notification emails. Delivery failures raise
EmailDeliveryError so the notification queue can record them per item.
"""

import logging
from typing import Protocol

import httpx

from jobmarket.core.config import settings
from jobmarket.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"
_RESEND_TIMEOUT = 10.0


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects or fails a send."""


class EmailSender(Protocol):
    """Anything that can deliver a rendered email."""

    async def send(
        self, *, to_email: str, subject: str, html: str, text: str
    ) -> str | None:
        """Deliver one email and return the provider message ID, if any."""
        ...


class ResendEmailSender:
    """EmailSender backed by the Resend HTTP API.

    Args:
        api_key: Resend API key.
        from_address: Sender, e.g. "Open Job Market <notify@example.com>".
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests inject a MockTransport).
    """

    def __init__(
        self,
        *,
        api_key: str,
        from_address: str,
        timeout: float = _RESEND_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._from_address = from_address
        self._timeout = timeout
        self._transport = transport

    async def send(
        self, *, to_email: str, subject: str, html: str, text: str
    ) -> str | None:
        """Send one email through Resend.

        Args:
            to_email: Recipient email address.
            subject: Subject line.
            html: HTML body.
            text: Plain-text body.

        Returns:
            Resend message ID, or None if the response did not include one.

        Raises:
            EmailDeliveryError: On transport failure or non-2xx response.
        """
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.post(
                    _RESEND_API_URL,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    json={
                        "from": self._from_address,
                        "to": [to_email],
                        "subject": subject,
                        "html": html,
                        "text": text,
                    },
                    timeout=self._timeout,
                )
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            msg = f"Failed to send email: provider returned {status_code}"
            raise EmailDeliveryError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Failed to send email: {type(exc).__name__}"
            raise EmailDeliveryError(msg) from exc

        try:
            body = resp.json()
        except ValueError:
            body = None
        message_id = body.get("id") if isinstance(body, dict) else None
        logger.info("Email sent via Resend (message_id=%s)", message_id)
        return message_id


def get_email_sender() -> ResendEmailSender:
    """Build the configured Resend sender.

    Raises:
        ConfigurationError: If RESEND_API_KEY is not set. Raised before any
            network call.
    """
    api_key = settings.resend_api_key.get_secret_value()
    if not api_key:
        raise ConfigurationError("RESEND_API_KEY")
    return ResendEmailSender(api_key=api_key, from_address=settings.email_from)
