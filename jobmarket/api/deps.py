"""Shared dependencies for API endpoints.

Local-first mode uses DEFAULT_USER_ID; hosted mode validates a JWT from
the session cookie. Scheduled trigger endpoints authenticate with a shared
bearer secret instead of a user session.
"""

import hmac
import uuid
from typing import Annotated

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.core.config import settings
from jobmarket.core.database import get_db
from jobmarket.core.email import EmailSender, get_email_sender
from jobmarket.core.errors import UnauthorizedError

_JWT_AUDIENCE = "jobmarket"
_BEARER_PREFIX = "Bearer "


async def get_current_user_id(request: Request) -> uuid.UUID:
    """Get current user ID from auth context.

    Validates the JWT from the httpOnly cookie when auth is enabled and
    falls back to DEFAULT_USER_ID when it is not.

    Args:
        request: HTTP request (injected by FastAPI).

    Returns:
        UUID of the current authenticated user.

    Raises:
        UnauthorizedError: For any auth failure. The message never says why.
    """
    if not settings.auth_enabled:
        if settings.default_user_id is None:
            raise UnauthorizedError()
        return settings.default_user_id

    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise UnauthorizedError()

    try:
        payload = jwt.decode(
            token,
            settings.auth_secret.get_secret_value(),
            algorithms=["HS256"],
            audience=_JWT_AUDIENCE,
            issuer=settings.auth_issuer,
        )
        return uuid.UUID(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
        raise UnauthorizedError() from exc


def verify_cron_token(request: Request) -> None:
    """Check the shared secret sent by the scheduler.

    When CRON_SECRET_TOKEN is empty (development) every caller is accepted;
    production settings refuse to load without one.

    Raises:
        UnauthorizedError: Missing or wrong bearer token.
    """
    expected = settings.cron_secret_token.get_secret_value()
    if not expected:
        return

    header = request.headers.get("authorization", "")
    if not header.startswith(_BEARER_PREFIX):
        raise UnauthorizedError("Unauthorized")
    supplied = header[len(_BEARER_PREFIX) :]
    if not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise UnauthorizedError("Unauthorized")


# Reusable type aliases for dependency injection
CurrentUserId = Annotated[uuid.UUID, Depends(get_current_user_id)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Mailer = Annotated[EmailSender, Depends(get_email_sender)]
