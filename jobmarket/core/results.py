"""Tagged results for data backend calls.

Backend calls never raise past a service boundary. Instead they produce one
of three variants that callers branch on explicitly:

- Ok(value): the call succeeded and produced a value.
- NotFound(): the call matched zero rows. A valid empty result wherever the
  lookup is optional (e.g., a user without a subscription).
- BackendError(message): the database rejected or failed the call.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from sqlalchemy.exc import NoResultFound, SQLAlchemyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful backend call.

    Attributes:
        value: The value produced by the call.
    """

    value: T


@dataclass(frozen=True)
class NotFound:
    """Backend call that matched no rows."""

    message: str = "No rows returned"


@dataclass(frozen=True)
class BackendError:
    """Backend call that failed.

    Attributes:
        message: Short description safe to return to internal callers.
        error_type: Exception class name, for logs and diagnostics.
    """

    message: str
    error_type: str | None = None


BackendResult = Union[Ok[T], NotFound, BackendError]


async def run_backend_call(
    operation: Callable[[], Awaitable[T | None]],
    *,
    context: str,
) -> BackendResult[T]:
    """Run a database operation and wrap its outcome in a tagged result.

    ``None`` and ``NoResultFound`` both map to NotFound. Any other
    SQLAlchemyError is logged with context and mapped to BackendError.
    Non-database exceptions propagate (they indicate programming errors,
    not backend failures).

    Args:
        operation: Zero-argument coroutine function performing the call.
        context: Short description of the operation for log messages.

    Returns:
        Ok, NotFound, or BackendError.
    """
    try:
        value = await operation()
    except NoResultFound:
        return NotFound()
    except SQLAlchemyError as exc:
        logger.error("%s failed: %s", context, exc)
        return BackendError(
            message=f"{context} failed",
            error_type=type(exc).__name__,
        )
    if value is None:
        return NotFound()
    return Ok(value)
