"""Response envelope models.

Success bodies are wrapped in {"data": ...}; errors in {"error": {...}}.
Scheduled trigger endpoints return flat bodies instead.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Success envelope for owner and subscription endpoints.

    `data` may be null, e.g. when the caller has no subscription yet.
    """

    data: T


class ErrorDetail(BaseModel):
    """Body of the error envelope.

    Attributes:
        code: Stable machine-readable code, e.g. "EXTENSION_FAILED".
        message: Text safe to show the caller.
        details: Per-field problems; only set for validation failures.
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Error envelope rendered by every exception handler in main.py."""

    error: ErrorDetail
