"""API error classes.

HTTP status codes and machine-readable error codes for every failure the
API surfaces. Exception handlers in main.py render each one in the error
envelope.
"""


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Use for request body validation errors, query param errors, etc.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required (401).

    Use when no valid auth credentials provided, including a missing or
    wrong bearer token on scheduled trigger endpoints.
    """

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class NotFoundError(APIError):
    """Resource not found (404).

    Use when requested resource doesn't exist OR doesn't belong to user.
    Wrong ownership is never reported separately.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class InvalidStateError(APIError):
    """Business rule violation (422).

    Use when request is syntactically valid but the backend refused the
    state change (e.g., extending a listing that could not be updated).
    """

    def __init__(self, message: str, code: str = "INVALID_STATE_TRANSITION") -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=422,
        )


class ConfigurationError(APIError):
    """Required credentials or environment are missing (503).

    Raised before any network call so operators can tell a setup problem
    apart from a backend failure.

    Security: Names the missing setting, never its value.
    """

    def __init__(self, setting_name: str) -> None:
        super().__init__(
            code="CONFIGURATION_ERROR",
            message=f"{setting_name} is not configured",
            status_code=503,
        )


class InternalError(APIError):
    """Unexpected server error (500).

    Use for unhandled exceptions and failed scheduled runs.
    Never expose stack traces to clients.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        code: str = "INTERNAL_ERROR",
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=500,
        )
