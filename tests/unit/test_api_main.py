"""Tests for the FastAPI application, exception handlers and middleware."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import Query
from httpx import ASGITransport, AsyncClient

from jobmarket.core.errors import (
    ConfigurationError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from jobmarket.main import create_app, lifespan


@pytest.fixture
def app():
    """Create test application instance."""
    return create_app()


@pytest.fixture
async def client(app):
    """Client that returns handler responses for unhandled exceptions."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    async def test_health_returns_healthy(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_v1_router_mounted(self, client):
        """Unknown paths under /api/v1 are plain 404s."""
        response = await client.get("/api/v1/nonexistent")

        assert response.status_code == 404


class TestExceptionHandlers:
    """APIError subclasses render in the error envelope."""

    @pytest.mark.parametrize(
        ("error", "status_code", "code"),
        [
            (ValidationError("Invalid input"), 400, "VALIDATION_ERROR"),
            (UnauthorizedError(), 401, "UNAUTHORIZED"),
            (NotFoundError("Listing", "abc"), 404, "NOT_FOUND"),
            (
                InvalidStateError("Refused", code="EXTENSION_FAILED"),
                422,
                "EXTENSION_FAILED",
            ),
            (InternalError("Sweep failed"), 500, "INTERNAL_ERROR"),
            (ConfigurationError("RESEND_API_KEY"), 503, "CONFIGURATION_ERROR"),
        ],
    )
    async def test_api_errors_use_envelope(self, app, client, error, status_code, code):
        @app.get("/test/api-error")
        async def raise_error():
            raise error

        response = await client.get("/test/api-error")

        assert response.status_code == status_code
        body = response.json()
        assert "data" not in body
        assert body["error"]["code"] == code
        assert body["error"]["message"] == error.message

    async def test_request_validation_returns_400_with_details(self, app, client):
        """FastAPI validation errors become VALIDATION_ERROR with field details."""

        @app.get("/test/validated")
        async def validated(count: int = Query(ge=1)):
            return {"count": count}

        response = await client.get("/test/validated", params={"count": 0})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == "Request validation failed"
        assert error["details"][0]["loc"] == ["query", "count"]

    async def test_unhandled_exception_returns_generic_500(self, app, client):
        """Unexpected exceptions never leak their message."""

        @app.get("/test/boom")
        async def boom():
            msg = "connection to prod-db-01 refused"
            raise RuntimeError(msg)

        response = await client.get("/test/boom")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert error["message"] == "An unexpected error occurred"
        assert "prod-db-01" not in response.text


class TestCORSMiddleware:
    """Tests for CORS middleware configuration."""

    async def test_allows_configured_origin(self, client):
        response = await client.options(
            "/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200
        assert (
            response.headers.get("access-control-allow-origin")
            == "http://localhost:3000"
        )

    async def test_denies_unconfigured_origin(self):
        with patch(
            "jobmarket.main.settings.allowed_origins", ["http://allowed-origin.com"]
        ):
            test_app = create_app()
            transport = ASGITransport(app=test_app)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                response = await ac.options(
                    "/health",
                    headers={
                        "Origin": "http://malicious-site.com",
                        "Access-Control-Request-Method": "GET",
                    },
                )

        allowed_origin = response.headers.get("access-control-allow-origin")
        assert allowed_origin != "http://malicious-site.com"


class TestSecurityHeadersMiddleware:
    """Tests for security headers middleware."""

    @pytest.mark.parametrize(
        ("header", "value"),
        [
            ("x-frame-options", "DENY"),
            ("x-content-type-options", "nosniff"),
            ("referrer-policy", "strict-origin-when-cross-origin"),
            ("content-security-policy", "default-src 'none'; frame-ancestors 'none'"),
        ],
    )
    async def test_header_on_every_response(self, client, header, value):
        response = await client.get("/health")

        assert response.headers.get(header) == value

    async def test_cache_control_on_api_endpoints(self, client):
        """API responses are never cached."""
        response = await client.get("/api/v1/nonexistent")

        assert response.headers.get("cache-control") == "no-store, max-age=0"

    async def test_cache_control_not_on_health(self, client):
        response = await client.get("/health")

        assert response.headers.get("cache-control") is None

    async def test_hsts_not_in_development(self, client):
        response = await client.get("/health")

        assert response.headers.get("strict-transport-security") is None

    async def test_hsts_in_production(self, client, monkeypatch):
        monkeypatch.setattr("jobmarket.main.settings.environment", "production")

        response = await client.get("/health")

        assert (
            response.headers.get("strict-transport-security")
            == "max-age=31536000; includeSubDomains"
        )


class TestLifespan:
    """Application shutdown releases the connection pool."""

    async def test_engine_disposed_on_shutdown(self, app):
        with patch("jobmarket.main.engine") as mock_engine:
            mock_engine.dispose = AsyncMock()

            async with lifespan(app):
                mock_engine.dispose.assert_not_awaited()

        mock_engine.dispose.assert_awaited_once()
