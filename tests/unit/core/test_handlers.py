"""Tests for the exception to HTTP response mapping."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from authority.core.exceptions import (
    AccountNotFoundError,
    AuthorityError,
    EmailAlreadyInUseError,
    InvalidOldPasswordError,
    NotificationError,
    PasswordPolicyError,
    PermissionDeniedError,
    ProviderFetchError,
    ServiceUnavailableError,
    TokenExpiredError,
    UnsupportedProviderError,
)
from authority.core.handlers import register_exception_handlers

CASES = {
    "expired": (TokenExpiredError(code="refresh_token_expired"), 401),
    "conflict": (EmailAlreadyInUseError(), 409),
    "missing": (AccountNotFoundError(), 404),
    "policy": (PasswordPolicyError("too short", code="password_too_short"), 422),
    "old-password": (InvalidOldPasswordError(), 400),
    "provider": (UnsupportedProviderError("MYSPACE"), 400),
    "forbidden": (PermissionDeniedError(), 403),
    "upstream": (ProviderFetchError("down"), 502),
    "unavailable": (ServiceUnavailableError(), 503),
    "other": (NotificationError("smtp"), 500),
}


@pytest.fixture
def app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/raise/{case}")
    async def raise_case(case: str):
        raise CASES[case][0]

    return app


class TestExceptionHandlers:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("case", sorted(CASES))
    async def test_status_and_body(self, app, case):
        exc, expected_status = CASES[case]
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get(f"/raise/{case}")

        assert response.status_code == expected_status
        assert response.json() == {"detail": exc.message, "code": exc.code}

    @pytest.mark.asyncio
    async def test_unauthorized_carries_challenge(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/raise/expired")
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["code"] == "refresh_token_expired"


def test_every_error_has_a_message_and_code():
    exc = AuthorityError("boom")
    assert str(exc) == "boom"
    assert exc.code == "generic_error"
    assert UnsupportedProviderError("MYSPACE").provider == "MYSPACE"
