from __future__ import annotations

"""
Global exception handlers for the FastAPI application.

Each domain exception class maps to one HTTP status. The body always carries
the human-readable `detail` and the machine-readable `code`.
"""

from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette import status
from structlog import get_logger

from authority.core.exceptions import (
    AccountNotFoundError,
    AuthenticationError,
    AuthorityError,
    EmailAlreadyInUseError,
    PasswordPolicyError,
    PermissionDeniedError,
    ProviderFetchError,
    ServiceUnavailableError,
    SocialLoginError,
    ValidationError,
)

__all__ = [
    "authentication_error_handler",
    "permission_denied_error_handler",
    "email_already_in_use_error_handler",
    "account_not_found_error_handler",
    "password_policy_error_handler",
    "validation_error_handler",
    "social_login_error_handler",
    "provider_fetch_error_handler",
    "service_unavailable_error_handler",
    "authority_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)


def _error_response(
    status_code: int, exc: AuthorityError, headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


def _client_host(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handles `AuthenticationError` and every token error, returning `401 Unauthorized`.

    The `code` distinguishes expired, revoked, unknown and malformed tokens.
    """
    logger.warning(
        "Authentication failure",
        error=exc.code,
        client_ip=_client_host(request),
        path=request.url.path,
    )
    return _error_response(
        status.HTTP_401_UNAUTHORIZED, exc, headers={"WWW-Authenticate": "Bearer"}
    )


async def permission_denied_error_handler(
    request: Request, exc: PermissionDeniedError
) -> JSONResponse:
    logger.warning("Permission denied", path=request.url.path, client_ip=_client_host(request))
    return _error_response(status.HTTP_403_FORBIDDEN, exc)


async def email_already_in_use_error_handler(
    request: Request, exc: EmailAlreadyInUseError
) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, exc)


async def account_not_found_error_handler(
    request: Request, exc: AccountNotFoundError
) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


async def password_policy_error_handler(request: Request, exc: PasswordPolicyError) -> JSONResponse:
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


async def social_login_error_handler(request: Request, exc: SocialLoginError) -> JSONResponse:
    """Unsupported providers and empty provider tokens are client errors (400)."""
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


async def provider_fetch_error_handler(request: Request, exc: ProviderFetchError) -> JSONResponse:
    logger.warning("Social provider call failed", error=exc.code, path=request.url.path)
    return _error_response(status.HTTP_502_BAD_GATEWAY, exc)


async def service_unavailable_error_handler(
    request: Request, exc: ServiceUnavailableError
) -> JSONResponse:
    logger.error("Service unavailable", path=request.url.path, error=exc.code)
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


async def authority_error_handler(request: Request, exc: AuthorityError) -> JSONResponse:
    """Fallback for any other `AuthorityError`, returning `500 Internal Server Error`."""
    logger.error("Unhandled authority error", path=request.url.path, error=exc.code)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all custom exception handlers with the FastAPI application.

    Starlette resolves handlers along the exception's MRO, so subclasses
    such as `ProviderFetchError` reach their own handler before the one
    registered for their base class.
    """
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(PermissionDeniedError, permission_denied_error_handler)
    app.add_exception_handler(EmailAlreadyInUseError, email_already_in_use_error_handler)
    app.add_exception_handler(AccountNotFoundError, account_not_found_error_handler)
    app.add_exception_handler(PasswordPolicyError, password_policy_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ProviderFetchError, provider_fetch_error_handler)
    app.add_exception_handler(SocialLoginError, social_login_error_handler)
    app.add_exception_handler(ServiceUnavailableError, service_unavailable_error_handler)
    app.add_exception_handler(AuthorityError, authority_error_handler)
