from __future__ import annotations

"""Centralized, structured exception hierarchy for the identity authority.

Every error carries a machine-readable `code` for programmatic handling and a
human-readable `message` for logging and API responses. The domain raises
these exceptions; the HTTP layer maps each class to a status code
(see `authority.core.handlers`).

Token errors share one set of classes for every kind of token. The `code`
tells them apart, e.g. ``refresh_token_expired`` versus
``verification_token_expired``, so clients can decide whether to retry,
re-authenticate, or request a new verification email.
"""

from typing import Final

__all__: Final = [
    "AuthorityError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "TokenError",
    "TokenExpiredError",
    "TokenRevokedError",
    "TokenNotFoundError",
    "TokenInvalidError",
    "EmailAlreadyInUseError",
    "AccountNotFoundError",
    "ValidationError",
    "PasswordPolicyError",
    "InvalidOldPasswordError",
    "PermissionDeniedError",
    "SocialLoginError",
    "UnsupportedProviderError",
    "ProviderFetchError",
    "ServiceUnavailableError",
    "ConfigurationError",
    "SigningKeyUnavailableError",
    "NotificationError",
]


class AuthorityError(Exception):
    """Base exception class for all custom errors of the service.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Authentication and token errors (401)
# ---------------------------------------------------------------------------


class AuthenticationError(AuthorityError):
    """Raised for general authentication failures. Maps to `401 Unauthorized`."""

    def __init__(self, message: str = "Authentication failed", code: str = "authentication_error"):
        super().__init__(message, code)


class InvalidCredentialsError(AuthenticationError):
    """Raised when an email/password pair does not authenticate.

    The message is deliberately identical whether the account is missing, has
    no password, or the password is wrong.
    """

    def __init__(self, message: str = "Invalid email or password", code: str = "invalid_credentials"):
        super().__init__(message, code)


class TokenError(AuthenticationError):
    """Base class for refresh, access, verification and password reset token failures."""

    def __init__(self, message: str = "Token rejected", code: str = "token_error"):
        super().__init__(message, code)


class TokenExpiredError(TokenError):
    def __init__(self, message: str = "Token has expired", code: str = "token_expired"):
        super().__init__(message, code)


class TokenRevokedError(TokenError):
    def __init__(self, message: str = "Token has been revoked", code: str = "token_revoked"):
        super().__init__(message, code)


class TokenNotFoundError(TokenError):
    def __init__(self, message: str = "Token not recognized", code: str = "token_not_found"):
        super().__init__(message, code)


class TokenInvalidError(TokenError):
    """Raised for malformed tokens, bad signatures or unknown verification tokens."""

    def __init__(self, message: str = "Token is invalid", code: str = "token_invalid"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Account errors
# ---------------------------------------------------------------------------


class EmailAlreadyInUseError(AuthorityError):
    """Raised when registering an email that already belongs to an account. Maps to 409."""

    def __init__(self, message: str = "Email is already registered", code: str = "email_already_in_use"):
        super().__init__(message, code)


class AccountNotFoundError(AuthorityError):
    """Raised when an account lookup by id fails. Maps to 404."""

    def __init__(self, message: str = "Account not found", code: str = "account_not_found"):
        super().__init__(message, code)


class PermissionDeniedError(AuthorityError):
    """Raised when an authenticated caller lacks the role for an action. Maps to 403."""

    def __init__(self, message: str = "Permission denied", code: str = "permission_denied"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Validation errors (400 / 422)
# ---------------------------------------------------------------------------


class ValidationError(AuthorityError):
    """Raised for general data validation failures. Maps to `400 Bad Request`."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class PasswordPolicyError(ValidationError):
    """Raised when a new password does not satisfy the password policy. Maps to 422."""

    def __init__(self, message: str, code: str = "password_policy_violation"):
        super().__init__(message, code)


class InvalidOldPasswordError(ValidationError):
    """Raised when the current password given during a password change is wrong."""

    def __init__(self, message: str = "Current password is incorrect", code: str = "invalid_old_password"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Social login errors
# ---------------------------------------------------------------------------


class SocialLoginError(AuthorityError):
    def __init__(self, message: str, code: str = "social_login_error"):
        super().__init__(message, code)


class UnsupportedProviderError(SocialLoginError):
    """Raised for unknown or disabled provider tags. Maps to 400."""

    def __init__(self, provider: str, code: str = "unsupported_provider"):
        self.provider = provider
        super().__init__(f"Unsupported social login provider: {provider}", code)


class ProviderFetchError(SocialLoginError):
    """Raised when a provider call fails, times out or returns an unusable profile.

    Maps to `502 Bad Gateway`.
    """

    def __init__(self, message: str, code: str = "provider_fetch_failed"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------


class ServiceUnavailableError(AuthorityError):
    """Wraps unexpected persistence failures so internals never leak. Maps to 503."""

    def __init__(self, message: str = "Service temporarily unavailable", code: str = "service_unavailable"):
        super().__init__(message, code)


class ConfigurationError(AuthorityError):
    def __init__(self, message: str, code: str = "configuration_error"):
        super().__init__(message, code)


class SigningKeyUnavailableError(ConfigurationError):
    """Raised at startup when the JWT signing key is missing or malformed."""

    def __init__(self, message: str, code: str = "signing_key_unavailable"):
        super().__init__(message, code)


class NotificationError(AuthorityError):
    """Raised when an email cannot be rendered or delivered.

    Notifications run in the background, so this is logged, never returned
    to an API caller.
    """

    def __init__(self, message: str, code: str = "notification_failed"):
        super().__init__(message, code)
