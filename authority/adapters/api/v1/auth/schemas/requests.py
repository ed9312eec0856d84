from __future__ import annotations

"""Request-payload Pydantic models for the identity endpoints."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from authority.domain.entities.account import Role

# ---------------------------------------------------------------------------
# Credentials and sessions
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Payload expected by ``POST /auth/register``."""

    email: EmailStr = Field(..., examples=["alice@example.com"])
    password: str = Field(..., examples=["Str0ngP@ssw0rd"])
    device_info: Optional[str] = Field(default=None, max_length=512, examples=["Firefox on Linux"])
    phone: Optional[str] = Field(default=None, max_length=32)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    """Payload expected by ``POST /auth/login``."""

    email: EmailStr = Field(..., examples=["alice@example.com"])
    password: str = Field(..., examples=["Str0ngP@ssw0rd"])
    device_info: Optional[str] = Field(default=None, max_length=512)


class RefreshTokenRequest(BaseModel):
    """Payload expected by ``POST /auth/refresh`` and ``POST /auth/logout``."""

    refresh_token: str = Field(..., min_length=1)


class SocialLoginRequest(BaseModel):
    """Payload expected by ``POST /auth/social``.

    For Google the token is the ID token; Facebook and Microsoft take an
    OAuth access token.
    """

    provider: str = Field(..., examples=["GOOGLE"])
    access_token: str = Field(..., examples=["ya29.a0AfH6SMC..."])
    device_info: Optional[str] = Field(default=None, max_length=512)


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


class ChangePasswordRequest(BaseModel):
    """Payload expected by ``PUT /auth/change-password``."""

    current_password: str = Field(..., description="Current password for verification")
    new_password: str = Field(..., description="New password that meets the password policy")


class ForgotPasswordRequest(BaseModel):
    email: EmailStr = Field(..., examples=["alice@example.com"])


class ResetPasswordRequest(BaseModel):
    """Payload expected by ``POST /auth/reset-password``."""

    token: str = Field(..., min_length=1, description="Password reset token received via email")
    new_password: str


class AdminResetPasswordRequest(BaseModel):
    new_password: str


# ---------------------------------------------------------------------------
# Email verification and administration
# ---------------------------------------------------------------------------


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class UpdateRoleRequest(BaseModel):
    role: Role = Field(..., examples=["ADMIN"])
