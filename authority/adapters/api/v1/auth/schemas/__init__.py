"""Identity API schemas.

Request and response models live in separate modules and are re-exported
here for the routers.
"""

from .requests import (
    AdminResetPasswordRequest,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    SocialLoginRequest,
    UpdateRoleRequest,
    VerifyEmailRequest,
)
from .responses import (
    AccessTokenResponse,
    AccountListResponse,
    AccountOut,
    AuthResponse,
    JwksResponse,
    LogoutAllResponse,
    MessageResponse,
    PublicKeyResponse,
    SessionListResponse,
    SessionOut,
    VerificationResponse,
    VerificationStatusResponse,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "SocialLoginRequest",
    "ChangePasswordRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "AdminResetPasswordRequest",
    "VerifyEmailRequest",
    "ResendVerificationRequest",
    "UpdateRoleRequest",
    "MessageResponse",
    "AccountOut",
    "AuthResponse",
    "AccessTokenResponse",
    "LogoutAllResponse",
    "SessionOut",
    "SessionListResponse",
    "PublicKeyResponse",
    "JwksResponse",
    "VerificationResponse",
    "VerificationStatusResponse",
    "AccountListResponse",
]
