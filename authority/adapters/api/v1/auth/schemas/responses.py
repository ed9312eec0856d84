from __future__ import annotations

"""Response models for the identity endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from authority.domain.entities.account import Account, AuthProvider, Role
from authority.domain.entities.refresh_session import RefreshSession
from authority.domain.value_objects.tokens import AccessTokenResult, AuthResult
from authority.domain.value_objects.verification import (
    VerificationOutcome,
    VerificationResult,
    VerificationStatus,
)


class MessageResponse(BaseModel):
    """Simple envelope used for acknowledgments."""

    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AccountOut(BaseModel):
    """Public view of an account. Never includes credential material."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: Role
    provider: AuthProvider
    email_verified: bool
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, account: Account) -> "AccountOut":
        return cls.model_validate(account)


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    is_new_account: bool = False
    account: AccountOut

    @classmethod
    def from_result(cls, result: AuthResult) -> "AuthResponse":
        return cls(
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            token_type=result.token_type,
            expires_in=result.expires_in,
            is_new_account=result.is_new_account,
            account=AccountOut.from_entity(result.account),
        )


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int

    @classmethod
    def from_result(cls, result: AccessTokenResult) -> "AccessTokenResponse":
        return cls(
            access_token=result.access_token,
            token_type=result.token_type,
            expires_in=result.expires_in,
        )


class LogoutAllResponse(BaseModel):
    revoked_sessions: int


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    device_info: Optional[str] = None
    issued_at: datetime
    expires_at: datetime
    last_used_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, session: RefreshSession) -> "SessionOut":
        return cls.model_validate(session)


class SessionListResponse(BaseModel):
    sessions: List[SessionOut]


class PublicKeyResponse(BaseModel):
    public_key: str
    algorithm: str
    key_id: str


class JwksResponse(BaseModel):
    keys: List[Dict[str, Any]]


class VerificationResponse(BaseModel):
    outcome: VerificationOutcome
    email: str
    already_verified: bool

    @classmethod
    def from_result(cls, result: VerificationResult) -> "VerificationResponse":
        return cls(
            outcome=result.outcome,
            email=result.email,
            already_verified=result.already_verified,
        )


class VerificationStatusResponse(BaseModel):
    verified: bool
    has_pending_ticket: bool

    @classmethod
    def from_status(cls, status: VerificationStatus) -> "VerificationStatusResponse":
        return cls(verified=status.verified, has_pending_ticket=status.has_pending_ticket)


class AccountListResponse(BaseModel):
    accounts: List[AccountOut]
    offset: int
    limit: int
