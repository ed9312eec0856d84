from datetime import datetime  # For timestamp fields
from typing import Optional  # For optional fields

from sqlalchemy import ForeignKey, Integer  # For the nullable owner reference
from sqlmodel import Column, Field, SQLModel, String  # For ORM and table definition

from authority.infrastructure.database.types import UTCDateTime
from authority.utils.security import utc_now


class RefreshSession(SQLModel, table=True):
    """One issued refresh credential.

    Only the SHA-256 digest of the opaque token is stored; the plaintext is
    handed to the client once. Sessions are revoked, never deleted, when an
    account logs out or changes credentials. Expired sessions are removed by the
    periodic sweep once the retention window has passed. When the owning account
    is deleted ``account_id`` is nulled and the revoked row is kept for audit.

    Attributes:
        token_hash: SHA-256 hex digest of the opaque refresh token.
        account_id: Owning account, null once the account has been deleted.
        device_info: Free-text client descriptor. Never used for trust decisions.
        issued_at: When the session was created.
        expires_at: After this instant the token is rejected.
        revoked: Whether the session was revoked explicitly or on expired use.
        revoked_at: When the session was revoked.
        last_used_at: Last successful refresh.
    """

    __tablename__ = "refresh_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    token_hash: str = Field(
        sa_column=Column(String(64), unique=True, index=True, nullable=False),
    )
    account_id: Optional[int] = Field(
        default=None,
        sa_column=Column(
            Integer, ForeignKey("accounts.id", ondelete="SET NULL"), index=True, nullable=True
        ),
    )
    device_info: Optional[str] = Field(default=None, max_length=512)
    issued_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False)
    )
    expires_at: datetime = Field(sa_column=Column(UTCDateTime, nullable=False))
    revoked: bool = Field(default=False)
    revoked_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime, nullable=True)
    )
    last_used_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime, nullable=True)
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) >= self.expires_at

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return not self.revoked and not self.is_expired(now)
