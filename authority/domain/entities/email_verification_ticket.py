from datetime import datetime  # For timestamp fields
from typing import Optional  # For optional fields

from sqlalchemy import ForeignKey, Integer  # For the owner reference
from sqlmodel import Column, Field, SQLModel, String  # For ORM and table definition

from authority.infrastructure.database.types import UTCDateTime
from authority.utils.security import utc_now


class EmailVerificationTicket(SQLModel, table=True):
    """A single-use, time-boxed proof of email ownership.

    At most one unverified, unexpired ticket exists per account: issuing a new
    ticket deletes every earlier unverified one in the same transaction.
    Consumed tickets keep ``verified_at`` so a repeated click can be answered
    with "already verified".
    """

    __tablename__ = "email_verification_tickets"

    id: Optional[int] = Field(default=None, primary_key=True)
    token: str = Field(sa_column=Column(String(64), unique=True, index=True, nullable=False))
    account_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("accounts.id", ondelete="CASCADE"), index=True, nullable=False
        ),
    )
    token_expiry: datetime = Field(sa_column=Column(UTCDateTime, nullable=False))
    verified_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime, nullable=True)
    )
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False)
    )

    @property
    def is_verified(self) -> bool:
        return self.verified_at is not None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) >= self.token_expiry

    def is_pending(self, now: Optional[datetime] = None) -> bool:
        return not self.is_verified and not self.is_expired(now)
