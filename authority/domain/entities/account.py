from datetime import datetime  # For timestamp fields
from enum import Enum  # For type-safe role and provider enumerations
from typing import Optional  # For optional fields

from sqlalchemy import Enum as SAEnum  # For enum columns
from sqlmodel import Column, Field, Index, SQLModel, String  # For ORM and table definition

from authority.infrastructure.database.types import UTCDateTime
from authority.utils.security import utc_now


class Role(str, Enum):
    """Role of an account within the system (RBAC).

    Attributes:
        USER: Standard account with regular access rights.
        ADMIN: Administrative privileges for account management.
    """

    USER = "USER"
    ADMIN = "ADMIN"


class AuthProvider(str, Enum):
    """Origin of an account: local password or a social identity provider."""

    LOCAL = "LOCAL"
    GOOGLE = "GOOGLE"
    FACEBOOK = "FACEBOOK"
    MICROSOFT = "MICROSOFT"

    @classmethod
    def from_tag(cls, tag: str) -> "AuthProvider":
        """Parse a provider tag case-insensitively.

        Raises:
            ValueError: If the tag names no known provider.
        """
        try:
            return cls(tag.strip().upper())
        except (AttributeError, ValueError):
            raise ValueError(f"Unknown provider tag: {tag!r}") from None


class Account(SQLModel, table=True):
    """Represents one identity and acts as the Aggregate Root.

    Refresh sessions and email verification tickets belong to exactly one
    account and are invalidated en masse when the account changes in a
    security-relevant way or is deleted.

    Attributes:
        id: The unique, immutable identifier (primary key).
        email: Unique email address, stored lower-cased.
        password_hash: Bcrypt hash. Null for accounts created by social login.
        role: The account's role, never null.
        email_verified: Whether ownership of the email has been proven.
        provider: Where the account originated.
        provider_external_id: Identifier assigned by the social provider.
        password_reset_token_hash: SHA-256 of the outstanding password reset token.
        password_reset_expires_at: Expiry of the outstanding password reset token.
    """

    __tablename__ = "accounts"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(
        sa_column=Column(String(320), unique=True, index=True, nullable=False),
        description="Unique, lower-cased email address.",
    )
    password_hash: Optional[str] = Field(default=None, max_length=255)
    role: Role = Field(
        default=Role.USER,
        sa_column=Column(SAEnum(Role, name="account_role"), nullable=False, default=Role.USER),
    )
    email_verified: bool = Field(default=False)
    provider: AuthProvider = Field(
        default=AuthProvider.LOCAL,
        sa_column=Column(
            SAEnum(AuthProvider, name="auth_provider"), nullable=False, default=AuthProvider.LOCAL
        ),
    )
    provider_external_id: Optional[str] = Field(default=None, max_length=255)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    avatar_url: Optional[str] = Field(default=None, max_length=1024)
    phone: Optional[str] = Field(default=None, max_length=32)
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False)
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime, nullable=True)
    )
    password_changed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime, nullable=True)
    )
    email_changed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime, nullable=True)
    )
    password_reset_token_hash: Optional[str] = Field(default=None, max_length=64, index=True)
    password_reset_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime, nullable=True)
    )

    __table_args__ = (
        Index(
            "ux_accounts_provider_external_id", "provider", "provider_external_id", unique=True
        ),
        {"extend_existing": True, "sqlite_autoincrement": True},
    )

    @staticmethod
    def normalize_email(email: str) -> str:
        """Emails are compared case-insensitively and stored lower-cased."""
        return email.strip().lower()

    @property
    def is_social(self) -> bool:
        return self.provider != AuthProvider.LOCAL

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def touch(self, now: Optional[datetime] = None) -> None:
        self.updated_at = now or utc_now()

    def set_password_hash(self, password_hash: str, now: Optional[datetime] = None) -> None:
        """Replace the password hash and clear any outstanding reset token."""
        now = now or utc_now()
        self.password_hash = password_hash
        self.password_changed_at = now
        self.password_reset_token_hash = None
        self.password_reset_expires_at = None
        self.touch(now)
