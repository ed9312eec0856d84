"""Repository interfaces for abstracting data persistence in the domain layer.

These abstract base classes are the "ports" through which domain components
read and write accounts, refresh sessions and verification tickets. The
concrete SQLAlchemy adapters live in `authority.infrastructure.repositories`.
Repositories never commit; the unit of work that owns them does.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from authority.domain.entities.account import Account, AuthProvider
from authority.domain.entities.email_verification_ticket import EmailVerificationTicket
from authority.domain.entities.refresh_session import RefreshSession


class IAccountRepository(ABC):
    """Persistence contract for the `Account` aggregate root."""

    @abstractmethod
    async def get_by_id(self, account_id: int, for_update: bool = False) -> Optional[Account]:
        """Retrieves an account by id.

        Args:
            account_id: The account's primary key.
            for_update: Lock the row for the rest of the transaction.

        Returns:
            The account, or `None` if it does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_by_email(self, email: str, for_update: bool = False) -> Optional[Account]:
        """Retrieves an account by email address (case-insensitively)."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_provider_identity(
        self, provider: AuthProvider, external_id: str
    ) -> Optional[Account]:
        """Retrieves the account that owns a `(provider, external_id)` pair."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_password_reset_token_hash(self, token_hash: str) -> Optional[Account]:
        raise NotImplementedError

    @abstractmethod
    async def list_all(self, offset: int = 0, limit: int = 100) -> List[Account]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, account: Account) -> Account:
        """Inserts a new account and assigns its id.

        Raises:
            EmailAlreadyInUseError: If the email or provider identity is taken.
        """
        raise NotImplementedError

    @abstractmethod
    async def save(self, account: Account) -> Account:
        """Flushes changes made to a loaded account."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, account: Account) -> None:
        raise NotImplementedError


class IRefreshSessionRepository(ABC):
    """Persistence contract for refresh sessions.

    State changes are conditional single-statement updates so concurrent
    callers observe a revocation either fully before or fully after.
    """

    @abstractmethod
    async def add(self, session: RefreshSession) -> RefreshSession:
        raise NotImplementedError

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[RefreshSession]:
        raise NotImplementedError

    @abstractmethod
    async def mark_used_if_active(self, token_hash: str, now: datetime) -> bool:
        """Stamps `last_used_at` only if the session is unrevoked and unexpired.

        Returns:
            True if exactly one live session matched.
        """
        raise NotImplementedError

    @abstractmethod
    async def revoke(self, token_hash: str, now: datetime) -> bool:
        """Revokes one session if it is not revoked yet.

        Returns:
            True if the session changed state.
        """
        raise NotImplementedError

    @abstractmethod
    async def revoke_all_for_account(self, account_id: int, now: datetime) -> int:
        """Revokes every unrevoked session of an account and returns the count."""
        raise NotImplementedError

    @abstractmethod
    async def detach_account(self, account_id: int) -> int:
        """Clears the owner reference of an account's sessions before it is deleted."""
        raise NotImplementedError

    @abstractmethod
    async def list_active_for_account(self, account_id: int, now: datetime) -> List[RefreshSession]:
        raise NotImplementedError

    @abstractmethod
    async def delete_expired_before(self, cutoff: datetime) -> int:
        """Physically removes sessions that expired before `cutoff`."""
        raise NotImplementedError


class IVerificationTicketRepository(ABC):
    """Persistence contract for email verification tickets."""

    @abstractmethod
    async def add(self, ticket: EmailVerificationTicket) -> EmailVerificationTicket:
        raise NotImplementedError

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[EmailVerificationTicket]:
        raise NotImplementedError

    @abstractmethod
    async def get_latest_unverified_for_account(
        self, account_id: int
    ) -> Optional[EmailVerificationTicket]:
        raise NotImplementedError

    @abstractmethod
    async def delete_unverified_for_account(self, account_id: int) -> int:
        raise NotImplementedError

    @abstractmethod
    async def mark_verified_if_unverified(self, ticket_id: int, now: datetime) -> bool:
        """Stamps `verified_at` only if it is still null.

        Returns:
            True if this call consumed the ticket.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete_for_account(self, account_id: int) -> int:
        raise NotImplementedError

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        raise NotImplementedError
