"""Refresh token store.

Refresh tokens are opaque, 256-bit random strings. Only their SHA-256 digest
is persisted in a `RefreshSession`; the plaintext goes to the client once.

Tokens do not rotate: a token stays valid until it expires or is revoked. A
refresh is accepted only if a single conditional UPDATE (unrevoked and
unexpired) stamps `last_used_at`, so a concurrent revocation is observed
either entirely before or entirely after the check.
"""

from datetime import timedelta
from typing import List, Optional

from structlog import get_logger

from authority.core.exceptions import (
    TokenError,
    TokenExpiredError,
    TokenNotFoundError,
    TokenRevokedError,
)
from authority.domain.entities.account import Account
from authority.domain.entities.refresh_session import RefreshSession
from authority.domain.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory, join_or_begin
from authority.domain.value_objects.tokens import IssuedRefreshToken
from authority.utils.security import generate_urlsafe_token, hash_token, token_prefix, utc_now

logger = get_logger(__name__)

DEVICE_INFO_MAX_LENGTH = 512


class RefreshTokenStore:
    """Persists, verifies and revokes refresh sessions.

    Args:
        uow_factory: Opens a new unit of work.
        ttl: Lifetime of a refresh session.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, ttl: timedelta = timedelta(days=7)):
        self._uow_factory = uow_factory
        self.ttl = ttl

    async def create(
        self, account: Account, device_info: Optional[str] = None, uow: Optional[IUnitOfWork] = None
    ) -> IssuedRefreshToken:
        """Create a refresh session for an account.

        When `uow` is given the session is written in the caller's transaction.
        """
        token = generate_urlsafe_token(32)
        now = utc_now()
        session = RefreshSession(
            token_hash=hash_token(token),
            account_id=account.id,
            device_info=device_info[:DEVICE_INFO_MAX_LENGTH] if device_info else None,
            issued_at=now,
            expires_at=now + self.ttl,
        )
        async with join_or_begin(self._uow_factory, uow) as tx:
            await tx.refresh_sessions.add(session)
        logger.info(
            "Refresh session created",
            account_id=account.id,
            session_id=session.id,
            expires_at=session.expires_at.isoformat(),
        )
        return IssuedRefreshToken(token=token, session=session)

    async def verify_and_consume(self, token: str) -> Account:
        """Return the owner of a live refresh token.

        Raises:
            TokenNotFoundError: No session has this token.
            TokenExpiredError: The session is past `expires_at`, whether or not
                it was revoked. The session is marked revoked as a side effect.
            TokenRevokedError: The session was revoked, or its account deleted.
        """
        if not token:
            raise TokenNotFoundError("Refresh token not recognized", code="refresh_token_not_found")

        token_hash = hash_token(token)
        now = utc_now()
        failure: TokenError

        async with self._uow_factory() as uow:
            if await uow.refresh_sessions.mark_used_if_active(token_hash, now):
                session = await uow.refresh_sessions.get_by_token_hash(token_hash)
                account = None
                if session.account_id is not None:
                    account = await uow.accounts.get_by_id(session.account_id)
                if account is not None:
                    logger.debug("Refresh token accepted", account_id=account.id, session_id=session.id)
                    return account
                failure = TokenRevokedError(
                    "Refresh token has been revoked", code="refresh_token_revoked"
                )
            else:
                session = await uow.refresh_sessions.get_by_token_hash(token_hash)
                if session is None:
                    failure = TokenNotFoundError(
                        "Refresh token not recognized", code="refresh_token_not_found"
                    )
                elif session.is_expired(now):
                    # Committed with the block so the expired use stays on record.
                    await uow.refresh_sessions.revoke(token_hash, now)
                    failure = TokenExpiredError(
                        "Refresh token has expired", code="refresh_token_expired"
                    )
                else:
                    failure = TokenRevokedError(
                        "Refresh token has been revoked", code="refresh_token_revoked"
                    )

        logger.info("Refresh token rejected", reason=failure.code, token=token_prefix(token))
        raise failure

    async def revoke(self, token: str) -> bool:
        """Revoke one session. Unknown or already revoked tokens are a no-op.

        Returns:
            True if this call revoked the session.
        """
        if not token:
            return False
        async with self._uow_factory() as uow:
            changed = await uow.refresh_sessions.revoke(hash_token(token), utc_now())
        logger.info("Refresh token revoke requested", token=token_prefix(token), changed=changed)
        return changed

    async def revoke_all(self, account: Account, uow: Optional[IUnitOfWork] = None) -> int:
        """Revoke every live session of an account. Returns the number revoked."""
        async with join_or_begin(self._uow_factory, uow) as tx:
            count = await tx.refresh_sessions.revoke_all_for_account(account.id, utc_now())
        logger.info("All refresh sessions revoked", account_id=account.id, count=count)
        return count

    async def active_sessions(self, account: Account) -> List[RefreshSession]:
        async with self._uow_factory() as uow:
            return await uow.refresh_sessions.list_active_for_account(account.id, utc_now())

    async def purge_expired(self, retention: timedelta = timedelta(0)) -> int:
        """Delete sessions that expired more than `retention` ago."""
        cutoff = utc_now() - retention
        async with self._uow_factory() as uow:
            count = await uow.refresh_sessions.delete_expired_before(cutoff)
        if count:
            logger.info("Expired refresh sessions purged", count=count, cutoff=cutoff.isoformat())
        return count
