"""Refresh session repository implementation using SQLAlchemy.

Every state change is a single conditional UPDATE or DELETE. The row count
tells the caller whether its condition held, so two concurrent callers can
never both see a live session that one of them revokes.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from authority.domain.entities.refresh_session import RefreshSession
from authority.domain.interfaces.repositories import IRefreshSessionRepository

logger = get_logger(__name__)


class RefreshSessionRepository(IRefreshSessionRepository):
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def add(self, session: RefreshSession) -> RefreshSession:
        self.db_session.add(session)
        await self.db_session.flush()
        return session

    async def get_by_token_hash(self, token_hash: str) -> Optional[RefreshSession]:
        statement = select(RefreshSession).where(RefreshSession.token_hash == token_hash)
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def mark_used_if_active(self, token_hash: str, now: datetime) -> bool:
        statement = (
            update(RefreshSession)
            .where(
                RefreshSession.token_hash == token_hash,
                RefreshSession.revoked.is_(False),
                RefreshSession.expires_at > now,
            )
            .values(last_used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount == 1

    async def revoke(self, token_hash: str, now: datetime) -> bool:
        statement = (
            update(RefreshSession)
            .where(RefreshSession.token_hash == token_hash, RefreshSession.revoked.is_(False))
            .values(revoked=True, revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount == 1

    async def revoke_all_for_account(self, account_id: int, now: datetime) -> int:
        statement = (
            update(RefreshSession)
            .where(RefreshSession.account_id == account_id, RefreshSession.revoked.is_(False))
            .values(revoked=True, revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        logger.debug("Refresh sessions revoked", account_id=account_id, count=result.rowcount)
        return result.rowcount

    async def detach_account(self, account_id: int) -> int:
        statement = (
            update(RefreshSession)
            .where(RefreshSession.account_id == account_id)
            .values(account_id=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount

    async def list_active_for_account(self, account_id: int, now: datetime) -> List[RefreshSession]:
        statement = (
            select(RefreshSession)
            .where(
                RefreshSession.account_id == account_id,
                RefreshSession.revoked.is_(False),
                RefreshSession.expires_at > now,
            )
            .order_by(RefreshSession.issued_at.desc(), RefreshSession.id.desc())
        )
        result = await self.db_session.execute(statement)
        return list(result.scalars().all())

    async def delete_expired_before(self, cutoff: datetime) -> int:
        statement = (
            delete(RefreshSession)
            .where(RefreshSession.expires_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount
