"""SQLAlchemy unit of work.

One `AsyncSession` per unit of work. The repositories share that session, so
everything done inside one ``async with`` block commits or rolls back
together. Unexpected database errors surface as `ServiceUnavailableError`;
domain exceptions pass through unchanged after the rollback.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from authority.core.exceptions import ServiceUnavailableError
from authority.domain.interfaces.unit_of_work import IUnitOfWork
from authority.infrastructure.repositories.account_repository import AccountRepository
from authority.infrastructure.repositories.refresh_session_repository import (
    RefreshSessionRepository,
)
from authority.infrastructure.repositories.verification_ticket_repository import (
    VerificationTicketRepository,
)

logger = get_logger(__name__)


class SQLAlchemyUnitOfWork(IUnitOfWork):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        self.session = self._session_factory()
        self.accounts = AccountRepository(self.session)
        self.refresh_sessions = RefreshSessionRepository(self.session)
        self.verification_tickets = VerificationTicketRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self.session.close()
            self.session = None
        if isinstance(exc, SQLAlchemyError):
            logger.error("unit_of_work_failed", error_type=type(exc).__name__, error=str(exc))
            raise ServiceUnavailableError() from exc

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error("unit_of_work_commit_failed", error_type=type(e).__name__, error=str(e))
            await self.session.rollback()
            raise ServiceUnavailableError() from e

    async def rollback(self) -> None:
        await self.session.rollback()


def sqlalchemy_uow_factory(session_factory: async_sessionmaker[AsyncSession]):
    """Bind a session factory into a zero-argument unit of work factory."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory
