"""Unit of work interface.

A unit of work is one database transaction. Use it as an async context
manager: changes commit when the block exits cleanly and roll back when it
raises.

    async with uow_factory() as uow:
        account = await uow.accounts.get_by_id(account_id, for_update=True)
        ...
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from authority.domain.interfaces.repositories import (
    IAccountRepository,
    IRefreshSessionRepository,
    IVerificationTicketRepository,
)


class IUnitOfWork(ABC):
    accounts: IAccountRepository
    refresh_sessions: IRefreshSessionRepository
    verification_tickets: IVerificationTicketRepository

    @abstractmethod
    async def __aenter__(self) -> "IUnitOfWork":
        raise NotImplementedError

    @abstractmethod
    async def __aexit__(self, exc_type, exc, tb) -> None:
        raise NotImplementedError

    @abstractmethod
    async def commit(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], IUnitOfWork]


@asynccontextmanager
async def join_or_begin(
    uow_factory: UnitOfWorkFactory, uow: Optional[IUnitOfWork] = None
) -> AsyncIterator[IUnitOfWork]:
    """Join the caller's transaction, or open a new one when there is none.

    When joining, commit and rollback stay with the outer block.
    """
    if uow is not None:
        yield uow
        return
    async with uow_factory() as new_uow:
        yield new_uow
