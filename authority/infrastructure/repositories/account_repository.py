"""Account repository implementation using SQLAlchemy.

Implements `IAccountRepository` on an `AsyncSession` owned by the unit of
work. Emails are normalized before every lookup and insert, so the unique
index on the stored lower-cased column enforces case-insensitive uniqueness.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from authority.core.exceptions import EmailAlreadyInUseError
from authority.domain.entities.account import Account, AuthProvider
from authority.domain.interfaces.repositories import IAccountRepository
from authority.utils.security import mask_email

logger = get_logger(__name__)


class AccountRepository(IAccountRepository):
    """SQLAlchemy implementation of `IAccountRepository`.

    `for_update=True` adds ``SELECT ... FOR UPDATE`` so security-sensitive
    mutations serialize on the account row. SQLite ignores the clause.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_by_id(self, account_id: int, for_update: bool = False) -> Optional[Account]:
        statement = select(Account).where(Account.id == account_id)
        if for_update:
            statement = statement.with_for_update()
        result = await self.db_session.execute(statement)
        account = result.scalars().first()
        logger.debug("Account lookup by id completed", account_id=account_id, found=account is not None)
        return account

    async def get_by_email(self, email: str, for_update: bool = False) -> Optional[Account]:
        normalized = Account.normalize_email(email)
        statement = select(Account).where(Account.email == normalized)
        if for_update:
            statement = statement.with_for_update()
        result = await self.db_session.execute(statement)
        account = result.scalars().first()
        logger.debug(
            "Account lookup by email completed",
            email=mask_email(normalized),
            found=account is not None,
        )
        return account

    async def get_by_provider_identity(
        self, provider: AuthProvider, external_id: str
    ) -> Optional[Account]:
        statement = select(Account).where(
            Account.provider == provider, Account.provider_external_id == external_id
        )
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def get_by_password_reset_token_hash(self, token_hash: str) -> Optional[Account]:
        statement = (
            select(Account)
            .where(Account.password_reset_token_hash == token_hash)
            .with_for_update()
        )
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def list_all(self, offset: int = 0, limit: int = 100) -> List[Account]:
        statement = select(Account).order_by(Account.id).offset(offset).limit(limit)
        result = await self.db_session.execute(statement)
        return list(result.scalars().all())

    async def add(self, account: Account) -> Account:
        account.email = Account.normalize_email(account.email)
        self.db_session.add(account)
        try:
            await self.db_session.flush()
        except IntegrityError as e:
            logger.info(
                "Account insert rejected by unique constraint",
                email=mask_email(account.email),
                provider=account.provider.value,
            )
            raise EmailAlreadyInUseError() from e
        logger.info("Account created", account_id=account.id, provider=account.provider.value)
        return account

    async def save(self, account: Account) -> Account:
        self.db_session.add(account)
        try:
            await self.db_session.flush()
        except IntegrityError as e:
            raise EmailAlreadyInUseError() from e
        return account

    async def delete(self, account: Account) -> None:
        await self.db_session.delete(account)
        await self.db_session.flush()
        logger.info("Account deleted", account_id=account.id)
