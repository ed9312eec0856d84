"""Email verification ticket repository implementation using SQLAlchemy."""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from authority.domain.entities.email_verification_ticket import EmailVerificationTicket
from authority.domain.interfaces.repositories import IVerificationTicketRepository


class VerificationTicketRepository(IVerificationTicketRepository):
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def add(self, ticket: EmailVerificationTicket) -> EmailVerificationTicket:
        self.db_session.add(ticket)
        await self.db_session.flush()
        return ticket

    async def get_by_token(self, token: str) -> Optional[EmailVerificationTicket]:
        statement = select(EmailVerificationTicket).where(EmailVerificationTicket.token == token)
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def get_latest_unverified_for_account(
        self, account_id: int
    ) -> Optional[EmailVerificationTicket]:
        statement = (
            select(EmailVerificationTicket)
            .where(
                EmailVerificationTicket.account_id == account_id,
                EmailVerificationTicket.verified_at.is_(None),
            )
            .order_by(EmailVerificationTicket.created_at.desc(), EmailVerificationTicket.id.desc())
        )
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def delete_unverified_for_account(self, account_id: int) -> int:
        statement = (
            delete(EmailVerificationTicket)
            .where(
                EmailVerificationTicket.account_id == account_id,
                EmailVerificationTicket.verified_at.is_(None),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount

    async def mark_verified_if_unverified(self, ticket_id: int, now: datetime) -> bool:
        statement = (
            update(EmailVerificationTicket)
            .where(
                EmailVerificationTicket.id == ticket_id,
                EmailVerificationTicket.verified_at.is_(None),
            )
            .values(verified_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount == 1

    async def delete_for_account(self, account_id: int) -> int:
        statement = (
            delete(EmailVerificationTicket)
            .where(EmailVerificationTicket.account_id == account_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount

    async def delete_expired(self, now: datetime) -> int:
        statement = (
            delete(EmailVerificationTicket)
            .where(EmailVerificationTicket.token_expiry <= now)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount
