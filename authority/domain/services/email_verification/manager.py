"""Email verification manager.

Per account the verification state is one of ``Unverified-NoTicket``,
``Unverified-PendingTicket(expiry)`` or ``Verified``. Issuing a ticket deletes
every earlier unverified ticket of the account and inserts the new one in a
single transaction that holds the account row lock, so concurrent resends
always leave exactly one live ticket. Consuming a ticket stamps it and flips
the account in one transaction, guarded by a conditional update so a double
click verifies once.
"""

from datetime import timedelta
from typing import Optional

from structlog import get_logger

from authority.core.background import BackgroundDispatcher
from authority.core.exceptions import AccountNotFoundError, TokenExpiredError, TokenInvalidError
from authority.domain.entities.account import Account
from authority.domain.entities.email_verification_ticket import EmailVerificationTicket
from authority.domain.interfaces.services import INotifier
from authority.domain.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory
from authority.domain.value_objects.notifications import NotificationKind
from authority.domain.value_objects.verification import (
    VerificationOutcome,
    VerificationResult,
    VerificationStatus,
)
from authority.utils.security import generate_hex_token, token_prefix, utc_now

logger = get_logger(__name__)


class EmailVerificationManager:
    """Issues, consumes and sweeps email verification tickets.

    Args:
        uow_factory: Opens a new unit of work.
        notifier: Receives verification and welcome emails.
        dispatcher: Runs notifications off the caller's path.
        frontend_url: Base URL of the page that submits the token.
        ticket_ttl: Lifetime of a ticket.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: INotifier,
        dispatcher: BackgroundDispatcher,
        frontend_url: str,
        ticket_ttl: timedelta = timedelta(hours=24),
    ):
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._dispatcher = dispatcher
        self._frontend_url = frontend_url.rstrip("/")
        self.ticket_ttl = ticket_ttl

    def verification_link(self, token: str) -> str:
        return f"{self._frontend_url}/verify-email?token={token}"

    async def issue(self, account: Account) -> VerificationResult:
        """Issue a fresh ticket and email the link.

        A verified account gets ``ALREADY_VERIFIED`` and no email.
        """
        async with self._uow_factory() as uow:
            result = await self.create_ticket(uow, account)
        if result.ticket is not None:
            self.send_verification_email(account, result.ticket)
        return result

    async def create_ticket(self, uow: IUnitOfWork, account: Account) -> VerificationResult:
        """Replace the account's unverified tickets inside the caller's transaction.

        No email is sent; call `send_verification_email` after the commit.
        """
        locked = await uow.accounts.get_by_id(account.id, for_update=True)
        if locked is None:
            raise AccountNotFoundError()
        if locked.email_verified:
            return VerificationResult(VerificationOutcome.ALREADY_VERIFIED, locked.email)

        now = utc_now()
        removed = await uow.verification_tickets.delete_unverified_for_account(locked.id)
        ticket = EmailVerificationTicket(
            token=generate_hex_token(32),
            account_id=locked.id,
            token_expiry=now + self.ticket_ttl,
            created_at=now,
        )
        await uow.verification_tickets.add(ticket)
        logger.info(
            "Verification ticket issued",
            account_id=locked.id,
            replaced=removed,
            expires_at=ticket.token_expiry.isoformat(),
        )
        return VerificationResult(VerificationOutcome.TICKET_ISSUED, locked.email, ticket)

    def send_verification_email(self, account: Account, ticket: EmailVerificationTicket) -> None:
        payload = {
            "link": self.verification_link(ticket.token),
            "expires_in_hours": int(self.ticket_ttl.total_seconds() // 3600),
        }
        self._dispatcher.submit(
            self._notifier.notify(NotificationKind.VERIFICATION_EMAIL, account, payload),
            name="verification_email",
        )

    async def consume(self, token: str) -> VerificationResult:
        """Consume a verification token.

        Raises:
            TokenInvalidError: No ticket matches the token.
            TokenExpiredError: The ticket is past its expiry.
        """
        now = utc_now()
        flipped = False
        async with self._uow_factory() as uow:
            ticket = await uow.verification_tickets.get_by_token(token) if token else None
            if ticket is None:
                logger.info("Unknown verification token", token=token_prefix(token or ""))
                raise TokenInvalidError(
                    "Verification token is invalid", code="verification_token_invalid"
                )
            if ticket.is_expired(now):
                raise TokenExpiredError(
                    "Verification token has expired", code="verification_token_expired"
                )

            consumed = False
            if not ticket.is_verified:
                consumed = await uow.verification_tickets.mark_verified_if_unverified(ticket.id, now)
            account = await uow.accounts.get_by_id(ticket.account_id, for_update=consumed)
            if account is None:
                raise TokenInvalidError(
                    "Verification token is invalid", code="verification_token_invalid"
                )
            if consumed and not account.email_verified:
                account.email_verified = True
                account.touch(now)
                await uow.accounts.save(account)
                flipped = True

        if not consumed:
            logger.info("Verification token already used", account_id=account.id)
            return VerificationResult(VerificationOutcome.ALREADY_VERIFIED, account.email)

        logger.info("Email verified", account_id=account.id)
        if flipped:
            self._dispatcher.submit(
                self._notifier.notify(NotificationKind.WELCOME_EMAIL, account, {}),
                name="welcome_email",
            )
        return VerificationResult(VerificationOutcome.VERIFIED, account.email)

    async def status(self, account: Account) -> VerificationStatus:
        now = utc_now()
        async with self._uow_factory() as uow:
            current = await uow.accounts.get_by_id(account.id)
            if current is None:
                raise AccountNotFoundError()
            ticket: Optional[EmailVerificationTicket] = (
                await uow.verification_tickets.get_latest_unverified_for_account(current.id)
            )
        return VerificationStatus(
            verified=current.email_verified,
            has_pending_ticket=ticket is not None and not ticket.is_expired(now),
        )

    async def purge_expired(self) -> int:
        """Delete every ticket whose expiry has passed."""
        async with self._uow_factory() as uow:
            count = await uow.verification_tickets.delete_expired(utc_now())
        if count:
            logger.info("Expired verification tickets purged", count=count)
        return count
