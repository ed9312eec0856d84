"""Identity authority: the orchestrator behind every account flow.

Composes the credential authenticator, token issuer, refresh token store,
email verification manager and social identity resolver. Lifecycle events and
notifications are handed to the background dispatcher only after the
transaction they describe has committed.

Security-sensitive mutations (password change or reset, role change,
deletion) lock the account row and revoke every refresh session in the same
transaction, so no old refresh token outlives the change.
"""

from datetime import timedelta
from typing import List, Optional

from structlog import get_logger

from authority.core.background import BackgroundDispatcher
from authority.core.exceptions import (
    AccountNotFoundError,
    EmailAlreadyInUseError,
    InvalidOldPasswordError,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
)
from authority.domain.entities.account import Account, AuthProvider, Role
from authority.domain.entities.refresh_session import RefreshSession
from authority.domain.events.lifecycle_events import UserEventType
from authority.domain.interfaces.services import ICredentialHasher, INotifier
from authority.domain.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory
from authority.domain.services.auth.credential_authenticator import CredentialAuthenticator
from authority.domain.services.auth.password_policy import PasswordPolicyValidator
from authority.domain.services.auth.refresh_token_store import RefreshTokenStore
from authority.domain.services.auth.social_identity import SocialIdentityResolver
from authority.domain.services.auth.token_issuer import TokenIssuer
from authority.domain.services.email_verification.manager import EmailVerificationManager
from authority.domain.services.event_publisher import UserEventPublisher
from authority.domain.value_objects.notifications import NotificationKind
from authority.domain.value_objects.tokens import AccessTokenResult, AuthResult
from authority.domain.value_objects.verification import VerificationResult, VerificationStatus
from authority.utils.security import generate_urlsafe_token, hash_token, mask_email, utc_now

logger = get_logger(__name__)


class IdentityAuthority:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        hasher: ICredentialHasher,
        password_policy: PasswordPolicyValidator,
        authenticator: CredentialAuthenticator,
        token_issuer: TokenIssuer,
        refresh_tokens: RefreshTokenStore,
        verification: EmailVerificationManager,
        social: SocialIdentityResolver,
        events: UserEventPublisher,
        notifier: INotifier,
        dispatcher: BackgroundDispatcher,
        frontend_url: str,
        password_reset_ttl: timedelta = timedelta(minutes=60),
    ):
        self._uow_factory = uow_factory
        self._hasher = hasher
        self._policy = password_policy
        self._authenticator = authenticator
        self._tokens = token_issuer
        self._refresh_tokens = refresh_tokens
        self._verification = verification
        self._social = social
        self._events = events
        self._notifier = notifier
        self._dispatcher = dispatcher
        self._frontend_url = frontend_url.rstrip("/")
        self._password_reset_ttl = password_reset_ttl

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    async def register(
        self,
        email: str,
        password: str,
        device_info: Optional[str] = None,
        phone: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> AuthResult:
        """Create a LOCAL account, its first verification ticket and a refresh session.

        Everything is written in one transaction: a duplicate email leaves
        nothing behind.

        Raises:
            PasswordPolicyError: The password is too weak.
            EmailAlreadyInUseError: The email belongs to another account.
        """
        self._policy.validate(password)
        normalized = Account.normalize_email(email)
        password_hash = await self._hasher.hash(password)
        now = utc_now()

        async with self._uow_factory() as uow:
            if await uow.accounts.get_by_email(normalized) is not None:
                logger.info("Registration rejected: email in use", email=mask_email(normalized))
                raise EmailAlreadyInUseError()
            account = Account(
                email=normalized,
                password_hash=password_hash,
                role=Role.USER,
                email_verified=False,
                provider=AuthProvider.LOCAL,
                phone=phone,
                first_name=first_name,
                last_name=last_name,
                created_at=now,
                password_changed_at=now,
            )
            await uow.accounts.add(account)
            verification = await self._verification.create_ticket(uow, account)
            issued = await self._refresh_tokens.create(account, device_info, uow=uow)

        access_token = self._tokens.issue_access_token(account)
        self._events.publish_later(account, UserEventType.USER_CREATED)
        if verification.ticket is not None:
            self._verification.send_verification_email(account, verification.ticket)
        logger.info("Account registered", account_id=account.id)
        return self._auth_result(account, access_token, issued.token, is_new_account=True)

    async def login(
        self, email: str, password: str, device_info: Optional[str] = None
    ) -> AuthResult:
        account = await self._authenticator.authenticate(email, password)
        issued = await self._refresh_tokens.create(account, device_info)
        access_token = self._tokens.issue_access_token(account)
        return self._auth_result(account, access_token, issued.token)

    async def refresh_access_token(self, refresh_token: str) -> AccessTokenResult:
        """Mint a new access token. The refresh token itself is not rotated."""
        account = await self._refresh_tokens.verify_and_consume(refresh_token)
        return AccessTokenResult(
            access_token=self._tokens.issue_access_token(account),
            expires_in=self._tokens.access_token_ttl_seconds,
        )

    async def logout(self, refresh_token: str) -> None:
        await self._refresh_tokens.revoke(refresh_token)

    async def logout_all(self, account_id: int) -> int:
        account = await self.get_account(account_id)
        return await self._refresh_tokens.revoke_all(account)

    async def social_login(
        self, provider: str, access_token: str, device_info: Optional[str] = None
    ) -> AuthResult:
        profile = await self._social.resolve(provider, access_token)
        link = await self._social.link_or_create(profile)
        issued = await self._refresh_tokens.create(
            link.account, device_info or f"Social Login - {profile.provider.value}"
        )
        token = self._tokens.issue_access_token(link.account)
        if link.is_new:
            self._events.publish_later(link.account, UserEventType.USER_CREATED)
        elif link.linked:
            self._events.publish_later(link.account, UserEventType.USER_UPDATED)
        return self._auth_result(link.account, token, issued.token, is_new_account=link.is_new)

    async def authenticate_access_token(self, token: str) -> Account:
        """Verify an access token and load the account it names.

        Raises:
            TokenExpiredError: The token is past its expiry.
            TokenInvalidError: The token is invalid, or the account it was
                issued to no longer exists.
        """
        claims = self._tokens.verify_access_token(token)
        try:
            account_id = int(claims["sub"])
        except (KeyError, TypeError, ValueError):
            raise TokenInvalidError("Access token is invalid", code="access_token_invalid") from None
        async with self._uow_factory() as uow:
            account = await uow.accounts.get_by_id(account_id)
        # The email claim pins the token to the account it was issued to.
        if account is None or claims.get("email") != account.email:
            logger.info("Access token names no current account", account_id=account_id)
            raise TokenInvalidError("Access token is invalid", code="access_token_invalid")
        return account

    # ------------------------------------------------------------------
    # Email verification
    # ------------------------------------------------------------------

    async def verify_email(self, token: str) -> VerificationResult:
        return await self._verification.consume(token)

    async def resend_verification(self, email: str) -> Optional[VerificationResult]:
        """Issue a new verification ticket for an email.

        Unknown emails return None without error, so the endpoint cannot be
        used to discover accounts.
        """
        async with self._uow_factory() as uow:
            account = await uow.accounts.get_by_email(email)
        if account is None:
            logger.info("Verification resend for unknown email", email=mask_email(email))
            return None
        return await self._verification.issue(account)

    async def verification_status(self, account_id: int) -> VerificationStatus:
        account = await self.get_account(account_id)
        return await self._verification.status(account)

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    async def change_password(
        self, account_id: int, current_password: str, new_password: str
    ) -> Account:
        """Change a password after checking the current one.

        Raises:
            InvalidOldPasswordError: The current password is wrong, or the
                password changed concurrently.
            PasswordPolicyError: The new password is too weak.
        """
        account = await self.get_account(account_id)
        if not account.password_hash or not await self._hasher.verify(
            current_password, account.password_hash
        ):
            raise InvalidOldPasswordError()
        self._policy.validate(new_password)
        new_hash = await self._hasher.hash(new_password)

        async with self._uow_factory() as uow:
            locked = await self._lock_account(uow, account_id)
            if locked.password_hash != account.password_hash:
                raise InvalidOldPasswordError()
            await self._set_password(uow, locked, new_hash)

        self._events.publish_later(locked, UserEventType.USER_UPDATED)
        return locked

    async def reset_password(self, account_id: int, new_password: str) -> Account:
        """Administrative password reset: no current password needed."""
        self._policy.validate(new_password)
        new_hash = await self._hasher.hash(new_password)
        async with self._uow_factory() as uow:
            locked = await self._lock_account(uow, account_id)
            await self._set_password(uow, locked, new_hash)
        self._events.publish_later(locked, UserEventType.USER_UPDATED)
        return locked

    async def request_password_reset(self, email: str) -> None:
        """Email a password reset link. Unknown emails are accepted silently."""
        token = generate_urlsafe_token(32)
        now = utc_now()
        async with self._uow_factory() as uow:
            account = await uow.accounts.get_by_email(email, for_update=True)
            if account is None:
                logger.info("Password reset requested for unknown email", email=mask_email(email))
                return
            account.password_reset_token_hash = hash_token(token)
            account.password_reset_expires_at = now + self._password_reset_ttl
            account.touch(now)
            await uow.accounts.save(account)

        payload = {
            "link": f"{self._frontend_url}/reset-password?token={token}",
            "expires_in_minutes": int(self._password_reset_ttl.total_seconds() // 60),
        }
        self._dispatcher.submit(
            self._notifier.notify(NotificationKind.PASSWORD_RESET_EMAIL, account, payload),
            name="password_reset_email",
        )
        logger.info("Password reset issued", account_id=account.id)

    async def complete_password_reset(self, token: str, new_password: str) -> Account:
        """Set a new password with a reset token.

        Raises:
            TokenInvalidError: The token is unknown or already used.
            TokenExpiredError: The token expired; it is cleared.
            PasswordPolicyError: The new password is too weak.
        """
        self._policy.validate(new_password)
        new_hash = await self._hasher.hash(new_password)
        now = utc_now()
        failure: Optional[TokenError] = None

        async with self._uow_factory() as uow:
            account = (
                await uow.accounts.get_by_password_reset_token_hash(hash_token(token))
                if token
                else None
            )
            if account is None:
                raise TokenInvalidError(
                    "Password reset token is invalid", code="password_reset_token_invalid"
                )
            if account.password_reset_expires_at is None or account.password_reset_expires_at <= now:
                account.password_reset_token_hash = None
                account.password_reset_expires_at = None
                await uow.accounts.save(account)
                failure = TokenExpiredError(
                    "Password reset token has expired", code="password_reset_token_expired"
                )
            else:
                await self._set_password(uow, account, new_hash)

        if failure is not None:
            raise failure
        self._events.publish_later(account, UserEventType.USER_UPDATED)
        logger.info("Password reset completed", account_id=account.id)
        return account

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def update_role(self, account_id: int, role: Role) -> Account:
        """Change an account's role and revoke its sessions.

        Existing access tokens keep their old role claim until they expire;
        refresh sessions are revoked so no new token carries it.
        """
        async with self._uow_factory() as uow:
            account = await self._lock_account(uow, account_id)
            if account.role == role:
                return account
            previous = account.role
            account.role = role
            account.touch()
            await uow.accounts.save(account)
            revoked = await self._refresh_tokens.revoke_all(account, uow=uow)

        logger.info(
            "Account role changed",
            account_id=account.id,
            previous=previous.value,
            role=role.value,
            sessions_revoked=revoked,
        )
        self._events.publish_later(account, UserEventType.USER_UPDATED)
        return account

    async def delete_account(self, account_id: int) -> None:
        """Delete an account, its tickets, and revoke its sessions.

        Sessions are kept, revoked and detached, for audit.
        """
        async with self._uow_factory() as uow:
            account = await self._lock_account(uow, account_id)
            event = self._events.snapshot(account, UserEventType.USER_DELETED)
            revoked = await self._refresh_tokens.revoke_all(account, uow=uow)
            await uow.refresh_sessions.detach_account(account.id)
            await uow.verification_tickets.delete_for_account(account.id)
            await uow.accounts.delete(account)

        self._dispatcher.submit(self._events.publish(event), name="publish_user_deleted")
        logger.info("Account deleted", account_id=account_id, sessions_revoked=revoked)

    async def get_account(self, account_id: int) -> Account:
        async with self._uow_factory() as uow:
            account = await uow.accounts.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError()
        return account

    async def list_accounts(self, offset: int = 0, limit: int = 100) -> List[Account]:
        async with self._uow_factory() as uow:
            return await uow.accounts.list_all(offset=offset, limit=limit)

    async def active_sessions(self, account_id: int) -> List[RefreshSession]:
        account = await self.get_account(account_id)
        return await self._refresh_tokens.active_sessions(account)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _lock_account(uow: IUnitOfWork, account_id: int) -> Account:
        account = await uow.accounts.get_by_id(account_id, for_update=True)
        if account is None:
            raise AccountNotFoundError()
        return account

    async def _set_password(self, uow: IUnitOfWork, account: Account, password_hash: str) -> None:
        account.set_password_hash(password_hash)
        await uow.accounts.save(account)
        revoked = await self._refresh_tokens.revoke_all(account, uow=uow)
        logger.info("Password updated", account_id=account.id, sessions_revoked=revoked)

    def _auth_result(
        self, account: Account, access_token: str, refresh_token: str, is_new_account: bool = False
    ) -> AuthResult:
        return AuthResult(
            account=account,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._tokens.access_token_ttl_seconds,
            is_new_account=is_new_account,
        )
