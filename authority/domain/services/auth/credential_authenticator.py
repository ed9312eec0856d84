from structlog import get_logger

from authority.core.exceptions import InvalidCredentialsError
from authority.domain.entities.account import Account
from authority.domain.interfaces.services import ICredentialHasher
from authority.domain.interfaces.unit_of_work import UnitOfWorkFactory
from authority.utils.security import mask_email

logger = get_logger(__name__)


class CredentialAuthenticator:
    """Email and password authentication.

    Every failure raises the same `InvalidCredentialsError`. When there is no
    hash to check (unknown email, or an account created by social login) a dummy
    hash is verified so response timing does not reveal which case occurred.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, hasher: ICredentialHasher):
        self._uow_factory = uow_factory
        self._hasher = hasher

    async def authenticate(self, email: str, password: str) -> Account:
        async with self._uow_factory() as uow:
            account = await uow.accounts.get_by_email(email)

        if account is None or not account.password_hash:
            await self._hasher.verify_dummy(password or "")
            logger.info("Authentication failed", email=mask_email(email or ""))
            raise InvalidCredentialsError()

        if not await self._hasher.verify(password or "", account.password_hash):
            logger.info("Authentication failed", email=mask_email(account.email))
            raise InvalidCredentialsError()

        logger.info("Authentication succeeded", account_id=account.id)
        return account
