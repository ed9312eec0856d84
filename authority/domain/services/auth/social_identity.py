"""Social identity resolution and account linking.

Resolution dispatches on the provider tag to one `ISocialProfileProvider`
per provider. Linking follows one rule: an email identifies one account
regardless of where it came from.
"""

from typing import Mapping, Optional

from structlog import get_logger

from authority.core.exceptions import (
    EmailAlreadyInUseError,
    ProviderFetchError,
    UnsupportedProviderError,
)
from authority.domain.entities.account import Account, AuthProvider, Role
from authority.domain.interfaces.services import ISocialProfileProvider
from authority.domain.interfaces.unit_of_work import UnitOfWorkFactory
from authority.domain.value_objects.social_profile import SocialProfile
from authority.domain.value_objects.tokens import LinkResult
from authority.utils.security import mask_email, utc_now

logger = get_logger(__name__)


class SocialIdentityResolver:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        providers: Mapping[AuthProvider, ISocialProfileProvider],
    ):
        self._uow_factory = uow_factory
        self._providers = dict(providers)

    @property
    def supported_providers(self) -> list[AuthProvider]:
        return list(self._providers)

    async def resolve(self, provider_tag: str, access_token: str) -> SocialProfile:
        """Fetch the profile behind a provider token.

        Raises:
            UnsupportedProviderError: Unknown tag, or no client configured for it.
            ProviderFetchError: The provider could not produce a usable profile.
        """
        try:
            provider = AuthProvider.from_tag(provider_tag)
        except ValueError:
            raise UnsupportedProviderError(str(provider_tag)) from None
        client = self._providers.get(provider)
        if client is None:
            raise UnsupportedProviderError(provider.value)
        if not access_token:
            raise ProviderFetchError(f"No {provider.value} token was supplied")

        profile = await client.fetch_profile(access_token)
        logger.info(
            "Social profile resolved",
            provider=provider.value,
            email=mask_email(profile.email),
            email_verified=profile.email_verified,
        )
        return profile

    async def link_or_create(self, profile: SocialProfile) -> LinkResult:
        """Link the profile to an existing account, or create one.

        1. An existing LOCAL account with the same email is linked to the provider.
        2. An existing social account with the same email is returned unchanged.
        3. Otherwise the account owning ``(provider, external_id)`` is returned,
           or a new passwordless account is created.

        A concurrent request that creates the same account first is resolved
        by reading its result.
        """
        try:
            return await self._link_or_create_once(profile)
        except EmailAlreadyInUseError:
            logger.info("Concurrent social account write detected", email=mask_email(profile.email))
            existing = await self._find_existing(profile)
            if existing is None:
                raise
            return LinkResult(existing, False, False)

    async def _find_existing(self, profile: SocialProfile) -> Optional[Account]:
        async with self._uow_factory() as uow:
            account = await uow.accounts.get_by_email(profile.email)
            if account is None:
                account = await uow.accounts.get_by_provider_identity(
                    profile.provider, profile.external_id
                )
            return account

    async def _link_or_create_once(self, profile: SocialProfile) -> LinkResult:
        async with self._uow_factory() as uow:
            account = await uow.accounts.get_by_email(profile.email, for_update=True)
            if account is not None:
                if account.provider != AuthProvider.LOCAL:
                    return LinkResult(account, False, False)
                self._apply_profile(account, profile)
                await uow.accounts.save(account)
                logger.info(
                    "Local account linked to social provider",
                    account_id=account.id,
                    provider=profile.provider.value,
                )
                return LinkResult(account, False, True)

            existing = await uow.accounts.get_by_provider_identity(
                profile.provider, profile.external_id
            )
            if existing is not None:
                return LinkResult(existing, False, False)

            account = Account(
                email=profile.email,
                password_hash=None,
                role=Role.USER,
                email_verified=profile.email_verified,
                provider=profile.provider,
                provider_external_id=profile.external_id,
                first_name=profile.first_name,
                last_name=profile.last_name,
                avatar_url=profile.avatar_url,
            )
            await uow.accounts.add(account)
            logger.info(
                "Account created from social profile",
                account_id=account.id,
                provider=profile.provider.value,
            )
            return LinkResult(account, True, False)

    @staticmethod
    def _apply_profile(account: Account, profile: SocialProfile) -> None:
        account.provider = profile.provider
        account.provider_external_id = profile.external_id
        account.first_name = profile.first_name or account.first_name
        account.last_name = profile.last_name or account.last_name
        account.avatar_url = profile.avatar_url or account.avatar_url
        if profile.email_verified:
            account.email_verified = True
        account.touch(utc_now())
