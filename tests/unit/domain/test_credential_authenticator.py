import pytest
import pytest_asyncio

from authority.core.exceptions import InvalidCredentialsError
from authority.domain.entities.account import AuthProvider
from authority.domain.services.auth.credential_authenticator import CredentialAuthenticator
from tests.factories.account import create_fake_account


@pytest.fixture
def authenticator(uow_factory, hasher):
    return CredentialAuthenticator(uow_factory, hasher)


@pytest_asyncio.fixture
async def local_account(uow_factory, hasher, password):
    async with uow_factory() as uow:
        return await uow.accounts.add(
            create_fake_account(email="alice@example.com", password_hash=await hasher.hash(password))
        )


class TestCredentialAuthenticator:
    @pytest.mark.asyncio
    async def test_correct_password(self, authenticator, local_account, password):
        account = await authenticator.authenticate("alice@example.com", password)
        assert account.id == local_account.id

    @pytest.mark.asyncio
    async def test_email_lookup_is_case_insensitive(self, authenticator, local_account, password):
        account = await authenticator.authenticate("  ALICE@Example.com ", password)
        assert account.id == local_account.id

    @pytest.mark.asyncio
    async def test_failures_are_indistinguishable(
        self, authenticator, local_account, uow_factory, password
    ):
        async with uow_factory() as uow:
            await uow.accounts.add(
                create_fake_account(
                    email="social@example.com",
                    provider=AuthProvider.GOOGLE,
                    provider_external_id="g-1",
                )
            )

        errors = []
        for email, attempt in [
            ("alice@example.com", "wrong-password"),
            ("nobody@example.com", password),
            ("social@example.com", password),
        ]:
            with pytest.raises(InvalidCredentialsError) as exc_info:
                await authenticator.authenticate(email, attempt)
            errors.append((exc_info.value.message, exc_info.value.code))

        assert len(set(errors)) == 1

    @pytest.mark.asyncio
    async def test_dummy_hash_is_checked_for_unknown_email(self, authenticator, hasher, mocker):
        spy = mocker.spy(hasher, "verify_dummy")
        with pytest.raises(InvalidCredentialsError):
            await authenticator.authenticate("ghost@example.com", "whatever")
        spy.assert_called_once()
