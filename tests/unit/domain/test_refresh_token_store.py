"""Tests for refresh session persistence, verification and revocation."""

from datetime import timedelta

import pytest
import pytest_asyncio
from sqlmodel import select

from authority.core.exceptions import TokenExpiredError, TokenNotFoundError, TokenRevokedError
from authority.domain.entities.refresh_session import RefreshSession
from authority.domain.services.auth.refresh_token_store import RefreshTokenStore
from authority.utils.security import hash_token, utc_now
from tests.factories.account import create_fake_account


@pytest_asyncio.fixture
async def account(uow_factory):
    async with uow_factory() as uow:
        return await uow.accounts.add(create_fake_account())


@pytest.fixture
def store(container) -> RefreshTokenStore:
    return container.refresh_tokens


async def _expire(container, token: str) -> None:
    async with container.session_factory() as session:
        row = (
            await session.execute(select(RefreshSession).where(RefreshSession.token_hash == hash_token(token)))
        ).scalar_one()
        row.expires_at = utc_now() - timedelta(seconds=1)
        await session.commit()


class TestCreate:
    @pytest.mark.asyncio
    async def test_only_the_hash_is_stored(self, store, account, container):
        issued = await store.create(account, "pytest")

        async with container.session_factory() as session:
            rows = (await session.execute(select(RefreshSession))).scalars().all()
        assert len(rows) == 1
        assert rows[0].token_hash == hash_token(issued.token)
        assert rows[0].token_hash != issued.token
        assert rows[0].account_id == account.id
        assert rows[0].expires_at - rows[0].issued_at == store.ttl

    @pytest.mark.asyncio
    async def test_tokens_are_unique(self, store, account):
        first = await store.create(account)
        second = await store.create(account)
        assert first.token != second.token

    @pytest.mark.asyncio
    async def test_device_info_is_truncated(self, store, account):
        issued = await store.create(account, "x" * 2000)
        assert len(issued.session.device_info) == 512


class TestVerifyAndConsume:
    @pytest.mark.asyncio
    async def test_valid_token_returns_owner_and_stays_valid(self, store, account):
        issued = await store.create(account)

        first = await store.verify_and_consume(issued.token)
        second = await store.verify_and_consume(issued.token)

        assert first.id == account.id
        assert second.id == account.id

    @pytest.mark.asyncio
    async def test_last_used_is_recorded(self, store, account, container):
        issued = await store.create(account)
        await store.verify_and_consume(issued.token)
        async with container.uow_factory() as uow:
            session = await uow.refresh_sessions.get_by_token_hash(hash_token(issued.token))
        assert session.last_used_at is not None

    @pytest.mark.asyncio
    async def test_unknown_token(self, store):
        with pytest.raises(TokenNotFoundError) as exc_info:
            await store.verify_and_consume("never-issued")
        assert exc_info.value.code == "refresh_token_not_found"

    @pytest.mark.asyncio
    async def test_empty_token(self, store):
        with pytest.raises(TokenNotFoundError):
            await store.verify_and_consume("")

    @pytest.mark.asyncio
    async def test_revoked_token(self, store, account):
        issued = await store.create(account)
        assert await store.revoke(issued.token) is True

        with pytest.raises(TokenRevokedError) as exc_info:
            await store.verify_and_consume(issued.token)
        assert exc_info.value.code == "refresh_token_revoked"

    @pytest.mark.asyncio
    async def test_expired_token_is_revoked_as_a_side_effect(self, store, account, container):
        issued = await store.create(account)
        await _expire(container, issued.token)

        with pytest.raises(TokenExpiredError) as exc_info:
            await store.verify_and_consume(issued.token)
        assert exc_info.value.code == "refresh_token_expired"

        async with container.uow_factory() as uow:
            session = await uow.refresh_sessions.get_by_token_hash(hash_token(issued.token))
        assert session.revoked is True
        assert session.revoked_at is not None

    @pytest.mark.asyncio
    async def test_expired_and_revoked_reports_expired(self, store, account, container):
        issued = await store.create(account)
        await store.revoke(issued.token)
        await _expire(container, issued.token)

        with pytest.raises(TokenExpiredError):
            await store.verify_and_consume(issued.token)


class TestRevocation:
    @pytest.mark.asyncio
    async def test_revoke_is_idempotent(self, store, account):
        issued = await store.create(account)
        assert await store.revoke(issued.token) is True
        assert await store.revoke(issued.token) is False
        assert await store.revoke("unknown") is False

    @pytest.mark.asyncio
    async def test_revoke_all(self, store, account, uow_factory):
        tokens = [(await store.create(account)).token for _ in range(3)]
        async with uow_factory() as uow:
            other = await uow.accounts.add(create_fake_account())
        other_token = (await store.create(other)).token

        assert await store.revoke_all(account) == 3
        assert await store.revoke_all(account) == 0

        for token in tokens:
            with pytest.raises(TokenRevokedError):
                await store.verify_and_consume(token)
        assert (await store.verify_and_consume(other_token)).id == other.id

    @pytest.mark.asyncio
    async def test_active_sessions_excludes_revoked(self, store, account):
        kept = await store.create(account, "laptop")
        dropped = await store.create(account, "phone")
        await store.revoke(dropped.token)

        sessions = await store.active_sessions(account)
        assert [s.id for s in sessions] == [kept.session.id]


class TestPurge:
    @pytest.mark.asyncio
    async def test_purge_respects_retention(self, store, account, container):
        expired = await store.create(account)
        live = await store.create(account)
        await _expire(container, expired.token)

        assert await store.purge_expired(retention=timedelta(days=1)) == 0
        assert await store.purge_expired() == 1

        with pytest.raises(TokenNotFoundError):
            await store.verify_and_consume(expired.token)
        assert (await store.verify_and_consume(live.token)).id == account.id
