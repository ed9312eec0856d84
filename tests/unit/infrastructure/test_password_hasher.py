import pytest

from authority.infrastructure.services.password_hasher import BcryptCredentialHasher


class TestBcryptCredentialHasher:
    @pytest.mark.asyncio
    async def test_hash_and_verify(self, hasher):
        hashed = await hasher.hash("Str0ngP@ssw0rd")
        assert hashed.startswith("$2b$04$")
        assert await hasher.verify("Str0ngP@ssw0rd", hashed)
        assert not await hasher.verify("wrong", hashed)

    @pytest.mark.asyncio
    async def test_salted(self, hasher):
        assert await hasher.hash("same") != await hasher.hash("same")

    @pytest.mark.asyncio
    async def test_unparseable_hash_is_a_mismatch(self, hasher):
        assert await hasher.verify("anything", "not-a-bcrypt-hash") is False

    @pytest.mark.asyncio
    async def test_verify_dummy_returns_nothing(self, hasher):
        assert await hasher.verify_dummy("anything") is None

    def test_work_factor(self):
        hasher = BcryptCredentialHasher(rounds=5)
        assert hasher.pwd_context.hash("x").startswith("$2b$05$")
