"""Shared fixtures.

Component tests run against an in-memory SQLite database (aiosqlite with a
StaticPool, so every session shares one connection) and in-memory event bus
and notifier. Nothing touches the network.
"""

from typing import Any, List, Mapping, NamedTuple, Optional

import httpx
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import authority.domain.entities  # noqa: F401  registers the tables
from authority.core.config.settings import Settings
from authority.domain.entities.account import Account
from authority.domain.interfaces.services import INotifier
from authority.domain.value_objects.notifications import NotificationKind
from authority.infrastructure.dependency_injection.container import build_container
from authority.infrastructure.services.event_bus import InMemoryEventBus
from authority.infrastructure.services.password_hasher import BcryptCredentialHasher
from tests.factories.account import STRONG_PASSWORD


class SentNotification(NamedTuple):
    kind: NotificationKind
    email: str
    payload: Mapping[str, Any]


class RecordingNotifier(INotifier):
    """Keeps every notification instead of sending it."""

    def __init__(self):
        self.sent: List[SentNotification] = []

    async def notify(
        self, kind: NotificationKind, account: Account, payload: Optional[Mapping[str, Any]] = None
    ) -> None:
        self.sent.append(SentNotification(kind, account.email, dict(payload or {})))

    def of_kind(self, kind: NotificationKind) -> List[SentNotification]:
        return [n for n in self.sent if n.kind == kind]


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key) -> str:
    return rsa_private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_key_pem(rsa_private_key) -> str:
    return rsa_private_key.public_key().public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode("ascii")


@pytest.fixture(scope="session")
def hasher() -> BcryptCredentialHasher:
    return BcryptCredentialHasher(rounds=4)


@pytest.fixture
def test_settings(private_key_pem, public_key_pem) -> Settings:
    return Settings(
        _env_file=None,
        APP_ENV="test",
        DATABASE_URL="sqlite+aiosqlite://",
        JWT_PRIVATE_KEY=private_key_pem,
        JWT_PUBLIC_KEY=public_key_pem,
        JWT_PRIVATE_KEY_PATH="/nonexistent/private.pem",
        JWT_PUBLIC_KEY_PATH="/nonexistent/public.pem",
        JWT_ISSUER="https://auth.test",
        JWT_AUDIENCE="identity-authority:test",
        EVENT_BUS_BACKEND="memory",
        BCRYPT_WORK_FACTOR=4,
        FRONTEND_URL="https://app.test/",
        SOCIAL_PROVIDERS_ENABLED=["GOOGLE", "FACEBOOK", "MICROSOFT"],
        LOG_JSON=False,
    )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


def provider_transport(request: httpx.Request) -> httpx.Response:
    """Fake provider endpoints. The token value selects the profile returned."""
    token = request.url.params.get("id_token") or request.headers.get("authorization", "")[7:]
    if token == "bad":
        return httpx.Response(401, json={"error": "invalid_token"})
    host = request.url.host
    if host == "oauth2.googleapis.com":
        return httpx.Response(
            200,
            json={
                "sub": "google-" + token,
                "email": f"{token}@example.com",
                "email_verified": "true",
                "given_name": "Gina",
                "family_name": "Google",
                "aud": "",
            },
        )
    if host == "graph.facebook.com":
        return httpx.Response(200, json={"id": "fb-" + token, "email": f"{token}@example.com"})
    if host == "graph.microsoft.com":
        return httpx.Response(200, json={"id": "ms-" + token, "mail": f"{token}@example.com"})
    return httpx.Response(404)


@pytest_asyncio.fixture
async def container(test_settings, engine, event_bus, notifier, hasher):
    container = build_container(
        test_settings,
        engine=engine,
        event_bus=event_bus,
        notifier=notifier,
        hasher=hasher,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(provider_transport)),
    )
    yield container
    await container.aclose()


@pytest.fixture
def uow_factory(container):
    return container.uow_factory


@pytest.fixture
def dispatcher(container):
    return container.dispatcher


@pytest.fixture
def authority(container):
    return container.authority


@pytest.fixture
def password() -> str:
    return STRONG_PASSWORD
