"""Application container.

Builds every component once at startup and wires them together explicitly.
The domain never looks anything up globally: each component receives its
collaborators here. Tests build a container with in-memory replacements for
the event bus, notifier or HTTP client.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Optional

import httpx
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from structlog import get_logger

from authority.core.background import BackgroundDispatcher, PeriodicTask
from authority.core.config.settings import Settings
from authority.domain.entities.account import AuthProvider
from authority.domain.interfaces.services import (
    ICredentialHasher,
    IEventBus,
    INotifier,
    ISocialProfileProvider,
)
from authority.domain.interfaces.unit_of_work import UnitOfWorkFactory
from authority.domain.services.auth.credential_authenticator import CredentialAuthenticator
from authority.domain.services.auth.password_policy import PasswordPolicyValidator
from authority.domain.services.auth.refresh_token_store import RefreshTokenStore
from authority.domain.services.auth.social_identity import SocialIdentityResolver
from authority.domain.services.auth.token_issuer import TokenIssuer
from authority.domain.services.email_verification.manager import EmailVerificationManager
from authority.domain.services.event_publisher import EventTopics, UserEventPublisher
from authority.domain.services.identity_authority import IdentityAuthority
from authority.infrastructure.database.async_db import (
    create_engine_from_settings,
    create_session_factory,
)
from authority.infrastructure.database.unit_of_work import sqlalchemy_uow_factory
from authority.infrastructure.redis import close_redis_client, create_redis_client
from authority.infrastructure.services.email_notifier import EmailNotifier
from authority.infrastructure.services.event_bus import InMemoryEventBus, RedisEventBus
from authority.infrastructure.services.password_hasher import BcryptCredentialHasher
from authority.infrastructure.services.social_providers import (
    FacebookProfileProvider,
    GoogleProfileProvider,
    MicrosoftProfileProvider,
)

logger = get_logger(__name__)


@dataclass
class Container:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    uow_factory: UnitOfWorkFactory
    dispatcher: BackgroundDispatcher
    http_client: httpx.AsyncClient
    redis: Optional[Redis]
    event_bus: IEventBus
    notifier: INotifier
    hasher: ICredentialHasher
    token_issuer: TokenIssuer
    refresh_tokens: RefreshTokenStore
    verification: EmailVerificationManager
    social: SocialIdentityResolver
    authority: IdentityAuthority
    sweep: PeriodicTask
    owns_engine: bool = False

    async def sweep_once(self) -> Dict[str, int]:
        """Purge expired verification tickets and refresh sessions past retention."""
        tickets = await self.verification.purge_expired()
        sessions = await self.refresh_tokens.purge_expired(
            timedelta(days=self.settings.REFRESH_SESSION_RETENTION_DAYS)
        )
        return {"tickets": tickets, "sessions": sessions}

    async def aclose(self) -> None:
        await self.sweep.stop()
        await self.dispatcher.drain(timeout=10.0)
        await self.http_client.aclose()
        if self.redis is not None:
            await close_redis_client(self.redis)
        if self.owns_engine:
            await self.engine.dispose()
        logger.info("Container closed")


def build_social_providers(
    settings: Settings, http_client: httpx.AsyncClient
) -> Dict[AuthProvider, ISocialProfileProvider]:
    """Instantiate the providers listed in SOCIAL_PROVIDERS_ENABLED."""
    options = {
        "timeout": settings.SOCIAL_PROVIDER_TIMEOUT_SECONDS,
        "max_attempts": settings.SOCIAL_PROVIDER_MAX_ATTEMPTS,
    }
    factories = {
        AuthProvider.GOOGLE: lambda: GoogleProfileProvider(
            http_client, client_id=settings.GOOGLE_CLIENT_ID, **options
        ),
        AuthProvider.FACEBOOK: lambda: FacebookProfileProvider(http_client, **options),
        AuthProvider.MICROSOFT: lambda: MicrosoftProfileProvider(http_client, **options),
    }
    providers: Dict[AuthProvider, ISocialProfileProvider] = {}
    for tag in settings.SOCIAL_PROVIDERS_ENABLED:
        try:
            provider = AuthProvider.from_tag(tag)
        except ValueError:
            logger.warning("Ignoring unknown social provider", provider=tag)
            continue
        if provider in factories:
            providers[provider] = factories[provider]()
    return providers


def build_container(
    settings: Settings,
    engine: Optional[AsyncEngine] = None,
    event_bus: Optional[IEventBus] = None,
    notifier: Optional[INotifier] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    hasher: Optional[ICredentialHasher] = None,
) -> Container:
    """Wire the application.

    Raises:
        SigningKeyUnavailableError: The JWT signing key is missing or invalid.
    """
    token_issuer = TokenIssuer.from_settings(settings)

    owns_engine = engine is None
    engine = engine or create_engine_from_settings(settings)
    session_factory = create_session_factory(engine)
    uow_factory = sqlalchemy_uow_factory(session_factory)
    dispatcher = BackgroundDispatcher()
    http_client = http_client or httpx.AsyncClient(
        timeout=settings.SOCIAL_PROVIDER_TIMEOUT_SECONDS
    )

    redis = None
    if event_bus is None:
        if settings.EVENT_BUS_BACKEND == "redis":
            redis = create_redis_client(settings.REDIS_URL)
            event_bus = RedisEventBus(redis, maxlen=settings.EVENT_STREAM_MAXLEN)
        else:
            event_bus = InMemoryEventBus()

    notifier = notifier or EmailNotifier(settings)
    hasher = hasher or BcryptCredentialHasher(rounds=settings.BCRYPT_WORK_FACTOR)
    events = UserEventPublisher(
        event_bus,
        dispatcher,
        topics=EventTopics(
            user_created=settings.EVENT_TOPIC_USER_CREATED,
            user_updated=settings.EVENT_TOPIC_USER_UPDATED,
            user_deleted=settings.EVENT_TOPIC_USER_DELETED,
        ),
        event_source=settings.EVENT_SOURCE,
        event_version=settings.EVENT_VERSION,
    )

    refresh_tokens = RefreshTokenStore(
        uow_factory, ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    )
    verification = EmailVerificationManager(
        uow_factory,
        notifier,
        dispatcher,
        frontend_url=settings.FRONTEND_URL,
        ticket_ttl=timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS),
    )
    social = SocialIdentityResolver(uow_factory, build_social_providers(settings, http_client))
    authenticator = CredentialAuthenticator(uow_factory, hasher)

    authority = IdentityAuthority(
        uow_factory=uow_factory,
        hasher=hasher,
        password_policy=PasswordPolicyValidator.from_settings(settings),
        authenticator=authenticator,
        token_issuer=token_issuer,
        refresh_tokens=refresh_tokens,
        verification=verification,
        social=social,
        events=events,
        notifier=notifier,
        dispatcher=dispatcher,
        frontend_url=settings.FRONTEND_URL,
        password_reset_ttl=timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
    )

    container = Container(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        uow_factory=uow_factory,
        dispatcher=dispatcher,
        http_client=http_client,
        redis=redis,
        event_bus=event_bus,
        notifier=notifier,
        hasher=hasher,
        token_issuer=token_issuer,
        refresh_tokens=refresh_tokens,
        verification=verification,
        social=social,
        authority=authority,
        sweep=None,
        owns_engine=owns_engine,
    )
    container.sweep = PeriodicTask(
        "expired_credentials_sweep",
        settings.EMAIL_VERIFICATION_SWEEP_INTERVAL_SECONDS,
        container.sweep_once,
    )
    logger.info(
        "Container built",
        social_providers=[p.value for p in social.supported_providers],
        event_bus=type(event_bus).__name__,
    )
    return container
