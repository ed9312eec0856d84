"""Service interfaces for collaborators the domain depends on.

Each interface is a narrow port: password hashing, outbound notifications,
the lifecycle event bus and social identity providers. Implementations live in
`authority.infrastructure.services`.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from authority.domain.entities.account import Account, AuthProvider
from authority.domain.value_objects.notifications import NotificationKind
from authority.domain.value_objects.social_profile import SocialProfile


class ICredentialHasher(ABC):
    """One-way password hashing."""

    @abstractmethod
    async def hash(self, plaintext: str) -> str:
        raise NotImplementedError

    @abstractmethod
    async def verify(self, plaintext: str, hashed: str) -> bool:
        """Returns False on mismatch or on an unparseable hash; never raises."""
        raise NotImplementedError

    @abstractmethod
    async def verify_dummy(self, plaintext: str) -> None:
        """Spends the same time as a real verification; used when there is no hash to check."""
        raise NotImplementedError


class INotifier(ABC):
    """Outbound account notifications (email)."""

    @abstractmethod
    async def notify(
        self, kind: NotificationKind, account: Account, payload: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Sends one notification.

        Args:
            kind: Which notification to send.
            account: The recipient account.
            payload: Kind-specific values, e.g. ``{"link": ...}``.
        """
        raise NotImplementedError


class IEventBus(ABC):
    """Transport for lifecycle events."""

    @abstractmethod
    async def publish(self, topic: str, key: str, payload: str) -> None:
        """Publishes a JSON payload on a topic, partitioned by key."""
        raise NotImplementedError


class ISocialProfileProvider(ABC):
    """Fetches a verified profile from one identity provider."""

    provider: AuthProvider

    @abstractmethod
    async def fetch_profile(self, access_token: str) -> SocialProfile:
        """Resolves an opaque provider token into a profile.

        Raises:
            ProviderFetchError: On transport failure, timeout, an upstream
                error response, a malformed payload or a missing email.
        """
        raise NotImplementedError
