"""Social identity provider clients.

One `ISocialProfileProvider` per provider. Each resolves an opaque provider
token into a `SocialProfile` over HTTPS with a bounded timeout. Transport
errors are retried a bounded number of times with tenacity. Every failure
surfaces as `ProviderFetchError`: transport errors, timeouts, non-200
responses, malformed JSON and profiles without an email.
"""

from typing import Any, Dict, Mapping, Optional

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from authority.core.exceptions import ProviderFetchError
from authority.domain.entities.account import AuthProvider
from authority.domain.interfaces.services import ISocialProfileProvider
from authority.domain.value_objects.social_profile import SocialProfile

logger = structlog.get_logger(__name__)


class HttpProfileProvider(ISocialProfileProvider):
    """Shared HTTP plumbing for the provider clients.

    Args:
        client: Shared `httpx.AsyncClient`, owned and closed by the container.
        timeout: Per-request timeout in seconds.
        max_attempts: Total attempts for transport errors.
        retry_wait: Seconds between attempts.
    """

    provider: AuthProvider

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float = 5.0,
        max_attempts: int = 2,
        retry_wait: float = 0.2,
    ):
        self._client = client
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait

    async def _get_json(
        self,
        url: str,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_fixed(self._retry_wait),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._client.get(
                        url, params=params, headers=headers, timeout=self._timeout
                    )
        except httpx.TimeoutException as e:
            logger.warning("Provider request timed out", provider=self.provider.value)
            raise ProviderFetchError(f"{self.provider.value} did not respond in time") from e
        except httpx.TransportError as e:
            logger.warning(
                "Provider request failed", provider=self.provider.value, error=type(e).__name__
            )
            raise ProviderFetchError(f"Could not reach {self.provider.value}") from e
        except httpx.HTTPError as e:
            logger.warning(
                "Provider response unreadable", provider=self.provider.value, error=type(e).__name__
            )
            raise ProviderFetchError(f"{self.provider.value} returned malformed data") from e

        if response.status_code != 200:
            logger.info(
                "Provider rejected token",
                provider=self.provider.value,
                status_code=response.status_code,
            )
            raise ProviderFetchError(
                f"{self.provider.value} rejected the token (HTTP {response.status_code})"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderFetchError(f"{self.provider.value} returned malformed data") from e
        if not isinstance(data, dict):
            raise ProviderFetchError(f"{self.provider.value} returned malformed data")
        return data

    def _build_profile(self, **fields: Any) -> SocialProfile:
        email = fields.get("email")
        if not email:
            raise ProviderFetchError(
                f"{self.provider.value} did not provide an email address", code="provider_email_missing"
            )
        if not isinstance(email, str):
            raise ProviderFetchError(f"{self.provider.value} returned malformed data")
        try:
            return SocialProfile(provider=self.provider, **fields)
        except (TypeError, ValueError) as e:
            raise ProviderFetchError(f"{self.provider.value} returned an incomplete profile") from e


class GoogleProfileProvider(HttpProfileProvider):
    """Validates a Google ID token with the tokeninfo endpoint.

    When a client id is configured the token's audience must match it, so
    tokens minted for other applications are refused.
    """

    provider = AuthProvider.GOOGLE
    TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"

    def __init__(self, client: httpx.AsyncClient, client_id: str = "", **kwargs: Any):
        super().__init__(client, **kwargs)
        self._client_id = client_id

    async def fetch_profile(self, access_token: str) -> SocialProfile:
        data = await self._get_json(self.TOKENINFO_URL, params={"id_token": access_token})
        if self._client_id and data.get("aud") != self._client_id:
            logger.warning("Google token audience mismatch")
            raise ProviderFetchError("Google token was issued for another application")
        verified = data.get("email_verified")
        return self._build_profile(
            external_id=str(data.get("sub") or ""),
            email=data.get("email"),
            first_name=data.get("given_name"),
            last_name=data.get("family_name"),
            avatar_url=data.get("picture"),
            email_verified=verified is True or str(verified).lower() == "true",
        )


class FacebookProfileProvider(HttpProfileProvider):
    """Reads the Graph API ``/me`` profile. Facebook only returns confirmed emails."""

    provider = AuthProvider.FACEBOOK
    PROFILE_URL = "https://graph.facebook.com/me"
    FIELDS = "id,email,first_name,last_name,picture.type(large)"

    async def fetch_profile(self, access_token: str) -> SocialProfile:
        data = await self._get_json(
            self.PROFILE_URL,
            params={"fields": self.FIELDS},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        picture = data.get("picture")
        avatar_url = None
        if isinstance(picture, dict) and isinstance(picture.get("data"), dict):
            avatar_url = picture["data"].get("url")
        return self._build_profile(
            external_id=str(data.get("id") or ""),
            email=data.get("email"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            avatar_url=avatar_url,
            email_verified=bool(data.get("email")),
        )


class MicrosoftProfileProvider(HttpProfileProvider):
    """Reads the Microsoft Graph ``/v1.0/me`` profile.

    Graph makes no ownership claim about ``mail``, so the email is treated as
    unverified.
    """

    provider = AuthProvider.MICROSOFT
    PROFILE_URL = "https://graph.microsoft.com/v1.0/me"

    async def fetch_profile(self, access_token: str) -> SocialProfile:
        data = await self._get_json(
            self.PROFILE_URL, headers={"Authorization": f"Bearer {access_token}"}
        )
        email = data.get("mail")
        principal = data.get("userPrincipalName")
        if not email and isinstance(principal, str) and "@" in principal:
            email = principal
        return self._build_profile(
            external_id=str(data.get("id") or ""),
            email=email,
            first_name=data.get("givenName"),
            last_name=data.get("surname"),
            email_verified=False,
        )
