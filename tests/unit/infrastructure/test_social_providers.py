"""Tests for the HTTP social provider clients."""

import httpx
import pytest

from authority.core.exceptions import ProviderFetchError
from authority.domain.entities.account import AuthProvider
from authority.infrastructure.services.social_providers import (
    FacebookProfileProvider,
    GoogleProfileProvider,
    MicrosoftProfileProvider,
)


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestGoogleProfileProvider:
    @pytest.mark.asyncio
    async def test_tokeninfo_profile(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "sub": "1234",
                    "email": "Grace@Example.com",
                    "email_verified": "true",
                    "given_name": "Grace",
                    "family_name": "Hopper",
                    "picture": "https://example.com/g.png",
                    "aud": "client-1",
                },
            )

        async with client_for(handler) as client:
            profile = await GoogleProfileProvider(client, client_id="client-1").fetch_profile("id-tok")

        assert seen[0].url.params["id_token"] == "id-tok"
        assert profile.provider == AuthProvider.GOOGLE
        assert profile.external_id == "1234"
        assert profile.email == "grace@example.com"
        assert profile.email_verified is True
        assert profile.avatar_url == "https://example.com/g.png"

    @pytest.mark.asyncio
    async def test_audience_mismatch(self):
        def handler(request):
            return httpx.Response(200, json={"sub": "1", "email": "a@example.com", "aud": "other"})

        async with client_for(handler) as client:
            with pytest.raises(ProviderFetchError):
                await GoogleProfileProvider(client, client_id="client-1").fetch_profile("tok")

    @pytest.mark.asyncio
    async def test_unverified_email(self):
        def handler(request):
            return httpx.Response(
                200, json={"sub": "1", "email": "a@example.com", "email_verified": "false"}
            )

        async with client_for(handler) as client:
            profile = await GoogleProfileProvider(client).fetch_profile("tok")
        assert profile.email_verified is False


class TestFacebookProfileProvider:
    @pytest.mark.asyncio
    async def test_graph_profile(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "id": "fb-9",
                    "email": "frank@example.com",
                    "first_name": "Frank",
                    "picture": {"data": {"url": "https://example.com/f.png"}},
                },
            )

        async with client_for(handler) as client:
            profile = await FacebookProfileProvider(client).fetch_profile("fb-token")

        assert seen[0].headers["authorization"] == "Bearer fb-token"
        assert profile.external_id == "fb-9"
        assert profile.avatar_url == "https://example.com/f.png"
        assert profile.email_verified is True

    @pytest.mark.asyncio
    async def test_missing_email(self):
        def handler(request):
            return httpx.Response(200, json={"id": "fb-9"})

        async with client_for(handler) as client:
            with pytest.raises(ProviderFetchError) as exc_info:
                await FacebookProfileProvider(client).fetch_profile("fb-token")
        assert exc_info.value.code == "provider_email_missing"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", [42, ["fb@example.com"], {"value": "fb@example.com"}])
    async def test_non_string_email_is_malformed(self, email):
        def handler(request):
            return httpx.Response(200, json={"id": "fb-9", "email": email})

        async with client_for(handler) as client:
            with pytest.raises(ProviderFetchError) as exc_info:
                await FacebookProfileProvider(client).fetch_profile("fb-token")
        assert exc_info.value.code == "provider_fetch_failed"


class TestMicrosoftProfileProvider:
    @pytest.mark.asyncio
    async def test_falls_back_to_user_principal_name(self):
        def handler(request):
            return httpx.Response(
                200, json={"id": "ms-1", "mail": None, "userPrincipalName": "Mia@Contoso.com"}
            )

        async with client_for(handler) as client:
            profile = await MicrosoftProfileProvider(client).fetch_profile("ms-token")

        assert profile.email == "mia@contoso.com"
        assert profile.email_verified is False

    @pytest.mark.asyncio
    async def test_non_string_principal_name_is_ignored(self):
        def handler(request):
            return httpx.Response(200, json={"id": "ms-1", "mail": None, "userPrincipalName": 42})

        async with client_for(handler) as client:
            with pytest.raises(ProviderFetchError) as exc_info:
                await MicrosoftProfileProvider(client).fetch_profile("ms-token")

        assert exc_info.value.code == "provider_email_missing"


class TestFailureModes:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(401, json={"error": "invalid_token"}),
            httpx.Response(500),
            httpx.Response(200, content=b"not json"),
            httpx.Response(200, json=["not", "an", "object"]),
        ],
    )
    async def test_bad_responses(self, response):
        async with client_for(lambda request: response) as client:
            with pytest.raises(ProviderFetchError):
                await FacebookProfileProvider(client).fetch_profile("tok")

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried_then_reported(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(handler) as client:
            provider = GoogleProfileProvider(client, max_attempts=3, retry_wait=0)
            with pytest.raises(ProviderFetchError):
                await provider.fetch_profile("tok")
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_transient_error_recovers(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("blip", request=request)
            return httpx.Response(200, json={"id": "ms-2", "mail": "m@example.com"})

        async with client_for(handler) as client:
            profile = await MicrosoftProfileProvider(client, retry_wait=0).fetch_profile("tok")
        assert profile.external_id == "ms-2"

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with client_for(handler) as client:
            with pytest.raises(ProviderFetchError) as exc_info:
                await MicrosoftProfileProvider(client, max_attempts=1).fetch_profile("tok")
        assert "in time" in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            lambda request: httpx.DecodingError("bad gzip stream", request=request),
            lambda request: httpx.TooManyRedirects("redirect loop", request=request),
        ],
    )
    async def test_unreadable_responses_are_reported_without_retry(self, error):
        calls = []

        def handler(request):
            calls.append(request)
            raise error(request)

        async with client_for(handler) as client:
            provider = FacebookProfileProvider(client, max_attempts=3, retry_wait=0)
            with pytest.raises(ProviderFetchError) as exc_info:
                await provider.fetch_profile("tok")
        assert exc_info.value.code == "provider_fetch_failed"
        assert len(calls) == 1
