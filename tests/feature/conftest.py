"""API fixtures: the application runs in process with the test container."""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from authority.core.application import create_application
from authority.domain.entities.account import Role
from tests.feature.helpers import bearer, register


@pytest_asyncio.fixture
async def client(test_settings, container):
    app = create_application(test_settings, container=container)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def admin_headers(client, authority, password):
    body = await register(client, "admin@example.com", password)
    await authority.update_role(body["account"]["id"], Role.ADMIN)
    response = await client.post(
        "/api/v1/auth/login", json={"email": "admin@example.com", "password": password}
    )
    return bearer(response.json())
