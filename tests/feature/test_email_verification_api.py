"""Email verification journey: register, resend, verify, and stale links."""

import pytest

from authority.domain.value_objects.notifications import NotificationKind
from tests.feature.helpers import bearer, register


def _token_of(notification) -> str:
    return notification.payload["link"].split("token=")[1]


@pytest.mark.asyncio
async def test_resend_supersedes_the_first_link(client, password, notifier, dispatcher):
    body = await register(client, "alice@example.com", password)
    headers = bearer(body)

    resend = await client.post("/api/v1/email-verification/resend", json={"email": "alice@example.com"})
    assert resend.status_code == 202
    await dispatcher.drain()

    links = notifier.of_kind(NotificationKind.VERIFICATION_EMAIL)
    assert len(links) == 2
    first_token, second_token = _token_of(links[0]), _token_of(links[1])
    assert links[1].payload["link"] == f"https://app.test/verify-email?token={second_token}"

    status = await client.get("/api/v1/email-verification/status", headers=headers)
    assert status.json() == {"verified": False, "has_pending_ticket": True}

    verified = await client.post("/api/v1/email-verification/verify", json={"token": second_token})
    assert verified.status_code == 200
    assert verified.json() == {
        "outcome": "verified",
        "email": "alice@example.com",
        "already_verified": False,
    }

    stale = await client.post("/api/v1/email-verification/verify", json={"token": first_token})
    assert stale.status_code == 401
    assert stale.json()["code"] == "verification_token_invalid"

    status = await client.get("/api/v1/email-verification/status", headers=headers)
    assert status.json() == {"verified": True, "has_pending_ticket": False}
    me = await client.get("/api/v1/users/me", headers=headers)
    assert me.json()["email_verified"] is True

    await dispatcher.drain()
    assert len(notifier.of_kind(NotificationKind.WELCOME_EMAIL)) == 1


@pytest.mark.asyncio
async def test_reusing_a_consumed_link_is_not_an_error(client, password, notifier, dispatcher):
    await register(client, "carol@example.com", password)
    await dispatcher.drain()
    token = _token_of(notifier.of_kind(NotificationKind.VERIFICATION_EMAIL)[0])

    await client.post("/api/v1/email-verification/verify", json={"token": token})
    again = await client.post("/api/v1/email-verification/verify", json={"token": token})

    assert again.status_code == 200
    assert again.json()["outcome"] == "already_verified"
    assert again.json()["already_verified"] is True


@pytest.mark.asyncio
async def test_resend_is_silent_for_unknown_and_verified_addresses(client, password, notifier, dispatcher):
    await register(client, "dave@example.com", password)
    await dispatcher.drain()
    token = _token_of(notifier.of_kind(NotificationKind.VERIFICATION_EMAIL)[0])
    await client.post("/api/v1/email-verification/verify", json={"token": token})

    for email in ("dave@example.com", "ghost@example.com"):
        response = await client.post("/api/v1/email-verification/resend", json={"email": email})
        assert response.status_code == 202
    await dispatcher.drain()

    assert len(notifier.of_kind(NotificationKind.VERIFICATION_EMAIL)) == 1


@pytest.mark.asyncio
async def test_unknown_token(client):
    response = await client.post("/api/v1/email-verification/verify", json={"token": "f" * 64})
    assert response.status_code == 401
    assert response.json()["code"] == "verification_token_invalid"
