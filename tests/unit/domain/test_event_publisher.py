import json
from unittest.mock import AsyncMock

import pytest

from authority.core.background import BackgroundDispatcher
from authority.domain.entities.account import Role
from authority.domain.events.lifecycle_events import UserEventType
from authority.domain.services.event_publisher import EventTopics, UserEventPublisher
from authority.infrastructure.services.event_bus import InMemoryEventBus
from tests.factories.account import create_fake_account


@pytest.fixture
def account():
    return create_fake_account(id=7, email="alice@example.com", role=Role.ADMIN)


class TestUserEventPublisher:
    @pytest.mark.asyncio
    async def test_publishes_camel_case_payload_keyed_by_user(self, account):
        bus = InMemoryEventBus()
        dispatcher = BackgroundDispatcher()
        publisher = UserEventPublisher(bus, dispatcher, event_source="pytest", event_version="2.0")

        publisher.publish_later(account, UserEventType.USER_CREATED)
        await dispatcher.drain()

        [message] = bus.messages
        assert message.topic == "user.created"
        assert message.key == "7"
        payload = json.loads(message.payload)
        assert set(payload) == {
            "userId",
            "email",
            "eventType",
            "role",
            "provider",
            "timestamp",
            "eventSource",
            "eventVersion",
        }
        assert payload["role"] == "ADMIN"
        assert payload["eventSource"] == "pytest"
        assert payload["eventVersion"] == "2.0"

    @pytest.mark.asyncio
    async def test_custom_topics(self, account):
        bus = InMemoryEventBus()
        dispatcher = BackgroundDispatcher()
        topics = EventTopics(user_deleted="accounts.deleted")
        publisher = UserEventPublisher(bus, dispatcher, topics=topics)

        publisher.publish_later(account, UserEventType.USER_DELETED)
        await dispatcher.drain()

        assert bus.messages_for("accounts.deleted")

    @pytest.mark.asyncio
    async def test_snapshot_is_taken_before_later_changes(self, account):
        bus = InMemoryEventBus()
        dispatcher = BackgroundDispatcher()
        publisher = UserEventPublisher(bus, dispatcher)

        publisher.publish_later(account, UserEventType.USER_UPDATED)
        account.email = "changed@example.com"
        await dispatcher.drain()

        assert json.loads(bus.messages[0].payload)["email"] == "alice@example.com"

    @pytest.mark.asyncio
    async def test_bus_failure_is_logged_not_raised(self, account):
        bus = AsyncMock()
        bus.publish.side_effect = ConnectionError("redis down")
        publisher = UserEventPublisher(bus, BackgroundDispatcher())

        await publisher.publish(publisher.snapshot(account, UserEventType.USER_CREATED))

        bus.publish.assert_awaited_once()
