from unittest.mock import AsyncMock

import pytest

from authority.infrastructure.services.event_bus import InMemoryEventBus, RedisEventBus


class TestRedisEventBus:
    @pytest.mark.asyncio
    async def test_appends_to_capped_stream(self):
        redis = AsyncMock()
        redis.xadd.return_value = b"1700000000000-0"
        bus = RedisEventBus(redis, maxlen=500)

        await bus.publish("user.created", "42", '{"userId":42}')

        redis.xadd.assert_awaited_once_with(
            "user.created",
            {"key": "42", "payload": '{"userId":42}'},
            maxlen=500,
            approximate=True,
        )

    @pytest.mark.asyncio
    async def test_errors_propagate_to_the_publisher(self):
        redis = AsyncMock()
        redis.xadd.side_effect = ConnectionError("down")
        with pytest.raises(ConnectionError):
            await RedisEventBus(redis).publish("user.created", "1", "{}")


class TestInMemoryEventBus:
    @pytest.mark.asyncio
    async def test_keeps_messages_in_order(self):
        bus = InMemoryEventBus()
        await bus.publish("user.created", "1", "a")
        await bus.publish("user.updated", "1", "b")
        await bus.publish("user.created", "2", "c")

        assert [m.payload for m in bus.messages] == ["a", "b", "c"]
        assert [m.key for m in bus.messages_for("user.created")] == ["1", "2"]

        bus.clear()
        assert bus.messages == []
