"""Event bus transports for account lifecycle events.

`RedisEventBus` appends each event to a capped Redis stream named after the
topic. `InMemoryEventBus` keeps events in process for development and tests.
"""

from typing import List, NamedTuple

import structlog
from redis.asyncio import Redis

from authority.domain.interfaces.services import IEventBus

logger = structlog.get_logger(__name__)


class PublishedMessage(NamedTuple):
    topic: str
    key: str
    payload: str


class RedisEventBus(IEventBus):
    """Publishes to Redis streams with ``XADD ... MAXLEN ~ n``.

    Each entry has two fields: ``key`` (the account id) and ``payload``
    (the JSON event).
    """

    def __init__(self, redis: Redis, maxlen: int = 10000):
        self._redis = redis
        self._maxlen = maxlen

    async def publish(self, topic: str, key: str, payload: str) -> None:
        entry_id = await self._redis.xadd(
            topic, {"key": key, "payload": payload}, maxlen=self._maxlen, approximate=True
        )
        logger.debug("Event appended to stream", topic=topic, key=key, entry_id=entry_id)


class InMemoryEventBus(IEventBus):
    """In-memory event bus for development and testing.

    Published messages are kept in order and can be inspected or cleared.
    """

    def __init__(self):
        self._messages: List[PublishedMessage] = []
        logger.info("InMemoryEventBus initialized")

    async def publish(self, topic: str, key: str, payload: str) -> None:
        self._messages.append(PublishedMessage(topic, key, payload))
        logger.debug("Event stored in memory", topic=topic, key=key)

    @property
    def messages(self) -> List[PublishedMessage]:
        return list(self._messages)

    def messages_for(self, topic: str) -> List[PublishedMessage]:
        return [message for message in self._messages if message.topic == topic]

    def clear(self) -> None:
        self._messages.clear()
