"""Lifecycle event publisher.

Turns account changes into `UserLifecycleEvent` payloads and hands them to an
`IEventBus` in the background. The payload is snapshotted when the change
happens, so a deleted account can still be announced.
"""

from dataclasses import dataclass

import structlog

from authority.core.background import BackgroundDispatcher
from authority.domain.entities.account import Account
from authority.domain.events.lifecycle_events import UserEventType, UserLifecycleEvent
from authority.domain.interfaces.services import IEventBus

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EventTopics:
    user_created: str = "user.created"
    user_updated: str = "user.updated"
    user_deleted: str = "user.deleted"

    def for_type(self, event_type: UserEventType) -> str:
        return {
            UserEventType.USER_CREATED: self.user_created,
            UserEventType.USER_UPDATED: self.user_updated,
            UserEventType.USER_DELETED: self.user_deleted,
        }[event_type]


class UserEventPublisher:
    """Publishes account lifecycle events, best-effort and at most once."""

    def __init__(
        self,
        bus: IEventBus,
        dispatcher: BackgroundDispatcher,
        topics: EventTopics = EventTopics(),
        event_source: str = "identity-authority",
        event_version: str = "1.0",
    ):
        self._bus = bus
        self._dispatcher = dispatcher
        self._topics = topics
        self._event_source = event_source
        self._event_version = event_version

    def snapshot(self, account: Account, event_type: UserEventType) -> UserLifecycleEvent:
        return UserLifecycleEvent.from_account(
            account, event_type, event_source=self._event_source, event_version=self._event_version
        )

    def publish_later(self, account: Account, event_type: UserEventType) -> UserLifecycleEvent:
        """Snapshot now, publish in the background."""
        event = self.snapshot(account, event_type)
        self._dispatcher.submit(self.publish(event), name=f"publish_{event_type.value.lower()}")
        return event

    async def publish(self, event: UserLifecycleEvent) -> None:
        topic = self._topics.for_type(event.event_type)
        try:
            await self._bus.publish(topic, str(event.user_id), event.to_json())
        except Exception as e:
            # Event loss is tolerated; the account change has already committed.
            logger.error(
                "Failed to publish lifecycle event",
                topic=topic,
                user_id=event.user_id,
                event_type=event.event_type.value,
                error=str(e),
            )
            return
        logger.info(
            "Lifecycle event published",
            topic=topic,
            user_id=event.user_id,
            event_type=event.event_type.value,
        )
