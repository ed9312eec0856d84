"""Account lifecycle events.

These events announce that an account was created, updated or deleted so that
other services can react. They are published after the change commits,
best-effort and at most once.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from authority.domain.entities.account import Account
from authority.utils.security import utc_now


class UserEventType(str, Enum):
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"


def _to_camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


class UserLifecycleEvent(BaseModel):
    """Wire payload of a lifecycle event.

    Serialized with camelCase keys:
    ``{userId, email, eventType, role, provider, timestamp, eventSource, eventVersion}``.
    """

    model_config = ConfigDict(frozen=True, alias_generator=_to_camel, populate_by_name=True)

    user_id: int
    email: str
    event_type: UserEventType
    role: Optional[str] = None
    provider: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    event_source: str = "identity-authority"
    event_version: str = "1.0"

    @classmethod
    def from_account(
        cls,
        account: Account,
        event_type: UserEventType,
        event_source: str = "identity-authority",
        event_version: str = "1.0",
    ) -> "UserLifecycleEvent":
        """Snapshot an account; safe to publish after the row has been deleted."""
        return cls(
            user_id=account.id,
            email=account.email,
            event_type=event_type,
            role=account.role.value if account.role else None,
            provider=account.provider.value if account.provider else None,
            event_source=event_source,
            event_version=event_version,
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
