"""
Lifecycle event publication settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class EventSettings(BaseSettings):
    """
    Defines where account lifecycle events are published.

    EVENT_BUS_BACKEND selects the transport: ``redis`` appends to capped Redis
    streams, ``memory`` keeps events in process (development and tests).
    """

    EVENT_BUS_BACKEND: str = Field(default="redis", pattern="^(redis|memory)$")
    EVENT_TOPIC_USER_CREATED: str = "user.created"
    EVENT_TOPIC_USER_UPDATED: str = "user.updated"
    EVENT_TOPIC_USER_DELETED: str = "user.deleted"
    EVENT_SOURCE: str = "identity-authority"
    EVENT_VERSION: str = "1.0"
    EVENT_STREAM_MAXLEN: int = Field(ge=1, default=10000)
