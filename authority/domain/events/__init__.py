"""Domain Events.

Lifecycle events published when accounts are created, updated or deleted.
"""

from .lifecycle_events import UserEventType, UserLifecycleEvent

__all__ = ["UserEventType", "UserLifecycleEvent"]
