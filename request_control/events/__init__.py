"""
Event system for request-control.

Host events reach the engine through an AsyncEventEmitter:
- TAB_REMOVED: a tab was closed, its records are dropped
- NAVIGATION_COMMITTED: a frame committed a navigation, records are reconciled
- STORAGE_CHANGED: options changed, rule listeners are rebuilt
- REQUEST_RESOLVED: a request was resolved and recorded

Example:
    ```python
    from request_control.events import AsyncEventEmitter, EventType

    events = AsyncEventEmitter()
    events.on(EventType.TAB_REMOVED, lambda e: print(f"Closed {e.tab_id}"))
    await events.emit(TabRemovedEvent(tab_id=3))
    ```
"""

from .bus import (
    AsyncEventEmitter,
    ErrorHandler,
    Event,
    EventFilter,
    EventHandler,
    EventPriority,
    EventType,
    HandlerEntry,
)
from .types import (
    NavigationCommittedEvent,
    RequestResolvedEvent,
    StorageChangedEvent,
    TabRemovedEvent,
    TabUpdatedEvent,
)

__all__ = [
    # Types
    "EventType",
    "EventPriority",
    "Event",
    "HandlerEntry",
    # Type aliases
    "EventHandler",
    "ErrorHandler",
    "EventFilter",
    # Classes
    "AsyncEventEmitter",
    # Typed events
    "TabRemovedEvent",
    "TabUpdatedEvent",
    "NavigationCommittedEvent",
    "StorageChangedEvent",
    "RequestResolvedEvent",
]
