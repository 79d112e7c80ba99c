"""
Typed events for request-control.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from request_control.models import NavigationDetails, Record

from .bus import Event, EventType


@dataclass
class TabRemovedEvent(Event):
    """Event emitted when a tab is closed."""

    type: EventType = field(default=EventType.TAB_REMOVED)
    tab_id: int = -1

    def __post_init__(self):
        if self.data is None:
            self.data = {"tab_id": self.tab_id}


@dataclass
class TabUpdatedEvent(Event):
    """Event emitted when the engine navigates a tab itself."""

    type: EventType = field(default=EventType.TAB_UPDATED)
    tab_id: int = -1
    url: str = ""

    def __post_init__(self):
        if self.data is None:
            self.data = {"tab_id": self.tab_id, "url": self.url}


@dataclass
class NavigationCommittedEvent(Event):
    """Event emitted when a frame commits a navigation."""

    type: EventType = field(default=EventType.NAVIGATION_COMMITTED)
    details: Optional[NavigationDetails] = None

    def __post_init__(self):
        if self.data is None and self.details is not None:
            self.data = self.details.model_dump()


@dataclass
class StorageChangedEvent(Event):
    """Event emitted when stored options change."""

    type: EventType = field(default=EventType.STORAGE_CHANGED)
    changes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.data is None:
            self.data = self.changes


@dataclass
class RequestResolvedEvent(Event):
    """Event emitted after a request was resolved and recorded."""

    type: EventType = field(default=EventType.REQUEST_RESOLVED)
    record: Optional[Record] = None
    count: int = 0

    def __post_init__(self):
        if self.data is None and self.record is not None:
            self.data = {"record": self.record, "count": self.count}
