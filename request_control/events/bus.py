"""
Async event emitter for request-control.

Delivers host events (tab closed, navigation committed, options changed) to
the engine. Handlers run in priority order, may carry a filter, and never
raise into the code emitting the event.
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

logger = logging.getLogger(__name__)

EventHandler = Callable[..., Any]
EventFilter = Callable[["Event"], bool]
ErrorHandler = Callable[[Exception, str], None]


class EventPriority(int, Enum):
    """Order in which handlers of one event run (higher first)."""

    LOW = 0
    NORMAL = 50
    HIGH = 100


class EventType(str, Enum):
    """Host events the engine listens to."""

    # Tab events
    TAB_REMOVED = "tabs.removed"
    TAB_UPDATED = "tabs.updated"

    # Navigation events
    NAVIGATION_COMMITTED = "navigation.committed"

    # Configuration events
    STORAGE_CHANGED = "storage.changed"

    # Engine events
    REQUEST_RESOLVED = "request.resolved"


@dataclass
class Event:
    """Base of the typed events; ``data`` holds a plain-dict view."""

    type: EventType
    data: Any = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class HandlerEntry:
    """A subscribed handler."""

    handler: EventHandler
    priority: EventPriority = EventPriority.NORMAL
    filter: Optional[EventFilter] = None
    once: bool = False

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.handler)

    def accepts(self, event: Optional[Event]) -> bool:
        if event is None or self.filter is None:
            return True
        try:
            return bool(self.filter(event))
        except Exception as e:
            logger.debug(f"Event filter failed, delivering anyway: {e}")
            return True


def _key(event: Union[str, EventType]) -> str:
    return event.value if isinstance(event, EventType) else event


class AsyncEventEmitter:
    """Event emitter accepting sync and async handlers.

    ``emit`` awaits async handlers in turn; ``emit_sync`` is for callers that
    must not suspend and skips them.

    Example:
        events = AsyncEventEmitter()
        events.on(EventType.TAB_REMOVED, on_tab_removed)
        await events.emit(TabRemovedEvent(tab_id=3))
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[HandlerEntry]] = {}
        self._error_handler: Optional[ErrorHandler] = None

    def _subscribe(self, event: Union[str, EventType], entry: HandlerEntry) -> "AsyncEventEmitter":
        entries = self._entries.setdefault(_key(event), [])
        entries.append(entry)
        # Stable sort keeps subscription order within a priority
        entries.sort(key=lambda e: e.priority, reverse=True)
        return self

    def on(
        self,
        event: Union[str, EventType],
        handler: EventHandler,
        *,
        priority: EventPriority = EventPriority.NORMAL,
        filter: Optional[EventFilter] = None,
    ) -> "AsyncEventEmitter":
        """Subscribe a handler.

        Args:
            event: Event type to listen for.
            handler: Sync or async callable receiving the event.
            priority: Handlers with higher priority run first.
            filter: Predicate deciding which events reach the handler.

        Returns:
            Self for chaining.
        """
        return self._subscribe(event, HandlerEntry(handler, priority, filter))

    def once(
        self,
        event: Union[str, EventType],
        handler: EventHandler,
        *,
        priority: EventPriority = EventPriority.NORMAL,
        filter: Optional[EventFilter] = None,
    ) -> "AsyncEventEmitter":
        """Subscribe a handler for the next matching event only."""
        return self._subscribe(event, HandlerEntry(handler, priority, filter, once=True))

    def off(
        self,
        event: Union[str, EventType],
        handler: Optional[EventHandler] = None,
    ) -> "AsyncEventEmitter":
        """Unsubscribe one handler, or every handler of the event."""
        key = _key(event)
        if handler is None:
            self._entries.pop(key, None)
        elif key in self._entries:
            self._entries[key] = [e for e in self._entries[key] if e.handler != handler]
        return self

    def has_listener(self, event: Union[str, EventType], handler: EventHandler) -> bool:
        return handler in self.listeners(event)

    def listeners(self, event: Union[str, EventType]) -> list[EventHandler]:
        return [e.handler for e in self._entries.get(_key(event), [])]

    def listener_count(self, event: Union[str, EventType]) -> int:
        return len(self._entries.get(_key(event), []))

    def remove_all_listeners(
        self,
        event: Optional[Union[str, EventType]] = None,
    ) -> "AsyncEventEmitter":
        if event is None:
            self._entries.clear()
        else:
            self._entries.pop(_key(event), None)
        return self

    def set_error_handler(self, handler: ErrorHandler) -> "AsyncEventEmitter":
        """Replace logging of handler errors with a callback.

        The callback receives the exception and the event key.
        """
        self._error_handler = handler
        return self

    def _handle_error(self, error: Exception, key: str) -> None:
        if self._error_handler is not None:
            self._error_handler(error, key)
        else:
            logger.error(f"Error in event handler for {key}: {error}")

    def _prepare(
        self,
        event: Union[str, EventType, Event],
        args: tuple,
        sync_only: bool,
    ) -> tuple[str, tuple, list[HandlerEntry]]:
        if isinstance(event, Event):
            key, event_obj, args = _key(event.type), event, (event,) + args
        else:
            key, event_obj = _key(event), None

        entries = self._entries.get(key, [])
        selected = [
            e for e in entries
            if not (sync_only and e.is_async) and e.accepts(event_obj)
        ]
        fired_once = [e for e in selected if e.once]
        if fired_once:
            self._entries[key] = [e for e in entries if e not in fired_once]
        return key, args, selected

    async def emit(
        self,
        event: Union[str, EventType, Event],
        *args: Any,
        **kwargs: Any,
    ) -> bool:
        """Deliver an event to its handlers, awaiting async ones.

        An ``Event`` instance is passed to handlers as their first argument.

        Returns:
            True if at least one handler completed.
        """
        key, args, entries = self._prepare(event, args, sync_only=False)
        handled = False
        for entry in entries:
            try:
                if entry.is_async:
                    await entry.handler(*args, **kwargs)
                else:
                    entry.handler(*args, **kwargs)
                handled = True
            except Exception as e:
                self._handle_error(e, key)
        return handled

    def emit_sync(
        self,
        event: Union[str, EventType, Event],
        *args: Any,
        **kwargs: Any,
    ) -> bool:
        """Deliver an event to its sync handlers only.

        Returns:
            True if at least one handler completed.
        """
        key, args, entries = self._prepare(event, args, sync_only=True)
        handled = False
        for entry in entries:
            try:
                entry.handler(*args, **kwargs)
                handled = True
            except Exception as e:
                self._handle_error(e, key)
        return handled

    async def wait_for(
        self,
        event: Union[str, EventType],
        *,
        timeout: Optional[float] = None,
        predicate: Optional[Callable[..., bool]] = None,
    ) -> Any:
        """Wait for the next event accepted by ``predicate``.

        Returns:
            The first handler argument (the event object for typed events).

        Raises:
            asyncio.TimeoutError: If nothing arrives within ``timeout``.
        """
        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def resolve(*args: Any, **kwargs: Any) -> None:
            if future.done():
                return
            if predicate is not None and not predicate(*args, **kwargs):
                return
            future.set_result(args[0] if len(args) == 1 else (args or None))

        self.on(event, resolve)
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        finally:
            self.off(event, resolve)


__all__ = [
    "AsyncEventEmitter",
    "ErrorHandler",
    "Event",
    "EventFilter",
    "EventHandler",
    "EventPriority",
    "EventType",
    "HandlerEntry",
]
