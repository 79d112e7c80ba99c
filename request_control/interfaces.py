"""
Abstract base interfaces for request-control.

This module defines what the engine needs from the host it runs in: request
interception hooks, tab control, an event source, and options storage.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from request_control.events import AsyncEventEmitter
    from request_control.host.filter import RequestFilter
    from request_control.models import BlockingResponse, Options, RequestDetails

RequestListener = Callable[["RequestDetails"], Optional["BlockingResponse"]]


class BaseWebRequest(ABC):
    """Interception hooks fired before a request is sent."""

    @abstractmethod
    def add_listener(
        self,
        listener: RequestListener,
        filter: "RequestFilter",
        extra_info: Optional[list[str]] = None,
    ) -> None:
        """Install a listener.

        Args:
            listener: Called with the request details.
            filter: URLs and resource types the listener is called for.
            extra_info: ``["blocking"]`` makes the host wait for the
                        listener's answer before sending the request.
        """
        ...

    @abstractmethod
    def remove_listener(self, listener: RequestListener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        ...

    @abstractmethod
    def has_listener(self, listener: RequestListener) -> bool:
        """Check if a listener is installed."""
        ...

    @abstractmethod
    def handler_behavior_changed(self) -> None:
        """Invalidate the host's request-handling cache."""
        ...


class BaseTabs(ABC):
    """Tab control."""

    @abstractmethod
    def update(self, tab_id: int, url: str) -> None:
        """Navigate a tab. Fire and forget."""
        ...

    @abstractmethod
    async def query_active(self) -> Optional[int]:
        """Get the id of the active tab in the current window."""
        ...


class BaseOptionsStorage(ABC):
    """Source of the options snapshot."""

    @abstractmethod
    async def get(self) -> "Options":
        """Load the whole options snapshot."""
        ...

    @abstractmethod
    def on_changed(self, handler: Callable[..., Any]) -> None:
        """Subscribe to option changes."""
        ...

    @abstractmethod
    def off_changed(self, handler: Callable[..., Any]) -> None:
        """Unsubscribe from option changes."""
        ...


class BaseHost(ABC):
    """Everything the engine consumes from its host."""

    @property
    @abstractmethod
    def web_request(self) -> BaseWebRequest:
        ...

    @property
    @abstractmethod
    def tabs(self) -> BaseTabs:
        ...

    @property
    @abstractmethod
    def events(self) -> "AsyncEventEmitter":
        """Emitter delivering tab and navigation events."""
        ...
