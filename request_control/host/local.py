"""
In-process host for request-control.

LocalHost provides the hooks, tabs and events the engine needs without a
browser, for embedding the engine in a proxy or driving it from tests.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from request_control.events import (
    AsyncEventEmitter,
    NavigationCommittedEvent,
    TabRemovedEvent,
    TabUpdatedEvent,
)
from request_control.host.webrequest import WebRequestEvent
from request_control.interfaces import BaseHost, BaseTabs
from request_control.models import BlockingResponse, NavigationDetails, RequestDetails

logger = logging.getLogger(__name__)


class LocalTabs(BaseTabs):
    """Tabs of an in-process host.

    Tracks the active tab and the navigations the engine requested.
    """

    def __init__(self, events: AsyncEventEmitter, active_tab: Optional[int] = None) -> None:
        self._events = events
        self.active_tab = active_tab
        self.navigations: list[tuple[int, str]] = []

    def update(self, tab_id: int, url: str) -> None:
        logger.debug(f"Navigating tab {tab_id} to {url}")
        self.navigations.append((tab_id, url))
        self._events.emit_sync(TabUpdatedEvent(tab_id=tab_id, url=url))

    async def query_active(self) -> Optional[int]:
        return self.active_tab


class LocalHost(BaseHost):
    """Host running entirely in-process.

    Example:
        host = LocalHost(active_tab=1)
        service = RequestControlService(host, storage)
        await service.start()

        response = host.send_request(RequestDetails(
            request_id="1", tab_id=1, url="https://ads.example.com/a.js", type="script",
        ))
        await host.commit_navigation(1, "https://example.com/")
    """

    def __init__(self, active_tab: Optional[int] = None) -> None:
        self._events = AsyncEventEmitter()
        self._web_request = WebRequestEvent()
        self._tabs = LocalTabs(self._events, active_tab)

    @property
    def web_request(self) -> WebRequestEvent:
        return self._web_request

    @property
    def tabs(self) -> LocalTabs:
        return self._tabs

    @property
    def events(self) -> AsyncEventEmitter:
        return self._events

    def send_request(self, request: RequestDetails) -> Optional[BlockingResponse]:
        """Run a request through the interception hooks."""
        return self._web_request.dispatch(request)

    async def commit_navigation(
        self,
        tab_id: int,
        url: str,
        *,
        frame_id: int = 0,
        transition_qualifiers: Iterable[str] = (),
    ) -> None:
        """Deliver a navigation commit."""
        details = NavigationDetails(
            tab_id=tab_id,
            url=url,
            frame_id=frame_id,
            transition_qualifiers=list(transition_qualifiers),
        )
        await self._events.emit(NavigationCommittedEvent(details=details))

    async def close_tab(self, tab_id: int) -> None:
        """Deliver a tab-removed event."""
        await self._events.emit(TabRemovedEvent(tab_id=tab_id))
