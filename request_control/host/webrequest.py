"""
In-process request interception hooks.

Mirrors a browser's before-request event: listeners are installed with a
filter, non-blocking listeners observe requests and blocking listeners may
cancel or redirect them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from request_control.host.filter import RequestFilter
from request_control.interfaces import BaseWebRequest, RequestListener
from request_control.models import BlockingResponse, RequestDetails

logger = logging.getLogger(__name__)

BLOCKING = "blocking"


@dataclass
class ListenerEntry:
    """An installed listener with its filter."""

    listener: RequestListener
    filter: RequestFilter = field(default_factory=RequestFilter)
    blocking: bool = False

    def matches(self, request: RequestDetails) -> bool:
        try:
            return self.filter.matches(request)
        except Exception as e:
            logger.debug(f"Filter failed for {request.url}: {e}")
            return False


class WebRequestEvent(BaseWebRequest):
    """Before-request hooks of an in-process host.

    Example:
        web_request = WebRequestEvent()
        web_request.add_listener(observe, RequestFilter(types=["script"]))
        web_request.add_listener(decide, RequestFilter(), [BLOCKING])

        response = web_request.dispatch(details)
    """

    def __init__(self) -> None:
        self._entries: list[ListenerEntry] = []
        self._behavior_changes = 0

    @property
    def behavior_changes(self) -> int:
        """How many times the request-handling cache was invalidated."""
        return self._behavior_changes

    def add_listener(
        self,
        listener: RequestListener,
        filter: RequestFilter,
        extra_info: Optional[list[str]] = None,
    ) -> None:
        if self.has_listener(listener):
            return
        blocking = BLOCKING in (extra_info or [])
        self._entries.append(ListenerEntry(listener=listener, filter=filter, blocking=blocking))

    def remove_listener(self, listener: RequestListener) -> None:
        self._entries = [e for e in self._entries if e.listener != listener]

    def has_listener(self, listener: RequestListener) -> bool:
        return any(e.listener == listener for e in self._entries)

    def handler_behavior_changed(self) -> None:
        self._behavior_changes += 1

    def listener_count(self, blocking: Optional[bool] = None) -> int:
        """Count installed listeners, optionally only (non-)blocking ones."""
        if blocking is None:
            return len(self._entries)
        return sum(1 for e in self._entries if e.blocking == blocking)

    def dispatch(self, request: RequestDetails) -> Optional[BlockingResponse]:
        """Fire the hooks for a request about to be sent.

        Non-blocking listeners run first, in install order, then blocking
        ones. The first blocking answer wins. Listener errors are logged and
        never stop the remaining listeners.

        Returns:
            The blocking response, or None to let the request through.
        """
        entries = list(self._entries)
        response: Optional[BlockingResponse] = None

        for entry in [e for e in entries if not e.blocking]:
            if not entry.matches(request):
                continue
            try:
                entry.listener(request)
            except Exception as e:
                logger.error(f"Error in request listener for {request.url}: {e}")

        for entry in [e for e in entries if e.blocking]:
            if not entry.matches(request):
                continue
            try:
                result = entry.listener(request)
            except Exception as e:
                logger.error(f"Error in blocking request listener for {request.url}: {e}")
                continue
            if response is None and result is not None:
                response = result

        return response
