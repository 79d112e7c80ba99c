"""
Resolution dispatcher for request-control.

The catch-all blocking hook: asks the resolver what to do with a request,
records the outcome in the tab's history and reports it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from request_control.events import RequestResolvedEvent
from request_control.models import BlockingResponse, Record, RequestDetails

if TYPE_CHECKING:
    from request_control.control.controller import Resolver
    from request_control.interfaces import BaseHost
    from request_control.notifier import Notifier
    from request_control.records import RecordStore

logger = logging.getLogger(__name__)


class ResolutionDispatcher:
    """Turns resolved requests into records, notifications and tab updates.

    Instances are installed directly as the blocking listener, so calling one
    must never suspend: everything it needs is already in memory.
    """

    def __init__(
        self,
        controller: "Resolver",
        store: "RecordStore",
        notifier: "Notifier",
        host: "BaseHost",
    ) -> None:
        self._controller = controller
        self._store = store
        self._notifier = notifier
        self._host = host

    def __call__(self, request: RequestDetails) -> Optional[BlockingResponse]:
        return self.resolve(request)

    def resolve(self, request: RequestDetails) -> Optional[BlockingResponse]:
        """Resolve a request reaching the blocking hook."""
        return self._controller.resolve(request, self.on_resolved)

    def on_resolved(self, request: RequestDetails, update_tab: bool = False) -> int:
        """Record a resolved request.

        Args:
            request: Request with its rule (and redirect URL) filled in.
            update_tab: Navigate the tab to the redirect URL.

        Returns:
            Number of records the tab holds afterwards.
        """
        record = Record.from_request(request)
        count = self._store.append(record)

        try:
            self._notifier.notify(request.tab_id, record.rule, count)
        except Exception as e:
            logger.error(f"Notifier failed for tab {request.tab_id}: {e}")

        if update_tab and request.redirect_url:
            try:
                self._host.tabs.update(request.tab_id, request.redirect_url)
            except Exception as e:
                logger.error(f"Cannot navigate tab {request.tab_id} to {request.redirect_url}: {e}")

        self._host.events.emit_sync(RequestResolvedEvent(record=record, count=count))
        return count
