"""
Request controller for request-control.

Holds the pending marks rule listeners attach to in-flight requests and
resolves a marked request into the action of its winning rule.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from request_control.models import BlockingResponse, RequestDetails, RuleAction
from request_control.rules import CompiledRule

logger = logging.getLogger(__name__)

ResolvedCallback = Callable[[RequestDetails, bool], None]


class Resolver(Protocol):
    """Marks requests and resolves them later."""

    def mark_request(self, request: RequestDetails, rule: CompiledRule) -> None:
        ...

    def resolve(
        self,
        request: RequestDetails,
        callback: ResolvedCallback,
    ) -> Optional[BlockingResponse]:
        ...

    def clear(self) -> None:
        ...


class RequestController:
    """Resolver keeping pending marks by request id.

    Several rules may mark one request; on resolution the rule with the
    highest action priority wins (whitelist, then block, redirect, filter).
    Everything a resolution needs is stored at mark time, so ``resolve``
    never waits on anything.

    Example:
        controller = RequestController()
        controller.mark_request(details, compiled_rule)
        response = controller.resolve(details, on_resolved)
    """

    def __init__(self) -> None:
        self._marks: dict[str, list[CompiledRule]] = {}

    @property
    def pending(self) -> int:
        """Number of marked requests awaiting resolution."""
        return len(self._marks)

    def is_marked(self, request_id: str) -> bool:
        return request_id in self._marks

    def mark_request(self, request: RequestDetails, rule: CompiledRule) -> None:
        """Attach a rule to an in-flight request."""
        marks = self._marks.setdefault(request.request_id, [])
        if rule not in marks:
            marks.append(rule)

    def resolve(
        self,
        request: RequestDetails,
        callback: ResolvedCallback,
    ) -> Optional[BlockingResponse]:
        """Resolve a request against the rules that marked it.

        Args:
            request: Request reaching the blocking hook.
            callback: Called with the resolved request and whether the tab
                      itself must be navigated.

        Returns:
            Answer for the host, or None to let the request through. Unmarked
            requests always pass through and the callback is not called.
        """
        marks = self._marks.pop(request.request_id, None)
        if not marks:
            return None

        rule = max(marks, key=lambda r: r.priority)
        resolution = rule.resolve(request)

        request.rule = rule.rule
        request.redirect_url = (
            resolution.redirect_url
            if resolution.action is RuleAction.REDIRECT
            else None
        )
        logger.debug(f"Resolved {request.url} with {resolution.action.value} rule {rule.uuid}")

        response = None
        if resolution.action is RuleAction.BLOCK or (
            resolution.action is RuleAction.REDIRECT and resolution.update_tab
        ):
            response = BlockingResponse(cancel=True)
        elif resolution.action is RuleAction.REDIRECT:
            response = BlockingResponse(redirect_url=resolution.redirect_url)

        # The host gets its answer even when recording the outcome fails
        try:
            callback(request, resolution.update_tab)
        except Exception as e:
            logger.error(f"Error recording resolution of {request.url}: {e}")
        return response

    def clear(self) -> None:
        """Drop all pending marks."""
        self._marks.clear()
