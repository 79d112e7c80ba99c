"""
Rule listener registry for request-control.

Installs one marking listener per active rule plus the catch-all blocking
listener, and tears all of them down again on configuration changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union

from pydantic import ValidationError

from request_control.exceptions import RuleCompilationError
from request_control.host.filter import RequestFilter
from request_control.host.webrequest import BLOCKING
from request_control.interfaces import RequestListener
from request_control.models import RequestDetails, Rule
from request_control.rules import ALL_URLS, CompiledRule, DefaultRuleCompiler

if TYPE_CHECKING:
    from request_control.control.controller import Resolver
    from request_control.interfaces import BaseHost
    from request_control.notifier import Notifier
    from request_control.rules import RuleCompiler

logger = logging.getLogger(__name__)

INVALID_RULE_MESSAGE = "Invalid rule"


def _is_active(rule: Union[Rule, dict[str, Any]]) -> bool:
    if isinstance(rule, Rule):
        return rule.active
    return bool(rule.get("active", True))


def _rule_uuid(rule: Union[Rule, dict[str, Any]]) -> Optional[str]:
    if isinstance(rule, Rule):
        return rule.uuid
    return rule.get("uuid")


@dataclass(frozen=True)
class ListenerHandle:
    """An installed listener."""

    listener: RequestListener
    filter: RequestFilter
    blocking: bool = False
    rule_uuid: Optional[str] = None


class RuleListenerRegistry:
    """Owns the interception listeners derived from the rules.

    Reloading is always uninstall-all then install-all. The handle list is
    swapped in one assignment, so it never holds old and new listeners at
    once.

    Example:
        registry = RuleListenerRegistry(host, controller, notifier)
        registry.install(options.rules, dispatcher)
        ...
        registry.uninstall()
    """

    def __init__(
        self,
        host: "BaseHost",
        controller: "Resolver",
        notifier: "Notifier",
        compiler: Optional["RuleCompiler"] = None,
    ) -> None:
        self._host = host
        self._controller = controller
        self._notifier = notifier
        self._compiler = compiler or DefaultRuleCompiler()
        self._handles: tuple[ListenerHandle, ...] = ()

    @property
    def handles(self) -> tuple[ListenerHandle, ...]:
        return self._handles

    @property
    def installed(self) -> bool:
        return bool(self._handles)

    @property
    def rule_count(self) -> int:
        """Number of installed per-rule listeners."""
        return sum(1 for h in self._handles if not h.blocking)

    def __len__(self) -> int:
        return len(self._handles)

    def _mark_listener(self, rule: CompiledRule) -> RequestListener:
        controller = self._controller

        def listener(request: RequestDetails) -> None:
            controller.mark_request(request, rule)

        return listener

    def _compile(self, data: Union[Rule, dict[str, Any]]) -> ListenerHandle:
        compiled = self._compiler.create_rule(data)
        urls = self._compiler.create_match_patterns(compiled.rule.pattern)
        types = list(compiled.types) if compiled.types else None
        return ListenerHandle(
            listener=self._mark_listener(compiled),
            filter=RequestFilter(urls=urls, types=types),
            rule_uuid=compiled.uuid,
        )

    def install(
        self,
        rules: Optional[Iterable[Union[Rule, dict[str, Any]]]],
        resolve_listener: RequestListener,
    ) -> int:
        """Install listeners for the active rules and the catch-all listener.

        A rule that fails to compile is skipped and reported; the others
        still install.

        Args:
            rules: Rules from the options snapshot.
            resolve_listener: Blocking listener resolving marked requests.

        Returns:
            Number of rule listeners installed.
        """
        if self._handles:
            self.uninstall()

        handles: list[ListenerHandle] = []
        for rule in rules or ():
            if not _is_active(rule):
                continue
            try:
                handles.append(self._compile(rule))
            except (RuleCompilationError, ValidationError, ValueError, TypeError) as e:
                uuid = _rule_uuid(rule)
                logger.warning(f"Skipping rule {uuid}: {e}")
                self._notifier.error(None, f"{INVALID_RULE_MESSAGE}: {uuid}")

        handles.append(ListenerHandle(
            listener=resolve_listener,
            filter=RequestFilter(urls=[ALL_URLS]),
            blocking=True,
        ))

        web_request = self._host.web_request
        for handle in handles:
            extra_info = [BLOCKING] if handle.blocking else None
            web_request.add_listener(handle.listener, handle.filter, extra_info)
        self._handles = tuple(handles)
        web_request.handler_behavior_changed()

        count = len(handles) - 1
        logger.debug(f"Installed {count} rule listeners")
        return count

    def uninstall(self) -> None:
        """Remove every installed listener. Safe to call repeatedly."""
        handles, self._handles = self._handles, ()
        web_request = self._host.web_request
        for handle in handles:
            web_request.remove_listener(handle.listener)
        web_request.handler_behavior_changed()
        if handles:
            logger.debug(f"Removed {len(handles)} listeners")
