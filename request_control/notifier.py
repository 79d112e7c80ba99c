"""
Notifiers for request-control.

A notifier reflects the engine's state to the user: enabled or disabled, the
per-tab count of applied rules, and rule errors. The engine only calls the
``Notifier`` protocol; how the state is shown is up to the implementation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol, Sequence

from request_control.models import Record, Rule, RuleAction

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Operations the engine calls to report state."""

    def enabled_state(self) -> None:
        ...

    def disabled_state(self, records: Mapping[int, Sequence[Record]]) -> None:
        ...

    def notify(self, tab_id: int, rule: Rule, count: int) -> None:
        ...

    def clear(self, tab_id: int) -> None:
        ...

    def error(self, tab_id: Optional[int], message: str) -> None:
        ...


class LoggingNotifier:
    """Notifier writing every state change to the log."""

    def __init__(self, logger_name: str = "request_control.notifier") -> None:
        self._logger = logging.getLogger(logger_name)

    def enabled_state(self) -> None:
        self._logger.info("Request control enabled")

    def disabled_state(self, records: Mapping[int, Sequence[Record]]) -> None:
        self._logger.info(f"Request control disabled, dropping records of {len(records)} tabs")

    def notify(self, tab_id: int, rule: Rule, count: int) -> None:
        self._logger.info(f"Tab {tab_id}: {rule.action.value} rule {rule.uuid} applied ({count} total)")

    def clear(self, tab_id: int) -> None:
        self._logger.debug(f"Tab {tab_id}: records cleared")

    def error(self, tab_id: Optional[int], message: str) -> None:
        if tab_id is None:
            self._logger.error(message)
        else:
            self._logger.error(f"Tab {tab_id}: {message}")


@dataclass
class Badge:
    """What a toolbar badge shows for one tab."""

    text: str = ""
    action: Optional[RuleAction] = None


@dataclass
class BadgeNotifier:
    """Notifier keeping the badge state a toolbar button would render.

    The badge shows the count of applied rules and the action of the last one.
    Errors are kept until read.
    """

    enabled: bool = True
    badges: dict[int, Badge] = field(default_factory=dict)
    errors: list[tuple[Optional[int], str]] = field(default_factory=list)

    def enabled_state(self) -> None:
        self.enabled = True

    def disabled_state(self, records: Mapping[int, Sequence[Record]]) -> None:
        self.enabled = False
        self.badges.clear()

    def notify(self, tab_id: int, rule: Rule, count: int) -> None:
        self.badges[tab_id] = Badge(text=str(count), action=rule.action)

    def clear(self, tab_id: int) -> None:
        self.badges.pop(tab_id, None)

    def error(self, tab_id: Optional[int], message: str) -> None:
        logger.warning(message)
        self.errors.append((tab_id, message))

    def badge(self, tab_id: int) -> Badge:
        return self.badges.get(tab_id, Badge())

    def take_errors(self) -> list[tuple[Optional[int], str]]:
        """Return and forget the collected errors."""
        errors, self.errors = self.errors, []
        return errors


def get_notifier(kind: str = "badge") -> Notifier:
    """Create a notifier by name ("badge" or "log")."""
    if kind == "badge":
        return BadgeNotifier()
    if kind == "log":
        return LoggingNotifier()
    raise ValueError(f"Unknown notifier: {kind}")


__all__ = [
    "Badge",
    "BadgeNotifier",
    "LoggingNotifier",
    "Notifier",
    "get_notifier",
]
