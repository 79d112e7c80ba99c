"""
Rule compilation for request-control.

Turns stored rule definitions into match-pattern lists and compiled rules the
controller can resolve requests with. The engine reaches this module only
through the ``RuleCompiler`` protocol, so hosts can plug in their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union
from urllib.parse import urlsplit

from pydantic import ValidationError

from request_control.exceptions import RuleCompilationError
from request_control.models import (
    RequestDetails,
    Resolution,
    ResourceType,
    Rule,
    RuleAction,
)

ALL_URLS = "<all_urls>"

SCHEMES = ("*", "http", "https", "ws", "wss", "ftp")

# Schemes the host can redirect to natively; anything else needs a tab update.
REDIRECTABLE_SCHEMES = ("http", "https", "ws", "wss", "ftp", "data")

# Higher wins when several rules mark the same request.
ACTION_PRIORITY = {
    RuleAction.WHITELIST: 3,
    RuleAction.BLOCK: 2,
    RuleAction.REDIRECT: 1,
    RuleAction.FILTER: 0,
}


@dataclass(frozen=True)
class CompiledRule:
    """Rule ready to resolve requests."""

    rule: Rule
    types: Optional[tuple[str, ...]] = None

    @property
    def uuid(self) -> str:
        return self.rule.uuid

    @property
    def action(self) -> RuleAction:
        return self.rule.action

    @property
    def priority(self) -> int:
        return ACTION_PRIORITY[self.rule.action]

    def resolve(self, request: RequestDetails) -> Resolution:
        """Decide what happens to a request this rule marked."""
        if self.action is not RuleAction.REDIRECT:
            return Resolution(action=self.action)

        target = self.rule.redirect_url
        if not target or target == request.url:
            return Resolution(action=RuleAction.WHITELIST)

        scheme = urlsplit(target).scheme.lower()
        update_tab = (
            request.type == ResourceType.MAIN_FRAME.value
            and scheme not in REDIRECTABLE_SCHEMES
        )
        return Resolution(
            action=RuleAction.REDIRECT,
            redirect_url=target,
            update_tab=update_tab,
        )


class RuleCompiler(Protocol):
    """Compiles rule definitions for the listener registry."""

    def create_rule(self, data: Union[Rule, dict[str, Any]]) -> CompiledRule:
        ...

    def create_match_patterns(self, pattern: dict[str, Any]) -> list[str]:
        ...


def _as_list(value: Any, name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    raise RuleCompilationError(f"pattern {name} must be a string or a list of strings")


def create_match_patterns(pattern: dict[str, Any]) -> list[str]:
    """Expand a rule pattern into host match patterns.

    Args:
        pattern: Mapping with ``scheme``, ``host`` and ``path`` keys, or
                 ``allUrls`` set to true.

    Returns:
        List of match patterns such as ``"*://*.example.com/ads/*"``.

    Raises:
        RuleCompilationError: If the pattern is malformed.
    """
    if not isinstance(pattern, dict):
        raise RuleCompilationError("pattern must be a mapping")

    if pattern.get("allUrls"):
        return [ALL_URLS]

    scheme = pattern.get("scheme", "*")
    if scheme not in SCHEMES:
        raise RuleCompilationError(f"unsupported scheme {scheme!r}")

    hosts = _as_list(pattern.get("host"), "host")
    if not hosts:
        raise RuleCompilationError("pattern has no host")

    paths = _as_list(pattern.get("path"), "path") or ["*"]

    urls = []
    for host in hosts:
        host = host.strip()
        wildcard_ok = host == "*" or "*" not in host.removeprefix("*.")
        if not host or "/" in host or not wildcard_ok:
            raise RuleCompilationError(f"invalid host {host!r}")
        for path in paths:
            path = path.strip().lstrip("/") or "*"
            urls.append(f"{scheme}://{host}/{path}")
    return urls


def create_rule(data: Union[Rule, dict[str, Any]]) -> CompiledRule:
    """Compile a rule definition.

    Raises:
        RuleCompilationError: If the rule body is invalid.
    """
    try:
        rule = data if isinstance(data, Rule) else Rule.model_validate(data)
    except ValidationError as e:
        uuid = data.get("uuid") if isinstance(data, dict) else None
        raise RuleCompilationError(str(e), uuid) from e

    known = {t.value for t in ResourceType}
    unknown = [t for t in rule.types if t not in known]
    if unknown:
        raise RuleCompilationError(f"unknown resource types {unknown}", rule.uuid)

    if rule.action is RuleAction.REDIRECT and not rule.redirect_url:
        raise RuleCompilationError("redirect rule has no redirect URL", rule.uuid)

    return CompiledRule(rule=rule, types=tuple(rule.types) or None)


class DefaultRuleCompiler:
    """RuleCompiler backed by this module's functions."""

    def create_rule(self, data: Union[Rule, dict[str, Any]]) -> CompiledRule:
        return create_rule(data)

    def create_match_patterns(self, pattern: dict[str, Any]) -> list[str]:
        return create_match_patterns(pattern)


__all__ = [
    "ALL_URLS",
    "ACTION_PRIORITY",
    "CompiledRule",
    "DefaultRuleCompiler",
    "RuleCompiler",
    "create_match_patterns",
    "create_rule",
]
