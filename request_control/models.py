"""
Core data models for request-control.

This module defines the data structures shared by the engine: rules and the
configuration snapshot they arrive in, intercepted requests, navigation
commits, and the records kept per tab.
"""

import time
from enum import Enum
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from request_control.exceptions import ResolutionError


class RuleAction(str, Enum):
    """Actions a rule can carry.

    - WHITELIST: Allow the request untouched
    - BLOCK: Cancel the request
    - REDIRECT: Send the request to another URL
    - FILTER: Rewrite the URL (e.g. strip tracking parameters)
    """

    WHITELIST = "whitelist"
    BLOCK = "block"
    REDIRECT = "redirect"
    FILTER = "filter"


class ResourceType(str, Enum):
    """Resource types delivered with intercepted requests."""

    MAIN_FRAME = "main_frame"
    SUB_FRAME = "sub_frame"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"
    IMAGE = "image"
    FONT = "font"
    OBJECT = "object"
    XMLHTTPREQUEST = "xmlhttprequest"
    PING = "ping"
    MEDIA = "media"
    WEBSOCKET = "websocket"
    OTHER = "other"


SERVER_REDIRECT = "server_redirect"
"""Transition qualifier marking a navigation caused by a server redirect."""

TAB_ID_NONE = -1
"""Tab id the host uses for requests not tied to a tab."""


class Rule(BaseModel):
    """User-defined rule as stored in the configuration.

    The engine treats rules as opaque apart from ``uuid`` and ``active``.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    uuid: str
    action: RuleAction
    pattern: dict[str, Any] = Field(default_factory=dict)
    types: list[str] = Field(default_factory=list)
    tag: Optional[str] = None
    active: bool = True
    redirect_url: Optional[str] = Field(default=None, alias="redirectUrl")


class Options(BaseModel):
    """Configuration snapshot, loaded and reloaded as a whole.

    Rule entries that do not validate are kept as plain mappings so a single
    malformed rule cannot reject the whole snapshot; the listener registry
    reports them when it tries to compile them.
    """

    disabled: bool = False
    rules: list[Annotated[Union[Rule, dict[str, Any]], Field(union_mode="left_to_right")]] = Field(
        default_factory=list
    )

    def get_rule(self, uuid: str) -> Optional[Rule]:
        """Find a rule by uuid."""
        for rule in self.rules:
            if isinstance(rule, Rule) and rule.uuid == uuid:
                return rule
        return None

    @property
    def active_rules(self) -> list[Rule]:
        return [rule for rule in self.rules if isinstance(rule, Rule) and rule.active]


class RequestDetails(BaseModel):
    """An intercepted request as delivered by the host.

    ``rule`` and ``redirect_url`` are filled in when the request is resolved.
    Hosts that do not time their requests leave ``timestamp`` unset; the
    record then carries the time of resolution.
    """

    request_id: str
    url: str
    tab_id: int = TAB_ID_NONE
    frame_id: int = 0
    type: str = ResourceType.MAIN_FRAME.value
    method: str = "GET"
    timestamp: Optional[float] = None
    rule: Optional[Rule] = None
    redirect_url: Optional[str] = None


class Record(BaseModel):
    """One resolved request outcome kept in a tab's history.

    The whole rule is kept, not only its uuid: notifiers render its action and
    the rules snapshot may be replaced while the record still lives.
    """

    model_config = ConfigDict(frozen=True)

    tab_id: int
    type: str
    url: str
    target: Optional[str] = None
    timestamp: float
    rule: Rule

    @property
    def key(self) -> tuple[str, Optional[str], float]:
        """Identity of the record within its tab."""
        return (self.url, self.target, self.timestamp)

    @property
    def rule_uuid(self) -> str:
        """Identifier linking the record back to its rule."""
        return self.rule.uuid

    @classmethod
    def from_request(cls, request: RequestDetails) -> "Record":
        """Build a record from a resolved request."""
        if request.rule is None:
            raise ResolutionError(f"Request {request.request_id} has not been resolved")
        return cls(
            tab_id=request.tab_id,
            type=request.type,
            url=request.url,
            target=request.redirect_url or None,
            timestamp=request.timestamp if request.timestamp is not None else time.time(),
            rule=request.rule,
        )


class NavigationDetails(BaseModel):
    """A navigation commit event."""

    tab_id: int
    url: str
    frame_id: int = 0
    transition_qualifiers: list[str] = Field(default_factory=list)
    timestamp: float = 0.0

    @property
    def is_top_level(self) -> bool:
        return self.frame_id == 0

    @property
    def is_server_redirect(self) -> bool:
        return SERVER_REDIRECT in self.transition_qualifiers


class BlockingResponse(BaseModel):
    """Answer a blocking listener returns to the host."""

    cancel: bool = False
    redirect_url: Optional[str] = None


class Resolution(BaseModel):
    """Outcome of resolving a request against a rule."""

    action: RuleAction
    redirect_url: Optional[str] = None
    update_tab: bool = False
