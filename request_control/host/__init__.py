"""
Hosts for request-control.

- LocalHost: in-process host (hooks, tabs, events)
- WebRequestEvent: before-request hook registry
- RequestFilter: URL match-pattern and resource-type filter
"""

from request_control.host.filter import RequestFilter, match_pattern
from request_control.host.local import LocalHost, LocalTabs
from request_control.host.webrequest import BLOCKING, ListenerEntry, WebRequestEvent

__all__ = [
    "BLOCKING",
    "ListenerEntry",
    "LocalHost",
    "LocalTabs",
    "RequestFilter",
    "WebRequestEvent",
    "match_pattern",
]
