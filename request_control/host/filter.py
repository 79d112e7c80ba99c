"""
Request filter for request-control hosts.

Matches intercepted requests against a listener's URL match patterns and
resource types.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

from request_control.models import RequestDetails
from request_control.rules import ALL_URLS

MATCHABLE_SCHEMES = ("http", "https", "ws", "wss", "ftp", "data", "file")
WILDCARD_SCHEMES = ("http", "https", "ws", "wss")


def match_pattern(url: str, pattern: str) -> bool:
    """Check if a URL matches a match pattern.

    Supports ``<all_urls>`` and ``scheme://host/path`` patterns, where scheme
    may be ``*`` (http, https, ws, wss), host may be ``*`` or start with
    ``*.`` (the domain and its subdomains), and path is a glob.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()

    if pattern == ALL_URLS:
        return scheme in MATCHABLE_SCHEMES

    p_scheme, sep, rest = pattern.partition("://")
    if not sep:
        return False
    p_host, _, p_path = rest.partition("/")

    if p_scheme == "*":
        if scheme not in WILDCARD_SCHEMES:
            return False
    elif p_scheme != scheme:
        return False

    host = (parts.hostname or "").lower()
    p_host = p_host.lower()
    if p_host.startswith("*."):
        domain = p_host[2:]
        if host != domain and not host.endswith("." + domain):
            return False
    elif p_host != "*" and p_host != host:
        return False

    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"
    return fnmatch.fnmatchcase(path, "/" + p_path)


@dataclass
class RequestFilter:
    """URLs and resource types a listener is called for.

    Example:
        f = RequestFilter(urls=["*://*.example.com/*"], types=["script"])
        if f.matches(details):
            ...
    """

    urls: list[str] = field(default_factory=lambda: [ALL_URLS])
    types: Optional[list[str]] = None

    def matches(self, request: RequestDetails) -> bool:
        """Check if a request passes this filter."""
        if self.types is not None and request.type not in self.types:
            return False
        return any(match_pattern(request.url, pattern) for pattern in self.urls)
