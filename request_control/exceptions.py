"""
Exceptions for request-control.
"""

from typing import Optional


class RequestControlError(Exception):
    """Base class for request-control errors."""

    pass


class RuleCompilationError(RequestControlError):
    """A rule's pattern, types or body could not be compiled."""

    def __init__(self, reason: str, rule_uuid: Optional[str] = None) -> None:
        self.reason = reason
        self.rule_uuid = rule_uuid
        if rule_uuid:
            super().__init__(f"Invalid rule {rule_uuid}: {reason}")
        else:
            super().__init__(f"Invalid rule: {reason}")


class ResolutionError(RequestControlError):
    """A marked request could not be resolved by its rule."""

    pass
