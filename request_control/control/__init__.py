"""
Request control layer.

- RuleListenerRegistry: installs per-rule marking listeners and the catch-all
  blocking listener
- RequestController: pending marks and their resolution
- ResolutionDispatcher: records and reports resolved requests
"""

from request_control.control.controller import RequestController, ResolvedCallback, Resolver
from request_control.control.dispatcher import ResolutionDispatcher
from request_control.control.registry import ListenerHandle, RuleListenerRegistry

__all__ = [
    "ListenerHandle",
    "RequestController",
    "ResolutionDispatcher",
    "ResolvedCallback",
    "Resolver",
    "RuleListenerRegistry",
]
