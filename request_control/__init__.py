"""
request-control: rule-driven request interception with per-tab history.

Rules (URL pattern + resource types + action) mark outgoing requests, a
blocking hook resolves marked requests into allow, block or redirect, and
every outcome is recorded per tab. On each top-level navigation the tab's
records are cut down to the redirect chain that led to the committed page.

Basic usage:
    from request_control import LocalHost, MemoryOptionsStorage, Options
    from request_control import RequestControlService, RequestDetails

    host = LocalHost(active_tab=1)
    storage = MemoryOptionsStorage(Options.model_validate({"rules": [...]}))
    service = RequestControlService(host, storage)
    await service.start()

    host.send_request(RequestDetails(request_id="1", tab_id=1, url="http://a/"))
    await host.commit_navigation(1, "http://b/")
    records = await service.get_records()
"""

__version__ = "0.1.0"
__license__ = "MPL-2.0"

from request_control.background import RequestControlService, create_service, setup_logging
from request_control.config import (
    ConfigurationError,
    EngineOptions,
    FileOptionsStorage,
    MemoryOptionsStorage,
    load_config,
)
from request_control.control import (
    RequestController,
    ResolutionDispatcher,
    RuleListenerRegistry,
)
from request_control.exceptions import (
    RequestControlError,
    ResolutionError,
    RuleCompilationError,
)
from request_control.host import LocalHost, RequestFilter, WebRequestEvent
from request_control.interfaces import (
    BaseHost,
    BaseOptionsStorage,
    BaseTabs,
    BaseWebRequest,
)
from request_control.models import (
    BlockingResponse,
    NavigationDetails,
    Options,
    Record,
    RequestDetails,
    Resolution,
    ResourceType,
    Rule,
    RuleAction,
)
from request_control.notifier import BadgeNotifier, LoggingNotifier, Notifier, get_notifier
from request_control.records import RecordStore, RedirectChainReconciler, reconcile_chain
from request_control.rules import ALL_URLS, create_match_patterns, create_rule

__all__ = [
    # Version
    "__version__",
    # Service
    "RequestControlService",
    "create_service",
    "setup_logging",
    # Models
    "BlockingResponse",
    "NavigationDetails",
    "Options",
    "Record",
    "RequestDetails",
    "Resolution",
    "ResourceType",
    "Rule",
    "RuleAction",
    # Control
    "RequestController",
    "ResolutionDispatcher",
    "RuleListenerRegistry",
    # Records
    "RecordStore",
    "RedirectChainReconciler",
    "reconcile_chain",
    # Rules
    "ALL_URLS",
    "create_match_patterns",
    "create_rule",
    # Notifiers
    "BadgeNotifier",
    "LoggingNotifier",
    "Notifier",
    "get_notifier",
    # Interfaces
    "BaseHost",
    "BaseOptionsStorage",
    "BaseTabs",
    "BaseWebRequest",
    # Host
    "LocalHost",
    "RequestFilter",
    "WebRequestEvent",
    # Configuration
    "ConfigurationError",
    "EngineOptions",
    "FileOptionsStorage",
    "MemoryOptionsStorage",
    "load_config",
    # Errors
    "RequestControlError",
    "ResolutionError",
    "RuleCompilationError",
]
