"""
Request control service.

Wires the engine to its host: loads the options snapshot, installs a marking
listener for every active rule and one blocking listener resolving marked
requests, keeps a record of controlled requests per tab and prunes it on
every top-level navigation.

Reloading options always tears all listeners down and rebuilds them.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

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
    Resolver,
    RuleListenerRegistry,
)
from request_control.events import EventType, NavigationCommittedEvent, TabRemovedEvent
from request_control.interfaces import BaseHost, BaseOptionsStorage
from request_control.models import Options, Record
from request_control.notifier import Notifier, get_notifier
from request_control.records import RecordStore, RedirectChainReconciler
from request_control.rules import RuleCompiler

logger = logging.getLogger(__name__)


class RequestControlService:
    """Process-level owner of the engine's state.

    Example:
        host = LocalHost(active_tab=1)
        service = RequestControlService(host, MemoryOptionsStorage(options))
        await service.start()

        host.send_request(details)
        await host.commit_navigation(1, "https://example.com/")
        records = await service.get_records()

        await service.stop()
    """

    def __init__(
        self,
        host: BaseHost,
        storage: BaseOptionsStorage,
        notifier: Optional[Notifier] = None,
        *,
        config: Optional[EngineOptions] = None,
        controller: Optional[Resolver] = None,
        compiler: Optional[RuleCompiler] = None,
    ) -> None:
        self._config = config or EngineOptions()
        self._host = host
        self._storage = storage
        self._notifier = notifier or get_notifier(self._config.notifier)
        self._controller = controller or RequestController()
        self._records = RecordStore()
        self._dispatcher = ResolutionDispatcher(
            self._controller, self._records, self._notifier, host
        )
        self._registry = RuleListenerRegistry(
            host, self._controller, self._notifier, compiler
        )
        self._reconciler = RedirectChainReconciler(
            self._records, self._notifier, self._config.chain_lookback
        )
        self._enabled = False
        self._started = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def records(self) -> RecordStore:
        return self._records

    @property
    def registry(self) -> RuleListenerRegistry:
        return self._registry

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    @property
    def dispatcher(self) -> ResolutionDispatcher:
        return self._dispatcher

    async def start(self) -> None:
        """Load the options and start controlling requests.

        Raises:
            ConfigurationError: If the options cannot be loaded.
        """
        if self._started:
            return
        options = await self._storage.get()
        self.init(options)
        self._storage.on_changed(self.on_options_changed)
        self._started = True

    async def stop(self) -> None:
        """Remove every listener and drop all state."""
        self._storage.off_changed(self.on_options_changed)
        self._registry.uninstall()
        self._unsubscribe()
        self._records.clear()
        self._controller.clear()
        self._enabled = False
        self._started = False

    def init(self, options: Options) -> None:
        """Apply an options snapshot."""
        if options.disabled:
            self._notifier.disabled_state(self._records.snapshot())
            self._records.clear()
            self._controller.clear()
            self._unsubscribe()
            self._registry.uninstall()
            self._enabled = False
            logger.info("Request control disabled")
        else:
            self._notifier.enabled_state()
            count = self._registry.install(options.rules, self._dispatcher)
            self._subscribe()
            self._enabled = True
            logger.info(f"Request control enabled with {count} rules")

    async def on_options_changed(self, event: Any = None) -> None:
        """Rebuild everything from the new options snapshot."""
        self._registry.uninstall()
        try:
            options = await self._storage.get()
        except ConfigurationError as e:
            logger.error(f"Cannot reload options: {e}")
            self._notifier.error(None, str(e))
            return
        self.init(options)

    def on_tab_removed(self, event: TabRemovedEvent) -> None:
        self._records.remove(event.tab_id)

    def on_navigation_committed(self, event: NavigationCommittedEvent) -> None:
        if event.details is not None:
            self._reconciler.on_committed(event.details)

    async def get_records(self) -> Optional[list[Record]]:
        """Records of the active tab, or None."""
        if not self._enabled:
            return None
        tab_id = await self._host.tabs.query_active()
        if tab_id is None:
            return None
        return self._records.get(tab_id)

    def _subscribe(self) -> None:
        events = self._host.events
        if not events.has_listener(EventType.TAB_REMOVED, self.on_tab_removed):
            events.on(EventType.TAB_REMOVED, self.on_tab_removed)
        if not events.has_listener(EventType.NAVIGATION_COMMITTED, self.on_navigation_committed):
            events.on(EventType.NAVIGATION_COMMITTED, self.on_navigation_committed)

    def _unsubscribe(self) -> None:
        events = self._host.events
        events.off(EventType.TAB_REMOVED, self.on_tab_removed)
        events.off(EventType.NAVIGATION_COMMITTED, self.on_navigation_committed)


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> logging.Logger:
    """Configure the ``request_control`` logger for an embedding application.

    Args:
        level: Logging level name.
        log_file: Write logs to this file instead of propagating them.

    Returns:
        The package logger.
    """
    package_logger = logging.getLogger("request_control")
    package_logger.setLevel(level)

    if log_file:
        package_logger.handlers.clear()
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            fmt="[%(asctime)s] %(levelname)s:%(name)s:%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        package_logger.addHandler(file_handler)
        package_logger.propagate = False

    return package_logger


def create_service(
    host: BaseHost,
    config: Optional[EngineOptions] = None,
    storage: Optional[BaseOptionsStorage] = None,
) -> RequestControlService:
    """Build a service from engine options.

    Options not given are loaded with ``load_config``. Without an explicit
    storage the rules come from ``options_file`` when set, or start empty.
    """
    config = config or load_config()
    setup_logging(config.log_level)

    if storage is None:
        if config.options_file:
            storage = FileOptionsStorage(config.options_file)
        else:
            storage = MemoryOptionsStorage()

    return RequestControlService(host, storage, config=config)
