"""
Tests for the request control service.

Drives the whole engine through an in-process host: options loading, rule
listeners, request resolution, navigation reconciliation and tab removal.
"""

import json
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from request_control import (
    BadgeNotifier,
    BlockingResponse,
    EngineOptions,
    LocalHost,
    MemoryOptionsStorage,
    Options,
    RequestControlService,
    RequestDetails,
    create_service,
    setup_logging,
)
from request_control.config import ConfigurationError, FileOptionsStorage
from request_control.events import EventType


RULES = [
    {
        "uuid": "redirect-a",
        "action": "redirect",
        "pattern": {"scheme": "*", "host": ["a.example"]},
        "types": ["main_frame"],
        "redirectUrl": "https://b.example/",
        "active": True,
    },
    {
        "uuid": "redirect-b",
        "action": "redirect",
        "pattern": {"scheme": "*", "host": ["b.example"]},
        "types": ["main_frame"],
        "redirectUrl": "https://c.example/",
        "active": True,
    },
    {
        "uuid": "block-ads",
        "action": "block",
        "pattern": {"scheme": "*", "host": ["*.ads.example"]},
        "types": ["script", "image"],
        "active": True,
    },
]


# Test fixtures

@pytest.fixture
def host() -> LocalHost:
    return LocalHost(active_tab=1)


@pytest.fixture
def notifier() -> BadgeNotifier:
    return BadgeNotifier()


@pytest.fixture
def storage() -> MemoryOptionsStorage:
    return MemoryOptionsStorage(Options.model_validate({"rules": RULES}))


@pytest_asyncio.fixture
async def service(
    host: LocalHost,
    storage: MemoryOptionsStorage,
    notifier: BadgeNotifier,
) -> RequestControlService:
    service = RequestControlService(host, storage, notifier)
    await service.start()
    yield service
    await service.stop()


class Requests:
    """Builds requests with increasing ids and timestamps."""

    def __init__(self) -> None:
        self.n = 0

    def __call__(self, url: str, type: str = "main_frame", tab_id: int = 1) -> RequestDetails:
        self.n += 1
        return RequestDetails(
            request_id=str(self.n),
            tab_id=tab_id,
            url=url,
            type=type,
            timestamp=float(self.n),
        )


@pytest.fixture
def make_request() -> Requests:
    return Requests()


class TestRequestControlService:
    """End-to-end tests for RequestControlService."""

    @pytest.mark.asyncio
    async def test_start_installs_listeners(self, service: RequestControlService, host: LocalHost):
        """Test start installs a listener per rule plus the blocking one."""
        assert service.enabled
        assert host.web_request.listener_count(blocking=False) == 3
        assert host.web_request.listener_count(blocking=True) == 1
        assert host.events.listener_count(EventType.TAB_REMOVED) == 1
        assert host.events.listener_count(EventType.NAVIGATION_COMMITTED) == 1

    @pytest.mark.asyncio
    async def test_block_recorded(
        self,
        service: RequestControlService,
        host: LocalHost,
        notifier: BadgeNotifier,
        make_request: Requests,
    ):
        """Test a blocked request is cancelled, recorded and counted."""
        response = host.send_request(make_request("https://x.ads.example/a.js", type="script"))

        assert response == BlockingResponse(cancel=True)
        records = await service.get_records()
        assert [r.rule.uuid for r in records] == ["block-ads"]
        assert notifier.badge(1).text == "1"

    @pytest.mark.asyncio
    async def test_unmatched_request_passes(
        self,
        service: RequestControlService,
        host: LocalHost,
        make_request: Requests,
    ):
        """Test requests no rule matches are left alone."""
        assert host.send_request(make_request("https://example.org/")) is None
        assert await service.get_records() is None

    @pytest.mark.asyncio
    async def test_redirect_chain_survives_commit(
        self,
        service: RequestControlService,
        host: LocalHost,
        notifier: BadgeNotifier,
        make_request: Requests,
    ):
        """Test a -> b -> c redirects are kept after committing c."""
        assert host.send_request(make_request("https://a.example/")).redirect_url == "https://b.example/"
        assert host.send_request(make_request("https://b.example/")).redirect_url == "https://c.example/"

        await host.commit_navigation(1, "https://c.example/")

        records = await service.get_records()
        assert [(r.url, r.target) for r in records] == [
            ("https://a.example/", "https://b.example/"),
            ("https://b.example/", "https://c.example/"),
        ]
        assert notifier.badge(1).text == "2"

    @pytest.mark.asyncio
    async def test_untraced_navigation_clears(
        self,
        service: RequestControlService,
        host: LocalHost,
        notifier: BadgeNotifier,
        make_request: Requests,
    ):
        """Test navigating elsewhere drops the tab's records and badge."""
        host.send_request(make_request("https://a.example/"))
        host.send_request(make_request("https://b.example/"))

        await host.commit_navigation(1, "https://d.example/")

        assert await service.get_records() is None
        assert notifier.badge(1).text == ""

    @pytest.mark.asyncio
    async def test_server_redirect_commit(
        self,
        service: RequestControlService,
        host: LocalHost,
        make_request: Requests,
    ):
        """Test a server redirect keeps the last redirecting record."""
        host.send_request(make_request("https://a.example/"))

        await host.commit_navigation(
            1,
            "https://elsewhere.example/",
            transition_qualifiers=["server_redirect"],
        )

        records = await service.get_records()
        assert [r.url for r in records] == ["https://a.example/"]

    @pytest.mark.asyncio
    async def test_sub_frame_commit_ignored(
        self,
        service: RequestControlService,
        host: LocalHost,
        make_request: Requests,
    ):
        """Test frame commits do not touch the records."""
        host.send_request(make_request("https://x.ads.example/a.js", type="script"))

        await host.commit_navigation(1, "https://frame.example/", frame_id=2)

        assert len(await service.get_records()) == 1

    @pytest.mark.asyncio
    async def test_tab_removed(
        self,
        service: RequestControlService,
        host: LocalHost,
        make_request: Requests,
    ):
        """Test closing a tab drops its records."""
        host.send_request(make_request("https://x.ads.example/a.js", type="script", tab_id=2))
        assert service.records.has(2)

        await host.close_tab(2)

        assert not service.records.has(2)

    @pytest.mark.asyncio
    async def test_unknown_tab_removed(self, service: RequestControlService, host: LocalHost):
        """Test closing a tab without records is harmless."""
        await host.close_tab(99)
        assert len(service.records) == 0

    @pytest.mark.asyncio
    async def test_disable(
        self,
        service: RequestControlService,
        host: LocalHost,
        storage: MemoryOptionsStorage,
        notifier: BadgeNotifier,
        make_request: Requests,
    ):
        """Test disabling removes every listener and clears the records."""
        host.send_request(make_request("https://x.ads.example/a.js", type="script"))

        await storage.set(disabled=True)

        assert not service.enabled
        assert host.web_request.listener_count() == 0
        assert len(service.records) == 0
        assert host.events.listener_count(EventType.TAB_REMOVED) == 0
        assert not notifier.enabled
        assert host.send_request(make_request("https://x.ads.example/b.js", type="script")) is None
        assert await service.get_records() is None

    @pytest.mark.asyncio
    async def test_reenable(
        self,
        service: RequestControlService,
        host: LocalHost,
        storage: MemoryOptionsStorage,
        notifier: BadgeNotifier,
    ):
        """Test enabling again rebuilds the listeners."""
        await storage.set(disabled=True)
        await storage.set(disabled=False)

        assert service.enabled
        assert notifier.enabled
        assert host.web_request.listener_count() == 4
        assert host.events.listener_count(EventType.NAVIGATION_COMMITTED) == 1

    @pytest.mark.asyncio
    async def test_rules_change_rebuilds(
        self,
        service: RequestControlService,
        host: LocalHost,
        storage: MemoryOptionsStorage,
        make_request: Requests,
    ):
        """Test changed rules replace the old listeners."""
        await storage.set(rules=RULES[2:])

        assert host.web_request.listener_count() == 2
        assert host.send_request(make_request("https://a.example/")) is None

    @pytest.mark.asyncio
    async def test_invalid_rule_reported(
        self,
        service: RequestControlService,
        host: LocalHost,
        storage: MemoryOptionsStorage,
        notifier: BadgeNotifier,
    ):
        """Test an invalid rule is reported and the rest still work."""
        bad = {"uuid": "bad", "action": "block", "pattern": {"host": []}, "active": True}

        await storage.set(rules=[bad] + RULES)

        assert host.web_request.listener_count(blocking=False) == 3
        errors = notifier.take_errors()
        assert len(errors) == 1
        assert "bad" in errors[0][1]

    @pytest.mark.asyncio
    async def test_records_of_active_tab(
        self,
        service: RequestControlService,
        host: LocalHost,
        make_request: Requests,
    ):
        """Test get_records answers for the active tab only."""
        host.send_request(make_request("https://x.ads.example/a.js", type="script", tab_id=2))

        assert await service.get_records() is None
        host.tabs.active_tab = 2
        assert len(await service.get_records()) == 1

    @pytest.mark.asyncio
    async def test_reload_failure_reported(self, host: LocalHost):
        """Test options that fail to load are reported, not raised."""
        notifier = MagicMock()
        storage = MagicMock()
        storage.get = AsyncMock(side_effect=[Options(), ConfigurationError("broken")])
        service = RequestControlService(host, storage, notifier)
        await service.start()

        await service.on_options_changed()

        notifier.error.assert_called_once_with(None, "broken")
        assert host.web_request.listener_count() == 0

    @pytest.mark.asyncio
    async def test_unreadable_options_file_reported(self, host: LocalHost, tmp_path):
        """Test an options file that can no longer be read is reported on reload."""
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"rules": RULES}))
        notifier = MagicMock()
        storage = FileOptionsStorage(path)
        service = RequestControlService(host, storage, notifier)
        await service.start()
        assert host.web_request.listener_count() == 4

        path.unlink()
        path.mkdir()
        await storage.reload()

        notifier.error.assert_called_once()
        assert "Cannot read" in notifier.error.call_args.args[1]
        assert host.web_request.listener_count() == 0
        await service.stop()

    @pytest.mark.asyncio
    async def test_repeated_block_without_timestamps(
        self,
        service: RequestControlService,
        host: LocalHost,
        notifier: BadgeNotifier,
    ):
        """Test every block is counted when the host sends no timestamps."""
        for i in range(3):
            response = host.send_request(RequestDetails(
                request_id=str(i),
                tab_id=1,
                url="https://x.ads.example/a.js",
                type="script",
            ))
            assert response == BlockingResponse(cancel=True)

        assert len(await service.get_records()) == 3
        assert notifier.badge(1).text == "3"

    @pytest.mark.asyncio
    async def test_failing_notifier_still_blocks(
        self,
        host: LocalHost,
        storage: MemoryOptionsStorage,
        make_request: Requests,
    ):
        """Test a notifier error does not turn a block into an allow."""
        notifier = MagicMock()
        notifier.notify.side_effect = RuntimeError("badge api gone")
        service = RequestControlService(host, storage, notifier)
        await service.start()

        response = host.send_request(make_request("https://x.ads.example/a.js", type="script"))

        assert response == BlockingResponse(cancel=True)
        assert len(await service.get_records()) == 1
        await service.stop()

    @pytest.mark.asyncio
    async def test_stop(self, host: LocalHost, storage: MemoryOptionsStorage, notifier: BadgeNotifier):
        """Test stop leaves nothing installed."""
        service = RequestControlService(host, storage, notifier)
        await service.start()
        await service.stop()

        assert host.web_request.listener_count() == 0
        assert host.events.listener_count(EventType.NAVIGATION_COMMITTED) == 0
        await storage.set(disabled=False)
        assert host.web_request.listener_count() == 0


class TestCreateService:
    """Tests for create_service factory."""

    @pytest.mark.asyncio
    async def test_uses_config(self, host: LocalHost):
        """Test engine options reach the service."""
        service = create_service(host, EngineOptions(notifier="log", chain_lookback=2))
        await service.start()

        assert service.enabled
        assert service.registry.rule_count == 0
        await service.stop()

    @pytest.mark.asyncio
    async def test_options_file(self, host: LocalHost, tmp_path):
        """Test rules are read from the configured options file."""
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"disabled": False, "rules": RULES}))

        service = create_service(host, EngineOptions(options_file=str(path)))
        await service.start()

        assert service.registry.rule_count == 3
        await service.stop()

    def test_setup_logging(self, tmp_path):
        """Test the package logger can be routed to a file."""
        path = tmp_path / "engine.log"
        package_logger = setup_logging("DEBUG", str(path))
        try:
            logging.getLogger("request_control.background").debug("hello")
            for handler in package_logger.handlers:
                handler.flush()
            assert package_logger.level == logging.DEBUG
            assert "hello" in path.read_text()
        finally:
            for handler in package_logger.handlers:
                handler.close()
            package_logger.handlers.clear()
            package_logger.propagate = True
            package_logger.setLevel(logging.NOTSET)
