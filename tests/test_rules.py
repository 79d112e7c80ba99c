"""
Tests for request-control rules and models.
"""

import pytest

from request_control.exceptions import ResolutionError, RuleCompilationError
from request_control.models import (
    NavigationDetails,
    Options,
    Record,
    RequestDetails,
    Rule,
    RuleAction,
)
from request_control.notifier import BadgeNotifier, LoggingNotifier, get_notifier
from request_control.rules import (
    ACTION_PRIORITY,
    ALL_URLS,
    DefaultRuleCompiler,
    create_match_patterns,
    create_rule,
)


def request(url: str, type: str = "main_frame") -> RequestDetails:
    return RequestDetails(request_id="1", tab_id=1, url=url, type=type)


class TestCreateMatchPatterns:
    """Tests for create_match_patterns function."""

    def test_all_urls(self):
        """Test allUrls short-circuits everything else."""
        assert create_match_patterns({"allUrls": True, "host": ["x"]}) == [ALL_URLS]

    def test_hosts_and_paths(self):
        """Test every host is combined with every path."""
        patterns = create_match_patterns({
            "scheme": "https",
            "host": ["a.example", "*.b.example"],
            "path": ["ads/*", "/track"],
        })
        assert patterns == [
            "https://a.example/ads/*",
            "https://a.example/track",
            "https://*.b.example/ads/*",
            "https://*.b.example/track",
        ]

    def test_defaults(self):
        """Test scheme and path default to wildcards."""
        assert create_match_patterns({"host": "example.com"}) == ["*://example.com/*"]

    def test_any_host(self):
        """Test a lone * host is allowed."""
        assert create_match_patterns({"host": ["*"]}) == ["*://*/*"]

    @pytest.mark.parametrize("pattern", [
        {"host": []},
        {"scheme": "gopher", "host": ["a.example"]},
        {"host": ["a.*.example"]},
        {"host": ["a.example/path"]},
        {"host": [""]},
        {"host": [1, 2]},
        "example.com",
    ])
    def test_invalid(self, pattern):
        """Test malformed patterns raise RuleCompilationError."""
        with pytest.raises(RuleCompilationError):
            create_match_patterns(pattern)


class TestCreateRule:
    """Tests for create_rule function."""

    def test_from_dict(self):
        """Test compiling a stored rule mapping."""
        compiled = create_rule({
            "uuid": "r",
            "action": "redirect",
            "pattern": {"host": ["a.example"]},
            "types": ["main_frame", "sub_frame"],
            "redirectUrl": "https://b.example/",
        })
        assert compiled.uuid == "r"
        assert compiled.action is RuleAction.REDIRECT
        assert compiled.types == ("main_frame", "sub_frame")

    def test_no_types_means_all(self):
        """Test an empty types list leaves the filter open."""
        compiled = create_rule(Rule(uuid="r", action="block", pattern={"host": "a"}))
        assert compiled.types is None

    def test_invalid_body(self):
        """Test a mapping that is not a rule reports its uuid."""
        with pytest.raises(RuleCompilationError) as exc_info:
            create_rule({"uuid": "broken", "action": "explode"})
        assert exc_info.value.rule_uuid == "broken"

    def test_unknown_type(self):
        """Test unknown resource types are rejected."""
        with pytest.raises(RuleCompilationError):
            create_rule({"uuid": "r", "action": "block", "types": ["video"]})

    def test_redirect_needs_target(self):
        """Test redirect rules require a redirect URL."""
        with pytest.raises(RuleCompilationError) as exc_info:
            create_rule({"uuid": "r", "action": "redirect"})
        assert "r" in str(exc_info.value)

    def test_default_compiler(self):
        """Test the default compiler delegates to the module functions."""
        compiler = DefaultRuleCompiler()
        assert compiler.create_match_patterns({"host": "a"}) == ["*://a/*"]
        assert compiler.create_rule({"uuid": "w", "action": "whitelist"}).uuid == "w"


class TestCompiledRuleResolve:
    """Tests for CompiledRule.resolve."""

    def test_block(self):
        """Test non-redirect rules resolve to their action."""
        compiled = create_rule({"uuid": "b", "action": "block"})
        assert compiled.resolve(request("https://a/")).action is RuleAction.BLOCK

    def test_redirect(self):
        """Test redirect rules carry their target."""
        compiled = create_rule({"uuid": "r", "action": "redirect", "redirectUrl": "https://b/"})
        resolution = compiled.resolve(request("https://a/"))
        assert resolution.action is RuleAction.REDIRECT
        assert resolution.redirect_url == "https://b/"
        assert not resolution.update_tab

    def test_redirect_to_same_url(self):
        """Test a redirect to the request URL lets it through."""
        compiled = create_rule({"uuid": "r", "action": "redirect", "redirectUrl": "https://a/"})
        assert compiled.resolve(request("https://a/")).action is RuleAction.WHITELIST

    def test_redirect_needs_tab_update(self):
        """Test top-level redirects to non-web URLs update the tab."""
        compiled = create_rule({"uuid": "r", "action": "redirect", "redirectUrl": "about:blank"})
        assert compiled.resolve(request("https://a/")).update_tab
        assert not compiled.resolve(request("https://a/x.js", "script")).update_tab

    def test_priority(self):
        """Test whitelist outranks block which outranks redirect."""
        assert ACTION_PRIORITY[RuleAction.WHITELIST] > ACTION_PRIORITY[RuleAction.BLOCK]
        assert ACTION_PRIORITY[RuleAction.BLOCK] > ACTION_PRIORITY[RuleAction.REDIRECT]
        assert ACTION_PRIORITY[RuleAction.REDIRECT] > ACTION_PRIORITY[RuleAction.FILTER]


class TestModels:
    """Tests for the data models."""

    def test_rule_alias_and_extra(self):
        """Test stored rules keep unknown fields and accept both spellings."""
        rule = Rule.model_validate({
            "uuid": "r",
            "action": "redirect",
            "redirectUrl": "https://b/",
            "title": "My rule",
        })
        assert rule.redirect_url == "https://b/"
        assert Rule(uuid="r", action="redirect", redirect_url="https://b/").redirect_url == "https://b/"
        assert rule.model_dump(by_alias=True)["title"] == "My rule"

    def test_options_lookup(self):
        """Test rule lookup and active rules."""
        options = Options.model_validate({"rules": [
            {"uuid": "a", "action": "block", "active": False},
            {"uuid": "b", "action": "block"},
            {"uuid": "c", "action": "explode"},
        ]})
        assert options.get_rule("a").active is False
        assert options.get_rule("c") is None
        assert [r.uuid for r in options.active_rules] == ["b"]

    def test_record_from_request(self):
        """Test a resolved request becomes a record."""
        rule = Rule(uuid="r", action="redirect", redirect_url="https://b/")
        details = request("https://a/")
        details.timestamp = 3.0
        details.rule = rule
        details.redirect_url = "https://b/"

        record = Record.from_request(details)

        assert record.key == ("https://a/", "https://b/", 3.0)
        assert record.rule is rule
        assert record.rule_uuid == "r"

    def test_record_stamped_when_untimed(self):
        """Test requests without a timestamp get the time of resolution."""
        details = request("https://a/")
        details.rule = Rule(uuid="b", action="block")

        record = Record.from_request(details)

        assert details.timestamp is None
        assert record.timestamp > 0

    def test_record_without_target(self):
        """Test non-redirect records have no target."""
        details = request("https://a/")
        details.rule = Rule(uuid="b", action="block")
        assert Record.from_request(details).target is None

    def test_record_needs_rule(self):
        """Test unresolved requests cannot be recorded."""
        with pytest.raises(ResolutionError):
            Record.from_request(request("https://a/"))

    def test_record_is_frozen(self):
        """Test records cannot change once stored."""
        record = Record(tab_id=1, type="image", url="u", timestamp=0.0, rule=Rule(uuid="b", action="block"))
        with pytest.raises(ValueError):
            record.url = "v"

    def test_navigation_details(self):
        """Test frame and qualifier helpers."""
        details = NavigationDetails(tab_id=1, url="u", transition_qualifiers=["server_redirect"])
        assert details.is_top_level
        assert details.is_server_redirect
        assert not NavigationDetails(tab_id=1, url="u", frame_id=2).is_top_level


class TestNotifiers:
    """Tests for the notifiers."""

    def test_badge_notifier(self):
        """Test badges follow notify, clear and disable."""
        notifier = BadgeNotifier()
        rule = Rule(uuid="b", action="block")

        notifier.notify(1, rule, 3)
        assert notifier.badge(1).text == "3"
        assert notifier.badge(1).action is RuleAction.BLOCK

        notifier.clear(1)
        assert notifier.badge(1).text == ""

        notifier.notify(2, rule, 1)
        notifier.disabled_state({})
        assert not notifier.enabled
        assert notifier.badges == {}

    def test_badge_notifier_errors(self):
        """Test errors are kept until taken."""
        notifier = BadgeNotifier()
        notifier.error(None, "Invalid rule: x")

        assert notifier.take_errors() == [(None, "Invalid rule: x")]
        assert notifier.take_errors() == []

    def test_logging_notifier(self, caplog: pytest.LogCaptureFixture):
        """Test the logging notifier writes errors to its logger."""
        notifier = LoggingNotifier()
        with caplog.at_level("INFO", logger="request_control.notifier"):
            notifier.notify(1, Rule(uuid="b", action="block"), 2)
            notifier.error(4, "boom")

        assert "rule b applied (2 total)" in caplog.text
        assert "Tab 4: boom" in caplog.text

    def test_get_notifier(self):
        """Test notifiers are created by name."""
        assert isinstance(get_notifier("badge"), BadgeNotifier)
        assert isinstance(get_notifier("log"), LoggingNotifier)
        with pytest.raises(ValueError):
            get_notifier("popup")
