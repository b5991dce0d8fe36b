"""Tests for rule matching and domain fallback."""

from __future__ import annotations

import pytest

from tabgroup.core.types import Rule, TabColor
from tabgroup.rules.engine import (
    RuleEngine,
    domain_color,
    find_matching_rule,
    format_domain_name,
    get_domain_group,
    matches_pattern,
    parse_hostname,
    registrable_domain,
    validate_rule,
)


def _rule(rule_id: str, *patterns: str, enabled: bool = True) -> Rule:
    return Rule(id=rule_id, name=rule_id.title(), patterns=list(patterns), color="blue", enabled=enabled)


class TestParseHostname:
    def test_lower_cases(self) -> None:
        assert parse_hostname("https://Docs.Example.COM/path") == "docs.example.com"

    def test_not_absolute(self) -> None:
        assert parse_hostname("example.com/path") is None
        assert parse_hostname("") is None

    def test_no_authority(self) -> None:
        assert parse_hostname("about:blank") == ""


class TestMatchesPattern:
    @pytest.mark.parametrize(
        "hostname, pattern",
        [
            ("github.com", "github.com"),
            ("gist.github.com", "github.com"),
            ("docs.example.com", "example.com"),
            ("GitHub.com", "github.COM"),
            ("a.example.com", "*.example.com"),
            ("a.b.example.com", "*.example.com"),
            ("news.ycombinator.com", "news."),
            ("workshop.com", "shop"),
            ("mail.google.com", "mail"),
        ],
    )
    def test_matches(self, hostname: str, pattern: str) -> None:
        assert matches_pattern(hostname, pattern)

    @pytest.mark.parametrize(
        "hostname, pattern",
        [
            ("notexample.com", "example.com"),
            ("example.com", "*.example.com"),
            ("gitlab.com", "github.com"),
            ("example.com", "shop"),
            ("examplexcom.org", "*.example.com"),
        ],
    )
    def test_does_not_match(self, hostname: str, pattern: str) -> None:
        assert not matches_pattern(hostname, pattern)

    def test_wildcard_escapes_regex_metacharacters(self) -> None:
        assert matches_pattern("a+b.example.com", "a+b.*")
        assert not matches_pattern("aab.example.com", "a+b.*")

    def test_bare_token_is_label_substring(self) -> None:
        for hostname in ["shopify.com", "my.shop.io", "eshop.de"]:
            assert matches_pattern(hostname, "shop")


class TestFindMatchingRule:
    def test_first_enabled_rule_wins(self) -> None:
        rules = [
            _rule("first", "github.com", enabled=False),
            _rule("second", "github"),
            _rule("third", "github.com"),
        ]
        assert find_matching_rule(rules, "https://github.com/x").id == "second"

    def test_disabled_rules_never_match(self) -> None:
        assert find_matching_rule([_rule("off", "github.com", enabled=False)], "https://github.com") is None

    def test_unparseable_url(self) -> None:
        assert find_matching_rule([_rule("any", "a")], "not a url") is None
        assert find_matching_rule([_rule("any", "a")], "") is None

    def test_no_rules(self) -> None:
        assert find_matching_rule([], "https://github.com") is None


class TestRegistrableDomain:
    @pytest.mark.parametrize(
        "hostname, expected",
        [
            ("mail.google.com", "google.com"),
            ("www.github.com", "github.com"),
            ("github.com", "github.com"),
            ("a.b.co.uk", "b.co.uk"),
            ("www.amazon.co.uk", "amazon.co.uk"),
            ("shop.example.com.au", "example.com.au"),
            ("localhost", "localhost"),
        ],
    )
    def test_collapse(self, hostname: str, expected: str) -> None:
        assert registrable_domain(hostname) == expected


class TestFormatDomainName:
    def test_capitalizes_first_label(self) -> None:
        assert format_domain_name("github.com") == "Github"

    def test_separators_become_spaces(self) -> None:
        assert format_domain_name("stack-overflow.com") == "Stack Overflow"
        assert format_domain_name("my_site.org") == "My Site"


class TestDomainGroup:
    def test_amazon_co_uk(self) -> None:
        group = get_domain_group("https://www.amazon.co.uk/dp/123")
        assert group is not None
        assert group.domain == "amazon.co.uk"
        assert group.name == "Amazon"
        assert group.color is TabColor.PURPLE

    def test_subdomains_share_group(self) -> None:
        a = get_domain_group("https://mail.google.com/")
        b = get_domain_group("https://docs.google.com/")
        assert a == b
        assert a.domain == "google.com"
        assert a.color is TabColor.GREEN

    def test_no_hostname(self) -> None:
        assert get_domain_group("about:blank") is None
        assert get_domain_group("nonsense") is None
        assert get_domain_group("") is None

    def test_color_is_pure_function_of_domain(self) -> None:
        assert domain_color("example.com") is TabColor.GREY
        assert domain_color("example.com") == domain_color("example.com")


class TestValidateRule:
    def test_valid(self) -> None:
        assert validate_rule({"name": "Dev", "patterns": ["github.com"], "color": "purple"})
        assert validate_rule(_rule("x", "a.com"))

    @pytest.mark.parametrize(
        "candidate",
        [
            {"name": "", "patterns": ["a.com"], "color": "red"},
            {"name": "A", "patterns": [], "color": "red"},
            {"name": "A", "patterns": ["a.com"], "color": "magenta"},
            {"name": "A", "patterns": ["a.com"]},
            "not a rule",
            None,
        ],
    )
    def test_invalid(self, candidate: object) -> None:
        assert not validate_rule(candidate)


class TestRuleEngine:
    def test_set_rules_replaces_snapshot(self, rule_engine: RuleEngine) -> None:
        assert rule_engine.find_matching_rule("https://github.com").id == "dev"
        rule_engine.set_rules([])
        assert rule_engine.rules == ()
        assert rule_engine.find_matching_rule("https://github.com") is None

    def test_test_pattern(self, rule_engine: RuleEngine) -> None:
        assert rule_engine.test_pattern("*.github.io", "https://me.github.io/blog")
        assert not rule_engine.test_pattern("github.com", "no scheme")

    def test_analyze_url(self, rule_engine: RuleEngine) -> None:
        matched = rule_engine.analyze_url("https://github.com/a/b")
        assert matched.should_group
        assert matched.matching_rule.id == "dev"
        assert matched.domain_group.domain == "github.com"

        fallback = rule_engine.analyze_url("https://www.example.com/")
        assert not fallback.should_group
        assert fallback.matching_rule is None
        assert fallback.domain_group.name == "Example"
