"""Tests for account token resolution."""

from ledgerimport.domain.entities import AccountType, ChartAccount, Unresolved, is_resolved
from ledgerimport.domain.resolver import AccountResolver, extend_code, resolve


def account(account_id, number):
    return ChartAccount(account_id, number, f"Account {number}", AccountType.ASSET)


def test_exact_match(sample_chart, chart_by_number):
    """Test that an exact number wins over hierarchy matches."""
    resolver = AccountResolver(sample_chart)
    assert resolver.resolve("420-1-1-1") == chart_by_number["420-1-1-1"]
    assert resolver.resolve(" 100 ") == chart_by_number["100"]


def test_hierarchy_match_is_symmetric():
    """Test that a token matches a chart account above or below it."""
    deep = account(1, "420-1-1-1")
    shallow = account(2, "420")

    assert resolve("420", [deep]) == deep
    assert resolve("420-1-1-1", [shallow]) == shallow


def test_hierarchy_requires_segment_boundary():
    """Test that prefixes only match on whole hyphen segments."""
    chart = [account(1, "420"), account(2, "4201")]
    assert resolve("42", chart) == Unresolved("42")
    assert resolve("420-5", chart) == chart[0]
    assert resolve("4201-1", chart) == chart[1]


def test_first_match_in_chart_order_wins(sample_chart, chart_by_number):
    """Test that ambiguous hierarchy matches pick the first account in chart order."""
    resolver = AccountResolver(sample_chart)
    assert resolver.resolve("420-1") == chart_by_number["420"]
    assert resolver.resolve("100-5") == chart_by_number["100"]


def test_unresolved_tokens(sample_chart):
    """Test that unknown and empty tokens resolve to Unresolved."""
    resolver = AccountResolver(sample_chart)
    assert resolver.resolve("999") == Unresolved("999")
    assert resolver.resolve("") == Unresolved("")
    assert resolver.resolve(None) == Unresolved("")
    assert not is_resolved(resolver.resolve("999"))


def test_resolver_uses_snapshot():
    """Test that later changes to the source list do not affect the resolver."""
    chart = [account(1, "100")]
    resolver = AccountResolver(chart)
    chart.append(account(2, "200"))
    assert resolver.resolve("200") == Unresolved("200")


def test_extend_code():
    """Test extending generic codes with a location suffix."""
    assert extend_code("401", "2-17") == "401-2-17"
    assert extend_code("401", "-2-17-") == "401-2-17"
    assert extend_code("401", "") == "401"
    assert extend_code("401", None) == "401"
