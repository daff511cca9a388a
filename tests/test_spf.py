"""
Unit tests for emailauth/checker/spf.py

The assessor is pure, so tests feed TXT values directly.
"""

from __future__ import annotations

import pytest

from emailauth.checker.spf import assess_spf, find_spf_records, has_terminal_qualifier


# ---------------------------------------------------------------------------
# Tests - presence
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("txts", [[], ["google-site-verification=abc"], ["spf1 -all"]])
def test_spf_missing_record_returns_fail(txts):
    """No v=spf1 record at all should be FAIL with a non-empty fix."""
    result = assess_spf(txts)

    assert result.control == "SPF"
    assert result.status == "FAIL"
    assert result.detail == ""
    assert result.fix
    assert "all" in result.fix


def test_spf_single_hard_fail_record_passes():
    """Exactly one v=spf1 record ending in -all should PASS."""
    record = "v=spf1 include:_spf.example.com -all"
    result = assess_spf([record, "some-other-record"])

    assert result.status == "PASS"
    assert result.detail == record
    assert result.fix == ""


@pytest.mark.parametrize("qualifier", ["-all", "~all", "?all", "~ALL"])
def test_spf_terminal_qualifiers_pass(qualifier):
    """Any explicit -all, ~all or ?all is accepted."""
    result = assess_spf([f"v=spf1 mx {qualifier}"])

    assert result.status == "PASS"


def test_spf_prefix_match_is_case_insensitive():
    result = assess_spf(["V=SPF1 ip4:192.0.2.0/24 -all"])

    assert result.status == "PASS"


# ---------------------------------------------------------------------------
# Tests - structural issues
# ---------------------------------------------------------------------------


def test_spf_missing_terminal_qualifier_warns():
    """A record with no all mechanism should WARN, not FAIL."""
    result = assess_spf(["v=spf1 include:_spf.example.com"])

    assert result.status == "WARN"
    assert "qualifier" in result.fix.lower()


def test_spf_plus_all_is_not_a_terminal_qualifier():
    result = assess_spf(["v=spf1 +all"])

    assert result.status == "WARN"


def test_spf_over_255_characters_warns():
    record = "v=spf1 " + " ".join(f"ip4:192.0.2.{i}" for i in range(30)) + " -all"
    assert len(record) > 255

    result = assess_spf([record])

    assert result.status == "WARN"
    assert "255" in result.fix


def test_spf_exactly_255_characters_passes():
    prefix = "v=spf1 "
    suffix = " -all"
    record = prefix + "a" * (255 - len(prefix) - len(suffix)) + suffix
    assert len(record) == 255

    assert assess_spf([record]).status == "PASS"


# ---------------------------------------------------------------------------
# Tests - multiple records
# ---------------------------------------------------------------------------


def test_spf_multiple_records_warns_with_merge_instruction():
    """Two v=spf1 records are never PASS and the fix says to merge them."""
    first = "v=spf1 include:_spf.google.com -all"
    second = "v=spf1 include:mailgun.org -all"
    result = assess_spf([first, second])

    assert result.status == "WARN"
    assert "merge" in result.fix.lower()
    assert first in result.detail
    assert second in result.detail


def test_spf_multiple_records_still_checks_first_record():
    """Issues in the first record are reported alongside the duplicate warning."""
    result = assess_spf(["v=spf1 include:a.example", "v=spf1 -all"])

    assert result.status == "WARN"
    issues = result.fix.split("; ")
    assert len(issues) == 2
    assert any("qualifier" in issue.lower() for issue in issues)


# ---------------------------------------------------------------------------
# Tests - helpers
# ---------------------------------------------------------------------------


def test_find_spf_records_strips_whitespace_and_keeps_order():
    records = find_spf_records(["  v=spf1 a -all ", "x", "v=spf1 mx ~all"])

    assert records == ["v=spf1 a -all", "v=spf1 mx ~all"]


def test_has_terminal_qualifier_requires_whole_token():
    assert has_terminal_qualifier("v=spf1 mx -all") is True
    assert has_terminal_qualifier("v=spf1 include:-all.example.com") is False
