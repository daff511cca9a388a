"""
Unit tests for emailauth/checker/dkim.py
"""

from __future__ import annotations

from emailauth.checker.dkim import assess_dkim, control_label, dkim_host, inspect_dkim

_KEY = "MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8AMIIBCgKCAQEA"


# ---------------------------------------------------------------------------
# Tests - TXT mode
# ---------------------------------------------------------------------------


def test_dkim_txt_with_public_key_passes():
    record = f"v=DKIM1; p={_KEY}"
    inspection = inspect_dkim("selector1", [record])

    assert inspection.present is True
    assert inspection.valid is True
    assert inspection.mode == "TXT"

    result = assess_dkim("selector1", [record])
    assert result.control == "DKIM (selector1)"
    assert result.status == "PASS"
    assert result.detail == record
    assert result.fix == ""


def test_dkim_txt_without_version_but_with_key_passes():
    assert assess_dkim("s1", [f"k=rsa; p={_KEY}"]).status == "PASS"


def test_dkim_txt_without_public_key_warns():
    inspection = inspect_dkim("selector1", ["v=DKIM1;"])

    assert inspection.present is True
    assert inspection.valid is False
    assert inspection.mode == "TXT"

    result = assess_dkim("selector1", ["v=DKIM1;"])
    assert result.status == "WARN"
    assert "p=" in result.fix


def test_dkim_txt_values_are_joined_for_detail():
    result = assess_dkim("s1", ["v=DKIM1; k=rsa;", f"p={_KEY}"])

    assert result.detail == f"v=DKIM1; k=rsa; p={_KEY}"
    assert result.status == "PASS"


def test_dkim_txt_takes_precedence_over_cname():
    inspection = inspect_dkim("s1", ["v=DKIM1;"], "target.provider.net")

    assert inspection.mode == "TXT"
    assert inspection.valid is False


# ---------------------------------------------------------------------------
# Tests - CNAME mode
# ---------------------------------------------------------------------------


def test_dkim_cname_only_passes_automatically():
    target = "selector1-example-com._domainkey.example.onmicrosoft.com"
    inspection = inspect_dkim("selector1", [], target)

    assert inspection.present is True
    assert inspection.valid is True
    assert inspection.mode == "CNAME"

    result = assess_dkim("selector1", [], target)
    assert result.status == "PASS"
    assert result.detail == target
    assert result.fix == ""


# ---------------------------------------------------------------------------
# Tests - absent
# ---------------------------------------------------------------------------


def test_dkim_absent_fails():
    inspection = inspect_dkim("selector2", [], "")

    assert inspection.present is False
    assert inspection.mode == "None"

    result = assess_dkim("selector2", [], "")
    assert result.status == "FAIL"
    assert result.detail == ""
    assert "selector2" in result.fix
    assert "No TXT or CNAME" in result.fix


def test_dkim_helpers():
    assert dkim_host("google", "example.com") == "google._domainkey.example.com"
    assert control_label("google") == "DKIM (google)"
