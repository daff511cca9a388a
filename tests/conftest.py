"""
Shared pytest fixtures for the Email Authentication Checker test suite.

No fixture performs real DNS or HTTP lookups; resolvers are replaced by
FakeResolver or by patching dns.resolver / requests.
"""

from __future__ import annotations

import pytest

from emailauth import create_app
from emailauth.checker.results import ResolvedRecordSet
from emailauth.utils.rate_limit import clear_all_rate_limits


# ---------------------------------------------------------------------------
# Test configuration
# ---------------------------------------------------------------------------


class TestConfig:
    """Minimal Flask config for automated testing."""

    __test__ = False

    TESTING = True
    SECRET_KEY = "test-secret-key-not-for-production"
    DNS_BACKEND = "doh"
    DOH_ENDPOINT = "https://doh.invalid/dns-query"
    DNS_NAMESERVERS: list[str] = []
    DNS_TIMEOUT_SECONDS = 2.0
    DEFAULT_SELECTORS = ["selector1", "selector2"]
    SCAN_CONCURRENCY = 1
    RATE_LIMIT_PER_MINUTE = 30
    CORS_ALLOW_ORIGINS: list[str] = []


# ---------------------------------------------------------------------------
# Fake resolver
# ---------------------------------------------------------------------------


class FakeResolver:
    """In-memory resolver keyed by ``(name, rdtype)``.

    ``records`` maps keys to a list of values; names listed in ``failures``
    answer with a failed record set.  Every call is recorded in ``calls``.
    """

    def __init__(self, records=None, failures=()):
        self.records = {k: list(v) for k, v in (records or {}).items()}
        self.failures = set(failures)
        self.calls: list[tuple[str, str]] = []

    def resolve(self, name, rdtype):
        self.calls.append((name, rdtype))
        if (name, rdtype) in self.failures:
            return ResolvedRecordSet(
                name=name,
                rdtype=rdtype,
                failed=True,
                error_type="TIMEOUT",
                error_message=f"DNS query timed out for {name}/{rdtype}",
            )
        values = self.records.get((name, rdtype), [])
        if not values:
            return ResolvedRecordSet(name=name, rdtype=rdtype, error_type="NXDOMAIN")
        return ResolvedRecordSet(name=name, rdtype=rdtype, values=tuple(values))


def healthy_records(domain: str = "example.com") -> dict:
    """Records for a domain that passes every control."""
    return {
        (domain, "TXT"): ["v=spf1 include:_spf.example.net -all", "google-site-verification=abc"],
        (f"_dmarc.{domain}", "TXT"): ["v=DMARC1; p=reject; rua=mailto:dmarc@example.com"],
        (f"selector1._domainkey.{domain}", "TXT"): ["v=DKIM1; k=rsa; p=MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8A"],
        (f"selector2._domainkey.{domain}", "CNAME"): ["selector2-example-com._domainkey.provider.net"],
    }


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Keep the process-wide rate limiter from leaking between tests."""
    clear_all_rate_limits()
    yield
    clear_all_rate_limits()


@pytest.fixture(scope="function")
def app():
    """Create a Flask application instance for testing."""
    flask_app = create_app(TestConfig)
    with flask_app.app_context():
        yield flask_app


@pytest.fixture(scope="function")
def client(app):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture(scope="function")
def fake_resolver():
    """Return a FakeResolver pre-loaded with a fully passing domain."""
    return FakeResolver(healthy_records())
