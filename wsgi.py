"""
WSGI entry point for the Email Authentication Checker.

WSGI hosts import this module and look for the ``app`` variable, e.g.:

  gunicorn wsgi:app

The development server can also be started by running this file directly.

=============================================================================
CONFIGURATION
=============================================================================

Settings are read from environment variables (see emailauth/config.py):

  DNS_BACKEND=doh                 doh (DNS-over-HTTPS) or system (dnspython)
  DOH_ENDPOINT=https://cloudflare-dns.com/dns-query
  DNS_NAMESERVERS=1.1.1.1,8.8.8.8 only used by the system backend
  DNS_TIMEOUT_SECONDS=5
  DEFAULT_SELECTORS=selector1,selector2
  RATE_LIMIT_PER_MINUTE=30
  SCAN_CONCURRENCY=1              lookups issued in parallel per scan (1..10)
  CORS_ALLOW_ORIGINS=             comma-separated; empty disables CORS

The rate limiter keeps its counters in process memory.  With several
worker processes each one enforces the limit on its own.

=============================================================================
LOCAL DEVELOPMENT
=============================================================================

  python wsgi.py
  curl 'http://127.0.0.1:5000/scan?domain=example.com&selectors=selector1,google'

For testing:

  pip install -e '.[test]'
  pytest tests/ -v

=============================================================================
"""

from __future__ import annotations

from emailauth import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
