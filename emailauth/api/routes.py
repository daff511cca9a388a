"""
Public scan endpoint.

``GET /scan?domain=<d>&selectors=<csv>`` runs a full SPF/DMARC/DKIM scan
and returns the report as JSON.  Every other path answers 404 JSON.

Requests are burst-limited per client address before any DNS lookup is
made.  No authentication is required.
"""

from __future__ import annotations

import logging

from flask import current_app, jsonify, request

from emailauth.api import bp
from emailauth.checker.engine import run_scan
from emailauth.checker.resolver import resolver_from_config
from emailauth.utils.domain import DEFAULT_SELECTORS, InvalidDomainError, InvalidSelectorError
from emailauth.utils.rate_limit import is_rate_limited

logger = logging.getLogger(__name__)

_SCAN_PREFIX = "scan"
_SCAN_METHODS = ("GET", "HEAD")
_ROUTED_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _client_id() -> str:
    """Identify the caller for rate limiting.

    Prefers the edge-proxy header, then the first X-Forwarded-For hop, then
    the socket peer address.
    """
    cf_ip = request.headers.get("CF-Connecting-IP", "").strip()
    if cf_ip:
        return cf_ip
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.remote_addr or "0.0.0.0"


def _error(message: str, status: int):
    return jsonify({"error": message}), status


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@bp.route("/", defaults={"path": ""}, methods=_ROUTED_METHODS)
@bp.route("/<path:path>", methods=_ROUTED_METHODS)
def scan(path: str):
    """Run a scan for ``?domain=`` when the path starts with /scan.

    The route accepts every method so that unknown paths answer 404
    whatever the method; only /scan answers 405 for non-GET requests.
    """
    # Pre-flight tolerance
    if request.method == "OPTIONS":
        return "", 200

    if not path.startswith(_SCAN_PREFIX):
        return _error("Not found", 404)

    if request.method not in _SCAN_METHODS:
        response, status = _error("Method not allowed", 405)
        response.headers["Allow"] = ", ".join((*_SCAN_METHODS, "OPTIONS"))
        return response, status

    config = current_app.config
    client = _client_id()
    if is_rate_limited(client, limit=config.get("RATE_LIMIT_PER_MINUTE", 30)):
        return _error("Rate limit exceeded. Try again shortly.", 429)

    try:
        report = run_scan(
            request.args.get("domain", ""),
            selectors=request.args.get("selectors", ""),
            resolver=resolver_from_config(config),
            max_workers=config.get("SCAN_CONCURRENCY", 1),
            default_selectors=config.get("DEFAULT_SELECTORS") or DEFAULT_SELECTORS,
        )
    except InvalidDomainError:
        return _error("Invalid domain.", 400)
    except InvalidSelectorError:
        return _error("Invalid selectors.", 400)

    if report.dns_errors:
        logger.info("Scan of %s had %d failed lookups: %s", report.domain, len(report.dns_errors), report.dns_errors)

    return jsonify(report.to_dict())


# ---------------------------------------------------------------------------
# JSON error pages
# ---------------------------------------------------------------------------


@bp.app_errorhandler(404)
def not_found(_exc):
    return _error("Not found", 404)


@bp.app_errorhandler(405)
def method_not_allowed(_exc):
    # Methods outside _ROUTED_METHODS land here; unknown paths stay 404
    if not request.path.lstrip("/").startswith(_SCAN_PREFIX):
        return _error("Not found", 404)
    return _error("Method not allowed", 405)
