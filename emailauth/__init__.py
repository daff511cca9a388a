"""
Flask application factory for the Email Authentication Checker.

Creates and configures the Flask application and registers the scan
blueprint.  The application holds no database and no sessions; every
request is an independent, read-only DNS scan.
"""

from __future__ import annotations

import logging
import sys

from flask import Flask, Response, request

from emailauth.checker.resolver import BACKENDS
from emailauth.config import Config


def _configure_logging(debug: bool) -> None:
    """Configure root logger for the application.

    Logging is sent to stdout so most WSGI hosts capture it automatically
    without requiring file handlers.

    Format: timestamp  level  logger-name  message

    Args:
        debug: When True, sets the root level to DEBUG.  Otherwise INFO.
    """
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
    )

    root_logger = logging.getLogger()
    # Avoid adding duplicate handlers if create_app() is called multiple times
    # (e.g. in tests).
    if not root_logger.handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)


def create_app(config_object: object = Config, configure_logging: bool = True) -> Flask:
    """Application factory.

    Args:
        config_object: Configuration class or object to load settings from.
        configure_logging: Install the stdout log handler.  The command-line
            scanner configures logging itself and passes False.

    Returns:
        A fully configured Flask application instance.
    """
    app = Flask(__name__, template_folder="templates", static_folder=None)
    app.config.from_object(config_object)

    if configure_logging:
        _configure_logging(debug=app.debug)

    # Reject a bad DNS_BACKEND at startup instead of on every request
    backend = app.config.get("DNS_BACKEND", "doh")
    if backend not in BACKENDS:
        raise ValueError(f"Unknown DNS_BACKEND {backend!r} (expected one of: {', '.join(BACKENDS)})")

    # ------------------------------------------------------------------
    # Register blueprints
    # ------------------------------------------------------------------
    from emailauth.api import bp as api_bp

    app.register_blueprint(api_bp)

    # ------------------------------------------------------------------
    # Response headers
    # Applied to every response from this application.
    # ------------------------------------------------------------------

    @app.after_request
    def set_response_headers(response: Response) -> Response:
        """Disable caching, attach basic hardening headers and optional CORS.

        Scan results reflect live DNS and must never be served from a cache.
        CORS headers are only emitted when CORS_ALLOW_ORIGINS is configured;
        the request origin is echoed when listed, otherwise the first
        configured origin is returned.
        """
        response.headers["Cache-Control"] = "no-store, max-age=0"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        allow_origins: list[str] = app.config.get("CORS_ALLOW_ORIGINS") or []
        if allow_origins:
            origin = request.headers.get("Origin", "")
            response.headers["Access-Control-Allow-Origin"] = (
                origin if origin in allow_origins else allow_origins[0]
            )
            response.headers["Access-Control-Allow-Methods"] = "GET, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Vary"] = "Origin"
        return response

    return app
