"""
Configuration module for the Email Authentication Checker.

Loads settings from environment variables with sensible defaults.
"""

import os


def _csv_env(name: str, default: str = "") -> list[str]:
    """Split a comma-separated environment variable into trimmed entries."""
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    """Base configuration shared by all environments."""

    # Security
    SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-change-me")

    # DNS resolution
    # "doh" queries a DNS-over-HTTPS JSON API, "system" uses dnspython.
    DNS_BACKEND: str = os.environ.get("DNS_BACKEND", "doh").lower()
    DOH_ENDPOINT: str = os.environ.get("DOH_ENDPOINT", "https://cloudflare-dns.com/dns-query")
    DNS_NAMESERVERS: list[str] = _csv_env("DNS_NAMESERVERS")
    DNS_TIMEOUT_SECONDS: float = float(os.environ.get("DNS_TIMEOUT_SECONDS", "5"))

    # Assessment defaults
    DEFAULT_SELECTORS: list[str] = _csv_env("DEFAULT_SELECTORS", "selector1,selector2")
    SCAN_CONCURRENCY: int = int(os.environ.get("SCAN_CONCURRENCY", "1"))

    # Burst limiter (requests per client per minute)
    RATE_LIMIT_PER_MINUTE: int = int(os.environ.get("RATE_LIMIT_PER_MINUTE", "30"))

    # Cross-origin access is off unless origins are listed explicitly.
    CORS_ALLOW_ORIGINS: list[str] = _csv_env("CORS_ALLOW_ORIGINS")
