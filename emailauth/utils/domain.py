"""Input validation for domain names and DKIM selector lists."""
from __future__ import annotations

import re
from collections.abc import Iterable

DEFAULT_SELECTORS: tuple[str, ...] = (
    "selector1",
    "selector2",
)

_DOMAIN_RE = re.compile(r"^[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
_SELECTOR_RE = re.compile(r"^[A-Za-z0-9._-]+$")


class InvalidDomainError(ValueError):
    """Raised when a domain name fails validation."""


class InvalidSelectorError(ValueError):
    """Raised when a DKIM selector list contains an unusable entry."""


def is_valid_domain(domain: str) -> bool:
    return bool(_DOMAIN_RE.match(domain))


def normalize_domain(raw: str | None) -> str:
    """Trim and lower-case *raw*, then validate it as a domain name.

    Raises:
        InvalidDomainError: if the result is not a label+TLD name.
    """
    domain = (raw or "").strip().lower()
    if not is_valid_domain(domain):
        raise InvalidDomainError(f"Invalid domain: {raw!r}")
    return domain


def parse_selectors(
    raw: str | Iterable[str] | None,
    default: Iterable[str] = DEFAULT_SELECTORS,
) -> tuple[str, ...]:
    """Build the ordered selector list from a comma-separated string or iterable.

    Entries are trimmed and empty entries dropped.  When nothing is left the
    *default* selectors are returned.

    Raises:
        InvalidSelectorError: if an entry contains characters that cannot
            appear in a DNS label.
    """
    if raw is None:
        items: list[str] = []
    elif isinstance(raw, str):
        items = raw.split(",")
    else:
        items = list(raw)

    selectors = tuple(s.strip() for s in items if s and s.strip())
    if not selectors:
        return tuple(default)

    for selector in selectors:
        if not _SELECTOR_RE.match(selector):
            raise InvalidSelectorError(f"Invalid selector: {selector!r}")
    return selectors
