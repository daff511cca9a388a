"""
Result types shared by the resolver, the assessors and the scan engine.

Everything here is immutable and created fresh for each scan.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

PASS = "PASS"
WARN = "WARN"
FAIL = "FAIL"

# Status severity ranking (higher = worse)
STATUS_SEVERITY: dict[str, int] = {
    PASS: 0,
    WARN: 1,
    FAIL: 2,
}


@dataclass(frozen=True)
class ResolvedRecordSet:
    """Outcome of a single DNS query.

    ``values`` holds one logical string per TXT answer, or at most one
    CNAME target.  A lookup that found nothing (NXDOMAIN / no answer) has
    empty values and ``failed=False``; a transport or server error has
    ``failed=True``.
    """

    name: str
    rdtype: str
    values: tuple[str, ...] = ()
    failed: bool = False
    error_type: str | None = None
    error_message: str | None = None

    @property
    def target(self) -> str:
        """Return the CNAME target (first value) or an empty string."""
        return self.values[0] if self.values else ""


@dataclass(frozen=True)
class ControlResult:
    control: str
    status: str
    detail: str = ""
    fix: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "control": self.control,
            "status": self.status,
            "detail": self.detail,
            "fix": self.fix,
        }


@dataclass(frozen=True)
class DkimInspection:
    """Per-selector DKIM findings before they are turned into a verdict."""

    selector: str
    present: bool
    valid: bool
    mode: str
    detail: str = ""
    issues: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScanReport:
    domain: str
    selectors: tuple[str, ...]
    overall: str
    items: tuple[ControlResult, ...]
    timestamp: datetime
    dns_errors: tuple[str, ...] = field(default=(), compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the JSON body returned by ``GET /scan``."""
        return {
            "domain": self.domain,
            "selectors": list(self.selectors),
            "overall": self.overall,
            "items": [item.to_dict() for item in self.items],
            "ts": self.timestamp.isoformat(),
        }
