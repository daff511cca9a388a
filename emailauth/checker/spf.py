"""
SPF record assessment.

Evaluates the apex TXT records of a domain:
- Presence and uniqueness of the v=spf1 record
- Explicit terminal "all" qualifier (-all, ~all, ?all)
- 255-character single-string limit
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from emailauth.checker.results import FAIL, PASS, WARN, ControlResult

logger = logging.getLogger(__name__)

CONTROL = "SPF"

_SPF_PREFIX = "v=spf1"
_TERMINAL_QUALIFIERS = frozenset({"-all", "~all", "?all"})
_MAX_LENGTH = 255

MISSING_FIX = (
    "Publish a single SPF TXT record ending in an explicit all qualifier: "
    "v=spf1 <includes/mechanisms> ~all"
)


def find_spf_records(txts: Sequence[str]) -> list[str]:
    """Return the TXT values that are SPF records, in answer order."""
    records: list[str] = []
    for value in txts:
        stripped = value.strip()
        if stripped.lower().startswith(_SPF_PREFIX):
            records.append(stripped)
    return records


def has_terminal_qualifier(spf_record: str) -> bool:
    """True if the record carries an explicit -all, ~all or ?all token."""
    return any(
        token.lower() in _TERMINAL_QUALIFIERS
        for token in spf_record.split()
    )


def assess_spf(txts: Sequence[str]) -> ControlResult:
    """Assess the SPF posture from the apex TXT values.

    Args:
        txts: Logical TXT strings published at the domain apex.

    Returns:
        FAIL when no SPF record exists, PASS when the single record is
        well formed, WARN otherwise.
    """
    spf_records = find_spf_records(txts)

    if not spf_records:
        return ControlResult(control=CONTROL, status=FAIL, detail="", fix=MISSING_FIX)

    issues: list[str] = []
    if len(spf_records) > 1:
        issues.append("Multiple SPF records found: merge them into one.")

    # The first record is still checked so structural problems are reported too
    spf_record = spf_records[0]
    if not has_terminal_qualifier(spf_record):
        issues.append("Missing terminal qualifier (-all, ~all or ?all).")
    if len(spf_record) > _MAX_LENGTH:
        issues.append(f"SPF string exceeds {_MAX_LENGTH} characters ({len(spf_record)}).")

    if issues:
        logger.debug("SPF issues: %s", issues)

    return ControlResult(
        control=CONTROL,
        status=WARN if issues else PASS,
        detail=" | ".join(spf_records),
        fix="; ".join(issues),
    )
