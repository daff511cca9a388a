"""
DMARC record assessment.

Evaluates the TXT records published at ``_dmarc.<domain>``:
- Presence of a v=DMARC1 record
- Tag parsing into a tag map (p, rua, ...)
- Policy value and aggregate reporting address

Any finding on an existing record downgrades to WARN; only a missing
record is a FAIL.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from emailauth.checker.results import FAIL, PASS, WARN, ControlResult

logger = logging.getLogger(__name__)

CONTROL = "DMARC"

_DMARC_PREFIX = "v=dmarc1"
_VALID_POLICIES = frozenset({"none", "quarantine", "reject"})

MISSING_FIX = "Publish _dmarc TXT: v=DMARC1; p=none; rua=mailto:<address>"


def dmarc_host(domain: str) -> str:
    return f"_dmarc.{domain}"


def parse_dmarc_tags(record: str) -> dict[str, str]:
    """Parse a DMARC record string into a dict of tag=value pairs.

    Tags are separated by semicolons; empty segments are dropped and each
    segment is split on its first ``=``.  Keys are lower-cased, keys and
    values are trimmed.  Segments without a key are ignored and a repeated
    tag overwrites the earlier one.  The v=DMARC1 tag is included.
    """
    tags: dict[str, str] = {}
    for part in record.split(";"):
        part = part.strip()
        if not part:
            continue
        key, sep, value = part.partition("=")
        key = key.strip().lower()
        if not sep or not key:
            continue
        tags[key] = value.strip()
    return tags


def find_dmarc_records(txts: Sequence[str]) -> list[str]:
    records: list[str] = []
    for value in txts:
        stripped = value.strip()
        if stripped.lower().startswith(_DMARC_PREFIX):
            records.append(stripped)
    return records


def assess_dmarc(txts: Sequence[str]) -> ControlResult:
    """Assess the DMARC posture from the ``_dmarc`` TXT values.

    Args:
        txts: Logical TXT strings published at ``_dmarc.<domain>``.

    Returns:
        FAIL when no v=DMARC1 record exists, PASS when the policy is valid
        and aggregate reports are requested, WARN otherwise.
    """
    dmarc_records = find_dmarc_records(txts)

    if not dmarc_records:
        return ControlResult(control=CONTROL, status=FAIL, detail="", fix=MISSING_FIX)

    dmarc_record = dmarc_records[0]
    tags = parse_dmarc_tags(dmarc_record)

    issues: list[str] = []
    if len(dmarc_records) > 1:
        issues.append(f"Multiple DMARC records found ({len(dmarc_records)}), only one is allowed.")

    if "p" not in tags:
        issues.append('Missing policy tag "p" (none/quarantine/reject).')
    elif tags["p"].lower() not in _VALID_POLICIES:
        issues.append(f'Invalid "p" value: {tags["p"]!r} (expected none, quarantine or reject).')

    if "rua" not in tags:
        issues.append('Missing "rua" for aggregate reports.')

    if issues:
        logger.debug("DMARC issues: %s", issues)

    return ControlResult(
        control=CONTROL,
        status=WARN if issues else PASS,
        detail=dmarc_record,
        fix="; ".join(issues),
    )
