"""
Scan orchestration engine.

Coordinates one email-authentication scan of a domain:
- Validating the domain before any lookup
- Issuing the SPF, DMARC and per-selector DKIM lookups, sequentially or
  on a thread pool
- Running each assessor on the resolved records
- Computing the overall verdict (worst across all controls)

Both the HTTP endpoint and the command-line scanner call run_scan().
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Protocol

from emailauth.checker.dkim import assess_dkim, dkim_host
from emailauth.checker.dmarc import assess_dmarc, dmarc_host
from emailauth.checker.resolver import DohResolver
from emailauth.checker.results import (
    PASS,
    STATUS_SEVERITY,
    ControlResult,
    ResolvedRecordSet,
    ScanReport,
)
from emailauth.checker.spf import assess_spf
from emailauth.utils.domain import DEFAULT_SELECTORS, normalize_domain, parse_selectors

logger = logging.getLogger(__name__)

_MAX_WORKERS = 10

Query = tuple[str, str]


class Resolver(Protocol):
    def resolve(self, name: str, rdtype: str) -> ResolvedRecordSet: ...


def worst_status(statuses: Iterable[str]) -> str:
    """Return the worst status (FAIL > WARN > PASS); PASS for an empty input."""
    worst = PASS
    for status in statuses:
        if STATUS_SEVERITY[status] > STATUS_SEVERITY[worst]:
            worst = status
    return worst


def aggregate(
    spf: ControlResult,
    dmarc: ControlResult,
    dkim: Sequence[ControlResult],
) -> tuple[str, tuple[ControlResult, ...]]:
    """Order the control results and compute the overall verdict.

    Returns:
        ``(overall, items)`` with items ordered SPF, DMARC, then DKIM in
        selector order.
    """
    items = (spf, dmarc, *dkim)
    return worst_status(item.status for item in items), items


def plan_queries(domain: str, selectors: Sequence[str]) -> list[Query]:
    """List the ``(name, rdtype)`` lookups a scan needs, in a stable order."""
    queries: list[Query] = [(domain, "TXT"), (dmarc_host(domain), "TXT")]
    for selector in selectors:
        host = dkim_host(selector, domain)
        queries.append((host, "TXT"))
        queries.append((host, "CNAME"))
    return queries


def _safe_resolve(resolver: Resolver, name: str, rdtype: str) -> ResolvedRecordSet:
    """Resolve one query, converting unexpected exceptions into a failure."""
    try:
        return resolver.resolve(name, rdtype)
    except Exception as exc:
        logger.exception("Unexpected error querying %s/%s", name, rdtype)
        return ResolvedRecordSet(
            name=name,
            rdtype=rdtype,
            failed=True,
            error_type="DNS_ERROR",
            error_message=f"Unexpected error for {name}/{rdtype}: {exc}",
        )


def resolve_all(
    resolver: Resolver,
    queries: Sequence[Query],
    max_workers: int = 1,
) -> dict[Query, ResolvedRecordSet]:
    """Run every query and key the answers by ``(name, rdtype)``.

    Completion order does not matter; callers look answers up by key.
    """
    unique = list(dict.fromkeys(queries))
    max_workers = max(1, min(max_workers, _MAX_WORKERS, len(unique) or 1))

    if max_workers == 1:
        # Sequential path (no threading overhead)
        return {q: _safe_resolve(resolver, *q) for q in unique}

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="scan") as executor:
        futures = {q: executor.submit(_safe_resolve, resolver, *q) for q in unique}
        return {q: future.result() for q, future in futures.items()}


def assess_records(
    domain: str,
    selectors: Sequence[str],
    answers: dict[Query, ResolvedRecordSet],
) -> tuple[str, tuple[ControlResult, ...]]:
    """Run the assessors over already-resolved answers. No I/O."""

    def values(name: str, rdtype: str) -> tuple[str, ...]:
        record_set = answers.get((name, rdtype))
        return record_set.values if record_set is not None else ()

    spf = assess_spf(values(domain, "TXT"))
    dmarc = assess_dmarc(values(dmarc_host(domain), "TXT"))

    dkim: list[ControlResult] = []
    for selector in selectors:
        host = dkim_host(selector, domain)
        cname = values(host, "CNAME")
        dkim.append(assess_dkim(selector, values(host, "TXT"), cname[0] if cname else ""))

    return aggregate(spf, dmarc, dkim)


def run_scan(
    domain: str,
    selectors: str | Iterable[str] | None = None,
    resolver: Resolver | None = None,
    max_workers: int = 1,
    default_selectors: Iterable[str] = DEFAULT_SELECTORS,
) -> ScanReport:
    """Scan *domain* and return a complete ScanReport.

    Failed lookups are treated as absent records; they degrade the verdict
    of the affected control and are listed in ``ScanReport.dns_errors``.

    Args:
        domain: Domain name to scan (validated and lower-cased here).
        selectors: DKIM selectors as a list or comma-separated string.
        resolver: Resolver backend; DNS-over-HTTPS when omitted.
        max_workers: Number of lookups to run concurrently (1 = sequential).
        default_selectors: Selectors used when *selectors* is empty.

    Raises:
        InvalidDomainError: if *domain* is not a valid domain name.
        InvalidSelectorError: if a selector is malformed.
    """
    domain = normalize_domain(domain)
    selector_list = parse_selectors(selectors, default=default_selectors)
    resolver = resolver or DohResolver()

    start_time = time.monotonic()
    answers = resolve_all(resolver, plan_queries(domain, selector_list), max_workers=max_workers)

    dns_errors = tuple(
        f"{rs.name}/{rs.rdtype}: {rs.error_message or rs.error_type}"
        for rs in answers.values()
        if rs.failed
    )

    overall, items = assess_records(domain, selector_list, answers)
    elapsed_ms = int((time.monotonic() - start_time) * 1000)

    logger.info(
        "Scan completed for %s: overall=%s, lookups=%d, dns_errors=%d, elapsed=%dms",
        domain,
        overall,
        len(answers),
        len(dns_errors),
        elapsed_ms,
    )

    return ScanReport(
        domain=domain,
        selectors=selector_list,
        overall=overall,
        items=items,
        timestamp=datetime.now(timezone.utc),
        dns_errors=dns_errors,
    )
