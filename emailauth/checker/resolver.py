"""
DNS resolution backends.

Two interchangeable backends answer ``resolve(name, rdtype)`` with a
ResolvedRecordSet:

- DohResolver queries a DNS-over-HTTPS JSON API with ``requests``.
- SystemResolver uses dnspython against the system (or an explicitly
  configured) nameserver set.

Neither backend raises on lookup errors.  NXDOMAIN and empty answers come
back as an empty, non-failed set; timeouts, SERVFAIL, HTTP errors and
malformed responses come back with ``failed=True`` so callers can keep the
distinction in diagnostics while treating both as "absent".
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

import dns.exception
import dns.resolver
import requests

from emailauth.checker.results import ResolvedRecordSet

logger = logging.getLogger(__name__)

DEFAULT_DOH_ENDPOINT = "https://cloudflare-dns.com/dns-query"

SUPPORTED_RDTYPES = ("TXT", "CNAME")
BACKENDS = ("doh", "system")

# Numeric RR type codes used in DoH JSON answers
_RDTYPE_CODES: dict[str, int] = {
    "TXT": 16,
    "CNAME": 5,
}

# DoH JSON "Status" is the DNS RCODE; 3 is NXDOMAIN.
_RCODE_NXDOMAIN = 3

_QUOTE_EDGES = re.compile(r'^"|"$')
_SEGMENT_BREAK = re.compile(r'"\s*"')


def normalize_txt(data: str) -> str:
    """Turn presentation-format TXT data into one logical string.

    Long TXT values are published as several quoted segments
    (``"v=DKIM1; p=MIIB" "IjANBg..."``); the segments are rejoined and the
    surrounding quotes removed.
    """
    data = data.strip()
    return _SEGMENT_BREAK.sub("", _QUOTE_EDGES.sub("", data))


def _failure(name: str, rdtype: str, error_type: str, message: str) -> ResolvedRecordSet:
    return ResolvedRecordSet(
        name=name,
        rdtype=rdtype,
        failed=True,
        error_type=error_type,
        error_message=message,
    )


def _not_found(name: str, rdtype: str, error_type: str, message: str) -> ResolvedRecordSet:
    return ResolvedRecordSet(
        name=name,
        rdtype=rdtype,
        error_type=error_type,
        error_message=message,
    )


def _check_rdtype(rdtype: str) -> str:
    rdtype = rdtype.upper()
    if rdtype not in SUPPORTED_RDTYPES:
        raise ValueError(f"Unsupported record type: {rdtype}")
    return rdtype


class DohResolver:
    """Resolve names through a DNS-over-HTTPS JSON endpoint."""

    backend = "doh"

    def __init__(
        self,
        endpoint: str = DEFAULT_DOH_ENDPOINT,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._http = session or requests

    def resolve(self, name: str, rdtype: str) -> ResolvedRecordSet:
        """Query *name* for *rdtype* (TXT or CNAME).

        Returns:
            A ResolvedRecordSet; never raises for lookup problems.
        """
        rdtype = _check_rdtype(rdtype)

        try:
            resp = self._http.get(
                self.endpoint,
                params={"name": name, "type": rdtype},
                headers={"accept": "application/dns-json"},
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.warning("DoH timeout for %s/%s", name, rdtype)
            return _failure(name, rdtype, "TIMEOUT", f"DoH query timed out for {name}/{rdtype}")
        except requests.RequestException as exc:
            logger.warning("DoH request failed for %s/%s: %s", name, rdtype, exc)
            return _failure(name, rdtype, "DNS_ERROR", f"DoH request failed for {name}/{rdtype}: {exc}")

        if not resp.ok:
            logger.warning("DoH HTTP %d for %s/%s", resp.status_code, name, rdtype)
            return _failure(
                name, rdtype, "HTTP_ERROR",
                f"DoH endpoint returned HTTP {resp.status_code} for {name}/{rdtype}",
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            logger.warning("DoH returned malformed JSON for %s/%s: %s", name, rdtype, exc)
            return _failure(name, rdtype, "MALFORMED", f"Malformed DoH response for {name}/{rdtype}")

        if not isinstance(payload, dict):
            logger.warning("DoH returned non-object JSON for %s/%s", name, rdtype)
            return _failure(name, rdtype, "MALFORMED", f"Malformed DoH response for {name}/{rdtype}")

        rcode = payload.get("Status", 0)
        if rcode == _RCODE_NXDOMAIN:
            logger.info("NXDOMAIN for %s/%s", name, rdtype)
            return _not_found(name, rdtype, "NXDOMAIN", f"Domain {name} does not exist (NXDOMAIN)")
        if rcode != 0:
            logger.warning("DoH rcode %s for %s/%s", rcode, name, rdtype)
            return _failure(name, rdtype, "DNS_ERROR", f"DNS server returned rcode {rcode} for {name}/{rdtype}")

        values = self._extract(payload.get("Answer") or [], rdtype)
        if values is None:
            logger.warning("DoH answer without record data for %s/%s", name, rdtype)
            return _failure(name, rdtype, "MALFORMED", f"Malformed DoH response for {name}/{rdtype}")
        if not values:
            logger.info("NoAnswer for %s/%s", name, rdtype)
            return _not_found(name, rdtype, "NO_ANSWER", f"No {rdtype} records found for {name}")

        logger.debug("DoH query %s/%s returned %d records", name, rdtype, len(values))
        return ResolvedRecordSet(name=name, rdtype=rdtype, values=values)

    @staticmethod
    def _extract(answers: list[Any], rdtype: str) -> tuple[str, ...] | None:
        """Keep answers of the requested numeric type and normalise their data.

        Returns None when a matching answer carries no string ``data``.
        """
        code = _RDTYPE_CODES[rdtype]
        matching = [a.get("data") for a in answers if isinstance(a, dict) and a.get("type") == code]
        if any(not isinstance(data, str) for data in matching):
            return None
        if rdtype == "TXT":
            return tuple(normalize_txt(data) for data in matching)
        # CNAME: first target only
        return (matching[0].rstrip("."),) if matching else ()


class SystemResolver:
    """Resolve names with dnspython."""

    backend = "system"

    def __init__(
        self,
        nameservers: list[str] | None = None,
        timeout: float = 5.0,
    ) -> None:
        self.nameservers = list(nameservers or [])
        self.timeout = timeout

    def _create_dns_resolver(self) -> dns.resolver.Resolver:
        """Create a fresh dns.resolver.Resolver.

        A new instance is created for every query so that concurrent scans
        never share resolver state.  Without explicit nameservers the
        system configuration (/etc/resolv.conf) is used.
        """
        if self.nameservers:
            resolver = dns.resolver.Resolver(configure=False)
            resolver.nameservers = self.nameservers
        else:
            resolver = dns.resolver.Resolver()

        resolver.timeout = float(self.timeout)
        resolver.lifetime = float(self.timeout)
        return resolver

    def resolve(self, name: str, rdtype: str) -> ResolvedRecordSet:
        """Query *name* for *rdtype* (TXT or CNAME).

        Returns:
            A ResolvedRecordSet; never raises for lookup problems.
        """
        rdtype = _check_rdtype(rdtype)

        try:
            answer = self._create_dns_resolver().resolve(name, rdtype)
            values: list[str] = []
            for rdata in answer:
                if rdtype == "TXT":
                    # TXT records come as multiple byte strings that need joining
                    values.append(b"".join(rdata.strings).decode("utf-8", errors="replace"))
                else:
                    values.append(rdata.target.to_text().rstrip("."))
                    break

            logger.debug("DNS query %s/%s returned %d records", name, rdtype, len(values))
            return ResolvedRecordSet(name=name, rdtype=rdtype, values=tuple(values))

        except dns.resolver.NXDOMAIN:
            logger.info("NXDOMAIN for %s/%s", name, rdtype)
            return _not_found(name, rdtype, "NXDOMAIN", f"Domain {name} does not exist (NXDOMAIN)")

        except dns.resolver.NoAnswer:
            logger.info("NoAnswer for %s/%s", name, rdtype)
            return _not_found(name, rdtype, "NO_ANSWER", f"No {rdtype} records found for {name}")

        except dns.resolver.NoNameservers:
            logger.warning("NoNameservers for %s/%s", name, rdtype)
            return _failure(
                name, rdtype, "DNS_ERROR",
                f"No nameservers available for {name} (SERVFAIL or all failed)",
            )

        except dns.resolver.Timeout:
            logger.warning("Timeout for %s/%s", name, rdtype)
            return _failure(name, rdtype, "TIMEOUT", f"DNS query timed out for {name}/{rdtype}")

        except dns.exception.DNSException as exc:
            logger.error("DNSException for %s/%s: %s", name, rdtype, exc)
            return _failure(name, rdtype, "DNS_ERROR", f"DNS error for {name}/{rdtype}: {exc}")


def create_resolver(
    backend: str = "doh",
    *,
    doh_endpoint: str = DEFAULT_DOH_ENDPOINT,
    nameservers: list[str] | None = None,
    timeout: float = 5.0,
) -> DohResolver | SystemResolver:
    """Build a resolver backend by name ("doh" or "system")."""
    if backend == "doh":
        return DohResolver(endpoint=doh_endpoint, timeout=timeout)
    if backend == "system":
        return SystemResolver(nameservers=nameservers, timeout=timeout)
    raise ValueError(f"Unknown DNS backend: {backend!r} (expected one of: {', '.join(BACKENDS)})")


def resolver_from_config(config: Mapping[str, Any]) -> DohResolver | SystemResolver:
    """Build the resolver described by a Flask config mapping."""
    return create_resolver(
        config.get("DNS_BACKEND", "doh"),
        doh_endpoint=config.get("DOH_ENDPOINT", DEFAULT_DOH_ENDPOINT),
        nameservers=config.get("DNS_NAMESERVERS") or None,
        timeout=float(config.get("DNS_TIMEOUT_SECONDS", 5.0)),
    )
