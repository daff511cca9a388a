"""
Command-line scanner for the Email Authentication Checker.

Runs the same SPF/DMARC/DKIM assessment as the hosted ``/scan`` endpoint
against a single domain, prints one line per control plus an overall
verdict, and can export CSV and HTML evidence files.

USAGE
=====
  # Scan with the system resolver and the default selectors
  python scan_domain.py example.com

  # Query a specific DNS server and custom selectors
  python scan_domain.py example.com --server 1.1.1.1 --selectors google,k1

  # Use DNS-over-HTTPS instead of the system resolver
  python scan_domain.py example.com --doh

  # Write EmailAuth-<domain>-<yyyyMMdd-HHmm>.csv/.html to ./evidence
  python scan_domain.py example.com --csv --html --output-dir evidence

EXIT CODES
==========
  0 - Scan completed (whatever the verdict)
  2 - Invalid arguments (bad domain or selector list)
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence


# ---------------------------------------------------------------------------
# Argument parsing (done before app import so --help works without Flask)
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Assess the SPF, DMARC and DKIM posture of a domain.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("domain", help="Domain to scan, e.g. example.com.")
    parser.add_argument(
        "--server",
        metavar="IP",
        default=None,
        help="DNS server to query instead of the system resolvers.",
    )
    parser.add_argument(
        "--doh",
        action="store_true",
        default=False,
        help="Resolve through the DNS-over-HTTPS endpoint (DOH_ENDPOINT).",
    )
    parser.add_argument(
        "--selectors",
        metavar="LIST",
        default="",
        help="Comma-separated DKIM selectors (default: selector1,selector2).",
    )
    parser.add_argument(
        "--output-dir",
        metavar="DIR",
        default=".",
        help="Directory for exported evidence files (default: current directory).",
    )
    parser.add_argument("--csv", action="store_true", default=False, help="Export a CSV file.")
    parser.add_argument("--html", action="store_true", default=False, help="Export an HTML file.")
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable DEBUG-level logging output.",
    )
    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool) -> logging.Logger:
    """Configure root logger for the command-line run.

    Args:
        verbose: If True, set level to DEBUG; otherwise WARNING so the
            console report is not interleaved with routine log lines.

    Returns:
        A logger instance named after this module.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    return logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Console output
# ---------------------------------------------------------------------------


def _print_report(report) -> None:
    for item in report.items:
        print(f"{item.control}: {item.status}")
        if item.detail:
            print(f"    Detail: {item.detail}")
        if item.fix:
            print(f"    Fix:    {item.fix}")
    print(f"Overall: {report.overall}")


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: Sequence[str] | None = None) -> int:
    """Run one scan from the command line.

    Returns:
        Integer exit code: 0 once the scan completed.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    logger = _configure_logging(args.verbose)

    from emailauth import create_app
    from emailauth.checker.engine import run_scan
    from emailauth.checker.resolver import create_resolver
    from emailauth.reports.export import write_csv, write_html
    from emailauth.utils.domain import (
        DEFAULT_SELECTORS,
        InvalidDomainError,
        InvalidSelectorError,
    )

    flask_app = create_app(configure_logging=False)
    config = flask_app.config

    if args.server:
        backend = "system"
        nameservers = [args.server]
    else:
        backend = "doh" if args.doh else "system"
        nameservers = config.get("DNS_NAMESERVERS") or None

    resolver = create_resolver(
        backend,
        doh_endpoint=config["DOH_ENDPOINT"],
        nameservers=nameservers,
        timeout=float(config["DNS_TIMEOUT_SECONDS"]),
    )
    logger.debug("Using %s resolver (nameservers=%s)", backend, nameservers)

    try:
        report = run_scan(
            args.domain,
            selectors=args.selectors,
            resolver=resolver,
            max_workers=config.get("SCAN_CONCURRENCY", 1),
            default_selectors=config.get("DEFAULT_SELECTORS") or DEFAULT_SELECTORS,
        )
    except InvalidDomainError:
        parser.error(f"invalid domain: {args.domain!r}")
    except InvalidSelectorError as exc:
        parser.error(str(exc))

    _print_report(report)

    for error in report.dns_errors:
        logger.warning("Lookup failed: %s", error)

    if args.csv:
        print(f"CSV written: {write_csv(report, args.output_dir)}")
    if args.html:
        # render_template needs an application context
        with flask_app.app_context():
            print(f"HTML written: {write_html(report, args.output_dir)}")

    return 0


# ---------------------------------------------------------------------------
# Script entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
