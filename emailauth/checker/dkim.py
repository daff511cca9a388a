"""
DKIM selector assessment.

Each configured selector is looked up at ``<selector>._domainkey.<domain>``
as TXT and, independently, as CNAME:
- A TXT record is valid when it carries a public key marker (p=)
- A CNAME is trusted as delegation to a third-party signer
- Neither means the selector is not published

Validity is a plain ``p=`` substring test, so key material or comments that
happen to contain it also count as a key.
"""

from __future__ import annotations

from collections.abc import Sequence

from emailauth.checker.results import FAIL, PASS, WARN, ControlResult, DkimInspection

_KEY_MARKER = "p="


def dkim_host(selector: str, domain: str) -> str:
    return f"{selector}._domainkey.{domain}"


def control_label(selector: str) -> str:
    return f"DKIM ({selector})"


def inspect_dkim(selector: str, txts: Sequence[str], cname_target: str = "") -> DkimInspection:
    """Classify what is published for *selector*.

    Args:
        selector: The DKIM selector.
        txts: Logical TXT strings found at the selector host.
        cname_target: CNAME target of the selector host, or "".

    Returns:
        A DkimInspection with mode "TXT", "CNAME" or "None".
    """
    if txts:
        detail = " ".join(txts)
        if _KEY_MARKER in detail.lower():
            return DkimInspection(selector=selector, present=True, valid=True, mode="TXT", detail=detail)
        return DkimInspection(
            selector=selector,
            present=True,
            valid=False,
            mode="TXT",
            detail=detail,
            issues=("DKIM TXT found but no public key (p=) detected.",),
        )

    if cname_target:
        return DkimInspection(selector=selector, present=True, valid=True, mode="CNAME", detail=cname_target)

    return DkimInspection(
        selector=selector,
        present=False,
        valid=False,
        mode="None",
        issues=("No TXT or CNAME found for this selector.",),
    )


def assess_dkim(selector: str, txts: Sequence[str], cname_target: str = "") -> ControlResult:
    """Turn the DNS findings for one selector into a ControlResult."""
    inspection = inspect_dkim(selector, txts, cname_target)

    if not inspection.present:
        status = FAIL
        fix = (
            f"{inspection.issues[0]} Publish DKIM for {selector} "
            "(TXT with p=<public key> or CNAME to your mail provider)."
        )
    elif inspection.valid:
        status = PASS
        fix = ""
    else:
        status = WARN
        fix = "; ".join(inspection.issues)

    return ControlResult(
        control=control_label(selector),
        status=status,
        detail=inspection.detail,
        fix=fix,
    )
