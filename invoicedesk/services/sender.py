"""Choose the sender identity and recipients for an outbound invoice email.

Mail only goes to the real client when the requested sending domain is known
to be verified with the email provider. Every other case (the ``"test"``
token, no domain, an unknown domain, a pending or failed one, or a status
lookup that never came back) produces a test-mode plan addressed to the
requester instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional

TEST_DOMAIN_TOKEN = "test"
VERIFIED_STATUS = "verified"
DEFAULT_PLATFORM_SENDER = "Invoice Creator <onboarding@resend.dev>"
DEFAULT_FROM_NAME = "Invoice Service"


@dataclass(frozen=True)
class OutboundEmailPlan:
    from_address: str
    recipient: str
    is_live_mode: bool
    to: List[str] = field(default_factory=list)
    bcc: List[str] = field(default_factory=list)


def _normalize_domain(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def is_domain_verified(domain: Optional[str], domains: Optional[Mapping[str, str]]) -> bool:
    """True only if every entry matching ``domain`` reports ``verified``."""
    wanted = _normalize_domain(domain)
    if not wanted or wanted == TEST_DOMAIN_TOKEN:
        return False
    statuses = [
        str(status).strip().lower()
        for name, status in (domains or {}).items()
        if _normalize_domain(name) == wanted
    ]
    return bool(statuses) and all(status == VERIFIED_STATUS for status in statuses)


def resolve_sender_plan(
    requested_domain: Optional[str],
    verified_domains: Optional[Mapping[str, str]],
    copy_requested: bool,
    requester_address: str,
    client_address: str,
    from_name: Optional[str] = None,
    *,
    platform_sender: str = DEFAULT_PLATFORM_SENDER,
    default_from_name: str = DEFAULT_FROM_NAME,
) -> OutboundEmailPlan:
    """Decide the outbound email plan.

    ``verified_domains`` maps domain names to provider statuses
    (``verified``, ``pending``, ``failed``, ``not_started``). Pass an empty
    mapping when the status lookup failed; the plan then falls back to test
    mode. A live plan adds the requester as a blind copy when a copy is
    requested, a test plan adds them as a visible recipient.
    """

    if is_domain_verified(requested_domain, verified_domains):
        domain = _normalize_domain(requested_domain)
        sender_name = (from_name or "").strip() or default_from_name
        bcc = [requester_address] if copy_requested and requester_address else []
        return OutboundEmailPlan(
            from_address=f"{sender_name} <invoices@{domain}>",
            recipient=client_address,
            is_live_mode=True,
            to=[client_address],
            bcc=bcc,
        )

    # The requester is already the visible recipient here, so a requested
    # copy is satisfied without adding them twice.
    return OutboundEmailPlan(
        from_address=platform_sender,
        recipient=requester_address,
        is_live_mode=False,
        to=[requester_address],
        bcc=[],
    )
