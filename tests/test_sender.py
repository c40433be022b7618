import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from invoicedesk.services.sender import (
    DEFAULT_PLATFORM_SENDER,
    is_domain_verified,
    resolve_sender_plan,
)

ME = "me@x.com"
CLIENT = "client@y.com"


def test_test_token_redirects_to_requester() -> None:
    plan = resolve_sender_plan("test", {"test": "verified"}, False, ME, CLIENT)

    assert plan.is_live_mode is False
    assert plan.recipient == ME
    assert plan.to == [ME]
    assert plan.from_address == DEFAULT_PLATFORM_SENDER


def test_verified_domain_sends_live() -> None:
    plan = resolve_sender_plan("acme.com", {"acme.com": "verified"}, False, ME, CLIENT)

    assert plan.is_live_mode is True
    assert plan.recipient == CLIENT
    assert "@acme.com" in plan.from_address
    assert plan.from_address == "Invoice Service <invoices@acme.com>"
    assert plan.bcc == []


def test_from_name_is_used_for_live_sender() -> None:
    plan = resolve_sender_plan(
        "acme.com", {"acme.com": "verified"}, False, ME, CLIENT, from_name="Acme Billing"
    )

    assert plan.from_address == "Acme Billing <invoices@acme.com>"


@pytest.mark.parametrize("status", ["pending", "failed", "not_started"])
def test_unverified_domain_fails_closed(status) -> None:
    plan = resolve_sender_plan("acme.com", {"acme.com": status}, False, ME, CLIENT)

    assert plan.is_live_mode is False
    assert plan.recipient == ME
    assert CLIENT not in plan.to


@pytest.mark.parametrize("requested", ["", None, "other.com"])
def test_missing_or_unknown_domain_uses_test_mode(requested) -> None:
    plan = resolve_sender_plan(requested, {"acme.com": "verified"}, False, ME, CLIENT)

    assert plan.is_live_mode is False
    assert plan.recipient == ME


def test_failed_lookup_represented_as_empty_map_uses_test_mode() -> None:
    plan = resolve_sender_plan("acme.com", {}, True, ME, CLIENT)

    assert plan.is_live_mode is False
    assert plan.to == [ME]
    assert plan.bcc == []


def test_copy_in_live_mode_is_blind() -> None:
    plan = resolve_sender_plan("acme.com", {"acme.com": "verified"}, True, ME, CLIENT)

    assert plan.bcc == [ME]
    assert ME not in plan.to
    assert plan.to == [CLIENT]


def test_copy_in_test_mode_is_visible_to_requester() -> None:
    plan = resolve_sender_plan("test", {}, True, ME, CLIENT)

    assert ME in plan.to
    assert plan.bcc == []


def test_domain_matching_ignores_case_and_whitespace() -> None:
    assert is_domain_verified("  ACME.com ", {"acme.COM": "Verified"}) is True
    plan = resolve_sender_plan(" Acme.Com", {"acme.com": "verified"}, False, ME, CLIENT)
    assert plan.from_address.endswith("<invoices@acme.com>")


def test_platform_sender_is_configurable() -> None:
    plan = resolve_sender_plan(
        "test", {}, False, ME, CLIENT, platform_sender="Billing <noreply@platform.io>"
    )

    assert plan.from_address == "Billing <noreply@platform.io>"


@pytest.mark.parametrize(
    "domains",
    [
        {"ACME.com": "pending", "acme.com": "verified"},
        {"acme.com": "verified", " Acme.COM ": "failed"},
    ],
)
def test_conflicting_case_variants_fail_closed(domains) -> None:
    assert is_domain_verified("acme.com", domains) is False
    plan = resolve_sender_plan("acme.com", domains, False, ME, CLIENT)
    assert plan.is_live_mode is False
    assert plan.recipient == ME


def test_agreeing_case_variants_are_verified() -> None:
    assert is_domain_verified("acme.com", {"ACME.com": "verified", "acme.com": "VERIFIED"}) is True


def test_missing_domain_map_uses_test_mode() -> None:
    plan = resolve_sender_plan("acme.com", None, True, ME, CLIENT)

    assert plan.is_live_mode is False
    assert plan.to == [ME]
