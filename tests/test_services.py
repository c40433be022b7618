import asyncio
import os
import sys
from datetime import date

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from invoicedesk.schemas.client import ClientCreateRequest, ClientUpdateRequest
from invoicedesk.schemas.email import SendInvoiceRequest
from invoicedesk.schemas.invoice import (
    InvoiceCreateRequest,
    InvoiceListRequest,
    InvoiceUpdateRequest,
    LineItem,
)
from invoicedesk.schemas.payment import CheckoutRequest, ConnectAccountRequest
from invoicedesk.services.clients import ClientService
from invoicedesk.services.dashboard import DashboardService
from invoicedesk.services.email_domains import EmailDomainService
from invoicedesk.services.exceptions import (
    ConflictError,
    DownstreamServiceError,
    NotFoundError,
    ValidationFailedError,
)
from invoicedesk.services.invoice import InvoiceService
from invoicedesk.services.mock_store import get_mock_store, reset_mock_store
from invoicedesk.services.payments import PaymentService, amount_in_cents
from invoicedesk.services.send_invoice import InvoiceEmailService, format_due_date

OWNER = "owner@mybiz.com"
SEED_PAID_INVOICE = "invoice-1"
SEED_PENDING_INVOICE = "invoice-2"


@pytest.fixture(autouse=True)
def _reset_store() -> None:
    reset_mock_store()
    yield
    reset_mock_store()


class MockLatencyClient:
    """Client stub that records simulate_latency calls."""

    def __init__(self) -> None:
        self.use_mock_data = True
        self.latency_called = False

    async def simulate_latency(self) -> None:
        self.latency_called = True


class SlowDomainService:
    async def get_status(self, name: str):
        await asyncio.sleep(1)
        return "verified"


class BrokenDomainService:
    async def get_status(self, name: str):
        raise DownstreamServiceError("Resend unavailable", status_code=503)


def _services(client=None):
    client = client or MockLatencyClient()
    clients = ClientService(client)
    invoices = InvoiceService(client, clients=clients)
    return client, clients, invoices


def _send_request(**overrides) -> SendInvoiceRequest:
    data = {
        "to": "john@acmecorp.com",
        "subject": "Invoice INV-2023-002",
        "message": "Please find your invoice attached.",
        "copy": False,
        "mark_as_sent": True,
        "from_domain": "test",
        "requester_email": OWNER,
    }
    data.update(overrides)
    return SendInvoiceRequest(**data)


def _draft_invoice(invoices: InvoiceService) -> str:
    invoice = asyncio.run(
        invoices.create(
            InvoiceCreateRequest(
                client_id="client-1",
                items=[LineItem(description="Logo design", quantity=1, rate=400)],
            )
        )
    )
    return invoice.id


def test_client_crud_round_trip() -> None:
    client, clients, _ = _services()

    created = asyncio.run(
        clients.create(
            ClientCreateRequest(
                full_name="Ada Lovelace",
                company_name="Analytical Engines",
                email="ada@engines.io",
                address="12 St James's Square",
            )
        )
    )
    assert client.latency_called is True
    assert created.id == "client-3"

    updated = asyncio.run(clients.update(created.id, ClientUpdateRequest(city="London")))
    assert updated.city == "London"
    assert updated.full_name == "Ada Lovelace"

    listing = asyncio.run(clients.list("engines"))
    assert [item.id for item in listing.items] == [created.id]

    asyncio.run(clients.delete(created.id))
    with pytest.raises(NotFoundError):
        asyncio.run(clients.get(created.id))


def test_client_with_invoices_cannot_be_deleted() -> None:
    _, clients, _ = _services()

    with pytest.raises(ConflictError):
        asyncio.run(clients.delete("client-1"))

    assert asyncio.run(clients.get("client-1")).full_name == "John Smith"


def test_seed_invoice_matches_calculated_totals() -> None:
    _, _, invoices = _services()

    invoice = asyncio.run(invoices.get(SEED_PAID_INVOICE))

    assert invoice.invoice_number == "INV-2023-001"
    assert invoice.subtotal == 1500
    assert invoice.total == 1500
    assert invoice.status == "paid"


def test_create_invoice_computes_amounts_and_defaults() -> None:
    _, _, invoices = _services()

    invoice = asyncio.run(
        invoices.create(
            InvoiceCreateRequest(
                client_id="client-2",
                issue_date=date(2024, 3, 1),
                items=[
                    LineItem(description="Audit", quantity=2, rate=250, amount=999),
                    LineItem(description="Report", quantity=1.5, rate=100),
                ],
                tax=40,
                discount=15,
            )
        )
    )

    assert [item.amount for item in invoice.items] == [500, 150]
    assert invoice.subtotal == 650
    assert invoice.total == 675
    assert invoice.status == "draft"
    assert invoice.due_date == date(2024, 3, 15)
    assert invoice.invoice_number.startswith("INV-2403-")
    assert invoice.notes == "Thank you for your business!"


def test_create_invoice_for_unknown_client_fails() -> None:
    _, _, invoices = _services()

    with pytest.raises(NotFoundError):
        asyncio.run(
            invoices.create(
                InvoiceCreateRequest(
                    client_id="client-404",
                    items=[LineItem(description="Work", quantity=1, rate=10)],
                )
            )
        )


def test_update_invoice_recomputes_totals() -> None:
    _, _, invoices = _services()

    updated = asyncio.run(
        invoices.update(
            SEED_PENDING_INVOICE,
            InvoiceUpdateRequest(
                items=[LineItem(description="SEO Consultation", quantity=6, rate=150)]
            ),
        )
    )

    assert updated.subtotal == 900
    assert updated.tax == 75
    assert updated.total == 975

    discounted = asyncio.run(
        invoices.update(SEED_PENDING_INVOICE, InvoiceUpdateRequest(discount=100))
    )
    assert discounted.subtotal == 900
    assert discounted.total == 875


def test_list_invoices_filters_by_status_and_search() -> None:
    _, _, invoices = _services()

    pending = asyncio.run(invoices.list(InvoiceListRequest(status="pending")))
    assert [invoice.invoice_number for invoice in pending.items] == ["INV-2023-002"]

    by_client_name = asyncio.run(invoices.list(InvoiceListRequest(search="john")))
    assert [invoice.id for invoice in by_client_name.items] == [SEED_PAID_INVOICE]

    by_number = asyncio.run(invoices.list(InvoiceListRequest(search="2023-002")))
    assert by_number.total == 1


def test_mark_paid_sets_timestamp() -> None:
    _, _, invoices = _services()

    paid = asyncio.run(invoices.mark_paid(SEED_PENDING_INVOICE))

    assert paid.status == "paid"
    assert paid.paid_at is not None


def test_domain_lifecycle_in_mock_mode() -> None:
    domains = EmailDomainService(MockLatencyClient())

    added = asyncio.run(domains.add("Acme.com"))
    assert added.success is True
    assert added.status == "not_started"
    assert len(added.dns_records) == 3

    verified = asyncio.run(domains.verify("acme.com"))
    assert verified.status == "pending"
    assert verified.message.endswith("pending")

    assert asyncio.run(domains.list()).domains == ["acme.com"]

    removed = asyncio.run(domains.remove("acme.com"))
    assert removed.success is True
    assert "removed successfully" in removed.message

    again = asyncio.run(domains.remove("acme.com"))
    assert again.success is True
    assert "already removed" in again.message


def test_status_of_unknown_domain_is_reported() -> None:
    domains = EmailDomainService(MockLatencyClient())

    response = asyncio.run(domains.status("nowhere.io"))

    assert response.success is False
    assert asyncio.run(domains.get_status("nowhere.io")) is None


def test_send_in_test_mode_goes_to_requester() -> None:
    client, clients, invoices = _services()
    service = InvoiceEmailService(client, invoices=invoices, clients=clients)

    response = asyncio.run(service.send(SEED_PENDING_INVOICE, _send_request(copy=True)))

    assert response.test_mode is True
    assert response.used_custom_domain is False
    assert response.recipient == OWNER
    assert response.original_recipient == "john@acmecorp.com"

    email = asyncio.run(get_mock_store().outbox.get(response.email_id))
    assert email["to"] == [OWNER]
    assert "bcc" not in email
    assert email["subject"].endswith("(Originally to: john@acmecorp.com)")
    assert "TESTING MODE" in email["html"]
    assert "$825.00" in email["html"]
    assert "May 24, 2023" in email["html"]


def test_send_with_verified_domain_goes_to_client() -> None:
    client, clients, invoices = _services()
    store = get_mock_store()
    asyncio.run(store.domains.add("acme.com"))
    asyncio.run(store.domains.set_status("acme.com", "verified"))
    service = InvoiceEmailService(client, invoices=invoices, clients=clients)

    response = asyncio.run(
        service.send(
            SEED_PENDING_INVOICE,
            _send_request(from_domain="acme.com", from_name="Acme Billing", copy=True),
        )
    )

    assert response.test_mode is False
    assert response.recipient == "john@acmecorp.com"
    assert response.from_email == "Acme Billing <invoices@acme.com>"

    email = asyncio.run(store.outbox.get(response.email_id))
    assert email["to"] == ["john@acmecorp.com"]
    assert email["bcc"] == [OWNER]
    assert email["reply_to"] == OWNER
    assert "TESTING MODE" not in email["html"]


def test_send_with_pending_domain_falls_back_to_test_mode() -> None:
    client, clients, invoices = _services()
    asyncio.run(get_mock_store().domains.add("acme.com"))
    service = InvoiceEmailService(client, invoices=invoices, clients=clients)

    response = asyncio.run(service.send(SEED_PENDING_INVOICE, _send_request(from_domain="acme.com")))

    assert response.test_mode is True
    assert response.recipient == OWNER


@pytest.mark.parametrize("domains", [SlowDomainService(), BrokenDomainService()])
def test_domain_lookup_failure_fails_closed(domains) -> None:
    client, clients, invoices = _services()
    service = InvoiceEmailService(
        client,
        invoices=invoices,
        clients=clients,
        domains=domains,
        domain_status_timeout=0.01,
    )

    response = asyncio.run(service.send(SEED_PENDING_INVOICE, _send_request(from_domain="acme.com")))

    assert response.test_mode is True
    assert response.recipient == OWNER
    email = asyncio.run(get_mock_store().outbox.get(response.email_id))
    assert "john@acmecorp.com" not in email["to"]


def test_send_marks_draft_invoice_pending() -> None:
    client, clients, invoices = _services()
    draft_id = _draft_invoice(invoices)
    service = InvoiceEmailService(client, invoices=invoices, clients=clients)

    asyncio.run(service.send(draft_id, _send_request()))

    assert asyncio.run(invoices.get(draft_id)).status == "pending"


def test_send_without_mark_as_sent_keeps_draft() -> None:
    client, clients, invoices = _services()
    draft_id = _draft_invoice(invoices)
    service = InvoiceEmailService(client, invoices=invoices, clients=clients)

    asyncio.run(service.send(draft_id, _send_request(mark_as_sent=False)))

    assert asyncio.run(invoices.get(draft_id)).status == "draft"


def test_due_date_formatting() -> None:
    assert format_due_date(date(2023, 5, 5)) == "May 5, 2023"


def test_checkout_session_uses_invoice_total_in_cents() -> None:
    client, clients, invoices = _services()
    payments = PaymentService(client, invoices=invoices, clients=clients)

    response = asyncio.run(
        payments.create_checkout(
            CheckoutRequest(invoice_id=SEED_PENDING_INVOICE, origin="https://app.example.org/")
        )
    )

    assert response.success is True
    assert response.url.endswith(response.session_id)
    session = asyncio.run(get_mock_store().payments.list())[0]
    line = session["line_items"][0]
    assert line["price_data"]["unit_amount"] == 82500
    assert session["customer_email"] == "jane@globex.com"
    assert session["cancel_url"] == "https://app.example.org/payment/cancel"
    assert session["metadata"]["invoice_number"] == "INV-2023-002"


def test_checkout_refuses_paid_invoice() -> None:
    client, clients, invoices = _services()
    payments = PaymentService(client, invoices=invoices, clients=clients)

    with pytest.raises(ValidationFailedError):
        asyncio.run(
            payments.create_checkout(
                CheckoutRequest(invoice_id=SEED_PAID_INVOICE, origin="https://app.example.org")
            )
        )


def test_connect_account_returns_onboarding_link() -> None:
    client, clients, invoices = _services()
    payments = PaymentService(client, invoices=invoices, clients=clients)

    response = asyncio.run(
        payments.connect_account(
            ConnectAccountRequest(user_id="user-1", origin="https://app.example.org")
        )
    )

    assert response.account_id.startswith("acct_test_")
    assert "stripe_success=true" in response.url


def test_amount_in_cents_rounds() -> None:
    assert amount_in_cents(19.999) == 2000
    assert amount_in_cents(0.1 + 0.2) == 30


def test_dashboard_stats_from_seed_data() -> None:
    _, clients, invoices = _services()
    dashboard = DashboardService(invoices, clients)

    stats = asyncio.run(dashboard.stats())

    assert stats.total_invoices == 2
    assert stats.paid_invoices == 1
    assert stats.pending_invoices == 1
    assert stats.overdue_invoices == 0
    assert stats.total_revenue == 1500
    assert stats.pending_revenue == 825
    assert stats.average_invoice_value == pytest.approx(1162.5)
    assert [point.name for point in stats.recent_invoices] == ["John", "Jane"]


def test_checkout_refuses_non_finite_total() -> None:
    client, clients, invoices = _services()
    asyncio.run(get_mock_store().invoices.update(SEED_PENDING_INVOICE, {"total": float("nan")}))
    payments = PaymentService(client, invoices=invoices, clients=clients)

    with pytest.raises(ValidationFailedError):
        asyncio.run(
            payments.create_checkout(
                CheckoutRequest(invoice_id=SEED_PENDING_INVOICE, origin="https://app.example.org")
            )
        )


def test_client_update_never_nulls_required_fields() -> None:
    _, clients, _ = _services()
    request = ClientUpdateRequest.model_construct(
        _fields_set={"full_name", "city"}, full_name=None, city="Boston"
    )

    updated = asyncio.run(clients.update("client-1", request))

    assert updated.full_name == "John Smith"
    assert updated.city == "Boston"
