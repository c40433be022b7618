from __future__ import annotations

import logging
from typing import Iterable, List

from invoicedesk.schemas.dashboard import DashboardStats, RecentInvoicePoint
from invoicedesk.schemas.client import ClientResponse
from invoicedesk.schemas.invoice import InvoiceResponse
from invoicedesk.services.clients import ClientService
from invoicedesk.services.invoice import InvoiceService

logger = logging.getLogger(__name__)

RECENT_INVOICE_LIMIT = 6


def build_dashboard_stats(
    invoices: List[InvoiceResponse], clients: Iterable[ClientResponse]
) -> DashboardStats:
    first_names = {
        client.id: (client.full_name.split(" ")[0] if client.full_name else "Unknown")
        for client in clients
    }
    by_status = {"paid": 0, "pending": 0, "overdue": 0}
    for invoice in invoices:
        if invoice.status in by_status:
            by_status[invoice.status] += 1

    total_revenue = sum(invoice.total for invoice in invoices if invoice.status == "paid")
    pending_revenue = sum(
        invoice.total for invoice in invoices if invoice.status in ("pending", "overdue")
    )
    average = sum(invoice.total for invoice in invoices) / len(invoices) if invoices else 0.0

    latest = sorted(invoices, key=lambda invoice: invoice.issue_date, reverse=True)
    recent = list(reversed(latest[:RECENT_INVOICE_LIMIT]))

    return DashboardStats(
        total_invoices=len(invoices),
        paid_invoices=by_status["paid"],
        pending_invoices=by_status["pending"],
        overdue_invoices=by_status["overdue"],
        total_revenue=total_revenue,
        pending_revenue=pending_revenue,
        average_invoice_value=average,
        recent_invoices=[
            RecentInvoicePoint(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                name=first_names.get(invoice.client_id, "Unknown"),
                amount=invoice.total,
            )
            for invoice in recent
        ],
    )


class DashboardService:
    def __init__(self, invoices: InvoiceService, clients: ClientService) -> None:
        self._invoices = invoices
        self._clients = clients

    async def stats(self) -> DashboardStats:
        logger.debug("Building dashboard statistics")
        invoices = await self._invoices.list()
        clients = await self._clients.list()
        return build_dashboard_stats(invoices.items, clients.items)
