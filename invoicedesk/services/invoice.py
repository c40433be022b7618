from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from invoicedesk.clients.backend import BackendClient
from invoicedesk.schemas.invoice import (
    InvoiceCreateRequest,
    InvoiceListRequest,
    InvoiceListResponse,
    InvoicePaymentRequest,
    InvoiceResponse,
    InvoiceUpdateRequest,
    LineItem,
    TotalsPreviewRequest,
    TotalsPreviewResponse,
)
from invoicedesk.services.clients import ClientService
from invoicedesk.services.exceptions import DownstreamServiceError, NotFoundError, ServiceError
from invoicedesk.services.mock_store import InvoiceRepository, get_mock_store
from invoicedesk.services.totals import apply_line_amounts, compute_invoice_totals

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_TERMS_DAYS = 14


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _json_ready(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value.isoformat() if isinstance(value, date) else value
        for key, value in record.items()
    }


def _priced_fields(items: List[LineItem], tax: float | None, discount: float | None) -> Dict[str, Any]:
    priced = apply_line_amounts(items)
    totals = compute_invoice_totals(priced, tax, discount)
    return {
        "items": [item.model_dump() for item in priced],
        "subtotal": totals.subtotal,
        "tax": totals.tax,
        "discount": totals.discount,
        "total": totals.total,
    }


class InvoiceService:
    def __init__(
        self,
        client: BackendClient,
        *,
        repository: InvoiceRepository | None = None,
        clients: ClientService | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        self._clients = clients or ClientService(client)
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().invoices

    def _require_repository(self) -> InvoiceRepository:
        if not self._repository:
            raise RuntimeError("Mock invoice repository not configured")
        return self._repository

    def preview_totals(self, request: TotalsPreviewRequest) -> TotalsPreviewResponse:
        priced = apply_line_amounts(request.items)
        totals = compute_invoice_totals(priced, request.tax, request.discount)
        return TotalsPreviewResponse(
            items=priced,
            subtotal=totals.subtotal,
            tax=totals.tax,
            discount=totals.discount,
            total=totals.total,
        )

    async def create(self, request: InvoiceCreateRequest) -> InvoiceResponse:
        logger.debug("Creating invoice for client %s", request.client_id)
        await self._clients.get(request.client_id)

        issue_date = request.issue_date or date.today()
        record: Dict[str, Any] = {
            "client_id": request.client_id,
            "invoice_number": request.invoice_number,
            "issue_date": issue_date,
            "due_date": request.due_date
            or issue_date + timedelta(days=DEFAULT_PAYMENT_TERMS_DAYS),
            "notes": request.notes,
            "status": request.status,
            **_priced_fields(request.items, request.tax, request.discount),
        }

        if self._client.use_mock_data:
            await self._client.simulate_latency()
            repository = self._require_repository()
            if not record["invoice_number"]:
                record["invoice_number"] = repository.next_invoice_number(issue_date)
            stored = await repository.create(record)
            return InvoiceResponse(**stored)

        try:
            data = await self._client.post("/invoices", _json_ready(record))
            return InvoiceResponse(**data)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while creating invoice")
            raise ServiceError("Failed to create invoice", cause=exc)

    async def get(self, invoice_id: str) -> InvoiceResponse:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            record = await self._require_repository().get(invoice_id)
            if record is None:
                raise NotFoundError(f"Invoice {invoice_id} not found")
            return InvoiceResponse(**record)

        try:
            data = await self._client.get(f"/invoices/{invoice_id}")
            return InvoiceResponse(**data)
        except DownstreamServiceError as exc:
            if exc.status_code == 404:
                raise NotFoundError(f"Invoice {invoice_id} not found", cause=exc) from exc
            raise

    async def list(self, request: Optional[InvoiceListRequest] = None) -> InvoiceListResponse:
        request = request or InvoiceListRequest()
        logger.info("Listing invoices (client=%s, status=%s)", request.client_id, request.status)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            records = await self._require_repository().list(request.client_id)
        else:
            params = {"client_id": request.client_id} if request.client_id else None
            records = await self._client.get("/invoices", params=params) or []

        invoices = [InvoiceResponse(**record) for record in records]
        if request.status:
            invoices = [invoice for invoice in invoices if invoice.status == request.status]

        term = (request.search or "").strip().lower()
        if term:
            client_names = {
                client.id: client.full_name.lower()
                for client in (await self._clients.list()).items
            }
            invoices = [
                invoice
                for invoice in invoices
                if term in invoice.invoice_number.lower()
                or term in client_names.get(invoice.client_id, "")
            ]
        return InvoiceListResponse(total=len(invoices), items=invoices)

    async def update(self, invoice_id: str, request: InvoiceUpdateRequest) -> InvoiceResponse:
        changes = request.model_dump(exclude_unset=True, exclude_none=True, exclude={"items"})
        if "notes" in request.model_fields_set and request.notes is None:
            changes["notes"] = None
        if request.client_id is not None:
            await self._clients.get(request.client_id)

        if {"items", "tax", "discount"} & request.model_fields_set:
            current = await self.get(invoice_id)
            items = request.items if request.items is not None else current.items
            tax = request.tax if request.tax is not None else current.tax
            discount = request.discount if request.discount is not None else current.discount
            changes.update(_priced_fields(items, tax, discount))

        return await self._apply_changes(invoice_id, changes)

    async def _apply_changes(self, invoice_id: str, changes: Dict[str, Any]) -> InvoiceResponse:
        logger.debug("Updating invoice %s fields %s", invoice_id, sorted(changes))
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            record = await self._require_repository().update(invoice_id, changes)
            if record is None:
                raise NotFoundError(f"Invoice {invoice_id} not found")
            return InvoiceResponse(**record)

        try:
            data = await self._client.patch(f"/invoices/{invoice_id}", _json_ready(changes))
            return InvoiceResponse(**data)
        except DownstreamServiceError as exc:
            if exc.status_code == 404:
                raise NotFoundError(f"Invoice {invoice_id} not found", cause=exc) from exc
            raise

    async def set_status(self, invoice_id: str, status: str) -> InvoiceResponse:
        return await self._apply_changes(invoice_id, {"status": status})

    async def mark_paid(
        self, invoice_id: str, request: Optional[InvoicePaymentRequest] = None
    ) -> InvoiceResponse:
        paid_at = (request.paid_at if request else None) or _utc_now_iso()
        logger.info("Marking invoice %s paid at %s", invoice_id, paid_at)
        return await self._apply_changes(invoice_id, {"status": "paid", "paid_at": paid_at})

    async def delete(self, invoice_id: str) -> None:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not await self._require_repository().delete(invoice_id):
                raise NotFoundError(f"Invoice {invoice_id} not found")
            return

        try:
            await self._client.delete(f"/invoices/{invoice_id}")
        except DownstreamServiceError as exc:
            if exc.status_code == 404:
                raise NotFoundError(f"Invoice {invoice_id} not found", cause=exc) from exc
            raise
