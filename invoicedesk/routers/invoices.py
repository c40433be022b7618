from typing import Optional

from fastapi import APIRouter, Depends, Response

from invoicedesk.dependencies.services import (
    get_invoice_email_service,
    get_invoice_service,
)
from invoicedesk.routers.errors import raise_http_error
from invoicedesk.schemas.email import SendInvoiceRequest, SendInvoiceResponse
from invoicedesk.schemas.invoice import (
    InvoiceCreateRequest,
    InvoiceListRequest,
    InvoiceListResponse,
    InvoicePaymentRequest,
    InvoiceResponse,
    InvoiceStatus,
    InvoiceUpdateRequest,
    TotalsPreviewRequest,
    TotalsPreviewResponse,
)
from invoicedesk.services import InvoiceEmailService, InvoiceService
from invoicedesk.services.exceptions import ServiceError

router = APIRouter()


@router.post("/totals", response_model=TotalsPreviewResponse)
async def preview_totals(
    req: TotalsPreviewRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.preview_totals(req)


@router.post("", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    req: InvoiceCreateRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.create(req)
    except ServiceError as exc:
        raise_http_error(exc)


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    client_id: Optional[str] = None,
    status: Optional[InvoiceStatus] = None,
    search: Optional[str] = None,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.list(
            InvoiceListRequest(client_id=client_id, status=status, search=search)
        )
    except ServiceError as exc:
        raise_http_error(exc)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.get(invoice_id)
    except ServiceError as exc:
        raise_http_error(exc)


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: str,
    req: InvoiceUpdateRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.update(invoice_id, req)
    except ServiceError as exc:
        raise_http_error(exc)


@router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        await service.delete(invoice_id)
    except ServiceError as exc:
        raise_http_error(exc)
    return Response(status_code=204)


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceResponse)
async def mark_invoice_paid(
    invoice_id: str,
    req: Optional[InvoicePaymentRequest] = None,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.mark_paid(invoice_id, req)
    except ServiceError as exc:
        raise_http_error(exc)


@router.post("/{invoice_id}/send", response_model=SendInvoiceResponse)
async def send_invoice(
    invoice_id: str,
    req: SendInvoiceRequest,
    service: InvoiceEmailService = Depends(get_invoice_email_service),
):
    try:
        return await service.send(invoice_id, req)
    except ServiceError as exc:
        raise_http_error(exc)
