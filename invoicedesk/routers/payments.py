from fastapi import APIRouter, Depends

from invoicedesk.dependencies.services import get_payment_service
from invoicedesk.routers.errors import raise_http_error
from invoicedesk.schemas.payment import (
    CheckoutRequest,
    CheckoutResponse,
    ConnectAccountRequest,
    ConnectAccountResponse,
)
from invoicedesk.services import PaymentService
from invoicedesk.services.exceptions import ServiceError

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    req: CheckoutRequest,
    service: PaymentService = Depends(get_payment_service),
):
    try:
        return await service.create_checkout(req)
    except ServiceError as exc:
        raise_http_error(exc)


@router.post("/connect", response_model=ConnectAccountResponse)
async def connect_account(
    req: ConnectAccountRequest,
    service: PaymentService = Depends(get_payment_service),
):
    try:
        return await service.connect_account(req)
    except ServiceError as exc:
        raise_http_error(exc)
