from __future__ import annotations

import logging
import math
from typing import Any, Dict

from invoicedesk.clients.stripe import StripeClient
from invoicedesk.schemas.payment import (
    CheckoutRequest,
    CheckoutResponse,
    ConnectAccountRequest,
    ConnectAccountResponse,
)
from invoicedesk.services.clients import ClientService
from invoicedesk.services.exceptions import ServiceError, ValidationFailedError
from invoicedesk.services.invoice import InvoiceService
from invoicedesk.services.mock_store import PaymentRepository, get_mock_store

logger = logging.getLogger(__name__)


def amount_in_cents(total: float) -> int:
    return int(round(total * 100))


class PaymentService:
    def __init__(
        self,
        client: StripeClient,
        *,
        invoices: InvoiceService,
        clients: ClientService,
        repository: PaymentRepository | None = None,
        currency: str = "usd",
    ) -> None:
        self._client = client
        self._invoices = invoices
        self._clients = clients
        self._repository = repository
        self._currency = currency
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().payments

    async def create_checkout(self, request: CheckoutRequest) -> CheckoutResponse:
        invoice = await self._invoices.get(request.invoice_id)
        customer = await self._clients.get(invoice.client_id)
        if invoice.status == "paid":
            raise ValidationFailedError(f"Invoice {invoice.invoice_number} is already paid")
        if not math.isfinite(invoice.total):
            raise ValidationFailedError(f"Invoice {invoice.invoice_number} has an invalid total")
        cents = amount_in_cents(invoice.total)
        if cents <= 0:
            raise ValidationFailedError("Missing required payment information")

        origin = request.origin.rstrip("/")
        params: Dict[str, Any] = {
            "payment_method_types": ["card"],
            "customer_email": customer.email,
            "line_items": [
                {
                    "price_data": {
                        "currency": self._currency,
                        "product_data": {
                            "name": f"Invoice #{invoice.invoice_number}",
                            "description": request.description or "Invoice payment",
                        },
                        "unit_amount": cents,
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": f"{origin}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{origin}/payment/cancel",
            "metadata": {
                "invoice_id": invoice.id,
                "invoice_number": invoice.invoice_number,
            },
        }
        logger.info("Creating payment session for invoice %s", invoice.invoice_number)

        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not self._repository:
                raise RuntimeError("Mock payment repository not configured")
            session = await self._repository.create_checkout_session(params)
        else:
            try:
                session = await self._client.create_checkout_session(params)
            except ServiceError:
                raise
            except Exception as exc:  # pragma: no cover - defensive
                logger.exception("Unexpected error while creating checkout session")
                raise ServiceError("Failed to create checkout session", cause=exc)

        logger.info("Created checkout session %s", session["id"])
        return CheckoutResponse(success=True, session_id=session["id"], url=session["url"])

    async def connect_account(self, request: ConnectAccountRequest) -> ConnectAccountResponse:
        origin = request.origin.rstrip("/")
        return_url = f"{origin}/settings?stripe_success=true"
        logger.info("Starting Stripe Connect onboarding for user %s", request.user_id)

        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not self._repository:
                raise RuntimeError("Mock payment repository not configured")
            link = await self._repository.create_account_link(return_url)
            return ConnectAccountResponse(
                success=True, url=link["url"], account_id=link["account_id"]
            )

        account = await self._client.create_account(
            {"type": "standard", "metadata": {"user_id": request.user_id}}
        )
        account_link = await self._client.create_account_link(
            {
                "account": account["id"],
                "refresh_url": f"{origin}/settings",
                "return_url": return_url,
                "type": "account_onboarding",
            }
        )
        return ConnectAccountResponse(
            success=True, url=account_link["url"], account_id=account["id"]
        )
