from __future__ import annotations

import asyncio
import html
import logging
from datetime import date
from typing import Any, Dict

from invoicedesk.clients.resend import ResendClient
from invoicedesk.schemas.email import SendInvoiceRequest, SendInvoiceResponse
from invoicedesk.schemas.invoice import InvoiceResponse
from invoicedesk.services.clients import ClientService
from invoicedesk.services.email_domains import EmailDomainService
from invoicedesk.services.exceptions import ServiceError
from invoicedesk.services.invoice import InvoiceService
from invoicedesk.services.mock_store import OutboxRepository, get_mock_store
from invoicedesk.services.sender import (
    DEFAULT_FROM_NAME,
    DEFAULT_PLATFORM_SENDER,
    TEST_DOMAIN_TOKEN,
    OutboundEmailPlan,
    resolve_sender_plan,
)
from invoicedesk.services.totals import format_money

logger = logging.getLogger(__name__)


def format_due_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def render_invoice_email(
    invoice: InvoiceResponse,
    *,
    client_name: str,
    message: str,
    intended_recipient: str,
    test_mode: bool,
) -> str:
    content = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2>Invoice #{html.escape(invoice.invoice_number)}</h2>
        <p>{html.escape(message)}</p>
        <div style="background-color: #f5f5f5; border-radius: 8px; padding: 16px; margin: 20px 0;">
          <h3 style="margin-top: 0;">Invoice Summary</h3>
          <p><strong>Client:</strong> {html.escape(client_name)}</p>
          <p><strong>Amount Due:</strong> ${format_money(invoice.total)}</p>
          <p><strong>Due Date:</strong> {format_due_date(invoice.due_date)}</p>
        </div>
        <p style="color: #666; font-size: 14px;">This is an automated email sent via InvoiceDesk.</p>
      </div>
    """
    if not test_mode:
        return content
    banner = f"""
      <div style="background-color: #ffffe0; padding: 10px; margin-bottom: 15px; border: 1px solid #e6db55; border-radius: 4px;">
        <strong>TESTING MODE:</strong> This email would have been sent to {html.escape(intended_recipient)}
      </div>
    """
    return banner + content


class InvoiceEmailService:
    """Email an invoice to its client, or to the requester in test mode."""

    def __init__(
        self,
        client: ResendClient,
        *,
        invoices: InvoiceService,
        clients: ClientService,
        domains: EmailDomainService | None = None,
        outbox: OutboxRepository | None = None,
        platform_sender: str = DEFAULT_PLATFORM_SENDER,
        default_from_name: str = DEFAULT_FROM_NAME,
        domain_status_timeout: float = 5.0,
    ) -> None:
        self._client = client
        self._invoices = invoices
        self._clients = clients
        self._domains = domains or EmailDomainService(client)
        self._outbox = outbox
        self._platform_sender = platform_sender
        self._default_from_name = default_from_name
        self._domain_status_timeout = domain_status_timeout
        if self._client.use_mock_data:
            self._outbox = outbox or get_mock_store().outbox

    async def _known_domains(self, requested: str | None) -> Dict[str, str]:
        domain = (requested or "").strip().lower()
        if not domain or domain == TEST_DOMAIN_TOKEN:
            return {}
        try:
            status = await asyncio.wait_for(
                self._domains.get_status(domain), timeout=self._domain_status_timeout
            )
        except (ServiceError, asyncio.TimeoutError) as exc:
            logger.warning(
                "Domain status lookup for %s failed (%s); sending in test mode", domain, exc
            )
            return {}
        return {domain: status} if status else {}

    async def _deliver(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not self._outbox:
                raise RuntimeError("Mock outbox not configured")
            return await self._outbox.send(payload)
        return await self._client.send_email(payload)

    def plan(self, request: SendInvoiceRequest, domains: Dict[str, str]) -> OutboundEmailPlan:
        return resolve_sender_plan(
            request.from_domain,
            domains,
            request.copy_to_self,
            str(request.requester_email),
            str(request.to),
            request.from_name,
            platform_sender=self._platform_sender,
            default_from_name=self._default_from_name,
        )

    async def send(self, invoice_id: str, request: SendInvoiceRequest) -> SendInvoiceResponse:
        invoice = await self._invoices.get(invoice_id)
        client = await self._clients.get(invoice.client_id)
        logger.info(
            "Sending invoice %s with domain %s", invoice.invoice_number, request.from_domain
        )

        plan = self.plan(request, await self._known_domains(request.from_domain))
        test_mode = not plan.is_live_mode
        intended = str(request.to)
        subject = request.subject if plan.is_live_mode else f"{request.subject} (Originally to: {intended})"

        payload: Dict[str, Any] = {
            "from": plan.from_address,
            "to": plan.to,
            "reply_to": str(request.requester_email),
            "subject": subject,
            "html": render_invoice_email(
                invoice,
                client_name=client.full_name,
                message=request.message,
                intended_recipient=intended,
                test_mode=test_mode,
            ),
        }
        if plan.bcc:
            payload["bcc"] = plan.bcc

        try:
            result = await self._deliver(payload)
        except ServiceError:
            logger.exception("Email provider rejected invoice %s", invoice.invoice_number)
            raise
        logger.info("Invoice %s email accepted: %s", invoice.invoice_number, result.get("id"))

        if request.mark_as_sent and invoice.status == "draft":
            await self._invoices.set_status(invoice.id, "pending")

        if plan.is_live_mode:
            message = "Email sent successfully to client."
        else:
            message = (
                "Email sent to your own address in testing mode. "
                "To send to actual clients, verify a domain in Settings > Email Domains."
            )
        return SendInvoiceResponse(
            success=True,
            message=message,
            recipient=plan.recipient,
            original_recipient=intended,
            used_custom_domain=plan.is_live_mode,
            test_mode=test_mode,
            from_email=plan.from_address,
            email_id=result.get("id"),
        )
