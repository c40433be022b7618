from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from invoicedesk.clients.backend import BackendClient
from invoicedesk.clients.resend import ResendClient
from invoicedesk.clients.stripe import StripeClient
from invoicedesk.config import Settings, get_settings
from invoicedesk.services import (
    ClientService,
    DashboardService,
    EmailDomainService,
    InvoiceEmailService,
    InvoiceService,
    PaymentService,
)


@lru_cache(maxsize=1)
def get_backend_client_cached() -> BackendClient:
    settings = get_settings()
    return BackendClient(
        settings.backend_base_url,
        timeout=settings.backend_timeout,
        use_mock_data=settings.use_mock_data,
        token=settings.backend_token,
    )


@lru_cache(maxsize=1)
def get_resend_client_cached() -> ResendClient:
    settings = get_settings()
    return ResendClient(
        settings.resend_api_key,
        base_url=str(settings.resend_base_url),
        timeout=settings.resend_timeout,
        use_mock_data=settings.use_mock_data,
        min_request_interval=settings.resend_min_request_interval,
        max_retries=settings.resend_max_retries,
    )


@lru_cache(maxsize=1)
def get_stripe_client_cached() -> StripeClient:
    settings = get_settings()
    return StripeClient(
        settings.stripe_secret_key,
        base_url=str(settings.stripe_base_url),
        timeout=settings.stripe_timeout,
        use_mock_data=settings.use_mock_data,
    )


def get_backend_client() -> BackendClient:
    return get_backend_client_cached()


def get_resend_client() -> ResendClient:
    return get_resend_client_cached()


def get_stripe_client() -> StripeClient:
    return get_stripe_client_cached()


def get_client_service(
    client: BackendClient = Depends(get_backend_client),
) -> ClientService:
    return ClientService(client)


def get_invoice_service(
    client: BackendClient = Depends(get_backend_client),
    clients: ClientService = Depends(get_client_service),
) -> InvoiceService:
    return InvoiceService(client, clients=clients)


def get_email_domain_service(
    client: ResendClient = Depends(get_resend_client),
) -> EmailDomainService:
    return EmailDomainService(client)


def get_invoice_email_service(
    client: ResendClient = Depends(get_resend_client),
    invoices: InvoiceService = Depends(get_invoice_service),
    clients: ClientService = Depends(get_client_service),
    domains: EmailDomainService = Depends(get_email_domain_service),
    settings: Settings = Depends(get_settings),
) -> InvoiceEmailService:
    return InvoiceEmailService(
        client,
        invoices=invoices,
        clients=clients,
        domains=domains,
        platform_sender=settings.platform_sender,
        default_from_name=settings.default_from_name,
        domain_status_timeout=settings.domain_status_timeout,
    )


def get_payment_service(
    client: StripeClient = Depends(get_stripe_client),
    invoices: InvoiceService = Depends(get_invoice_service),
    clients: ClientService = Depends(get_client_service),
    settings: Settings = Depends(get_settings),
) -> PaymentService:
    return PaymentService(
        client, invoices=invoices, clients=clients, currency=settings.stripe_currency
    )


def get_dashboard_service(
    invoices: InvoiceService = Depends(get_invoice_service),
    clients: ClientService = Depends(get_client_service),
) -> DashboardService:
    return DashboardService(invoices, clients)
