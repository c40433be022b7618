"""Service package public API definitions.

The HTTP clients import ``invoicedesk.services.exceptions``, which executes
this module first. Importing the service implementations eagerly here would
pull the clients back in and create a circular import, so the services are
resolved lazily on first attribute access.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "ClientService",
    "DashboardService",
    "EmailDomainService",
    "InvoiceEmailService",
    "InvoiceService",
    "PaymentService",
]

_SERVICE_MODULES = {
    "ClientService": "clients",
    "DashboardService": "dashboard",
    "EmailDomainService": "email_domains",
    "InvoiceEmailService": "send_invoice",
    "InvoiceService": "invoice",
    "PaymentService": "payments",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .clients import ClientService as ClientService
    from .dashboard import DashboardService as DashboardService
    from .email_domains import EmailDomainService as EmailDomainService
    from .invoice import InvoiceService as InvoiceService
    from .payments import PaymentService as PaymentService
    from .send_invoice import InvoiceEmailService as InvoiceEmailService
