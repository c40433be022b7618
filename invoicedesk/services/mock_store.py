from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from invoicedesk.schemas.email import DnsRecord


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _BaseRepository:
    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def _next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


class ClientRepository(_BaseRepository):
    def __init__(self) -> None:
        super().__init__("client")
        self._clients: Dict[str, Dict[str, object]] = {}
        self._seed_defaults()

    def _seed_defaults(self) -> None:
        seeds = [
            {
                "full_name": "John Smith",
                "company_name": "Acme Corporation",
                "email": "john@acmecorp.com",
                "phone": "(555) 123-4567",
                "address": "123 Main St",
                "city": "New York",
                "state": "NY",
                "zip_code": "10001",
                "country": "USA",
            },
            {
                "full_name": "Jane Doe",
                "company_name": "Globex Industries",
                "email": "jane@globex.com",
                "phone": "(555) 987-6543",
                "address": "456 Broadway",
                "city": "San Francisco",
                "state": "CA",
                "zip_code": "94105",
                "country": "USA",
            },
        ]
        for seed in seeds:
            self._insert(seed)

    def _insert(self, data: Dict[str, object]) -> Dict[str, object]:
        client_id = self._next_id()
        record = {**data, "id": client_id, "created_at": _utc_now_iso()}
        self._clients[client_id] = record
        return dict(record)

    async def create(self, data: Dict[str, object]) -> Dict[str, object]:
        return self._insert(data)

    async def get(self, client_id: str) -> Optional[Dict[str, object]]:
        client = self._clients.get(client_id)
        return dict(client) if client is not None else None

    async def list(self) -> List[Dict[str, object]]:
        return [dict(client) for client in self._clients.values()]

    async def update(
        self, client_id: str, changes: Dict[str, object]
    ) -> Optional[Dict[str, object]]:
        client = self._clients.get(client_id)
        if client is None:
            return None
        client.update(changes)
        return dict(client)

    async def delete(self, client_id: str) -> bool:
        return self._clients.pop(client_id, None) is not None


class InvoiceRepository(_BaseRepository):
    def __init__(self) -> None:
        super().__init__("invoice")
        self._invoices: Dict[str, Dict[str, object]] = {}
        self._number_counter = itertools.count(1)
        self._seed_defaults()

    def _seed_defaults(self) -> None:
        self._insert(
            {
                "client_id": "client-1",
                "invoice_number": "INV-2023-001",
                "issue_date": date(2023, 5, 1),
                "due_date": date(2023, 5, 15),
                "items": [
                    {
                        "id": "item-1",
                        "description": "Web Design Services",
                        "quantity": 1,
                        "rate": 1200,
                        "amount": 1200,
                    },
                    {
                        "id": "item-2",
                        "description": "Hosting (Annual)",
                        "quantity": 1,
                        "rate": 300,
                        "amount": 300,
                    },
                ],
                "subtotal": 1500,
                "tax": 0,
                "discount": 0,
                "total": 1500,
                "notes": "Thank you for your business!",
                "status": "paid",
            }
        )
        self._insert(
            {
                "client_id": "client-2",
                "invoice_number": "INV-2023-002",
                "issue_date": date(2023, 5, 10),
                "due_date": date(2023, 5, 24),
                "items": [
                    {
                        "id": "item-3",
                        "description": "SEO Consultation",
                        "quantity": 5,
                        "rate": 150,
                        "amount": 750,
                    },
                ],
                "subtotal": 750,
                "tax": 75,
                "discount": 0,
                "total": 825,
                "notes": None,
                "status": "pending",
            }
        )

    def _insert(self, data: Dict[str, object]) -> Dict[str, object]:
        invoice_id = self._next_id()
        record = {**data, "id": invoice_id, "created_at": _utc_now_iso()}
        self._invoices[invoice_id] = record
        return dict(record)

    def next_invoice_number(self, today: date) -> str:
        taken = {invoice["invoice_number"] for invoice in self._invoices.values()}
        while True:
            candidate = f"INV-{today:%y%m}-{next(self._number_counter):03d}"
            if candidate not in taken:
                return candidate

    async def create(self, data: Dict[str, object]) -> Dict[str, object]:
        return self._insert(data)

    async def get(self, invoice_id: str) -> Optional[Dict[str, object]]:
        invoice = self._invoices.get(invoice_id)
        return dict(invoice) if invoice is not None else None

    async def list(self, client_id: Optional[str] = None) -> List[Dict[str, object]]:
        if client_id is None:
            return [dict(invoice) for invoice in self._invoices.values()]
        return [
            dict(invoice)
            for invoice in self._invoices.values()
            if invoice["client_id"] == client_id
        ]

    async def update(
        self, invoice_id: str, changes: Dict[str, object]
    ) -> Optional[Dict[str, object]]:
        invoice = self._invoices.get(invoice_id)
        if invoice is None:
            return None
        invoice.update(changes)
        return dict(invoice)

    async def delete(self, invoice_id: str) -> bool:
        return self._invoices.pop(invoice_id, None) is not None


# Resend's usual record set for a freshly added domain.
FALLBACK_DNS_RECORDS: List[DnsRecord] = [
    DnsRecord(
        type="MX",
        name="send",
        value="feedback-smtp.us-east-1.amazonses.com",
        priority=10,
        ttl="Auto",
        status="not_started",
    ),
    DnsRecord(
        type="TXT",
        name="send",
        value="v=spf1 include:amazonses.com ~all",
        ttl="Auto",
        status="not_started",
    ),
    DnsRecord(
        type="TXT",
        name="resend._domainkey",
        value=(
            "p=MIGfMA0GCSqGSIb3DQEBAQUAA4GNADCBiQKBgQC/lqwCiB74WBLfpXvPqY6Dn2svh3lq91L2pCv"
            "VNBfjLYMur62bMCUGwOHmS4/7Njl/xyKExPpoPVDXdH27HdrvcxI4A/9z+mNN2gnLZfpgMu/RiQ+d"
            "uPOJFIrjMDIfRCV5FUa5aXKMY375BYlfOXHRtJZYIDxxBd1/Fgx4TXB8cwIDAQAB"
        ),
        ttl="Auto",
        status="not_started",
    ),
]


class DomainRepository(_BaseRepository):
    """Stands in for the domains registered with the email provider."""

    def __init__(self) -> None:
        super().__init__("dom")
        self._domains: Dict[str, Dict[str, object]] = {}

    async def add(self, name: str) -> Dict[str, object]:
        key = name.strip().lower()
        existing = self._domains.get(key)
        if existing is not None:
            return dict(existing)
        record = {
            "id": self._next_id(),
            "name": key,
            "status": "not_started",
            "records": [dns.model_dump() for dns in FALLBACK_DNS_RECORDS],
            "created_at": _utc_now_iso(),
        }
        self._domains[key] = record
        return dict(record)

    async def get(self, name: str) -> Optional[Dict[str, object]]:
        domain = self._domains.get(name.strip().lower())
        return dict(domain) if domain is not None else None

    async def list(self) -> List[Dict[str, object]]:
        return [dict(domain) for domain in self._domains.values()]

    async def verify(self, name: str) -> Optional[Dict[str, object]]:
        domain = self._domains.get(name.strip().lower())
        if domain is None:
            return None
        # Requesting verification moves a new domain into the provider's queue;
        # only DNS propagation (set_status) can make it verified.
        if domain["status"] == "not_started":
            domain["status"] = "pending"
        return dict(domain)

    async def set_status(self, name: str, status: str) -> Optional[Dict[str, object]]:
        domain = self._domains.get(name.strip().lower())
        if domain is None:
            return None
        domain["status"] = status
        return dict(domain)

    async def remove(self, name: str) -> bool:
        return self._domains.pop(name.strip().lower(), None) is not None


class OutboxRepository(_BaseRepository):
    """Keeps emails that would have been handed to the provider."""

    def __init__(self) -> None:
        super().__init__("email")
        self._emails: Dict[str, Dict[str, object]] = {}

    async def send(self, payload: Dict[str, object]) -> Dict[str, object]:
        email_id = self._next_id()
        self._emails[email_id] = {**payload, "id": email_id, "sent_at": _utc_now_iso()}
        return {"id": email_id}

    async def get(self, email_id: str) -> Optional[Dict[str, object]]:
        email = self._emails.get(email_id)
        return dict(email) if email is not None else None

    async def list(self) -> List[Dict[str, object]]:
        return [dict(email) for email in self._emails.values()]

    async def delete(self, email_id: str) -> bool:
        return self._emails.pop(email_id, None) is not None


class PaymentRepository(_BaseRepository):
    def __init__(self) -> None:
        super().__init__("cs_test")
        self._sessions: Dict[str, Dict[str, object]] = {}
        self._accounts = itertools.count(1)

    async def create_checkout_session(self, params: Dict[str, object]) -> Dict[str, object]:
        session_id = self._next_id()
        record = {
            **params,
            "id": session_id,
            "url": f"https://checkout.stripe.com/c/pay/{session_id}",
            "created_at": _utc_now_iso(),
        }
        self._sessions[session_id] = record
        return dict(record)

    async def create_account_link(self, return_url: str) -> Dict[str, object]:
        account_id = f"acct_test_{next(self._accounts)}"
        return {
            "account_id": account_id,
            "url": f"https://connect.stripe.com/setup/s/{account_id}?return_url={return_url}",
        }

    async def list(self) -> List[Dict[str, object]]:
        return [dict(session) for session in self._sessions.values()]

    async def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None


@dataclass
class MockDataStore:
    clients: ClientRepository
    invoices: InvoiceRepository
    domains: DomainRepository
    outbox: OutboxRepository
    payments: PaymentRepository


_mock_store: Optional[MockDataStore] = None


def get_mock_store() -> MockDataStore:
    global _mock_store
    if _mock_store is None:
        _mock_store = MockDataStore(
            clients=ClientRepository(),
            invoices=InvoiceRepository(),
            domains=DomainRepository(),
            outbox=OutboxRepository(),
            payments=PaymentRepository(),
        )
    return _mock_store


def reset_mock_store() -> None:
    global _mock_store
    _mock_store = None
