from __future__ import annotations

import logging
from typing import Optional

from invoicedesk.clients.backend import BackendClient
from invoicedesk.schemas.client import (
    ClientCreateRequest,
    ClientListResponse,
    ClientResponse,
    ClientUpdateRequest,
)
from invoicedesk.services.exceptions import (
    ConflictError,
    DownstreamServiceError,
    NotFoundError,
    ServiceError,
)
from invoicedesk.services.mock_store import (
    ClientRepository,
    InvoiceRepository,
    get_mock_store,
)

logger = logging.getLogger(__name__)


REQUIRED_FIELDS = ("full_name", "email", "address")


def _matches(client: ClientResponse, term: str) -> bool:
    haystack = [client.full_name, client.company_name or "", client.email]
    return any(term in value.lower() for value in haystack)


class ClientService:
    def __init__(
        self,
        client: BackendClient,
        *,
        repository: ClientRepository | None = None,
        invoice_repository: InvoiceRepository | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        self._invoices = invoice_repository
        if self._client.use_mock_data:
            store = get_mock_store()
            self._repository = repository or store.clients
            self._invoices = invoice_repository or store.invoices

    def _require_repository(self) -> ClientRepository:
        if not self._repository:
            raise RuntimeError("Mock client repository not configured")
        return self._repository

    async def create(self, request: ClientCreateRequest) -> ClientResponse:
        logger.debug("Creating client %s", request.full_name)
        payload = request.model_dump(mode="json")
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            record = await self._require_repository().create(payload)
            return ClientResponse(**record)

        try:
            data = await self._client.post("/clients", payload)
            return ClientResponse(**data)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while creating client")
            raise ServiceError("Failed to create client", cause=exc)

    async def get(self, client_id: str) -> ClientResponse:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            record = await self._require_repository().get(client_id)
            if record is None:
                raise NotFoundError(f"Client {client_id} not found")
            return ClientResponse(**record)

        try:
            data = await self._client.get(f"/clients/{client_id}")
            return ClientResponse(**data)
        except DownstreamServiceError as exc:
            if exc.status_code == 404:
                raise NotFoundError(f"Client {client_id} not found", cause=exc) from exc
            raise

    async def list(self, search: Optional[str] = None) -> ClientListResponse:
        logger.info("Listing clients")
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            records = await self._require_repository().list()
            clients = [ClientResponse(**record) for record in records]
        else:
            data = await self._client.get("/clients")
            clients = [ClientResponse(**record) for record in data or []]

        term = (search or "").strip().lower()
        if term:
            clients = [client for client in clients if _matches(client, term)]
        return ClientListResponse(total=len(clients), items=clients)

    async def update(self, client_id: str, request: ClientUpdateRequest) -> ClientResponse:
        changes = {
            key: value
            for key, value in request.model_dump(mode="json", exclude_unset=True).items()
            if value is not None or key not in REQUIRED_FIELDS
        }
        logger.debug("Updating client %s fields %s", client_id, sorted(changes))
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            record = await self._require_repository().update(client_id, changes)
            if record is None:
                raise NotFoundError(f"Client {client_id} not found")
            return ClientResponse(**record)

        try:
            data = await self._client.patch(f"/clients/{client_id}", changes)
            return ClientResponse(**data)
        except DownstreamServiceError as exc:
            if exc.status_code == 404:
                raise NotFoundError(f"Client {client_id} not found", cause=exc) from exc
            raise

    async def delete(self, client_id: str) -> None:
        """Delete a client unless invoices still reference it."""

        if self._client.use_mock_data:
            await self._client.simulate_latency()
            repository = self._require_repository()
            if await repository.get(client_id) is None:
                raise NotFoundError(f"Client {client_id} not found")
            if self._invoices and await self._invoices.list(client_id):
                raise ConflictError(f"Client {client_id} still has invoices")
            await repository.delete(client_id)
            return

        await self.get(client_id)
        invoices = await self._client.get("/invoices", params={"client_id": client_id})
        if invoices:
            raise ConflictError(f"Client {client_id} still has invoices")
        await self._client.delete(f"/clients/{client_id}")
