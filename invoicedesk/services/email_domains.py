"""Sending-domain management against the email provider.

Resend addresses domains by id while users work with domain names, so most
operations first resolve the name through the domain list. DNS records are
not always returned straight after a domain is created; in that case the
provider's standard record pattern is reported so the user has something to
put into their DNS zone.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from invoicedesk.clients.resend import ResendClient
from invoicedesk.schemas.email import (
    DnsRecord,
    DomainListResponse,
    DomainRemovalResponse,
    DomainVerificationResponse,
)
from invoicedesk.services.exceptions import DownstreamServiceError, ServiceError
from invoicedesk.services.mock_store import (
    FALLBACK_DNS_RECORDS,
    DomainRepository,
    get_mock_store,
)

logger = logging.getLogger(__name__)

KNOWN_STATUSES = {"verified", "pending", "failed", "not_started"}
UNVERIFIED_STATUSES = {"pending", "not_started"}


def _normalize_status(value: Any, default: str = "pending") -> str:
    status = str(value or "").lower()
    # Resend also reports transient states such as "temporary_failure".
    if status in KNOWN_STATUSES:
        return status
    if "fail" in status:
        return "failed"
    return default


def _dns_records(domain: Dict[str, Any] | None, status: str) -> List[DnsRecord]:
    raw = (domain or {}).get("records") or []
    records = [DnsRecord(**record) for record in raw if isinstance(record, dict)]
    if not records and status in UNVERIFIED_STATUSES:
        logger.info("No DNS records from provider, using fallback pattern")
        return [record.model_copy() for record in FALLBACK_DNS_RECORDS]
    return records


class EmailDomainService:
    def __init__(
        self,
        client: ResendClient,
        *,
        repository: DomainRepository | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().domains

    def _require_repository(self) -> DomainRepository:
        if not self._repository:
            raise RuntimeError("Mock domain repository not configured")
        return self._repository

    async def _find_remote(self, name: str) -> Optional[Dict[str, Any]]:
        wanted = name.strip().lower()
        for domain in await self._client.list_domains():
            if str(domain.get("name", "")).lower() == wanted:
                return domain
        return None

    async def _describe_remote(self, name: str, *, verify: bool) -> Dict[str, Any] | None:
        summary = await self._find_remote(name)
        if summary is None:
            return None
        if verify:
            await self._client.verify_domain(summary["id"])
        details = await self._client.get_domain(summary["id"])
        return {**summary, **details}

    async def _lookup(self, name: str, *, verify: bool = False) -> Dict[str, Any] | None:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            repository = self._require_repository()
            if verify:
                return await repository.verify(name)
            return await repository.get(name)
        return await self._describe_remote(name, verify=verify)

    async def add(self, name: str) -> DomainVerificationResponse:
        logger.info("Adding email domain %s", name)
        try:
            if self._client.use_mock_data:
                await self._client.simulate_latency()
                domain = await self._require_repository().add(name)
            else:
                domain = await self._client.create_domain(name.strip().lower())
        except ServiceError as exc:
            logger.exception("Failed to add domain %s", name)
            return DomainVerificationResponse(
                success=False,
                message=f"Failed to add domain: {exc}",
                error=str(exc),
            )

        status = _normalize_status(domain.get("status"), default="not_started")
        records = _dns_records(domain, status)
        return DomainVerificationResponse(
            success=True,
            message=f"Domain {name} added successfully. "
            "Please add the DNS records to verify your domain.",
            status=status,
            dns_records=records,
        )

    async def _report(self, name: str, *, verify: bool) -> DomainVerificationResponse:
        action = "verify domain" if verify else "check domain status"
        try:
            domain = await self._lookup(name, verify=verify)
        except ServiceError as exc:
            logger.exception("Failed to %s for %s", action, name)
            return DomainVerificationResponse(
                success=False,
                message=f"Failed to {action}: {exc}",
                error=str(exc),
            )

        if domain is None:
            return DomainVerificationResponse(
                success=False,
                message=f"Domain {name} not found",
                status="not_started",
                error="not_found",
            )

        status = _normalize_status(domain.get("status"))
        prefix = "Domain verification attempted. Current status" if verify else "Domain status"
        return DomainVerificationResponse(
            success=True,
            message=f"{prefix}: {status}",
            status=status,
            dns_records=_dns_records(domain, status),
        )

    async def verify(self, name: str) -> DomainVerificationResponse:
        logger.info("Verifying email domain %s", name)
        return await self._report(name, verify=True)

    async def status(self, name: str) -> DomainVerificationResponse:
        logger.info("Checking email domain status %s", name)
        return await self._report(name, verify=False)

    async def get_status(self, name: str) -> Optional[str]:
        """Return the provider status for ``name`` or ``None`` if unknown.

        Unlike :meth:`status` this propagates provider failures, so callers
        can decide how to degrade.
        """

        if self._client.use_mock_data:
            await self._client.simulate_latency()
            domain = await self._require_repository().get(name)
        else:
            domain = await self._find_remote(name)
        if domain is None:
            return None
        return _normalize_status(domain.get("status"))

    async def remove(self, name: str) -> DomainRemovalResponse:
        logger.info("Removing email domain %s", name)
        try:
            if self._client.use_mock_data:
                await self._client.simulate_latency()
                removed = await self._require_repository().remove(name)
            else:
                domain = await self._find_remote(name)
                removed = domain is not None
                if removed:
                    await self._client.remove_domain(domain["id"])
        except DownstreamServiceError as exc:
            if exc.status_code == 404:
                removed = False
            else:
                logger.exception("Failed to remove domain %s", name)
                return DomainRemovalResponse(
                    success=False, message=f"Failed to remove domain: {exc}"
                )

        if not removed:
            return DomainRemovalResponse(
                success=True,
                message=f"Domain {name} was already removed or did not exist",
            )
        return DomainRemovalResponse(success=True, message=f"Domain {name} removed successfully")

    async def list(self) -> DomainListResponse:
        logger.info("Listing email domains")
        try:
            if self._client.use_mock_data:
                await self._client.simulate_latency()
                domains = await self._require_repository().list()
            else:
                domains = await self._client.list_domains()
        except ServiceError as exc:
            logger.exception("Failed to list domains")
            return DomainListResponse(success=False, message=f"Failed to list domains: {exc}")
        return DomainListResponse(
            success=True, domains=[str(domain["name"]) for domain in domains]
        )
