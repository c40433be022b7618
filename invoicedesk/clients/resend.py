from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from invoicedesk.clients.retry import retry_with_backoff
from invoicedesk.services.exceptions import DownstreamServiceError

logger = logging.getLogger(__name__)


class ResendClient:
    """Async client for the Resend email and domain APIs.

    Requests are serialized and spaced at least ``min_request_interval``
    seconds apart, and rate-limited responses are retried with backoff.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.resend.com",
        timeout: float = 10.0,
        use_mock_data: bool = True,
        min_request_interval: float = 0.5,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = str(base_url).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self.use_mock_data = use_mock_data or not api_key
        self._min_request_interval = min_request_interval
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._throttle_lock = asyncio.Lock()
        self._last_request_at = 0.0
        self._client: Optional[httpx.AsyncClient] = None

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.use_mock_data:
            raise RuntimeError("Resend client requested while running in mock mode")
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def _wait_for_slot(self) -> None:
        async with self._throttle_lock:
            wait = self._last_request_at + self._min_request_interval - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request_at = time.monotonic()

    async def _send(
        self, method: str, path: str, payload: Dict[str, Any] | None = None
    ) -> Dict[str, Any]:
        client = await self._ensure_client()
        await self._wait_for_slot()
        try:
            response = await client.request(method, path, json=payload)
            response.raise_for_status()
            return response.json() if response.content else {}
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("Resend returned error %s for %s %s", status, method, path)
            raise DownstreamServiceError(
                _error_message(exc.response),
                status_code=status,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.exception("Unable to reach Resend: %s", exc)
            raise DownstreamServiceError(
                "Unable to reach Resend", status_code=None, cause=exc
            ) from exc

    async def request(
        self, method: str, path: str, payload: Dict[str, Any] | None = None
    ) -> Dict[str, Any]:
        return await retry_with_backoff(
            lambda: self._send(method, path, payload),
            max_retries=self._max_retries,
            initial_delay=self._retry_delay,
        )

    async def send_email(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", "/emails", payload)

    async def create_domain(self, name: str) -> Dict[str, Any]:
        return await self.request("POST", "/domains", {"name": name})

    async def list_domains(self) -> List[Dict[str, Any]]:
        data = await self.request("GET", "/domains")
        return list(data.get("data") or [])

    async def get_domain(self, domain_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/domains/{domain_id}")

    async def verify_domain(self, domain_id: str) -> Dict[str, Any]:
        return await self.request("POST", f"/domains/{domain_id}/verify")

    async def remove_domain(self, domain_id: str) -> Dict[str, Any]:
        return await self.request("DELETE", f"/domains/{domain_id}")

    async def simulate_latency(self) -> None:
        await asyncio.sleep(0)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Resend returned status {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"Resend returned status {response.status_code}"
