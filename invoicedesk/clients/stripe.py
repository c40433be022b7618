from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from invoicedesk.services.exceptions import DownstreamServiceError

logger = logging.getLogger(__name__)


def encode_form(data: Dict[str, Any], prefix: str = "") -> List[Tuple[str, str]]:
    """Flatten nested dicts/lists into Stripe's bracketed form encoding."""

    pairs: List[Tuple[str, str]] = []
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            pairs.extend(encode_form(value, name))
        elif isinstance(value, (list, tuple)):
            for index, entry in enumerate(value):
                entry_name = f"{name}[{index}]"
                if isinstance(entry, dict):
                    pairs.extend(encode_form(entry, entry_name))
                else:
                    pairs.append((entry_name, str(entry)))
        elif isinstance(value, bool):
            pairs.append((name, "true" if value else "false"))
        else:
            pairs.append((name, str(value)))
    return pairs


class StripeClient:
    """Minimal async client for the Stripe endpoints used by invoice payments."""

    def __init__(
        self,
        secret_key: str | None,
        *,
        base_url: str = "https://api.stripe.com",
        timeout: float = 10.0,
        use_mock_data: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._base_url = str(base_url).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self.use_mock_data = use_mock_data
        self._client: Optional[httpx.AsyncClient] = None

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            auth=(self._secret_key or "", ""),
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.use_mock_data:
            raise RuntimeError("Stripe client requested while running in mock mode")
        if not self._secret_key:
            raise DownstreamServiceError(
                "Missing Stripe secret key. Set INVOICEDESK_STRIPE_SECRET_KEY."
            )
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def post_form(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        client = await self._ensure_client()
        try:
            response = await client.post(path, data=dict(encode_form(data)))
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            logger.exception("Stripe returned error %s", exc.response.status_code)
            raise DownstreamServiceError(
                "Stripe returned an error response",
                status_code=exc.response.status_code,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.exception("Unable to reach Stripe: %s", exc)
            raise DownstreamServiceError(
                "Unable to reach Stripe", status_code=None, cause=exc
            ) from exc

    async def create_checkout_session(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post_form("/v1/checkout/sessions", params)

    async def create_account(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post_form("/v1/accounts", params)

    async def create_account_link(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post_form("/v1/account_links", params)

    async def simulate_latency(self) -> None:
        await asyncio.sleep(0)
