"""Shared HTTP client for vendor API calls.

Every outbound call goes through ``VendorClient.get_json``, which applies the
shared rate limiter and concurrency semaphore, records telemetry and a Sentry
breadcrumb, and turns transport failures into ``TransientFetchError``. Calls
are never retried.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from core.exceptions import MalformedVendorResponseError, TransientFetchError
from core.sentry import add_vendor_breadcrumb
from core.telemetry import record_vendor_call
from vendors.ratelimit import get_rate_limiter, get_semaphore

logger = logging.getLogger(__name__)

USER_AGENT = "GeoMelodyService/1.0"


def _vendor_error_message(response: httpx.Response) -> str:
    """Extract the vendor's own error description from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase

    if isinstance(payload, dict):
        for key in ("errors", "message", "error"):
            if payload.get(key):
                return str(payload[key])
    return str(payload)[:200]


class VendorClient:
    """Performs single GET calls to vendor endpoints and returns decoded JSON objects."""

    def __init__(self, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize the client.

        Args:
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        """
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_json(
        self,
        vendor: str,
        name: str,
        url: str,
        params: dict[str, str],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Call a vendor endpoint and return its JSON object body.

        Args:
            vendor: Vendor name for telemetry ("lastfm", "musixmatch")
            name: Operation name for logs and breadcrumbs (e.g., "GetTopTrackByCountry")
            url: Endpoint URL
            params: Query parameters
            headers: Optional extra request headers

        Returns:
            The decoded JSON object

        Raises:
            TransientFetchError: On network error, timeout, or non-2xx status
            MalformedVendorResponseError: If a 2xx body is not a JSON object
        """
        client = await self._get_client()
        semaphore = get_semaphore()
        rate_limiter = get_rate_limiter()

        add_vendor_breadcrumb(vendor, name, {"url": url})

        async with semaphore:
            await rate_limiter.acquire()
            start = time.perf_counter()
            try:
                response = await client.get(url, params=params, headers=headers)
            except httpx.TimeoutException as e:
                logger.error(f"{name} timed out: {e!r}")
                raise TransientFetchError(
                    f"{name} request timed out", details={"vendor": vendor}
                ) from e
            except httpx.RequestError as e:
                logger.error(f"{name} request failed: {e!r}")
                raise TransientFetchError(
                    f"{name} request failed: {type(e).__name__}", details={"vendor": vendor}
                ) from e
            finally:
                record_vendor_call((time.perf_counter() - start) * 1000)

        if not response.is_success:
            message = _vendor_error_message(response)
            logger.error(f"{name} returned HTTP {response.status_code}: {message}")
            add_vendor_breadcrumb(
                vendor, f"{name}_error", {"status_code": response.status_code}, level="error"
            )
            raise TransientFetchError(
                message,
                details={"vendor": vendor, "status_code": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedVendorResponseError(
                f"{name} returned a body that is not JSON", details={"vendor": vendor}
            ) from e

        if not isinstance(data, dict):
            raise MalformedVendorResponseError(
                f"{name} returned JSON that is not an object", details={"vendor": vendor}
            )

        logger.debug(f"Fetched {name} ({response.status_code})")
        return data
