"""PULSE — Published Sheets Client.

Fetches published CSV exports with retry and backoff.
"""

import asyncio
from typing import Optional

import httpx

from app.config import settings
from app.core.logging import get_logger

logger = get_logger("sheets.client")

RETRY_BASE_DELAY = 2  # seconds


class SheetsAPIError(Exception):
    """Raised when a sheet export cannot be fetched."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class SheetsClient:
    """Async HTTP client for published spreadsheet CSV exports."""

    def __init__(
        self,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = max_retries or settings.http_max_retries
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "SheetsClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def fetch_csv(self, url: str) -> str:
        """GET ``url`` and return the body text, retrying transient failures."""
        if not url:
            raise SheetsAPIError("No URL configured")

        client = await self._get_client()

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await client.get(url)

                if resp.status_code == 429:
                    wait = RETRY_BASE_DELAY * (2 ** (attempt - 1))
                    logger.warning(
                        f"Rate limited (429). Retrying in {wait}s (attempt {attempt}/{self.max_retries})"
                    )
                    await asyncio.sleep(wait)
                    continue

                resp.raise_for_status()
                return resp.text

            except httpx.HTTPStatusError as e:
                if attempt < self.max_retries and e.response.status_code >= 500:
                    wait = RETRY_BASE_DELAY * (2 ** (attempt - 1))
                    logger.warning(
                        f"Server error {e.response.status_code}. Retrying in {wait}s"
                    )
                    await asyncio.sleep(wait)
                    continue
                raise SheetsAPIError(
                    f"Sheet export returned {e.response.status_code}",
                    e.response.status_code,
                ) from e

            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    wait = RETRY_BASE_DELAY * (2 ** (attempt - 1))
                    logger.warning(f"Request error: {e}. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise SheetsAPIError(
                    f"Connection failed after {self.max_retries} retries: {e}"
                ) from e

        raise SheetsAPIError("Max retries exhausted", 429)
