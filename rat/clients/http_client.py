"""
Singleton HTTP client shared by every lookup, with rate limiting using aiolimiter.
"""
import asyncio
import json
from typing import Any, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from loguru import logger
from yarl import URL

from rat.config import CONCURRENCY, REQUEST_TIMEOUT
from rat.errors import DecodeFailure, TransportFailure


class HttpClient:
    """
    Singleton fetch(url) capability for the inspection feed and places directory.
    Uses AsyncLimiter to cap the request rate across concurrent lookups.
    """
    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not HttpClient._initialized:
            # Token bucket: CONCURRENCY requests per second
            self.rate_limiter = AsyncLimiter(max_rate=CONCURRENCY, time_period=1.0)
            self._session: Optional[ClientSession] = None
            HttpClient._initialized = True

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=REQUEST_TIMEOUT))
        return self._session

    async def get_bytes(self, url: str) -> bytes:
        """
        GET a URL and return the raw response body.

        Args:
            url: Fully built, already percent-encoded URL.

        Returns:
            Response body.

        Raises:
            TransportFailure: On connection errors, timeouts and non-200 responses.
        """
        async with self.rate_limiter:
            session = await self._get_session()
            try:
                # encoded=True keeps the builders' percent-encoding untouched
                async with session.get(URL(url, encoded=True)) as resp:
                    if resp.status != 200:
                        raise TransportFailure(f"HTTP {resp.status} for {resp.url.path}")
                    return await resp.read()
            except (ClientError, asyncio.TimeoutError) as e:
                logger.debug(f"⚠️ GET request failed: {e!r}")
                raise TransportFailure(str(e) or type(e).__name__) from e

    async def get_json(self, url: str) -> Any:
        """
        GET a URL and parse the body as JSON.

        Raises:
            TransportFailure: If the request fails.
            DecodeFailure: If the body is not valid JSON.
        """
        body = await self.get_bytes(url)
        try:
            return json.loads(body)
        except ValueError as e:
            raise DecodeFailure(f"response is not JSON: {e}") from e

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
