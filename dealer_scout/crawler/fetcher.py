# dealer_scout/crawler/fetcher.py
"""
Fetcher module: retrieves page markup with a bounded timeout.
"""
from __future__ import annotations

import asyncio

from aiohttp import ClientError, ClientSession, ClientTimeout

from dealer_scout.crawler.models import PageData
from dealer_scout.errors import FetchError
from dealer_scout.logger import logger


class Fetcher:
    """Single-shot HTTP GET; no retries, status codes are not errors."""

    def __init__(self, session: ClientSession, timeout: float = 15.0) -> None:
        self.session = session
        self.timeout = ClientTimeout(total=timeout)

    async def fetch(self, url: str) -> PageData:
        """
        Fetch *url* and return its markup.

        Raises FetchError on timeout, DNS, TLS or other I/O failure.
        """
        try:
            async with self.session.get(url, allow_redirects=True, timeout=self.timeout) as resp:
                text = await resp.text(errors="replace")
                logger.debug("Fetched %s -> HTTP %s (%d chars)", url, resp.status, len(text))
                return PageData(str(resp.url), text)
        except asyncio.TimeoutError as exc:
            raise FetchError(url, "timed out") from exc
        except (ClientError, OSError, ValueError) as exc:
            raise FetchError(url, str(exc) or type(exc).__name__) from exc
