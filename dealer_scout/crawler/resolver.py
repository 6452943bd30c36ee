# dealer_scout/crawler/resolver.py
"""
URL resolution: turns a raw hostname or URL typed by a user into a live,
absolute address, plus the separate liveness probe of the check session.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout

from dealer_scout.errors import ResolutionExhausted
from dealer_scout.logger import logger

__all__ = ["LivenessPolicy", "URLResolver", "probe_liveness"]

_SCHEMES = ("http://", "https://")


@dataclass(frozen=True, slots=True)
class LivenessPolicy:
    """2xx-3xx is live, 4xx is live unless disabled, 5xx never is."""

    count_client_errors_as_live: bool = True

    def is_live(self, status: int) -> bool:
        if 200 <= status < 400:
            return True
        if 400 <= status < 500:
            return self.count_client_errors_as_live
        return False


class URLResolver:
    """Probes scheme and ``www.`` variants of a raw input in a fixed order."""

    def __init__(
        self,
        session: ClientSession,
        policy: Optional[LivenessPolicy] = None,
        timeout: float = 8.0,
    ) -> None:
        self.session = session
        self.policy = policy or LivenessPolicy()
        self.timeout = ClientTimeout(total=timeout)

    @staticmethod
    def candidates(raw: str) -> List[str]:
        """Ordered candidate URLs for a scheme-less input."""
        urls = [f"https://{raw}", f"http://{raw}"]
        if not raw.lower().startswith("www."):
            urls += [f"https://www.{raw}", f"http://www.{raw}"]
        return urls

    async def resolve(self, raw: str) -> str:
        """
        Return *raw* untouched when it already carries a scheme, otherwise the
        post-redirect URL of the first live candidate, falling back to
        ``https://<raw>`` when none answers. Callers trim surrounding
        whitespace; *raw* is used as given.
        """
        if raw.lower().startswith(_SCHEMES):
            return raw
        try:
            return await self._probe_all(raw)
        except ResolutionExhausted as exc:
            logger.warning("%s; falling back to https://%s", exc, raw)
            return f"https://{raw}"

    async def _probe_all(self, raw: str) -> str:
        candidates = self.candidates(raw)
        for candidate in candidates:
            final = await self._probe(candidate)
            if final is not None:
                logger.info("Resolved %s -> %s", raw, final)
                return final
        raise ResolutionExhausted(raw, candidates)

    async def _probe(self, url: str) -> Optional[str]:
        try:
            async with self.session.get(
                url, allow_redirects=True, timeout=self.timeout
            ) as resp:
                if self.policy.is_live(resp.status):
                    return str(resp.url)
                logger.debug("Probe %s -> HTTP %s (not live)", url, resp.status)
        except (ClientError, asyncio.TimeoutError, OSError, ValueError) as exc:
            logger.debug("Probe %s failed: %r", url, exc)
        return None


async def probe_liveness(
    session: ClientSession,
    url: str,
    policy: Optional[LivenessPolicy] = None,
    timeout: float = 10.0,
) -> Tuple[bool, Optional[int]]:
    """Request *url* once, following redirects; return (reachable, status)."""
    policy = policy or LivenessPolicy()
    try:
        async with session.get(
            url, allow_redirects=True, timeout=ClientTimeout(total=timeout)
        ) as resp:
            return policy.is_live(resp.status), resp.status
    except (ClientError, asyncio.TimeoutError, OSError, ValueError) as exc:
        logger.warning("Liveness check of %s failed: %r", url, exc)
        return False, None
