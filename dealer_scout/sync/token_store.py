# File: dealer_scout/sync/token_store.py
"""dealer_scout.sync.token_store: Cached CRM bearer token with explicit refresh."""

from __future__ import annotations

from typing import Optional

from aiohttp import ClientSession, ClientTimeout

from dealer_scout.config import SyncConfig
from dealer_scout.errors import AuthError
from dealer_scout.logger import logger

__all__ = ["TokenStore"]


class TokenStore:
    """Holds one bearer token, obtained lazily through the OAuth password grant.

    Concurrent refreshes are not serialized; two callers may both fetch a
    token and the last one wins.
    """

    def __init__(self, config: SyncConfig) -> None:
        self.config = config
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def token_url(self) -> str:
        return f"{self.config.instance_url}/services/oauth2/token"

    async def get(self, session: ClientSession) -> str:
        """Return the cached token, fetching one first if none is cached."""
        if self._token is None:
            logger.info("No CRM access token cached, requesting one")
            return await self.refresh(session)
        return self._token

    async def refresh(self, session: ClientSession) -> str:
        """Exchange the configured credentials for a new token and cache it."""
        logger.info("Requesting new CRM access token")
        form = {
            "grant_type": "password",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "username": self.config.username,
            "password": self.config.grant_password,
        }
        async with session.post(
            self.token_url, data=form, timeout=ClientTimeout(total=self.config.timeout)
        ) as resp:
            logger.debug("Token response status: %s", resp.status)
            if not 200 <= resp.status < 300:
                body = await resp.text()
                logger.error("CRM authentication failed: %s", body)
                raise AuthError(f"Auth failed: {body}")
            data = await resp.json(content_type=None)

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthError("Auth failed: response carried no access_token")
        self._token = token
        logger.info("CRM access token received")
        return token
