# File: dealer_scout/sync/proxy.py
"""dealer_scout.sync.proxy: Forwards an opportunity id to the CRM sync action."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from aiohttp import ClientSession, ClientTimeout

from dealer_scout.config import SyncConfig
from dealer_scout.logger import logger
from dealer_scout.sync.token_store import TokenStore

__all__ = ["OpportunitySync", "SyncOutcome", "SUCCESS_MESSAGE"]

SUCCESS_MESSAGE = "Status Updated Successfully"


@dataclass(frozen=True, slots=True)
class SyncOutcome:
    """Remote status plus the message shown to the caller."""

    status: Optional[str]
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "message": self.message}


class OpportunitySync:
    """Calls the CRM REST action, refreshing the token once on HTTP 401."""

    def __init__(self, config: SyncConfig, tokens: Optional[TokenStore] = None) -> None:
        self.config = config
        self.tokens = tokens or TokenStore(config)

    @property
    def action_url(self) -> str:
        return f"{self.config.instance_url}/services/apexrest/syndication/request"

    async def sync(self, session: ClientSession, opp_id: str) -> SyncOutcome:
        token = await self.tokens.get(session)
        status, data = await self._call(session, token, opp_id)

        if status == 401:
            logger.warning("CRM token rejected, refreshing and retrying once")
            token = await self.tokens.refresh(session)
            status, data = await self._call(session, token, opp_id)

        if not isinstance(data, dict):
            raise ValueError(f"Unexpected CRM response (HTTP {status})")
        remote_status = data.get("status")
        if remote_status == "SUCCESS":
            message = SUCCESS_MESSAGE
        else:
            message = f"Error: {data.get('message')}"
        return SyncOutcome(remote_status, message)

    async def _call(
        self, session: ClientSession, token: str, opp_id: str
    ) -> Tuple[int, Any]:
        headers = {"Authorization": f"Bearer {token}", "oppid": opp_id}
        async with session.post(
            self.action_url, headers=headers, timeout=ClientTimeout(total=self.config.timeout)
        ) as resp:
            logger.info("CRM response status for %s: %s", opp_id, resp.status)
            if resp.status == 401:
                return resp.status, None
            return resp.status, await resp.json(content_type=None)
