# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web

from dealer_scout.config import ScannerConfig, SyncConfig
from dealer_scout.crawler.models import PageData
from dealer_scout.errors import RenderError
from dealer_scout.keywords import KeywordRegistry
from dealer_scout.renderer import DynamicScanner


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


def html_page(body: str) -> str:
    return f"<html><head><title>Dealer</title></head><body>{body}</body></html>"


class FakeDynamicScanner(DynamicScanner):
    """Renders from a url -> text map instead of a browser; unknown URLs fail."""

    def __init__(
        self,
        registry: KeywordRegistry,
        rendered: Optional[Dict[str, str]] = None,
        default: Optional[str] = "",
    ) -> None:
        super().__init__(registry, timeout=1.0)
        self.rendered = rendered or {}
        self.default = default
        self.calls: List[str] = []

    async def render_text(self, url: str) -> str:
        self.calls.append(url)
        if url in self.rendered:
            return self.rendered[url]
        if self.default is None:
            raise RenderError(url, "page crashed")
        return self.default


@pytest.fixture()
def registry() -> KeywordRegistry:
    return KeywordRegistry()


@pytest.fixture()
def basic_config() -> ScannerConfig:
    """
    Return a ScannerConfig with short timeouts for tests.
    """
    return ScannerConfig(
        user_agent="TestAgent/1.0",
        probe_timeout=2.0,
        liveness_timeout=2.0,
        fetch_timeout=2.0,
        render_timeout=2.0,
    )


@pytest.fixture()
def fake_dynamic(registry) -> FakeDynamicScanner:
    return FakeDynamicScanner(registry)


@pytest.fixture()
def mock_page_data() -> PageData:
    """
    Provide a simple dealer homepage.
    """
    html = html_page(
        '<nav><a href="/inventory">Inventory</a>'
        '<a href="/finance/apply">Apply Now</a>'
        '<a href="http://partner.example.net/credit">Partner</a>'
        '<a href="/about">About us</a></nav>'
    )
    return PageData(url="http://dealer.example.com/", content=html)


class FakeCRM:
    """State of the fake CRM: token grants, action calls and canned answers."""

    def __init__(self) -> None:
        self.url = ""
        self.token_forms: List[dict] = []
        self.action_calls: List[tuple] = []
        self.reject_next = 0
        self.auth_fails = False
        self.status = "SUCCESS"
        self.message = ""

    def app(self) -> web.Application:
        app = web.Application()

        async def token(request: web.Request) -> web.Response:
            self.token_forms.append(dict(await request.post()))
            if self.auth_fails:
                return web.Response(status=400, text='{"error":"invalid_grant"}')
            return web.json_response({"access_token": f"tok-{len(self.token_forms)}"})

        async def action(request: web.Request) -> web.Response:
            self.action_calls.append(
                (request.headers.get("Authorization"), request.headers.get("oppid"))
            )
            if self.reject_next > 0:
                self.reject_next -= 1
                return web.json_response([{"errorCode": "INVALID_SESSION_ID"}], status=401)
            return web.json_response({"status": self.status, "message": self.message})

        app.router.add_post("/services/oauth2/token", token)
        app.router.add_post("/services/apexrest/syndication/request", action)
        return app


@pytest_asyncio.fixture
async def crm(unused_tcp_port_factory) -> AsyncIterator[FakeCRM]:
    fake = FakeCRM()
    async for url in serve_app(fake.app(), unused_tcp_port_factory()):
        fake.url = url
        yield fake


@pytest.fixture()
def sync_config(crm) -> SyncConfig:
    return SyncConfig(
        instance_url=crm.url,
        client_id="client",
        client_secret="secret",
        username="bot@example.com",
        password="pw",
        security_token="st",
        confirm_url="https://ui.example.com/confirm",
        timeout=2.0,
    )
