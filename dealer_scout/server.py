# File: dealer_scout/server.py
"""dealer_scout.server: aiohttp.web application exposing the dealer check and
the opportunity sync proxy.

Routes
------
``GET /dealer/check?url=...[&verbose=1]``
    Resolve and scan a dealer site, answer with the aggregated verdict.
``GET /sync/{opp_id}``
    Forward an opportunity id to the CRM; JSON or redirect depending on
    the ``Accept`` header.
``GET /health``
    Liveness of the service itself.
"""

from __future__ import annotations

from typing import AsyncIterator, Optional
from urllib.parse import quote

from aiohttp import ClientSession, web

from dealer_scout.aggregator import error_payload
from dealer_scout.config import ScannerConfig, SyncConfig
from dealer_scout.engine import DealerScanner
from dealer_scout.errors import SessionError
from dealer_scout.keywords import KeywordRegistry
from dealer_scout.logger import logger
from dealer_scout.renderer import DynamicScanner
from dealer_scout.sync import OpportunitySync

__all__ = ["create_app", "run_server"]

CONFIG_KEY = web.AppKey("config", ScannerConfig)
REGISTRY_KEY = web.AppKey("registry", KeywordRegistry)
DYNAMIC_KEY = web.AppKey("dynamic_scanner", DynamicScanner)
SYNC_KEY = web.AppKey("sync", OpportunitySync)
HTTP_KEY = web.AppKey("http", ClientSession)

_TRUTHY = {"1", "true", "yes", "on"}


def _wants_json(request: web.Request) -> bool:
    return "application/json" in request.headers.get("Accept", "")


async def dealer_check(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]
    raw = request.query.get("url", "").strip()
    if not raw:
        return web.json_response({"error": "Missing ?url parameter"}, status=400)
    verbose = config.verbose or request.query.get("verbose", "").lower() in _TRUTHY

    logger.info("Checking dealer site: %s", raw)
    try:
        async with DealerScanner(
            config,
            registry=request.app[REGISTRY_KEY],
            dynamic_scanner=request.app[DYNAMIC_KEY],
        ) as scanner:
            report = await scanner.check(raw)
    except SessionError as exc:
        logger.error("Dealer check of %s failed: %s", raw, exc)
        return web.json_response(
            error_payload(exc.input_url, exc.resolved_url, str(exc)), status=500
        )
    except Exception as exc:
        logger.exception("Dealer check of %s failed", raw)
        return web.json_response(error_payload(raw, None, str(exc)), status=500)
    return web.json_response(report.to_dict(verbose=verbose))


def _confirmation(sync: OpportunitySync, message: str) -> web.HTTPFound:
    location = f"{sync.config.confirmation_url}?message={quote(message, safe='')}"
    logger.info("Redirecting to confirmation page: %s", sync.config.confirmation_url)
    return web.HTTPFound(location)


async def sync_opportunity(request: web.Request) -> web.Response:
    opp_id = request.match_info.get("opp_id", "").strip()
    logger.info("Incoming sync request for opportunity: %r", opp_id)
    if not opp_id:
        return web.json_response({"status": "FAIL", "message": "Missing Opportunity Id"}, status=400)

    sync = request.app[SYNC_KEY]
    try:
        outcome = await sync.sync(request.app[HTTP_KEY], opp_id)
    except Exception as exc:
        # the caller always gets an answer, JSON or redirect
        logger.exception("Sync of %s failed", opp_id)
        if _wants_json(request):
            return web.json_response({"status": "FAIL", "message": str(exc)}, status=500)
        raise _confirmation(sync, f"Exception: {exc}") from exc

    if _wants_json(request):
        return web.json_response(outcome.to_dict())
    raise _confirmation(sync, outcome.message)


async def health(_: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def _http_client(app: web.Application) -> AsyncIterator[None]:
    app[HTTP_KEY] = ClientSession()
    yield
    await app[HTTP_KEY].close()


async def _announce(app: web.Application) -> None:
    logger.info("Using keywords: %s", ", ".join(app[REGISTRY_KEY].keywords))
    logger.info("Using link triggers: %s", ", ".join(app[REGISTRY_KEY].link_triggers))


def create_app(
    config: ScannerConfig,
    *,
    sync_config: Optional[SyncConfig] = None,
    dynamic_scanner: Optional[DynamicScanner] = None,
    sync: Optional[OpportunitySync] = None,
) -> web.Application:
    """Build the web application; collaborators may be injected for tests."""
    registry = config.registry()
    app = web.Application()
    app[CONFIG_KEY] = config
    app[REGISTRY_KEY] = registry
    app[DYNAMIC_KEY] = dynamic_scanner or DynamicScanner(
        registry, timeout=config.render_timeout, user_agent=config.user_agent
    )
    app[SYNC_KEY] = sync or OpportunitySync(sync_config or SyncConfig.from_env())
    app.cleanup_ctx.append(_http_client)
    app.on_startup.append(_announce)

    app.router.add_get("/dealer/check", dealer_check)
    app.router.add_get("/sync/{opp_id}", sync_opportunity)
    app.router.add_get("/sync/", sync_opportunity)
    app.router.add_get("/health", health)
    return app


def run_server(config: ScannerConfig, host: str = "0.0.0.0", port: int = 3000) -> None:
    """Serve until interrupted."""
    logger.info("DealerScout listening on %s:%s", host, port)
    web.run_app(create_app(config), host=host, port=port, print=None)
