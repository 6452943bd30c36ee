# File: dealer_scout/engine.py
"""dealer_scout.engine: Orchestration of one dealer check session.

The session walks a fixed sequence of states::

    RESOLVING_URL -> PROBING_LIVENESS -> SCANNING_HOMEPAGE -> EXTRACTING_LINKS
        -> SCANNING_FOLLOWUPS -> AGGREGATING -> DONE

Pages are scanned one at a time. Every page gets the static scan first and the
browser-rendered scan only when the static one neither matched nor failed.
Page-level failures stay inside that page's result; anything else becomes a
:class:`~dealer_scout.errors.SessionError`.
"""

from __future__ import annotations

import enum
from typing import List, Optional

from aiohttp import ClientSession

from dealer_scout.aggregator import CheckReport, aggregate_results
from dealer_scout.config import ScannerConfig
from dealer_scout.crawler.fetcher import Fetcher
from dealer_scout.crawler.link_extractor import extract_links
from dealer_scout.crawler.models import CrawlSession, PageScanResult
from dealer_scout.crawler.resolver import LivenessPolicy, URLResolver, probe_liveness
from dealer_scout.errors import FetchError, SessionError
from dealer_scout.keywords import KeywordRegistry
from dealer_scout.logger import logger
from dealer_scout.renderer import DynamicScanner
from dealer_scout.scanner import StaticScanner

__all__ = ["CrawlState", "DealerScanner", "run_check"]


class CrawlState(enum.Enum):
    RESOLVING_URL = "resolving_url"
    PROBING_LIVENESS = "probing_liveness"
    SCANNING_HOMEPAGE = "scanning_homepage"
    EXTRACTING_LINKS = "extracting_links"
    SCANNING_FOLLOWUPS = "scanning_followups"
    AGGREGATING = "aggregating"
    DONE = "done"


class DealerScanner:
    """Runs check sessions over one HTTP client session.

    Use as an async context manager; the client session is closed on exit
    unless it was passed in.
    """

    def __init__(
        self,
        config: ScannerConfig,
        *,
        registry: Optional[KeywordRegistry] = None,
        dynamic_scanner: Optional[DynamicScanner] = None,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.config = config
        self.registry = registry or config.registry()
        self.policy = LivenessPolicy(config.count_client_errors_as_live)
        self.dynamic = dynamic_scanner or DynamicScanner(
            self.registry, timeout=config.render_timeout, user_agent=config.user_agent
        )
        self.session = session
        self._owns_session = session is None
        self.state: Optional[CrawlState] = None

    async def __aenter__(self) -> DealerScanner:
        if self.session is None:
            self.session = ClientSession(
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        self.resolver = URLResolver(self.session, self.policy, self.config.probe_timeout)
        self.fetcher = Fetcher(self.session, self.config.fetch_timeout)
        self.static = StaticScanner(self.fetcher, self.registry)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    def _enter(self, state: CrawlState) -> None:
        self.state = state
        logger.debug("Check state -> %s", state.value)

    async def scan_page(self, url: str) -> PageScanResult:
        """Static scan, then the rendered scan if nothing matched and nothing failed."""
        result = await self.static.scan(url)
        if result.has_match or result.error is not None:
            return result
        logger.info("No static match on %s; rendering", url)
        return await self.dynamic.scan(url)

    async def crawl(self, raw_url: str) -> CrawlSession:
        """Resolve, probe and scan the homepage plus its trigger links."""
        if self.session is None:
            raise RuntimeError("Session not initialized")
        crawl = CrawlSession(input_url=raw_url)
        try:
            self._enter(CrawlState.RESOLVING_URL)
            crawl.resolved_url = await self.resolver.resolve(raw_url)

            self._enter(CrawlState.PROBING_LIVENESS)
            crawl.site_reachable, crawl.status_code = await probe_liveness(
                self.session, crawl.resolved_url, self.policy, self.config.liveness_timeout
            )

            self._enter(CrawlState.SCANNING_HOMEPAGE)
            homepage = await self.scan_page(crawl.resolved_url)
            crawl.add_result(homepage)

            self._enter(CrawlState.EXTRACTING_LINKS)
            links: List[str] = []
            if homepage.error is None:
                links = await self._candidate_links(crawl.resolved_url)

            self._enter(CrawlState.SCANNING_FOLLOWUPS)
            for link in links[: self.config.max_followups]:
                crawl.add_result(await self.scan_page(link))
        except SessionError:
            raise
        except Exception as exc:
            logger.exception("Check of %s failed", raw_url)
            raise SessionError(
                str(exc) or type(exc).__name__,
                input_url=raw_url,
                resolved_url=crawl.resolved_url or None,
            ) from exc
        return crawl

    async def _candidate_links(self, homepage_url: str) -> List[str]:
        # fetched again; the static scan keeps no markup around
        try:
            page = await self.fetcher.fetch(homepage_url)
        except FetchError as exc:
            logger.warning("Could not re-fetch %s for links: %s", homepage_url, exc.reason)
            return []
        links = extract_links(
            page,
            self.registry,
            dedupe=self.config.dedupe_links,
            same_host_only=self.config.same_host_only,
        )
        logger.info("Found %d candidate link(s) on %s", len(links), homepage_url)
        return links

    async def check(self, raw_url: str) -> CheckReport:
        """Run one full session and aggregate it."""
        crawl = await self.crawl(raw_url)
        self._enter(CrawlState.AGGREGATING)
        try:
            report = aggregate_results(crawl)
        except Exception as exc:
            logger.error("Aggregation failed: %s", exc)
            raise SessionError(
                str(exc), input_url=raw_url, resolved_url=crawl.resolved_url
            ) from exc
        finally:
            self._enter(CrawlState.DONE)
        logger.info(
            "Check %s -> %s: hasCreditApp=%s (%d/%d pages matched)",
            raw_url,
            report.resolved_url,
            report.has_credit_app,
            len(report.hits),
            len(report.pages),
        )
        return report


async def run_check(
    config: ScannerConfig,
    raw_url: str,
    *,
    registry: Optional[KeywordRegistry] = None,
    dynamic_scanner: Optional[DynamicScanner] = None,
) -> CheckReport:
    """Open a scanner, run one check and close it again."""
    async with DealerScanner(
        config, registry=registry, dynamic_scanner=dynamic_scanner
    ) as scanner:
        return await scanner.check(raw_url)
