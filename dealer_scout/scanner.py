# === FILE: dealer_scout/scanner.py ===
"""
Static keyword scan: matches the keyword registry against delivered markup
without executing scripts.
"""
from __future__ import annotations

from typing import Dict, Set

from dealer_scout.crawler.fetcher import Fetcher
from dealer_scout.crawler.models import PageScanResult
from dealer_scout.errors import FetchError
from dealer_scout.keywords import KeywordRegistry
from dealer_scout.logger import logger
from dealer_scout.parser.html_parser import ParsedPage, parse_html

__all__ = ["StaticScanner", "match_page", "match_by_source"]


def match_by_source(parsed: ParsedPage, registry: KeywordRegistry) -> Dict[str, Set[str]]:
    """
    Keywords per source: ``"text"`` for the visible body text, ``"link"`` for
    the text, ``href`` or ``action`` of any anchor, button or form.
    """
    link_hits: Set[str] = set()
    for element in parsed.elements:
        link_hits |= registry.match(element.text, element.href, element.action)
    return {"text": registry.match(parsed.text), "link": link_hits}


def match_page(parsed: ParsedPage, registry: KeywordRegistry) -> Set[str]:
    """All keywords on the page; either source alone counts."""
    by_source = match_by_source(parsed, registry)
    return by_source["text"] | by_source["link"]


class StaticScanner:
    """Fetches a page and scans its markup."""

    def __init__(self, fetcher: Fetcher, registry: KeywordRegistry) -> None:
        self.fetcher = fetcher
        self.registry = registry

    async def scan(self, url: str) -> PageScanResult:
        """
        Scan *url*; a fetch failure is returned as an errored result rather
        than raised.
        """
        try:
            page = await self.fetcher.fetch(url)
        except FetchError as exc:
            logger.warning("Fetch failed for %s: %s", url, exc.reason)
            return PageScanResult.failed(url, str(exc))

        by_source = match_by_source(parse_html(page), self.registry)
        hits = by_source["text"] | by_source["link"]
        found_by = {source for source, found in by_source.items() if found}
        logger.info("Static scan %s: %d keyword(s) via %s", url, len(hits), sorted(found_by))
        return PageScanResult.matched(url, hits, found_by=found_by)
