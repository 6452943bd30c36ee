# dealer_scout/crawler/link_extractor.py
"""
Link extraction for DealerScout: homepage anchors worth following.
"""
from __future__ import annotations

from typing import List
from urllib.parse import urljoin, urlparse

from dealer_scout.crawler.models import PageData
from dealer_scout.errors import MalformedLink
from dealer_scout.keywords import KeywordRegistry
from dealer_scout.logger import logger
from dealer_scout.parser.html_parser import parse_html


def absolutize(base_url: str, href: str) -> str:
    """
    Resolve *href* against *base_url*.

    Raises MalformedLink unless the result is an absolute http(s) URL.
    """
    try:
        absolute = urljoin(base_url, href)
        parsed = urlparse(absolute)
    except ValueError as exc:
        raise MalformedLink(f"{href!r}: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise MalformedLink(f"{href!r} is not an absolute http(s) URL")
    return absolute


def extract_links(
    page: PageData,
    registry: KeywordRegistry,
    *,
    dedupe: bool = False,
    same_host_only: bool = False,
) -> List[str]:
    """
    Absolute URLs of anchors whose href or text contains a link trigger,
    in document order. Repeats are kept unless *dedupe* is set.
    """
    parsed = parse_html(page)
    host = urlparse(parsed.base_url).netloc
    links: List[str] = []
    for anchor in parsed.anchors():
        if not anchor.href:
            continue
        if not registry.triggers(anchor.href, anchor.text):
            continue
        try:
            absolute = absolutize(parsed.base_url, anchor.href)
        except MalformedLink as exc:
            logger.debug("Skipping link: %s", exc)
            continue
        if same_host_only and urlparse(absolute).netloc != host:
            continue
        links.append(absolute)
    if dedupe:
        links = list(dict.fromkeys(links))
    return links
