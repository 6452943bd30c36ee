# File: dealer_scout/aggregator.py
"""dealer_scout.aggregator: Reduces per-page scan results into one verdict."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dealer_scout.crawler.models import CrawlSession, PageScanResult

__all__ = ["CheckReport", "aggregate_results", "error_payload", "page_to_dict"]


def page_to_dict(result: PageScanResult, *, detailed: bool = False) -> Dict[str, Any]:
    """Wire form of one page result; optional keys only appear when set.

    *detailed* adds ``foundBy``, which source (visible text or links) matched.
    """
    data: Dict[str, Any] = {
        "url": result.url,
        "hasCreditApp": result.has_match,
        "matchedKeywords": sorted(result.matched_keywords),
    }
    if result.used_dynamic_rendering:
        data["usedDynamic"] = True
    if result.error is not None:
        data["error"] = result.error
    if detailed:
        data["foundBy"] = {source: source in result.found_by for source in ("text", "link")}
    return data


@dataclass(slots=True)
class CheckReport:
    """Outcome of one dealer check session."""

    input_url: str
    resolved_url: str
    site_active: bool
    status_code: Optional[int]
    has_credit_app: bool
    hits: List[PageScanResult] = field(default_factory=list)
    pages: List[PageScanResult] = field(default_factory=list)

    def to_dict(self, *, verbose: bool = False) -> Dict[str, Any]:
        """Response body; *verbose* adds every visited page under ``pages``."""
        data: Dict[str, Any] = {
            "inputUrl": self.input_url,
            "resolvedUrl": self.resolved_url,
            "siteActive": self.site_active,
            "statusCode": self.status_code,
            "hasCreditApp": self.has_credit_app,
            "hits": [page_to_dict(r) for r in self.hits],
        }
        if verbose:
            data["pages"] = [page_to_dict(r, detailed=True) for r in self.pages]
        return data

    def json(self, *, pretty: bool = False, verbose: bool = False) -> str:
        return json.dumps(
            self.to_dict(verbose=verbose), ensure_ascii=False, indent=2 if pretty else None
        )


def aggregate_results(session: CrawlSession) -> CheckReport:
    """Keep only the positive page results; the site has a credit app iff any exist."""
    hits = [r for r in session.results if r.has_match]
    return CheckReport(
        input_url=session.input_url,
        resolved_url=session.resolved_url,
        site_active=session.site_reachable,
        status_code=session.status_code,
        has_credit_app=bool(hits),
        hits=hits,
        pages=list(session.results),
    )


def error_payload(input_url: str, resolved_url: Optional[str], error: str) -> Dict[str, Any]:
    """Body of a failed check session."""
    return {
        "inputUrl": input_url,
        "resolvedUrl": resolved_url,
        "error": error,
        "hasCreditApp": False,
    }
