# dealer_scout/crawler/models.py
"""
Data models for the DealerScout crawl session.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, List, Optional

from dealer_scout.errors import SessionError

#: homepage plus at most five followed links
MAX_SESSION_PAGES = 6

#: where a keyword was seen on a page
MATCH_SOURCES: frozenset[str] = frozenset({"text", "link"})


@dataclass(slots=True)
class PageData:
    """Holds the URL and fetched markup of a page."""

    url: str
    content: str


@dataclass(frozen=True, slots=True)
class PageScanResult:
    """Verdict for one visited page.

    ``has_match`` is derived from ``matched_keywords``; a result carrying an
    ``error`` never carries keywords. ``found_by`` names the sources that
    matched: ``"text"`` for visible text, ``"link"`` for anchors, buttons and
    forms.
    """

    url: str
    matched_keywords: frozenset[str] = frozenset()
    used_dynamic_rendering: bool = False
    error: Optional[str] = None
    found_by: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "matched_keywords", frozenset(self.matched_keywords))
        object.__setattr__(self, "found_by", frozenset(self.found_by))
        if self.error is not None and self.matched_keywords:
            raise ValueError("an errored page result cannot carry matched keywords")
        if self.found_by - MATCH_SOURCES:
            raise ValueError(f"unknown match source(s): {sorted(self.found_by - MATCH_SOURCES)}")
        if self.found_by and not self.matched_keywords:
            raise ValueError("a page result without keywords cannot name match sources")

    @property
    def has_match(self) -> bool:
        return bool(self.matched_keywords)

    @classmethod
    def matched(
        cls,
        url: str,
        keywords: AbstractSet[str],
        *,
        dynamic: bool = False,
        found_by: AbstractSet[str] = frozenset(),
    ) -> PageScanResult:
        return cls(
            url=url,
            matched_keywords=frozenset(keywords),
            used_dynamic_rendering=dynamic,
            found_by=frozenset(found_by) if keywords else frozenset(),
        )

    @classmethod
    def failed(cls, url: str, error: str, *, dynamic: bool = False) -> PageScanResult:
        return cls(url=url, used_dynamic_rendering=dynamic, error=error)


@dataclass(slots=True)
class CrawlSession:
    """State of one ``/dealer/check`` request."""

    input_url: str
    resolved_url: str = ""
    site_reachable: bool = False
    status_code: Optional[int] = None
    results: List[PageScanResult] = field(default_factory=list)

    def add_result(self, result: PageScanResult) -> None:
        if len(self.results) >= MAX_SESSION_PAGES:
            raise SessionError(
                f"session already holds {MAX_SESSION_PAGES} page results",
                input_url=self.input_url,
                resolved_url=self.resolved_url,
            )
        self.results.append(result)
