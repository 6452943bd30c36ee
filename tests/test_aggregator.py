# File: tests/test_aggregator.py
import json

import pytest

from dealer_scout.aggregator import aggregate_results, error_payload, page_to_dict
from dealer_scout.crawler.models import MAX_SESSION_PAGES, CrawlSession, PageScanResult
from dealer_scout.errors import SessionError


def make_session() -> CrawlSession:
    session = CrawlSession(
        input_url="dealer.example.com",
        resolved_url="https://dealer.example.com/",
        site_reachable=True,
        status_code=200,
    )
    session.add_result(PageScanResult.matched("https://dealer.example.com/", {"apply", "apply now"}))
    session.add_result(PageScanResult.matched("https://dealer.example.com/about", set(), dynamic=True))
    session.add_result(PageScanResult.failed("https://dealer.example.com/credit", "timed out"))
    session.add_result(
        PageScanResult.matched("https://dealer.example.com/finance", {"get approved"}, dynamic=True)
    )
    return session


def test_page_result_invariants():
    hit = PageScanResult.matched("u", {"loan"})
    miss = PageScanResult.matched("u", set())
    assert hit.has_match and not miss.has_match
    assert isinstance(hit.matched_keywords, frozenset)
    with pytest.raises(ValueError):
        PageScanResult(url="u", matched_keywords=frozenset({"loan"}), error="boom")
    failed = PageScanResult.failed("u", "boom", dynamic=True)
    assert not failed.has_match and failed.used_dynamic_rendering


def test_session_caps_results():
    session = CrawlSession(input_url="x")
    for i in range(MAX_SESSION_PAGES):
        session.add_result(PageScanResult.matched(f"u{i}", set()))
    with pytest.raises(SessionError):
        session.add_result(PageScanResult.matched("one-too-many", set()))


def test_aggregate_keeps_only_hits():
    report = aggregate_results(make_session())
    assert report.has_credit_app is True
    assert [h.url for h in report.hits] == [
        "https://dealer.example.com/",
        "https://dealer.example.com/finance",
    ]
    assert len(report.pages) == 4

    body = report.to_dict()
    assert body == {
        "inputUrl": "dealer.example.com",
        "resolvedUrl": "https://dealer.example.com/",
        "siteActive": True,
        "statusCode": 200,
        "hasCreditApp": True,
        "hits": [
            {
                "url": "https://dealer.example.com/",
                "hasCreditApp": True,
                "matchedKeywords": ["apply", "apply now"],
            },
            {
                "url": "https://dealer.example.com/finance",
                "hasCreditApp": True,
                "matchedKeywords": ["get approved"],
                "usedDynamic": True,
            },
        ],
    }


def test_verbose_includes_every_page():
    report = aggregate_results(make_session())
    pages = report.to_dict(verbose=True)["pages"]
    assert [p["hasCreditApp"] for p in pages] == [True, False, False, True]
    assert pages[2]["error"] == "timed out"
    assert json.loads(report.json(verbose=True))["pages"] == pages


def test_no_hits():
    session = CrawlSession(input_url="https://dead.invalid")
    session.add_result(PageScanResult.failed("https://dead.invalid", "dns failure"))
    report = aggregate_results(session)
    assert report.has_credit_app is False
    assert report.to_dict()["hits"] == []
    assert report.to_dict()["statusCode"] is None


def test_page_to_dict_omits_unset_fields():
    assert page_to_dict(PageScanResult.matched("u", set())) == {
        "url": "u",
        "hasCreditApp": False,
        "matchedKeywords": [],
    }


def test_error_payload():
    assert error_payload("x.com", None, "boom") == {
        "inputUrl": "x.com",
        "resolvedUrl": None,
        "error": "boom",
        "hasCreditApp": False,
    }


def test_found_by_in_verbose_pages():
    session = CrawlSession(input_url="dealer.example.com")
    session.add_result(
        PageScanResult.matched("https://dealer.example.com/", {"credit"}, found_by={"link"})
    )
    page = aggregate_results(session).to_dict(verbose=True)["pages"][0]
    assert page["foundBy"] == {"text": False, "link": True}
    assert "foundBy" not in aggregate_results(session).to_dict()["hits"][0]


def test_found_by_requires_keywords():
    assert PageScanResult.matched("u", set(), found_by={"text"}).found_by == frozenset()
    with pytest.raises(ValueError):
        PageScanResult(url="u", matched_keywords=frozenset({"loan"}), found_by=frozenset({"footer"}))
    with pytest.raises(ValueError):
        PageScanResult(url="u", found_by=frozenset({"text"}))
