# File: tests/test_scanner.py
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

from conftest import html_page, serve_app
from dealer_scout.crawler.fetcher import Fetcher
from dealer_scout.errors import FetchError
from dealer_scout.keywords import KeywordRegistry
from dealer_scout.parser.html_parser import normalize_attr, parse_html
from dealer_scout.scanner import StaticScanner, match_by_source, match_page


@pytest_asyncio.fixture
async def dealer_site(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()

    async def root(_):
        return web.Response(
            text=html_page('<header><a class="btn" href="/apply">Apply Now</a></header>'),
            content_type="text/html",
        )

    async def plain(_):
        return web.Response(text=html_page("<p>Family owned since 1962.</p>"), content_type="text/html")

    async def gone(_):
        return web.Response(text=html_page("<p>Page not found. Try our financing page.</p>"), status=404, content_type="text/html")

    app.router.add_get("/", root)
    app.router.add_get("/plain", plain)
    app.router.add_get("/gone", gone)

    async for url in serve_app(app, unused_tcp_port):
        yield url


def test_parse_html_visible_text_and_elements():
    parsed = parse_html(
        html_page(
            "<script>var offer = 'loan';</script><style>.credit{}</style>"
            "<h1>Welcome   to\n Our Lot</h1>"
            '<button type="button">Get <b>Approved</b></button>'
            '<form action="/Credit-App?a=1&amp;b=2"><input name="q"></form>'
        )
    )
    assert parsed.text == "welcome to our lot get approved"
    assert [el.tag for el in parsed.elements] == ["button", "form"]
    assert parsed.elements[0].text == "get approved"
    assert parsed.elements[1].action == "/credit-app?a=1&b=2"


def test_parse_html_honors_base_href(mock_page_data):
    mock_page_data.content = '<head><base href="/shop/"></head>' + mock_page_data.content
    parsed = parse_html(mock_page_data)
    assert parsed.base_url == "http://dealer.example.com/shop/"
    assert len(parsed.anchors()) == 4


def test_normalize_attr_folds_entities():
    assert normalize_attr("/Finance?x=1&amp;Y=2") == "/finance?x=1&y=2"
    assert normalize_attr(["btn", "Primary"]) == "btn primary"
    assert normalize_attr(None) == ""


def test_match_page_text_and_anchor():
    parsed = parse_html(html_page('<a href="/inventory">Apply Now</a>'))
    assert match_page(parsed, KeywordRegistry()) == {"apply now", "apply"}


def test_match_page_element_attributes_only():
    registry = KeywordRegistry(keywords=("credit", "loan", "finance"))
    parsed = parse_html(
        html_page(
            '<a href="/Loan-Center"><img src="x.png" alt=""></a>'
            '<form action="https://secure.example.com/credit"></form>'
            "<p>Nothing to see</p>"
        )
    )
    assert parsed.text == "nothing to see"
    assert match_page(parsed, registry) == {"loan", "credit"}


def test_match_page_ignores_scripts():
    parsed = parse_html(html_page("<script>window.label = 'apply now';</script><p>Hello</p>"))
    assert match_page(parsed, KeywordRegistry()) == set()


def test_noscript_and_template_elements_are_kept():
    parsed = parse_html(
        html_page(
            '<noscript><a href="/finance/apply">Apply for financing</a></noscript>'
            '<template><form action="/credit-app"></form></template>'
            "<p>Hello</p>"
        )
    )
    assert parsed.text == "hello"
    assert [(el.tag, el.href or el.action) for el in parsed.elements] == [
        ("a", "/finance/apply"),
        ("form", "/credit-app"),
    ]
    assert {"apply", "financing", "credit"} <= match_page(parsed, KeywordRegistry())


def test_match_by_source():
    registry = KeywordRegistry(keywords=("credit", "loan"))
    parsed = parse_html(html_page('<p>Loans for everyone</p><a href="/credit">Go</a>'))
    assert match_by_source(parsed, registry) == {"text": {"loan"}, "link": {"credit"}}


@pytest.mark.asyncio()
async def test_static_scan_match(dealer_site):
    async with ClientSession() as session:
        scanner = StaticScanner(Fetcher(session, 2.0), KeywordRegistry())
        result = await scanner.scan(dealer_site)
    assert result.has_match
    assert result.matched_keywords == {"apply now", "apply"}
    assert result.used_dynamic_rendering is False
    assert result.error is None
    assert result.found_by == {"text", "link"}


@pytest.mark.asyncio()
async def test_static_scan_no_match(dealer_site):
    async with ClientSession() as session:
        scanner = StaticScanner(Fetcher(session, 2.0), KeywordRegistry())
        result = await scanner.scan(f"{dealer_site}/plain")
    assert not result.has_match
    assert result.matched_keywords == frozenset()
    assert result.error is None


@pytest.mark.asyncio()
async def test_static_scan_reads_error_pages(dealer_site):
    async with ClientSession() as session:
        scanner = StaticScanner(Fetcher(session, 2.0), KeywordRegistry())
        result = await scanner.scan(f"{dealer_site}/gone")
    assert result.matched_keywords == {"financing"}
    assert result.found_by == {"text"}


@pytest.mark.asyncio()
async def test_static_scan_fetch_error(unused_tcp_port):
    url = f"http://localhost:{unused_tcp_port}/"
    async with ClientSession() as session:
        scanner = StaticScanner(Fetcher(session, 2.0), KeywordRegistry())
        result = await scanner.scan(url)
    assert result.url == url
    assert result.error
    assert not result.has_match


@pytest.mark.asyncio()
async def test_fetcher_raises_fetch_error(unused_tcp_port):
    async with ClientSession() as session:
        with pytest.raises(FetchError):
            await Fetcher(session, 2.0).fetch(f"http://localhost:{unused_tcp_port}/")
        with pytest.raises(FetchError):
            await Fetcher(session, 2.0).fetch("not a url")
