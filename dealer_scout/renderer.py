# File: dealer_scout/renderer.py
"""dealer_scout.renderer: Fallback keyword scan of script-rendered pages.

Each call launches its own headless Chromium through Playwright, waits for the
network to go idle, reads ``document.body.innerText`` and closes the browser
again, whatever happened in between. Only the rendered text is matched; element
attributes are left to the static scanner.
"""
from __future__ import annotations

from playwright.async_api import async_playwright

from dealer_scout.crawler.models import PageScanResult
from dealer_scout.errors import RenderError
from dealer_scout.keywords import KeywordRegistry
from dealer_scout.logger import logger

__all__ = ["DynamicScanner"]


class DynamicScanner:
    """Scans the text of a page after full script execution."""

    def __init__(
        self,
        registry: KeywordRegistry,
        timeout: float = 20.0,
        user_agent: str | None = None,
    ) -> None:
        self.registry = registry
        self.timeout_ms = int(timeout * 1000)
        self.user_agent = user_agent

    async def scan(self, url: str) -> PageScanResult:
        """Render *url* and match keywords; failures come back as errored results."""
        try:
            text = await self.render_text(url)
        except RenderError as exc:
            logger.warning("Rendering failed for %s: %s", url, exc.reason)
            return PageScanResult.failed(url, str(exc), dynamic=True)

        hits = self.registry.match(" ".join(text.split()).lower())
        logger.info("Dynamic scan %s: %d keyword(s)", url, len(hits))
        return PageScanResult.matched(url, hits, dynamic=True, found_by={"text"})

    async def render_text(self, url: str) -> str:
        """Visible text of the rendered document. Raises RenderError."""
        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True)
                try:
                    context = await browser.new_context(user_agent=self.user_agent)
                    page = await context.new_page()
                    await page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
                    return await page.inner_text("body", timeout=self.timeout_ms)
                finally:
                    await browser.close()
        except Exception as exc:
            # driver start-up, navigation and browser shutdown all land here;
            # playwright appends a multi-line call log to its messages
            lines = str(exc).strip().splitlines()
            raise RenderError(url, lines[0] if lines else type(exc).__name__) from exc
