# === FILE: dealer_scout/parser/html_parser.py ===
"""HTML parsing utilities for DealerScout.

Both the static scanner and the link extractor look at the same few things
in a page, so they share :func:`parse_html` and the :class:`ParsedPage`
dataclass it returns:

* text: lowercased visible body text (scripts, styles and templates
  removed).
* elements: every ``<a>``, ``<button>`` and ``<form>``, also inside
  ``<noscript>`` or ``<template>``, with its lowercased
  visible text, ``href`` and ``action``.
* base_url: the document base, honoring ``<base href>``.

All strings are already normalized for substring matching, so callers only
compare them against lowercase phrases.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__: Sequence[str] = ("InteractiveElement", "ParsedPage", "normalize_attr", "parse_html")

_INTERACTIVE_TAGS = ("a", "button", "form")
_INVISIBLE_TAGS = ("script", "style", "noscript", "template")


@dataclass(frozen=True, slots=True)
class InteractiveElement:
    """An anchor, button or form reduced to its matchable strings."""

    tag: str
    text: str
    href: str
    action: str


@dataclass(slots=True)
class ParsedPage:
    """Lightweight representation of an HTML page."""

    url: str
    base_url: str
    text: str
    elements: list[InteractiveElement] = field(default_factory=list)

    def anchors(self) -> list[InteractiveElement]:
        """Only the ``<a>`` elements, in document order."""
        return [el for el in self.elements if el.tag == "a"]


def normalize_attr(value: Any) -> str:
    """Lowercase an attribute value and fold a leftover ``&amp;`` into ``&``."""
    if value is None:
        return ""
    if isinstance(value, list):
        value = " ".join(value)
    return str(value).replace("&amp;", "&").strip().lower()


def _element_text(tag: Tag) -> str:
    return " ".join(tag.get_text(" ", strip=True).split()).lower()


def parse_html(page: Any) -> ParsedPage:
    """Parse raw HTML (string) or :class:`~dealer_scout.crawler.models.PageData`.

    Parameters
    ----------
    page
        Either a *str* (HTML markup) **or** a ``PageData`` object with
        ``url`` and ``content`` attributes.
    """
    if hasattr(page, "content") and hasattr(page, "url"):
        html = page.content
        url = str(page.url)
    else:
        html = str(page)
        url = ""

    soup = BeautifulSoup(html, "html.parser")

    base_url = url
    base_tag = soup.find("base", href=True)
    if isinstance(base_tag, Tag):
        try:
            base_url = urljoin(url, str(base_tag["href"]).strip())
        except ValueError:
            base_url = url

    elements: list[InteractiveElement] = []
    for tag in soup.find_all(list(_INTERACTIVE_TAGS)):
        if not isinstance(tag, Tag):
            continue
        elements.append(
            InteractiveElement(
                tag=tag.name,
                text=_element_text(tag),
                href=normalize_attr(tag.get("href")),
                action=normalize_attr(tag.get("action")),
            )
        )

    # invisible containers still count for elements, not for body text
    for element in soup(list(_INVISIBLE_TAGS)):
        element.decompose()

    root = soup.body or soup
    text = " ".join(root.get_text(" ", strip=True).split()).lower()

    return ParsedPage(url=url, base_url=base_url, text=text, elements=elements)
