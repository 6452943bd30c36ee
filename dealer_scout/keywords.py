# File: dealer_scout/keywords.py
"""dealer_scout.keywords: Keyword and link-trigger registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

__all__: Sequence[str] = (
    "DEFAULT_KEYWORDS",
    "DEFAULT_LINK_TRIGGERS",
    "KeywordRegistry",
    "normalize_phrases",
    "parse_phrase_list",
)

DEFAULT_KEYWORDS: tuple[str, ...] = (
    # apply
    "apply", "apply now", "application", "apply online", "apply today",
    # credit
    "credit", "credit app", "credit application", "credit approval", "get credit",
    # finance
    "finance", "financing", "financing options", "finance application",
    "finance request", "financing program", "get financed",
    # loan / pre-approval
    "loan", "loan application", "get approved", "pre-approve", "pre-approval",
    # quote
    "get a quote", "request a quote", "quote",
    # commerce
    "buy now", "shop now", "add to cart", "checkout",
)

DEFAULT_LINK_TRIGGERS: tuple[str, ...] = (
    "finance", "financing", "credit", "apply", "application", "loan",
    "approval", "quote", "inventory", "shop",
)


def normalize_phrases(phrases: Iterable[str]) -> tuple[str, ...]:
    """Strip, lowercase and de-duplicate phrases, preserving first-seen order."""
    cleaned = (p.strip().lower() for p in phrases)
    return tuple(dict.fromkeys(p for p in cleaned if p))


def parse_phrase_list(raw: Optional[str]) -> Optional[tuple[str, ...]]:
    """Parse a comma-separated override; *None* or blank means "no override"."""
    if raw is None or not raw.strip():
        return None
    return normalize_phrases(raw.split(","))


@dataclass(frozen=True, slots=True)
class KeywordRegistry:
    """Immutable pair of phrase sets used for one process lifetime."""

    keywords: tuple[str, ...] = DEFAULT_KEYWORDS
    link_triggers: tuple[str, ...] = DEFAULT_LINK_TRIGGERS

    def __post_init__(self) -> None:
        keywords = normalize_phrases(self.keywords)
        triggers = normalize_phrases(self.link_triggers)
        if not keywords:
            raise ValueError("keyword set must not be empty")
        if not triggers:
            raise ValueError("link trigger set must not be empty")
        object.__setattr__(self, "keywords", keywords)
        object.__setattr__(self, "link_triggers", triggers)

    def match(self, *haystacks: str) -> set[str]:
        """Return every keyword contained in at least one lowercase haystack."""
        return {kw for kw in self.keywords if any(kw in h for h in haystacks if h)}

    def triggers(self, *haystacks: str) -> bool:
        """True when any link trigger occurs in one of the haystacks."""
        return any(t in h for t in self.link_triggers for h in haystacks if h)
