# File: dealer_scout/errors.py
"""dealer_scout.errors: Exception taxonomy for the scanner and the sync proxy."""

from __future__ import annotations

from typing import Optional

__all__ = [
    "ScoutError",
    "ResolutionExhausted",
    "FetchError",
    "RenderError",
    "MalformedLink",
    "SessionError",
    "AuthError",
]


class ScoutError(Exception):
    """Base class for every DealerScout error."""


class ResolutionExhausted(ScoutError):
    """All scheme/www variants of a raw input failed probing."""

    def __init__(self, raw: str, candidates: list[str]) -> None:
        super().__init__(f"no live candidate for {raw!r} ({len(candidates)} tried)")
        self.raw = raw
        self.candidates = candidates


class FetchError(ScoutError):
    """Network, timeout, DNS or TLS failure while retrieving a page."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class RenderError(ScoutError):
    """The headless browser failed to load or read a page."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"render error: {reason}")
        self.url = url
        self.reason = reason


class MalformedLink(ScoutError):
    """An href that cannot be turned into an absolute http(s) URL."""


class SessionError(ScoutError):
    """Unexpected failure outside per-page scanning."""

    def __init__(
        self, message: str, *, input_url: str, resolved_url: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.input_url = input_url
        self.resolved_url = resolved_url


class AuthError(ScoutError):
    """The CRM OAuth endpoint rejected the password grant."""
