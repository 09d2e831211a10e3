"""
Exception hierarchy.

Per-date queries never raise these to callers (they return empty results);
they surface from constructors and from the low-level fetch/parse helpers.
"""

from __future__ import annotations


class MensaError(Exception):
    """Base exception for all mensafeed errors."""


class FetchError(MensaError):
    """Network or HTTP failure while talking to a source."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url


class ParseError(MensaError):
    """A source document did not have the expected structure."""


class MenuParseError(ParseError):
    pass


class OpeningHoursParseError(ParseError):
    pass
