"""Error taxonomy for scrape failures."""

from __future__ import annotations


class ScrapeError(Exception):
    """Base class for failures that abort a cycle or a single series."""

    kind = "scrape"


class NetworkError(ScrapeError):
    """The page could not be fetched or the response status was not 200."""

    kind = "network"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(ScrapeError):
    """The body was not parseable HTML or a price cell was not numeric."""

    kind = "parse"


class NotFoundError(ScrapeError):
    """A locator matched no cells in the document."""

    kind = "not_found"

    def __init__(self, locator: str) -> None:
        super().__init__(f"failed to find selector in document: {locator}")
        self.locator = locator
