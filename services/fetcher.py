"""HTTP retrieval and HTML parsing of the upstream price page."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from services.errors import NetworkError, ParseError

logger = logging.getLogger(__name__)

_USER_AGENT = "heating-oil-exporter/0.1.0"


class PageFetcher:
    """Blocking GET of a page, returning its parsed document."""

    def __init__(
        self,
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": _USER_AGENT},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, url: str) -> str:
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            raise NetworkError(f"failed to make http request: {exc}") from exc

        if response.status_code != 200:
            raise NetworkError(
                f"expected status code 200, got {response.status_code}",
                status_code=response.status_code,
            )
        return response.text

    def fetch_document(self, url: str) -> BeautifulSoup:
        logger.debug("scraping url", extra={"url": url})
        body = self.fetch(url)
        return parse_document(body)


def parse_document(body: str) -> BeautifulSoup:
    """Parse an HTML body, raising ``ParseError`` if the parser rejects it."""
    try:
        return BeautifulSoup(body, "html.parser")
    except ParserRejectedMarkup as exc:
        raise ParseError(f"failed to parse response body as HTML: {exc}") from exc
