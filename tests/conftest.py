from __future__ import annotations

from typing import Callable, Iterator, Sequence

import httpx
import pytest

import logging_config
from datastore.gauge_store import GaugeStore
from models.prices import series_for_mode
from services.fetcher import PageFetcher
from services.scraper import ScrapeService, build_default_service
from settings import get_settings

PAGE_URL = "https://oil.example.test/prices"


def price_table(css_class: str, price: str) -> str:
    """A pricing table whose third row's last cell holds ``price``."""

    return (
        f'<table class="{css_class}">'
        "<tr><th>Dealer</th><th>Town</th><th>Price</th></tr>"
        "<tr><td>Min. gallons</td><td></td><td>100</td></tr>"
        f"<tr><td>Acme Fuel</td><td>Springfield</td><td>{price}</td></tr>"
        "<tr><td>Other Fuel</td><td>Shelbyville</td><td>$9.99</td></tr>"
        "</table>"
    )


def price_page(cash: Sequence[str] = (), credit: Sequence[str] = ()) -> str:
    tables = [price_table("paywithcash", price) for price in cash]
    tables += [price_table("paybycredit", price) for price in credit]
    return "<html><body><h1>Heating Oil Prices</h1>" + "".join(tables) + "</body></html>"


@pytest.fixture(autouse=True)
def _isolated_environment() -> Iterator[None]:
    # Leave pytest's log capture handlers in place.
    configured = logging_config._configured
    logging_config._configured = True
    get_settings.cache_clear()
    build_default_service.cache_clear()
    yield
    logging_config._configured = configured
    get_settings.cache_clear()
    build_default_service.cache_clear()


@pytest.fixture()
def make_service() -> Iterator[Callable[..., ScrapeService]]:
    """Build services whose fetcher is served by an in-memory transport."""

    services: list[ScrapeService] = []

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        series_mode: str = "split",
        store: GaugeStore | None = None,
    ) -> ScrapeService:
        series = series_for_mode(series_mode)
        service = ScrapeService(
            url=PAGE_URL,
            series=series,
            fetcher=PageFetcher(timeout=5.0, transport=httpx.MockTransport(handler)),
            store=store or GaugeStore(series),
        )
        services.append(service)
        return service

    yield factory

    for service in services:
        service.close()


def html_response(body: str, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code,
            text=body,
            headers={"Content-Type": "text/html; charset=utf-8"},
        )

    return handler


def page_sequence(*bodies: str) -> Callable[[httpx.Request], httpx.Response]:
    """Serve ``bodies`` in order, repeating the last one once exhausted."""

    remaining = list(bodies)

    def handler(request: httpx.Request) -> httpx.Response:
        body = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        return httpx.Response(200, text=body)

    return handler
