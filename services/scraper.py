"""One fetch-extract-publish pass over the configured price series."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional, Sequence

from bs4 import BeautifulSoup

from app.schemas import CycleError, ScrapeReport, SeriesOutcome, SeriesStatus
from datastore.gauge_store import GaugeStore
from models.prices import PriceSeries, series_for_mode
from services.errors import ScrapeError
from services.extractor import PriceExtractor
from services.fetcher import PageFetcher
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


class ScrapeService:
    """Coordinates fetching, extraction, and publishing into the gauge store."""

    def __init__(
        self,
        url: str,
        series: Sequence[PriceSeries],
        fetcher: PageFetcher,
        store: GaugeStore,
        extractor: Optional[PriceExtractor] = None,
    ) -> None:
        self.url = url
        self.series = tuple(series)
        self.fetcher = fetcher
        self.store = store
        self.extractor = extractor or PriceExtractor()

    def run_cycle(self) -> ScrapeReport:
        """Scrape the page once and publish every series that succeeds."""
        start_time = time.perf_counter()
        report = ScrapeReport(url=self.url, started_at=datetime.now(timezone.utc))

        try:
            document = self.fetcher.fetch_document(self.url)
        except ScrapeError as exc:
            logger.error("scrape cycle aborted: %s", exc, extra={"url": self.url})
            report.error = CycleError(kind=exc.kind, message=str(exc))
            report.series = [
                SeriesOutcome(
                    series=item.name,
                    metric=item.metric_name,
                    status=SeriesStatus.skipped,
                )
                for item in self.series
            ]
        else:
            report.series = [self._publish(document, item) for item in self.series]

        report.finished_at = datetime.now(timezone.utc)
        report.duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug(
            "scrape cycle finished",
            extra={"url": self.url, "duration_ms": report.duration_ms},
        )
        return report

    def close(self) -> None:
        self.fetcher.close()

    def _publish(self, document: BeautifulSoup, series: PriceSeries) -> SeriesOutcome:
        context = {"series": series.name, "locator": series.locator}
        try:
            price = self.extractor.extract_minimum_price(document, series.locator)
        except ScrapeError as exc:
            logger.error("failed to find low %s price: %s", series.name, exc, extra=context)
            return SeriesOutcome(
                series=series.name,
                metric=series.metric_name,
                status=SeriesStatus.failed,
                error=CycleError(kind=exc.kind, message=str(exc)),
            )
        except Exception as exc:  # noqa: BLE001 - one series must not break the others
            logger.exception("unexpected error extracting %s price", series.name, extra=context)
            return SeriesOutcome(
                series=series.name,
                metric=series.metric_name,
                status=SeriesStatus.failed,
                error=CycleError(kind="internal", message=str(exc)),
            )

        self.store.set(series.metric_name, price)
        logger.info(
            "low %s price found: %s",
            series.name,
            price,
            extra={"metric": series.metric_name, "price": price},
        )
        return SeriesOutcome(
            series=series.name,
            metric=series.metric_name,
            status=SeriesStatus.ok,
            price=price,
        )


def build_service(settings: Settings, store: Optional[GaugeStore] = None) -> ScrapeService:
    """Wire a scrape service from settings."""
    series = series_for_mode(settings.series_mode)
    return ScrapeService(
        url=settings.scrape_url,
        series=series,
        fetcher=PageFetcher(timeout=settings.fetch_timeout),
        store=store or GaugeStore(series),
    )


@lru_cache
def build_default_service(settings: Optional[Settings] = None) -> ScrapeService:
    """Factory that wires the service from the environment settings."""
    return build_service(settings or get_settings())
