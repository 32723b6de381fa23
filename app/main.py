from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from app.api import build_router
from logging_config import configure_logging
from services.scheduler import ScrapeScheduler
from services.scraper import ScrapeService, build_default_service
from settings import Settings, get_settings

_STOP_TIMEOUT = 5.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    service: ScrapeService = app.state.service
    scheduler = ScrapeScheduler(service.run_cycle, app.state.settings.scrape_interval)
    app.state.scheduler = scheduler
    # The first cycle finishes before the server starts accepting requests.
    await run_in_threadpool(scheduler.start)
    try:
        yield
    finally:
        scheduler.stop(timeout=_STOP_TIMEOUT)
        service.close()
        build_default_service.cache_clear()


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[ScrapeService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    if not settings.scrape_url:
        raise ValueError("--scrape-url is a required flag")

    configure_logging(settings.log_level)
    service = service or build_default_service(settings)

    app = FastAPI(
        title="Heating Oil Price Exporter",
        description="Publishes the lowest advertised heating-oil prices as Prometheus gauges.",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.service = service
    app.state.store = service.store
    app.include_router(build_router(settings.metrics_path))
    return app
