"""HTTP route definitions for the exporter."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from datastore.gauge_store import GaugeStore


def get_store(request: Request) -> GaugeStore:
    return request.app.state.store


def build_router(metrics_path: str) -> APIRouter:
    router = APIRouter()

    async def metrics(request: Request) -> Response:
        store = get_store(request)
        return Response(content=store.render(), media_type=CONTENT_TYPE_LATEST)

    router.add_api_route(
        metrics_path,
        metrics,
        methods=["GET"],
        summary="Prometheus exposition of the current lowest prices.",
        include_in_schema=False,
    )
    return router
