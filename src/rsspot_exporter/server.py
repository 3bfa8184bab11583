"""HTTP surface of the exporter: metrics, probes and a status page."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from html import escape

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    GCCollector,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from rsspot_exporter import __version__
from rsspot_exporter.client import SpotApiClient
from rsspot_exporter.collector import SpotMetricsCollector
from rsspot_exporter.scheduler import CollectionScheduler
from rsspot_exporter.settings import ExporterSettings

logger = logging.getLogger(__name__)

PROBE_PATHS = ("/health", "/healthz", "/ready", "/readyz")


def create_registry() -> CollectorRegistry:
    """Return a registry carrying the process default collectors."""

    registry = CollectorRegistry()
    ProcessCollector(registry=registry)
    PlatformCollector(registry=registry)
    GCCollector(registry=registry)
    return registry


@dataclass
class ExporterRuntime:
    settings: ExporterSettings
    registry: CollectorRegistry
    collector: SpotMetricsCollector
    scheduler: CollectionScheduler
    client: SpotApiClient | None = None

    async def aclose(self) -> None:
        await self.scheduler.stop()
        if self.client is not None:
            await self.client.aclose()


def build_runtime(
    settings: ExporterSettings,
    *,
    registry: CollectorRegistry | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ExporterRuntime:
    registry = registry if registry is not None else create_registry()
    client = SpotApiClient(
        refresh_token=settings.refresh_token_value,
        api_base_url=settings.api_base_url,
        auth_base_url=settings.auth_base_url,
        client_id=settings.client_id,
        request_timeout_seconds=settings.request_timeout_seconds,
        http_client=http_client,
    )
    collector = SpotMetricsCollector(client, settings.namespace, registry)
    scheduler = CollectionScheduler(collector.collect, interval_seconds=settings.scrape_interval_seconds)
    return ExporterRuntime(
        settings=settings,
        registry=registry,
        collector=collector,
        scheduler=scheduler,
        client=client,
    )


def _status_page(settings: ExporterSettings) -> str:
    metrics_path = escape(settings.metrics_path, quote=True)
    return f"""<html>
<head><title>Rackspace Spot Exporter</title></head>
<body>
<h1>Rackspace Spot Exporter</h1>
<p><a href="{metrics_path}">Metrics</a></p>
<p>Namespace: {escape(settings.namespace)}</p>
<p>Scrape Interval: {settings.scrape_interval_seconds}s</p>
</body>
</html>"""


def create_app(runtime: ExporterRuntime) -> FastAPI:
    settings = runtime.settings

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info("performing initial metrics collection")
        await runtime.scheduler.tick()
        runtime.scheduler.start()
        logger.info(
            "Rackspace Spot exporter started",
            extra={
                "port": settings.port,
                "metrics_path": settings.metrics_path,
                "namespace": settings.namespace,
                "scrape_interval_seconds": settings.scrape_interval_seconds,
            },
        )
        try:
            yield
        finally:
            await runtime.aclose()
            logger.info("Rackspace Spot exporter stopped")

    app = FastAPI(
        title="Rackspace Spot Exporter",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.runtime = runtime

    async def metrics() -> Response:
        return Response(content=generate_latest(runtime.registry), media_type=CONTENT_TYPE_LATEST)

    async def probe() -> PlainTextResponse:
        return PlainTextResponse("OK")

    async def index() -> HTMLResponse:
        return HTMLResponse(_status_page(settings))

    app.add_api_route(settings.metrics_path, metrics, methods=["GET"], include_in_schema=False)
    for path in PROBE_PATHS:
        app.add_api_route(path, probe, methods=["GET"], include_in_schema=False)
    app.add_api_route("/", index, methods=["GET"], include_in_schema=False)

    @app.exception_handler(StarletteHTTPException)
    async def plain_http_error(_: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        detail = "Not Found" if exc.status_code == 404 else str(exc.detail)
        return PlainTextResponse(detail, status_code=exc.status_code)

    return app


def serve(settings: ExporterSettings) -> None:
    """Run the exporter until interrupted."""

    app = create_app(build_runtime(settings))
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
