from __future__ import annotations

import asyncio
from typing import Annotated, Any

import typer
from prometheus_client import CollectorRegistry

from rsspot_exporter import __version__
from rsspot_exporter.client import SpotApiClient
from rsspot_exporter.collector import SpotMetricsCollector
from rsspot_exporter.errors import ConfigError, ExporterError
from rsspot_exporter.logs import configure_logging
from rsspot_exporter.settings import ExporterSettings, load_settings
from rsspot_exporter.utils.output import OutputFormat, emit_samples

app = typer.Typer(no_args_is_help=True, add_completion=False, help="Rackspace Spot Prometheus exporter")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"rsspot-exporter {__version__}")
        raise typer.Exit()


def _load(**overrides: Any) -> ExporterSettings:
    try:
        return load_settings(**overrides)
    except ConfigError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _make_client(settings: ExporterSettings) -> SpotApiClient:
    return SpotApiClient(
        refresh_token=settings.refresh_token_value,
        api_base_url=settings.api_base_url,
        auth_base_url=settings.auth_base_url,
        client_id=settings.client_id,
        request_timeout_seconds=settings.request_timeout_seconds,
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version"),
    ] = None,
) -> None:
    _ = version


@app.command("serve")
def serve(
    namespace: Annotated[str | None, typer.Option(help="Organization id (namespace) to export")] = None,
    host: Annotated[str | None, typer.Option(help="Listen address")] = None,
    port: Annotated[int | None, typer.Option(help="Listen port")] = None,
    metrics_path: Annotated[str | None, typer.Option(help="Metrics endpoint path")] = None,
    scrape_interval: Annotated[int | None, typer.Option(help="Seconds between collections")] = None,
    log_level: Annotated[str | None, typer.Option(help="Log level")] = None,
    log_format: Annotated[str | None, typer.Option(help="Log format: json or text")] = None,
) -> None:
    """Collect on a fixed interval and serve the metrics over HTTP."""

    settings = _load(
        namespace=namespace,
        host=host,
        port=port,
        metrics_path=metrics_path,
        scrape_interval_seconds=scrape_interval,
        log_level=log_level,
        log_format=log_format,
    )
    configure_logging(settings.log_level, settings.log_format)

    from rsspot_exporter.server import serve as run_server

    run_server(settings)


@app.command("collect")
def collect(
    namespace: Annotated[str | None, typer.Option(help="Organization id (namespace) to export")] = None,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = "table",
) -> None:
    """Run a single collection pass and print the resulting samples."""

    settings = _load(namespace=namespace)
    configure_logging(settings.log_level, settings.log_format)

    async def run() -> list[dict[str, Any]]:
        async with _make_client(settings) as client:
            collector = SpotMetricsCollector(client, settings.namespace, CollectorRegistry())
            await collector.collect()
            return collector.samples()

    try:
        samples = asyncio.run(run())
    except ExporterError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    emit_samples(samples, output=output, title=f"Rackspace Spot ({settings.namespace})")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
