from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import typer
import uvicorn

from app.main import create_app
from cli.config import load_config
from cli.render import render_json, render_report
from logging_config import configure_logging
from services.scraper import build_service
from settings import Settings


@dataclass
class CLIState:
    overrides: Dict[str, Any] = field(default_factory=dict)


app = typer.Typer(
    help="Publish the lowest advertised heating-oil prices as Prometheus gauges.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _resolve_settings(ctx: typer.Context, **command_overrides: Any) -> Settings:
    state = _get_state(ctx)
    overrides = dict(state.overrides)
    # Subcommand flags win over the same flag given before the subcommand.
    overrides.update({key: value for key, value in command_overrides.items() if value is not None})
    try:
        settings = load_config(**overrides)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if not settings.scrape_url:
        typer.secho("--scrape-url is a required flag", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    configure_logging(settings.log_level)
    return settings


def _serve(settings: Settings) -> None:
    exporter = create_app(settings)
    uvicorn.run(exporter, host=settings.host, port=settings.port, log_config=None)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    scrape_url: Optional[str] = typer.Option(
        None,
        "--scrape-url",
        "-u",
        help="The heating oil price page to scrape (defaults to OIL_EXPORTER_SCRAPE_URL env).",
    ),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="The port to listen on."),
    host: Optional[str] = typer.Option(None, "--host", help="The interface to bind to."),
    scrape_interval: Optional[str] = typer.Option(
        None,
        "--scrape-interval",
        help="The interval at which to scrape the URL, e.g. 1h or 15m.",
    ),
    metrics_path: Optional[str] = typer.Option(
        None,
        "--metrics-path",
        help="The path to serve metrics on.",
    ),
    fetch_timeout: Optional[str] = typer.Option(
        None,
        "--fetch-timeout",
        help="Timeout for fetching the page, e.g. 30s. 0 disables the timeout.",
    ),
    series_mode: Optional[str] = typer.Option(
        None,
        "--series-mode",
        help="'split' publishes cash and credit gauges, 'single' one cash gauge.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Scrape on a schedule and serve the prices, unless a subcommand is given."""
    ctx.obj = CLIState(
        overrides={
            "scrape_url": scrape_url,
            "port": port,
            "host": host,
            "scrape_interval": scrape_interval,
            "metrics_path": metrics_path,
            "fetch_timeout": fetch_timeout,
            "series_mode": series_mode,
            "log_level": log_level,
        }
    )
    if ctx.invoked_subcommand is None:
        _serve(_resolve_settings(ctx))


@app.command("serve")
def serve_command(
    ctx: typer.Context,
    port: Optional[int] = typer.Option(None, "--port", "-p", help="The port to listen on."),
    host: Optional[str] = typer.Option(None, "--host", help="The interface to bind to."),
    scrape_interval: Optional[str] = typer.Option(
        None,
        "--scrape-interval",
        help="The interval at which to scrape the URL, e.g. 1h or 15m.",
    ),
    metrics_path: Optional[str] = typer.Option(
        None,
        "--metrics-path",
        help="The path to serve metrics on.",
    ),
) -> None:
    """Scrape on a schedule and serve the prices over HTTP."""
    settings = _resolve_settings(
        ctx,
        port=port,
        host=host,
        scrape_interval=scrape_interval,
        metrics_path=metrics_path,
    )
    _serve(settings)


@app.command("scrape")
def scrape_command(
    ctx: typer.Context,
    output_format: str = typer.Option(
        "table",
        "--format",
        "-f",
        help="Output format: table or json.",
    ),
) -> None:
    """Run a single scrape cycle and print the prices found."""
    if output_format not in {"table", "json"}:
        raise typer.BadParameter("--format must be 'table' or 'json'.")
    settings = _resolve_settings(ctx)
    service = build_service(settings)
    try:
        report = service.run_cycle()
    finally:
        service.close()

    if output_format == "json":
        render_json(report)
    else:
        render_report(report)

    if not report.succeeded:
        raise typer.Exit(code=1)
