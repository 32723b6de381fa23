from __future__ import annotations

from typing import Any, Iterable

import typer

from app.schemas import ScrapeReport, SeriesStatus


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_report(report: ScrapeReport) -> None:
    echo_heading("Scrape Report")
    echo_key_values(
        [
            ("url", report.url),
            ("started_at", report.started_at.isoformat()),
            ("duration_ms", report.duration_ms),
        ]
    )
    if report.error is not None:
        typer.secho(
            f"cycle failed ({report.error.kind}): {report.error.message}",
            fg=typer.colors.RED,
        )

    typer.echo()
    echo_heading("Series")
    for outcome in report.series:
        if outcome.status is SeriesStatus.ok:
            typer.secho(
                f"  - {outcome.metric}: {outcome.price:.2f}",
                fg=typer.colors.GREEN,
            )
        elif outcome.error is not None:
            typer.secho(
                f"  - {outcome.metric}: {outcome.status.value} "
                f"({outcome.error.kind}: {outcome.error.message})",
                fg=typer.colors.RED,
            )
        else:
            typer.echo(f"  - {outcome.metric}: {outcome.status.value}")


def render_json(report: ScrapeReport) -> None:
    typer.echo(report.model_dump_json(indent=2))
