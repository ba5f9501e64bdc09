"""CLI entry point for the neuro-biological audit engine."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from .core.config import Settings, load_settings
from .core.errors import ConfigError


def _dashboard(ctx: click.Context, trader: str, start: str | None, end: str | None):
    from .dashboard import AuditDashboard
    from .storage.record_store import JsonlRecordStore

    settings: Settings = ctx.obj["settings"]
    store = JsonlRecordStore(ctx.obj["store_path"])
    dashboard = AuditDashboard(store, settings)
    dashboard.set_filter(trader, start_date=start, end_date=end)
    return dashboard


def _filter_options(f):
    f = click.option("--end", default=None, help="End date, inclusive (YYYY-MM-DD)")(f)
    f = click.option("--start", default=None, help="Start date, inclusive (YYYY-MM-DD)")(f)
    f = click.option("--trader", required=True, help="Trader name (exact, case-insensitive)")(f)
    return f


@click.group()
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--store", "store_path", default=None, help="JSONL store path override")
@click.option("--log-level", default=None, help="Log level override")
@click.pass_context
def main(ctx: click.Context, config: str | None, store_path: str | None, log_level: str | None) -> None:
    """Neuro-biological trading audit analytics."""
    from .observability.logger import get_logger, new_trace_id, setup_logging

    try:
        settings = load_settings(config_path=config)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    setup_logging(
        level=log_level or settings.observability.log_level,
        format=settings.observability.log_format,
    )
    new_trace_id()
    ctx.obj = {
        "settings": settings,
        "store_path": Path(store_path) if store_path else settings.store_path,
    }
    get_logger(__name__).debug(
        "cli_invoked", command=ctx.invoked_subcommand, store=str(ctx.obj["store_path"])
    )


@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def add(ctx: click.Context, source: str) -> None:
    """Submit audits from a JSON file (one object or a list)."""
    from .draft import AuditDraft, submit_draft
    from .storage.record_store import JsonlRecordStore

    settings: Settings = ctx.obj["settings"]
    with open(source, encoding="utf-8") as f:
        payload = json.load(f)
    documents = payload if isinstance(payload, list) else [payload]

    store = JsonlRecordStore(ctx.obj["store_path"])
    failures = 0
    for document in documents:
        draft = AuditDraft.model_validate(document)
        result = submit_draft(store, draft, settings)
        click.echo(f"{'OK ' if result.ok else 'ERR'} {result.message}")
        failures += 0 if result.ok else 1
    if failures:
        sys.exit(1)


@main.command()
@_filter_options
@click.pass_context
def sessions(ctx: click.Context, trader: str, start: str | None, end: str | None) -> None:
    """Session history, newest first."""
    dashboard = _dashboard(ctx, trader, start, end)
    rows = dashboard.session_log
    if not rows:
        click.echo("No records match the selected filters.")
        return
    click.echo(f"{'date':<12}{'start':<7}{'IC':>5}{'energy':>8}{'pres':>6}{'plan':>6}{'pnl':>10}{'eff%':>6}")
    for row in rows:
        click.echo(
            f"{row.date or '-':<12}{row.start_time or '-':<7}"
            f"{row.coherence_index:>5.0f}{row.metabolic_energy:>8.0f}"
            f"{row.presence_level:>6.0f}{'yes' if row.plan_reviewed else 'no':>6}"
            f"{row.daily_pnl:>10.2f}{row.plan_efficiency:>6}"
        )


@main.command()
@_filter_options
@click.pass_context
def trend(ctx: click.Context, trader: str, start: str | None, end: str | None) -> None:
    """Coherence, presence and energy over time."""
    dashboard = _dashboard(ctx, trader, start, end)
    for point in dashboard.trend:
        click.echo(
            f"{point.date or '-':<12} IC={point.coherence_index:.0f} "
            f"presence={point.presence_level:.0f} energy={point.metabolic_energy:.0f}"
        )


@main.command()
@_filter_options
@click.pass_context
def heatmap(ctx: click.Context, trader: str, start: str | None, end: str | None) -> None:
    """Weekday x hour heatmap (avg IC / avg PnL per cell)."""
    from .analytics.heatmap import DAY_NAMES, WEEKDAYS, color_class, heatmap_rows
    from .core.enums import HeatmapColor

    marks = {
        HeatmapColor.NO_DATA: ".",
        HeatmapColor.CRITICAL: "!",
        HeatmapColor.CAUTION: "~",
        HeatmapColor.OPTIMAL: "+",
    }
    dashboard = _dashboard(ctx, trader, start, end)
    header = "".join(f"{DAY_NAMES[d][:3]:>16}" for d in WEEKDAYS)
    click.echo(f"{'hour':<6}{header}")
    for hour, cells in heatmap_rows(dashboard.heatmap):
        line = f"{hour:02d}:00 "
        for cell in cells:
            if cell.has_data:
                text = f"{marks[color_class(cell)]}{cell.avg_coherence}/{cell.avg_pnl:g}"
            else:
                text = marks[HeatmapColor.NO_DATA]
            line += f"{text:>16}"
        click.echo(line)


@main.command()
@click.option("--losses", type=int, required=True, help="Losses taken today")
@click.option("--clean", default="", help="Comma-separated indices of clean losses")
@click.option("--dirty", default="", help="Comma-separated indices of dirty losses")
@click.option("--ic", type=float, default=None, help="Initial coherence index")
def discipline(losses: int, clean: str, dirty: str, ic: float | None) -> None:
    """Discipline factor for a session's loss breakdown."""
    from .analytics.metrics import correlation_pair, discipline_factor
    from .core.enums import LossClassification
    from .core.models import LossBreakdown

    breakdown = LossBreakdown()
    for raw, kind in ((clean, LossClassification.CLEAN), (dirty, LossClassification.DIRTY)):
        for index in filter(None, (p.strip() for p in raw.split(","))):
            if not index.isdigit():
                raise click.BadParameter(f"not a loss index: {index!r}")
            breakdown = breakdown.with_classification(int(index), kind)

    factor = discipline_factor(losses, breakdown)
    click.echo(f"Discipline: {factor.label} ({factor.band.value})")
    if ic is not None:
        for point in correlation_pair(ic, factor):
            click.echo(f"  {point.label}: {point.value:g}")


@main.command()
@click.option("--ic", type=float, required=True, help="Coherence index (0-100)")
@click.option("--state", required=True, help="Nervous system state (Ventral/Sympathetic/Dorsal)")
@click.option("--presence", type=float, required=True, help="Presence level (1-10)")
@click.option("--plan", required=True, help="Plan reviewed (Yes/No)")
def readiness(ic: float, state: str, presence: float, plan: str) -> None:
    """Pre-market readiness check."""
    from .analytics.readiness import evaluate_readiness
    from .core.enums import ReadinessOutcome
    from .draft import AuditDraft

    draft = AuditDraft(
        coherence_index=ic,
        nervous_system_state=state,
        presence_level=presence,
        plan_reviewed=plan,
    )
    assessment = evaluate_readiness(draft)
    click.echo(assessment.title)
    click.echo(assessment.message)
    if assessment.outcome == ReadinessOutcome.NOT_READY:
        sys.exit(2)


@main.command()
@click.option("--access-code", required=True, help="Coach access code")
@click.pass_context
def traders(ctx: click.Context, access_code: str) -> None:
    """List every trader in the store (coach only)."""
    settings: Settings = ctx.obj["settings"]
    if not settings.coach_mode(access_code):
        click.echo("Invalid or disabled coach access code.", err=True)
        sys.exit(1)
    dashboard = _dashboard(ctx, "", None, None)
    for name in dashboard.trader_directory(access_code):
        click.echo(name)


@main.command()
@_filter_options
@click.option("--format", "fmt", type=click.Choice(["csv", "json"]), default="csv")
@click.option("--report", type=click.Choice(["daily", "weekly", "monthly"]), default=None,
              help="Emit a periodic summary (JSON) instead of rows")
@click.option("--output", default=None, help="Output file (default: stdout)")
@click.pass_context
def export(
    ctx: click.Context,
    trader: str,
    start: str | None,
    end: str | None,
    fmt: str,
    report: str | None,
    output: str | None,
) -> None:
    """Export session history or a periodic summary."""
    from .export import SessionExporter

    dashboard = _dashboard(ctx, trader, start, end)
    exporter = SessionExporter()
    if report:
        text = json.dumps(
            exporter.periodic_report(dashboard.working_set, period=report), indent=2
        )
    elif fmt == "json":
        text = exporter.to_json(dashboard.session_log)
    else:
        text = exporter.to_csv(dashboard.session_log)

    if output:
        Path(output).write_text(text, encoding="utf-8")
        click.echo(f"Wrote {output}")
    else:
        click.echo(text)


if __name__ == "__main__":
    main()
