"""Command-line interface using Typer."""

from dataclasses import replace
from datetime import UTC, datetime
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from production_engine import __version__
from production_engine.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="production-engine",
    help="Production Engine - video production tracking and client cost CLI",
    add_completion=False,
)

console = Console()

STATUS_STYLES = {
    "active": "green",
    "on_track": "green",
    "warning": "yellow",
    "late": "yellow",
    "at_risk": "red",
    "critical": "red",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Production Engine v{__version__}")
        raise typer.Exit()


def _styled(value: str) -> str:
    style = STATUS_STYLES.get(value)
    return f"[{style}]{value}[/{style}]" if style else value


def _money(amount: float) -> str:
    return f"{amount:,.0f}"


def _engine_config():
    from production_engine.config import get_settings
    from production_engine.domain.engine_config import EngineConfig

    return EngineConfig.from_settings(get_settings())


def _load_snapshot():
    from production_engine.db.snapshot import DatabaseSnapshotLoader

    snapshot = DatabaseSnapshotLoader().load(datetime.now(UTC))
    if snapshot.partial:
        missing = ", ".join(sorted(c.value for c in snapshot.unavailable))
        console.print(f"[yellow]Partial data - unavailable: {missing}[/yellow]")
    return snapshot


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Production Engine - lateness, performance, costing and dashboards."""
    pass


@app.command()
def version() -> None:
    """Show the installed version."""
    console.print(f"Production Engine v{__version__}")


@app.command("check-late")
def check_late(
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Only list late videos, do not write or notify"
    ),
) -> None:
    """Flag videos whose allowed production time has run out."""
    from production_engine.services.lifecycle import detect_late_transitions

    try:
        snapshot = _load_snapshot()
        config = _engine_config()

        if dry_run:
            transitions = detect_late_transitions(snapshot.videos, snapshot.taken_at, config)
            titles = {v.id: v.title for v in snapshot.videos}

            table = Table(title="Newly Late Videos")
            table.add_column("Video", style="cyan")
            table.add_column("Deadline")
            for transition in transitions:
                table.add_row(
                    titles.get(transition.video_id, str(transition.video_id)),
                    transition.deadline.strftime("%Y-%m-%d %H:%M"),
                )
            console.print(table)
            console.print(f"[dim]{len(transitions)} video(s) would be flagged[/dim]")
            return

        from production_engine.jobs.tasks import build_late_video_service

        report = build_late_video_service().run(snapshot)

        table = Table(title="Late Video Check")
        table.add_column("Checked", justify="right")
        table.add_column("Flagged", justify="right", style="yellow")
        table.add_column("Notified", justify="right", style="green")
        table.add_column("Skipped", justify="right")
        table.add_column("Failures", justify="right", style="red")
        table.add_row(
            str(report.checked),
            str(report.flagged),
            str(report.notified),
            str(report.skipped),
            str(len(report.failures)),
        )
        console.print(table)

        for video_id, error in {**report.failures, **report.notification_failures}.items():
            console.print(f"[red]✗ {video_id}: {error}[/red]")
        if report.failures:
            raise typer.Exit(code=1)

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)


@app.command()
def dashboard() -> None:
    """Show editor performance and global production KPIs."""
    from production_engine.services.aggregation import build_dashboard

    try:
        view = build_dashboard(_load_snapshot(), _engine_config())
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title="Editors")
    table.add_column("Editor", style="cyan")
    table.add_column("Rank")
    table.add_column("Level", justify="right")
    table.add_column("XP", justify="right")
    table.add_column("On time", justify="right")
    table.add_column("Active", justify="right")
    table.add_column("Load", justify="right")
    table.add_column("Month", justify="right")
    table.add_column("Bonus", justify="right")
    table.add_column("Status")

    load = {w.id: w for w in view.workload}
    for editor in view.editors:
        workload = load[editor.id]
        table.add_row(
            editor.name,
            editor.rank.value,
            str(editor.level),
            str(editor.xp),
            f"{editor.on_time_rate}%",
            str(editor.active_videos),
            f"{workload.active_videos}/{workload.capacity}",
            str(editor.videos_this_month),
            _money(editor.monthly_bonus),
            _styled(editor.status.value),
        )
    console.print(table)

    stats = view.stats
    summary = Table(title="Production")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", justify="right")
    summary.add_row("Editors (active / at risk)", f"{stats.active_editors} / {stats.at_risk_editors}")
    summary.add_row("Average on-time rate", f"{stats.avg_on_time_rate}%")
    summary.add_row("Pending validation", str(stats.total_pending_videos))
    summary.add_row("Late videos", str(stats.total_late_videos))
    summary.add_row("Revisions requested", str(stats.total_revision_videos))
    summary.add_row("Active videos", str(stats.total_active_videos))
    summary.add_row("Unanswered questions", str(stats.total_questions))
    console.print(summary)


@app.command()
def finance(
    month: Optional[str] = typer.Option(None, "--month", "-m", help="Period as YYYY-MM"),
) -> None:
    """Show client profitability for a month."""
    from production_engine.services.costing import build_finance_report, month_reference

    snapshot = _load_snapshot()
    if month:
        try:
            snapshot = replace(snapshot, taken_at=month_reference(month, snapshot.taken_at))
        except ValueError:
            console.print(f"[bold red]Invalid month: {month} (expected YYYY-MM)[/bold red]")
            raise typer.Exit(code=1)

    report = build_finance_report(snapshot, _engine_config())

    table = Table(title=f"Clients - {report.period_start:%B %Y}")
    table.add_column("Client", style="cyan")
    table.add_column("Paid", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Shared", justify="right")
    table.add_column("Profit", justify="right")
    table.add_column("Margin", justify="right")
    table.add_column("Status")

    for client in report.clients:
        profit_style = "green" if client.profit >= 0 else "red"
        table.add_row(
            client.company_name,
            _money(client.total_paid),
            _money(client.remaining),
            _money(client.cost_breakdown.total_cost),
            _money(client.shared_charge),
            f"[{profit_style}]{_money(client.profit)}[/{profit_style}]",
            f"{client.margin}%",
            _styled(client.status.value),
        )
    console.print(table)

    summary = report.summary
    totals = Table(title="Totals")
    totals.add_column("Metric", style="cyan")
    totals.add_column("Month", justify="right")
    totals.add_row("Revenue", _money(summary.revenue_month))
    totals.add_row("Collected", _money(summary.collected_month))
    totals.add_row("Expenses (incl. payroll)", _money(summary.expenses_month))
    totals.add_row("Payroll", _money(summary.payroll_month))
    totals.add_row("Profit", _money(summary.profit_month))
    console.print(totals)


@app.command()
def recompute(
    collection: str = typer.Argument(..., help="Name of the changed collection"),
) -> None:
    """Queue a recomputation of the views that read a collection."""
    from production_engine.domain.enums import Collection

    try:
        Collection(collection)
    except ValueError:
        names = ", ".join(c.value for c in Collection)
        console.print(f"[bold red]Unknown collection: {collection}[/bold red]")
        console.print(f"[dim]Available collections: {names}[/dim]")
        raise typer.Exit(code=1)

    from production_engine.jobs.tasks import recompute_views_task

    result = recompute_views_task.delay(collection)
    console.print(f"[green]Task enqueued: {result.id}[/green]")


@app.command()
def worker() -> None:
    """Start a Celery worker with the beat scheduler (for development)."""
    console.print("[bold blue]Starting Celery worker...[/bold blue]")

    import subprocess
    import sys

    subprocess.run(
        [
            sys.executable,
            "-m",
            "celery",
            "-A",
            "production_engine.worker",
            "worker",
            "--beat",
            "--loglevel=info",
        ],
        check=True,
    )


if __name__ == "__main__":
    app()
