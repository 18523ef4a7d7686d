from __future__ import annotations

from typing import Optional

import typer
from rich import print
from rich.table import Table

from engagement_dashboard.config import configure_logging, load_settings
from engagement_dashboard.errors import UnknownReportTypeError
from engagement_dashboard.models import ReportType
from engagement_dashboard.orchestrator import build_dashboard, prepare_dashboard
from engagement_dashboard.report_types.registry import ReportTypeRegistry
from engagement_dashboard.services.metrics import format_days, format_percent
from engagement_dashboard.web import create_app

app = typer.Typer(help="JSON snapshots -> engagement dashboard")


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, help="Logging level (default: LOG_LEVEL or INFO)")) -> None:
    settings = load_settings()
    configure_logging(log_level or settings.log_level)


@app.command("list-report-types")
def list_report_types(config_dir: Optional[str] = typer.Option(None, help="Report type config directory")) -> None:
    registry = ReportTypeRegistry(config_dir=config_dir or load_settings().report_types_dir)
    for rid in registry.list_report_types():
        print(rid)


@app.command("build")
def build(
    data_url: Optional[str] = typer.Option(None, help="Base URL or directory holding the snapshot JSON files"),
    output_dir: str = typer.Option("outputs", help="Output directory"),
    report_type: str = typer.Option("general", help="Report shown when the page opens"),
    config_dir: Optional[str] = typer.Option(None, help="Report type config directory"),
) -> None:
    settings = load_settings()
    selected = _parse_report_type(report_type)
    registry = ReportTypeRegistry(config_dir=config_dir or settings.report_types_dir)
    dashboard = prepare_dashboard(data_url=data_url or settings.data_url, registry=registry)
    if dashboard.state.error is None:
        dashboard.switch_report(selected)
    summary_file, html_file = build_dashboard(dashboard, output_dir=output_dir)
    print(f"[green]Dashboard HTML:[/green] {html_file}")
    print(f"[green]Summary JSON:[/green] {summary_file}")
    if dashboard.state.error:
        print(f"[red]{dashboard.state.error}[/red]")
        raise typer.Exit(code=1)


@app.command("summary")
def summary(
    data_url: Optional[str] = typer.Option(None, help="Base URL or directory holding the snapshot JSON files"),
    report_type: str = typer.Option("general", help="general|blome"),
    config_dir: Optional[str] = typer.Option(None, help="Report type config directory"),
) -> None:
    settings = load_settings()
    selected = _parse_report_type(report_type)
    registry = ReportTypeRegistry(config_dir=config_dir or settings.report_types_dir)
    dashboard = prepare_dashboard(data_url=data_url or settings.data_url, registry=registry)
    metrics = dashboard.metrics_for(selected)
    if metrics is None:
        print(f"[red]{dashboard.state.error}[/red]")
        raise typer.Exit(code=1)

    definition = registry.get(selected)
    overview = Table(title=definition.title, show_header=False)
    overview.add_row("Usuários com acesso", str(metrics.total_users))
    overview.add_row("Usuários ativos", str(metrics.active_users))
    overview.add_row("Usuários inativos", str(metrics.inactive_users))
    overview.add_row("Taxa de ativação", format_percent(metrics.activation_rate))
    overview.add_row("Flashcards estudados", str(metrics.total_studied))
    overview.add_row("Média por usuário ativo", f"{metrics.average_per_active_user:.2f}")
    overview.add_row("Taxa de conclusão", format_percent(metrics.completion_rate))
    overview.add_row("Taxa de acerto", format_percent(metrics.accuracy_rate))
    print(overview)

    ranking = Table(title="Top 5 Usuários")
    for column in ("Posição", "Usuário", "Flashcards", "Conclusão", "Acerto", "Dias"):
        ranking.add_column(column)
    for top in metrics.top_users:
        ranking.add_row(
            f"{top.medal} {top.rank}º".strip(),
            top.user.account_name,
            str(top.user.total_flashcards_studied),
            format_percent(top.completion_percentage),
            format_percent(top.user.accuracy_rate_percentage),
            format_days(top.day_value),
        )
    print(ranking)


@app.command("run-web")
def run_web(
    host: str = typer.Option("127.0.0.1", help="Flask host"),
    port: int = typer.Option(5000, help="Flask port"),
    debug: bool = typer.Option(False, help="Enable debug mode"),
    data_url: Optional[str] = typer.Option(None, help="Base URL or directory holding the snapshot JSON files"),
) -> None:
    overrides = {"DATA_URL": data_url} if data_url else None
    web_app = create_app(overrides)
    web_app.run(host=host, port=port, debug=debug)


def _parse_report_type(value: str) -> ReportType:
    try:
        return ReportType.parse(value)
    except UnknownReportTypeError as exc:
        raise typer.BadParameter(str(exc)) from exc


if __name__ == "__main__":
    app()
