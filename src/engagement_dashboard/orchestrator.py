from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import httpx

from engagement_dashboard.models import ReportType
from engagement_dashboard.rendering.html_renderer import render_html, render_summary_json
from engagement_dashboard.rendering.renderer import DashboardApp
from engagement_dashboard.report_types.registry import ReportTypeRegistry
from engagement_dashboard.services.loader import DataLoader


def prepare_dashboard(
    data_url: str | Path | None = None,
    registry: ReportTypeRegistry | None = None,
    client: httpx.AsyncClient | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> DashboardApp:
    report_registry = registry or ReportTypeRegistry()
    app = DashboardApp(DataLoader(data_url, client=client), report_registry, clock=clock)
    if asyncio.run(app.init()):
        render_all_reports(app)
    return app


def render_all_reports(app: DashboardApp) -> None:
    """Fill every report panel, leaving the current report rendered last."""
    current = app.state.current_report
    for report_type in ReportType:
        if report_type is not current:
            app.render_report(report_type)
    app.render_report(current)


def build_dashboard(app: DashboardApp, output_dir: str | Path = "outputs") -> tuple[Path, Path]:
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    generated_at = datetime.now(timezone.utc)
    run_id = generated_at.strftime("%y%m%d_%H%M_%f")

    summary = render_summary_json(app)
    summary["generated_at_utc"] = generated_at.isoformat()
    json_content = json.dumps(summary, indent=2, ensure_ascii=False)
    html_content = render_html(app)

    json_file = output_path / f"dashboard.{run_id}.summary.json"
    html_file = output_path / f"dashboard.{run_id}.html"
    json_file.write_text(json_content, encoding="utf-8")
    html_file.write_text(html_content, encoding="utf-8")
    (output_path / "dashboard.summary.json").write_text(json_content, encoding="utf-8")
    (output_path / "dashboard.html").write_text(html_content, encoding="utf-8")
    return json_file, html_file


def run_pipeline(
    data_url: str | Path | None = None,
    output_dir: str | Path = "outputs",
    registry: ReportTypeRegistry | None = None,
    client: httpx.AsyncClient | None = None,
    report_type: ReportType | str | None = None,
) -> tuple[Path, Path]:
    app = prepare_dashboard(data_url=data_url, registry=registry, client=client)
    if report_type is not None and not app.state.error:
        app.switch_report(report_type)
    return build_dashboard(app, output_dir=output_dir)
