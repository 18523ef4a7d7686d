from __future__ import annotations

import os
import threading
from typing import Any

from flask import Flask, abort, jsonify

from engagement_dashboard.config import configure_logging, load_settings
from engagement_dashboard.errors import UnknownReportTypeError
from engagement_dashboard.models import ReportType
from engagement_dashboard.orchestrator import prepare_dashboard
from engagement_dashboard.rendering.html_renderer import render_html, render_summary_json
from engagement_dashboard.report_types.registry import ReportTypeRegistry


def create_app(config_overrides: dict[str, Any] | None = None) -> Flask:
    settings = load_settings()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.getenv("FLASK_SECRET_KEY", "dev-key-change-me")
    app.config["DATA_URL"] = settings.data_url
    app.config["REPORT_TYPES_DIR"] = str(settings.report_types_dir)
    app.config.update(config_overrides or {})

    registry = ReportTypeRegistry(config_dir=app.config["REPORT_TYPES_DIR"])
    # snapshots are fetched once per process; switching reports never re-fetches
    dashboard = prepare_dashboard(data_url=app.config["DATA_URL"], registry=registry)
    render_lock = threading.Lock()
    app.extensions["dashboard"] = dashboard

    @app.get("/")
    def index() -> str:
        with render_lock:
            return render_html(dashboard)

    @app.get("/reports/<report_type>")
    def switch_report(report_type: str) -> str:
        selected = _parse_or_404(report_type)
        # every panel is pre-rendered; the choice lives in this response only
        with render_lock:
            return render_html(dashboard, current_report=selected)

    @app.get("/api/summary")
    def summary() -> Any:
        with render_lock:
            return jsonify(render_summary_json(dashboard))

    @app.get("/api/reports/<report_type>")
    def report_metrics(report_type: str) -> Any:
        selected = _parse_or_404(report_type)
        metrics = dashboard.metrics_for(selected)
        if metrics is None:
            return jsonify({"error": dashboard.state.error or f"No data for report '{selected.value}'."}), 503
        return jsonify(metrics.model_dump(mode="json"))

    return app


def _parse_or_404(report_type: str) -> ReportType:
    try:
        return ReportType.parse(report_type)
    except UnknownReportTypeError:
        abort(404)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    app = create_app()
    debug = os.getenv("FLASK_DEBUG", "1").lower() in {"1", "true", "yes"}
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", "5000"))
    app.run(debug=debug, host=host, port=port)


if __name__ == "__main__":
    main()
