import json
import re
from pathlib import Path

from engagement_dashboard.orchestrator import prepare_dashboard, run_pipeline


def test_pipeline_generates_outputs(sample_data: Path, tmp_path: Path) -> None:
    json_path, html_path = run_pipeline(data_url=sample_data, output_dir=tmp_path)
    assert json_path.exists()
    assert html_path.exists()
    assert (tmp_path / "dashboard.html").exists()
    assert (tmp_path / "dashboard.summary.json").exists()
    assert re.search(r"dashboard\.\d{6}_\d{4}_\d{6}\.html$", html_path.name)

    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert payload["current_report"] == "general"
    assert payload["error"] is None
    assert payload["last_update"].startswith("2026-10-18T06:00:00")
    assert "generated_at_utc" in payload
    general = payload["reports"]["general"]
    assert general["total_studied"] == 1299
    assert general["average_per_active_user"] == 216.5
    assert [t["user"]["account_name"] for t in general["top_users"]][:2] == ["Diego Rocha", "Ana Souza"]
    assert payload["reports"]["blome"]["total_flashcards"] == 65

    html = html_path.read_text(encoding="utf-8")
    assert "Top 5 Usuários" in html
    assert "Relatório Geral NathFarma" in html
    assert "engagementChart2" in html


def test_pipeline_opens_on_selected_report(sample_data: Path, tmp_path: Path) -> None:
    json_path, _ = run_pipeline(data_url=sample_data, output_dir=tmp_path, report_type="blome")
    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert payload["current_report"] == "blome"


def test_prepare_dashboard_renders_every_panel(sample_data: Path) -> None:
    app = prepare_dashboard(data_url=sample_data)
    assert app.state.current_report.value == "general"
    assert app.surface.text["total-users-blome"] == "8"
    assert app.surface.text["total-users-general"] == "8"
    for slot in ("engagementChart1", "engagementChart2"):
        assert app.surface.charts.live_count(slot) == 1


def test_pipeline_with_missing_data_still_builds(tmp_path: Path) -> None:
    json_path, html_path = run_pipeline(data_url=tmp_path / "empty", output_dir=tmp_path / "out")
    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert payload["error"] is None
    assert payload["last_update"] is None
    assert payload["reports"]["general"]["total_users"] == 0
    assert payload["reports"]["general"]["top_users"] == []
    assert html_path.exists()
