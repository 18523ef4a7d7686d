from pathlib import Path

from typer.testing import CliRunner

from engagement_dashboard.cli import app

runner = CliRunner()


def test_list_report_types() -> None:
    result = runner.invoke(app, ["list-report-types"])
    assert result.exit_code == 0
    assert "general" in result.output
    assert "blome" in result.output


def test_build_writes_dashboard(sample_data: Path, tmp_path: Path) -> None:
    result = runner.invoke(app, ["build", "--data-url", str(sample_data), "--output-dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "dashboard.html").exists()
    assert "Dashboard HTML" in result.output


def test_build_rejects_unknown_report_type(sample_data: Path, tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["build", "--data-url", str(sample_data), "--output-dir", str(tmp_path), "--report-type", "premium"],
    )
    assert result.exit_code != 0
    assert not (tmp_path / "dashboard.html").exists()


def test_summary_prints_ranking(sample_data: Path) -> None:
    result = runner.invoke(app, ["summary", "--data-url", str(sample_data), "--report-type", "blome"])
    assert result.exit_code == 0, result.output
    assert "Top 5" in result.output
    assert "Ana Souza" in result.output
    assert "120" in result.output
