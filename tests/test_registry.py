from pathlib import Path

import pytest

from engagement_dashboard.errors import UnknownReportTypeError
from engagement_dashboard.models import ReportType
from engagement_dashboard.report_types.registry import ReportTypeRegistry


def test_registry_lists_report_types(registry: ReportTypeRegistry) -> None:
    assert registry.list_report_types() == ["blome", "general"]


def test_registry_loads_definitions(registry: ReportTypeRegistry) -> None:
    general = registry.get("general")
    blome = registry.get(ReportType.BLOME)
    assert general.report_type is ReportType.GENERAL
    assert general.total_flashcards == 611
    assert general.day_metric == "current_streak_days"
    assert general.chart_index == 1
    assert blome.total_flashcards == 65
    assert blome.day_metric == "study_days_count"
    assert blome.chart_index == 2
    assert blome.deck_id == "939d30f7-750c-4d69-9cea-014aa04c402f"


def test_registry_rejects_unknown_report_type(registry: ReportTypeRegistry) -> None:
    with pytest.raises(UnknownReportTypeError):
        registry.get("premium")


def test_registry_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="No configuration"):
        ReportTypeRegistry(config_dir=tmp_path).get("general")


def test_registry_rejects_invalid_config(tmp_path: Path) -> None:
    (tmp_path / "general.yaml").write_text(
        "report_type: general\ntitle: Geral\ntotal_flashcards: 0\nday_metric: current_streak_days\nchart_index: 1\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="Invalid report type config"):
        ReportTypeRegistry(config_dir=tmp_path).get("general")


def test_registry_rejects_mismatched_report_type(tmp_path: Path) -> None:
    (tmp_path / "general.yaml").write_text(
        "report_type: blome\ntitle: Geral\ntotal_flashcards: 10\nday_metric: study_days_count\nchart_index: 1\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="expected 'general'"):
        ReportTypeRegistry(config_dir=tmp_path).get("general")
