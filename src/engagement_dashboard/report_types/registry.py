from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml
from jsonschema import ValidationError

from engagement_dashboard.config import DEFAULT_REPORT_TYPES_DIR, absolute_path
from engagement_dashboard.models import ReportType
from engagement_dashboard.services.validator import validate_report_type_config


@dataclass(slots=True)
class ReportTypeDefinition:
    report_type: ReportType
    title: str
    total_flashcards: int
    day_metric: str
    chart_index: int
    deck_id: str = ""
    audience_label: str = ""
    scope_label: str = ""

    @property
    def suffix(self) -> str:
        return self.report_type.value


class ReportTypeRegistry:
    def __init__(self, config_dir: str | Path | None = None) -> None:
        self._config_dir = absolute_path(config_dir or DEFAULT_REPORT_TYPES_DIR)
        self._cache: dict[ReportType, ReportTypeDefinition] = {}

    def list_report_types(self) -> list[str]:
        return sorted(path.stem for path in self._config_dir.glob("*.yaml"))

    def get(self, report_type: ReportType | str) -> ReportTypeDefinition:
        key = ReportType.parse(report_type)
        if key in self._cache:
            return self._cache[key]

        path = self._config_dir / f"{key.value}.yaml"
        if not path.exists():
            raise ValueError(f"No configuration for report type '{key.value}' in {self._config_dir}.")

        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"{path.name} must define an object at top level.")
        try:
            validate_report_type_config(raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid report type config {path.name}: {exc.message}") from exc
        if ReportType.parse(raw["report_type"]) is not key:
            raise ValueError(f"{path.name} declares report_type '{raw['report_type']}', expected '{key.value}'.")

        definition = ReportTypeDefinition(
            report_type=key,
            title=raw["title"],
            total_flashcards=int(raw["total_flashcards"]),
            day_metric=raw["day_metric"],
            chart_index=int(raw["chart_index"]),
            deck_id=raw.get("deck_id", ""),
            audience_label=raw.get("audience_label", ""),
            scope_label=raw.get("scope_label", ""),
        )
        self._cache[key] = definition
        return definition

    def all(self) -> list[ReportTypeDefinition]:
        return [self.get(report_type) for report_type in ReportType]
