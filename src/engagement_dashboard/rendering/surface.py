"""In-memory presentation surface the renderer writes into.

Slots are named locations on the dashboard page. Writes to a slot the page
does not declare are ignored; the page simply does not show that value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from engagement_dashboard.models import ReportType

TEXT_SLOTS = (
    "total-users",
    "active-users",
    "inactive-users",
    "total-flashcards",
    "activation-text",
    "total-studied",
    "accuracy-rate",
    "completion-text",
    "report-date",
    "footer-date",
)
PROGRESS_SLOTS = ("activation-rate", "completion-rate")
TABLE_SLOTS = ("userTableBody", "topUsersTableBody")
CHART_SLOTS = ("engagementChart", "topUsersChart", "accuracyChart")
LOADING_OVERLAY = "loadingOverlay"


def report_slots(report_type: ReportType, chart_index: int) -> list[str]:
    suffix = report_type.value
    slots = [f"{name}-{suffix}" for name in TEXT_SLOTS + PROGRESS_SLOTS]
    slots.extend(f"{name}{chart_index}" for name in TABLE_SLOTS + CHART_SLOTS)
    return slots


def dashboard_slots(chart_indexes: dict[ReportType, int]) -> set[str]:
    slots = {LOADING_OVERLAY}
    for report_type, chart_index in chart_indexes.items():
        slots.update(report_slots(report_type, chart_index))
    return slots


@dataclass
class ChartHandle:
    slot: str
    config: dict[str, Any]
    destroyed: bool = False

    def destroy(self) -> None:
        self.destroyed = True


class ChartRegistry:
    def __init__(self) -> None:
        self._current: dict[str, ChartHandle] = {}

    def draw(self, slot: str, config: dict[str, Any]) -> ChartHandle:
        previous = self._current.pop(slot, None)
        if previous is not None:
            previous.destroy()
        handle = ChartHandle(slot=slot, config=config)
        self._current[slot] = handle
        return handle

    def get(self, slot: str) -> ChartHandle | None:
        return self._current.get(slot)

    def live_count(self, slot: str) -> int:
        handle = self._current.get(slot)
        return 0 if handle is None or handle.destroyed else 1

    def __len__(self) -> int:
        return len(self._current)

    def configs(self) -> dict[str, dict[str, Any]]:
        return {slot: handle.config for slot, handle in self._current.items()}


@dataclass
class ProgressValue:
    width: float
    label: str


@dataclass
class PresentationSurface:
    slots: set[str]
    text: dict[str, str] = field(default_factory=dict)
    markup: dict[str, str] = field(default_factory=dict)
    progress: dict[str, ProgressValue] = field(default_factory=dict)
    rows: dict[str, list[list[str]]] = field(default_factory=dict)
    notifications: list[str] = field(default_factory=list)
    charts: ChartRegistry = field(default_factory=ChartRegistry)
    loading: bool = False

    @classmethod
    def with_slots(cls, slots: Iterable[str]) -> PresentationSurface:
        return cls(slots=set(slots))

    def has_slot(self, slot: str) -> bool:
        return slot in self.slots

    def set_text(self, slot: str, value: Any) -> None:
        if self.has_slot(slot):
            self.text[slot] = str(value)

    def set_markup(self, slot: str, html_fragment: str) -> None:
        if self.has_slot(slot):
            self.markup[slot] = html_fragment

    def set_progress(self, slot: str, width: float, label: str) -> None:
        if self.has_slot(slot):
            self.progress[slot] = ProgressValue(width=width, label=label)

    def set_rows(self, slot: str, rows: list[list[str]]) -> None:
        if self.has_slot(slot):
            self.rows[slot] = rows

    def draw_chart(self, slot: str, config: dict[str, Any]) -> ChartHandle | None:
        if not self.has_slot(slot):
            return None
        return self.charts.draw(slot, config)

    def show_loading(self) -> None:
        if self.has_slot(LOADING_OVERLAY):
            self.loading = True

    def hide_loading(self) -> None:
        if self.has_slot(LOADING_OVERLAY):
            self.loading = False

    def notify(self, message: str) -> None:
        self.notifications.append(message)

    def snapshot(self) -> dict[str, Any]:
        """Everything currently shown, for comparisons between renders."""
        return {
            "text": dict(self.text),
            "markup": dict(self.markup),
            "progress": {slot: (p.width, p.label) for slot, p in self.progress.items()},
            "rows": {slot: [list(row) for row in rows] for slot, rows in self.rows.items()},
            "charts": self.charts.configs(),
        }
