from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from engagement_dashboard.models import ReportMetrics, ReportSnapshot, ReportType
from engagement_dashboard.rendering.surface import PresentationSurface, dashboard_slots
from engagement_dashboard.report_types.registry import ReportTypeDefinition, ReportTypeRegistry
from engagement_dashboard.services.loader import DataLoader
from engagement_dashboard.services.metrics import (
    compute_metrics,
    first_name,
    format_days,
    format_percent,
    progress_width,
)

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Falha ao carregar os dados do dashboard. Por favor, tente novamente mais tarde."
CHART_FONT = "Outfit"
BRAND_COLORS = {
    "primary": "#6001AE",
    "secondary": "#8B3FD9",
    "dark": "#2C005E",
    "success": "#4CAF50",
    "error": "#FF5252",
    "background": "#EDF1F5",
}
_PT_BR_MONTHS = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)


@dataclass
class AppState:
    current_report: ReportType = ReportType.GENERAL
    snapshots: dict[ReportType, ReportSnapshot] = field(default_factory=dict)
    last_update: datetime | None = None
    error: str | None = None


class DashboardApp:
    def __init__(
        self,
        loader: DataLoader,
        registry: ReportTypeRegistry,
        surface: PresentationSurface | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.loader = loader
        self.registry = registry
        self.state = AppState()
        self.surface = surface or PresentationSurface.with_slots(
            dashboard_slots({d.report_type: d.chart_index for d in registry.all()})
        )
        self._clock = clock

    async def init(self) -> bool:
        self.surface.show_loading()
        try:
            logger.info("Initializing dashboard...")
            general = await self.loader.fetch_all_data(ReportType.GENERAL)
            blome = await self.loader.fetch_all_data(ReportType.BLOME)
            self.state.snapshots[ReportType.GENERAL] = general
            self.state.snapshots[ReportType.BLOME] = blome

            self.state.last_update = await self.loader.get_last_update()
            if self.state.last_update:
                logger.info("Data last updated: %s", format_datetime_pt_br(self.state.last_update))

            self.render_report(ReportType.GENERAL)
            self.surface.hide_loading()
            logger.info("Dashboard loaded successfully")
            return True
        except Exception:  # noqa: BLE001
            logger.exception("Error loading dashboard")
            self.surface.hide_loading()
            self.state.error = LOAD_FAILED_MESSAGE
            self.surface.notify(LOAD_FAILED_MESSAGE)
            return False

    def switch_report(self, report_type: ReportType | str) -> None:
        report_type = ReportType.parse(report_type)
        self.state.current_report = report_type
        self.render_report(report_type)

    def metrics_for(self, report_type: ReportType | str) -> ReportMetrics | None:
        report_type = ReportType.parse(report_type)
        snapshot = self.state.snapshots.get(report_type)
        if snapshot is None:
            return None
        return compute_metrics(self.registry.get(report_type), snapshot)

    def render_report(self, report_type: ReportType | str) -> None:
        report_type = ReportType.parse(report_type)
        metrics = self.metrics_for(report_type)
        if metrics is None:
            logger.error("No data available for report: %s", report_type.value)
            return

        definition = self.registry.get(report_type)
        self.update_big_numbers(metrics, definition)
        self.update_user_table(metrics, definition)
        self.update_top_users_table(metrics, definition)
        self.update_charts(metrics, definition)

    def update_big_numbers(self, metrics: ReportMetrics, definition: ReportTypeDefinition) -> None:
        suffix = definition.suffix
        surface = self.surface

        surface.set_text(f"total-users-{suffix}", metrics.total_users)
        surface.set_text(f"active-users-{suffix}", metrics.active_users)
        surface.set_text(f"inactive-users-{suffix}", metrics.inactive_users)
        surface.set_text(f"total-flashcards-{suffix}", metrics.total_flashcards)

        surface.set_progress(
            f"activation-rate-{suffix}",
            width=progress_width(metrics.activation_rate),
            label=format_percent(metrics.activation_rate),
        )
        surface.set_markup(
            f"activation-text-{suffix}",
            f"<strong>{metrics.active_users} de {metrics.total_users} usuários</strong> "
            f"estão ativamente utilizando {html.escape(definition.audience_label)}.",
        )

        surface.set_text(f"total-studied-{suffix}", metrics.total_studied)
        surface.set_text(f"accuracy-rate-{suffix}", format_percent(metrics.accuracy_rate))

        surface.set_progress(
            f"completion-rate-{suffix}",
            width=progress_width(metrics.completion_rate),
            label=format_percent(metrics.completion_rate),
        )
        surface.set_markup(
            f"completion-text-{suffix}",
            f"<strong>Média de {metrics.average_per_active_user:.2f} flashcards por usuário ativo</strong> "
            f"({format_percent(metrics.completion_rate)} do {html.escape(definition.scope_label)} "
            f"de {metrics.total_flashcards} flashcards)",
        )

        today = self._clock()
        surface.set_text(f"report-date-{suffix}", format_month_year(today))
        surface.set_text(f"footer-date-{suffix}", f"Data: {format_long_date(today)}")

    def update_user_table(self, metrics: ReportMetrics, definition: ReportTypeDefinition) -> None:
        rows = []
        for row in metrics.user_rows:
            user = row.user
            badge = (
                '<span class="active-badge">Ativo</span>'
                if user.is_active
                else '<span class="inactive-badge">Inativo</span>'
            )
            rows.append(
                [
                    html.escape(user.account_name),
                    badge,
                    str(user.total_flashcards_studied),
                    format_percent(row.completion_percentage),
                    format_percent(user.accuracy_rate_percentage),
                    format_days(row.day_value),
                ]
            )
        self.surface.set_rows(f"userTableBody{definition.chart_index}", rows)

    def update_top_users_table(self, metrics: ReportMetrics, definition: ReportTypeDefinition) -> None:
        rows = []
        for top in metrics.top_users:
            rows.append(
                [
                    f"{top.medal} {top.rank}º".strip(),
                    html.escape(top.user.account_name),
                    str(top.user.total_flashcards_studied),
                    f"<strong>{format_percent(top.completion_percentage)}</strong>",
                    format_percent(top.user.accuracy_rate_percentage),
                    format_days(top.day_value),
                ]
            )
        self.surface.set_rows(f"topUsersTableBody{definition.chart_index}", rows)

    def update_charts(self, metrics: ReportMetrics, definition: ReportTypeDefinition) -> None:
        index = definition.chart_index
        self.surface.draw_chart(f"engagementChart{index}", engagement_chart_config(metrics))
        self.surface.draw_chart(f"topUsersChart{index}", top_users_chart_config(metrics))
        self.surface.draw_chart(f"accuracyChart{index}", accuracy_chart_config(metrics))


def _title(text: str) -> dict[str, Any]:
    return {
        "display": True,
        "text": text,
        "font": {"size": 18, "family": CHART_FONT, "weight": "600"},
        "padding": 20,
    }


def engagement_chart_config(metrics: ReportMetrics) -> dict[str, Any]:
    return {
        "type": "doughnut",
        "data": {
            "labels": ["Usuários Ativos", "Usuários Inativos"],
            "datasets": [
                {
                    "data": [metrics.active_users, metrics.inactive_users],
                    "backgroundColor": [BRAND_COLORS["success"], BRAND_COLORS["error"]],
                    "borderWidth": 2,
                    "borderColor": "#fff",
                }
            ],
        },
        "options": {
            "responsive": True,
            "maintainAspectRatio": False,
            "plugins": {
                "legend": {
                    "position": "bottom",
                    "labels": {"font": {"size": 14, "family": CHART_FONT}, "padding": 20},
                },
                "title": _title("Distribuição de Usuários Ativos vs Inativos"),
            },
        },
    }


def top_users_chart_config(metrics: ReportMetrics) -> dict[str, Any]:
    return {
        "type": "bar",
        "data": {
            "labels": [first_name(top.user.account_name) for top in metrics.top_users],
            "datasets": [
                {
                    "label": "Flashcards Estudados",
                    "data": [top.user.total_flashcards_studied for top in metrics.top_users],
                    "backgroundColor": BRAND_COLORS["primary"],
                    "borderRadius": 8,
                }
            ],
        },
        "options": {
            "responsive": True,
            "maintainAspectRatio": False,
            "plugins": {
                "legend": {"display": False},
                "title": _title("Top 5 Usuários por Flashcards Estudados"),
            },
            "scales": {
                "y": {"beginAtZero": True, "ticks": {"font": {"family": CHART_FONT}}},
                "x": {"ticks": {"font": {"family": CHART_FONT}}},
            },
        },
    }


def accuracy_chart_config(metrics: ReportMetrics) -> dict[str, Any]:
    users = metrics.accuracy_distribution
    return {
        "type": "bar",
        "data": {
            "labels": [first_name(user.account_name) for user in users],
            "datasets": [
                {
                    "label": "Taxa de Acerto (%)",
                    "data": [user.accuracy_rate_percentage for user in users],
                    "backgroundColor": BRAND_COLORS["secondary"],
                    "borderRadius": 8,
                }
            ],
        },
        "options": {
            "responsive": True,
            "maintainAspectRatio": False,
            "plugins": {
                "legend": {"display": False},
                "title": _title("Taxa de Acerto por Usuário Ativo"),
            },
            "scales": {
                # percentTicks is picked up by the page script to suffix tick labels
                "y": {"beginAtZero": True, "max": 100, "percentTicks": True, "ticks": {"font": {"family": CHART_FONT}}},
                "x": {"ticks": {"font": {"family": CHART_FONT}}},
            },
        },
    }


def format_month_year(value: datetime) -> str:
    return f"{_PT_BR_MONTHS[value.month - 1]} de {value.year}"


def format_long_date(value: datetime) -> str:
    return f"{value.day} de {_PT_BR_MONTHS[value.month - 1]} de {value.year}"


def format_datetime_pt_br(value: datetime) -> str:
    return value.astimezone().strftime("%d/%m/%Y, %H:%M:%S")
