from __future__ import annotations

import json
from typing import Any

from jinja2 import Template

from engagement_dashboard.models import ReportType
from engagement_dashboard.rendering.renderer import BRAND_COLORS, DashboardApp, format_datetime_pt_br
from engagement_dashboard.rendering.surface import PresentationSurface


_HTML_TEMPLATE = """
<!doctype html>
<html lang="pt-BR">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Dashboard de Engajamento</title>
    <style>
      :root {
        --primary: {{ colors.primary }};
        --secondary: {{ colors.secondary }};
        --dark: {{ colors.dark }};
        --success: {{ colors.success }};
        --error: {{ colors.error }};
        --bg: {{ colors.background }};
        --muted: #5b5570;
      }
      body { font-family: "Outfit", "Segoe UI", Tahoma, sans-serif; background: var(--bg); color: var(--dark); margin: 0; }
      main { max-width: 1120px; margin: 2rem auto; padding: 1rem; }
      header { display: flex; align-items: center; justify-content: space-between; gap: 1rem; margin-bottom: 1rem; flex-wrap: wrap; }
      h1, h2 { margin: 0 0 0.75rem; }
      section { background: #ffffff; border: 1px solid #e2dcef; border-radius: 16px; box-shadow: 0 12px 30px rgba(44,0,94,0.08); padding: 1rem 1.25rem; margin-bottom: 1rem; }
      .chip { display: inline-block; padding: 0.25rem 0.6rem; border-radius: 999px; background: #efe4fb; color: var(--primary); font-size: 0.82rem; }
      .switch button { border: 1px solid var(--primary); background: #fff; color: var(--primary); border-radius: 999px; padding: 0.4rem 1rem; font-weight: 600; cursor: pointer; }
      .switch button.active { background: var(--primary); color: #fff; }
      .report { display: none; }
      .report.active { display: block; }
      .stats-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(190px, 1fr)); gap: 0.7rem; }
      .stat-card { border: 1px solid #e2dcef; border-radius: 12px; padding: 0.75rem; background: linear-gradient(135deg, #fbf8ff, #f3ecfd); }
      .stat-label { color: var(--muted); font-size: 0.78rem; text-transform: uppercase; letter-spacing: 0.04em; }
      .stat-value { font-size: 1.5rem; font-weight: 700; margin-top: 0.2rem; color: var(--primary); }
      .progress { background: #ece6f5; border-radius: 999px; overflow: hidden; height: 1.6rem; margin: 0.5rem 0; }
      .progress-fill { background: linear-gradient(90deg, var(--primary), var(--secondary)); color: #fff; height: 100%; display: flex; align-items: center; justify-content: flex-end; padding-right: 0.6rem; font-weight: 600; font-size: 0.85rem; box-sizing: border-box; }
      table { width: 100%; border-collapse: collapse; font-size: 0.92rem; }
      th, td { border-bottom: 1px solid #e2dcef; padding: 0.45rem; text-align: left; }
      .active-badge { background: #e7f6e8; color: var(--success); border-radius: 999px; padding: 0.1rem 0.5rem; font-weight: 600; }
      .inactive-badge { background: #ffeaea; color: var(--error); border-radius: 999px; padding: 0.1rem 0.5rem; font-weight: 600; }
      .chart-grid { display: grid; grid-template-columns: 1fr 1fr; gap: 0.8rem; }
      .chart-wrap { border: 1px solid #e2dcef; border-radius: 12px; padding: 0.6rem; height: 340px; }
      .chart-wrap.wide { grid-column: 1 / -1; }
      .notice { background: #ffeaea; color: #8a1c1c; border: 1px solid #ffc9c9; }
      .muted { color: var(--muted); }
      #loadingOverlay { position: fixed; inset: 0; background: rgba(237,241,245,0.85); display: flex; align-items: center; justify-content: center; font-weight: 600; }
      #loadingOverlay.hidden { display: none; }
      @media (max-width: 900px) { .chart-grid { grid-template-columns: 1fr; } }
    </style>
  </head>
  <body>
    <div id="loadingOverlay" class="{% if not loading %}hidden{% endif %}">Carregando dados...</div>
    <main>
      <header>
        <div>
          <h1>Dashboard de Engajamento</h1>
          {% if last_update %}<span class="chip">Atualizado em {{ last_update }}</span>{% endif %}
        </div>
        <nav class="switch">
          {% for panel in panels %}
            <button type="button" data-report="{{ panel.suffix }}" class="{% if panel.is_current %}active{% endif %}">{{ panel.title }}</button>
          {% endfor %}
        </nav>
      </header>

      {% for message in notifications %}
      <section class="notice" role="alert">{{ message }}</section>
      {% endfor %}

      {% for panel in panels %}
      <div class="report {% if panel.is_current %}active{% endif %}" id="report-{{ panel.suffix }}" data-charts="{{ panel.chart_slots | join(',') }}">
        <section>
          <h2>{{ panel.title }}</h2>
          <p class="muted">{{ text.get('report-date-' ~ panel.suffix, '') }}</p>
          <div class="stats-grid">
            <div class="stat-card"><div class="stat-label">Usuários com acesso</div><div class="stat-value" id="total-users-{{ panel.suffix }}">{{ text.get('total-users-' ~ panel.suffix, '') }}</div></div>
            <div class="stat-card"><div class="stat-label">Usuários ativos</div><div class="stat-value" id="active-users-{{ panel.suffix }}">{{ text.get('active-users-' ~ panel.suffix, '') }}</div></div>
            <div class="stat-card"><div class="stat-label">Usuários inativos</div><div class="stat-value" id="inactive-users-{{ panel.suffix }}">{{ text.get('inactive-users-' ~ panel.suffix, '') }}</div></div>
            <div class="stat-card"><div class="stat-label">Total de flashcards</div><div class="stat-value" id="total-flashcards-{{ panel.suffix }}">{{ text.get('total-flashcards-' ~ panel.suffix, '') }}</div></div>
          </div>
        </section>

        <section>
          <h2>Taxa de Ativação</h2>
          {% set activation = progress.get('activation-rate-' ~ panel.suffix) %}
          <div class="progress"><div class="progress-fill" id="activation-rate-{{ panel.suffix }}" style="width: {{ activation.width if activation else 0 }}%">{{ activation.label if activation else '' }}</div></div>
          <p id="activation-text-{{ panel.suffix }}">{{ markup.get('activation-text-' ~ panel.suffix, '') | safe }}</p>
        </section>

        <section>
          <h2>Engajamento</h2>
          <div class="stats-grid">
            <div class="stat-card"><div class="stat-label">Flashcards estudados</div><div class="stat-value" id="total-studied-{{ panel.suffix }}">{{ text.get('total-studied-' ~ panel.suffix, '') }}</div></div>
            <div class="stat-card"><div class="stat-label">Taxa de acerto</div><div class="stat-value" id="accuracy-rate-{{ panel.suffix }}">{{ text.get('accuracy-rate-' ~ panel.suffix, '') }}</div></div>
          </div>
          {% set completion = progress.get('completion-rate-' ~ panel.suffix) %}
          <div class="progress"><div class="progress-fill" id="completion-rate-{{ panel.suffix }}" style="width: {{ completion.width if completion else 0 }}%">{{ completion.label if completion else '' }}</div></div>
          <p id="completion-text-{{ panel.suffix }}">{{ markup.get('completion-text-' ~ panel.suffix, '') | safe }}</p>
        </section>

        <section>
          <h2>Gráficos</h2>
          <div class="chart-grid">
            <div class="chart-wrap"><canvas id="engagementChart{{ panel.chart_index }}"></canvas></div>
            <div class="chart-wrap"><canvas id="topUsersChart{{ panel.chart_index }}"></canvas></div>
            <div class="chart-wrap wide"><canvas id="accuracyChart{{ panel.chart_index }}"></canvas></div>
          </div>
        </section>

        <section>
          <h2>Top 5 Usuários</h2>
          <table>
            <thead><tr><th>Posição</th><th>Usuário</th><th>Flashcards</th><th>Conclusão</th><th>Acerto</th><th>{{ panel.day_header }}</th></tr></thead>
            <tbody id="topUsersTableBody{{ panel.chart_index }}">
              {% for row in rows.get('topUsersTableBody' ~ panel.chart_index, []) %}
              <tr>{% for cell in row %}<td>{{ cell | safe }}</td>{% endfor %}</tr>
              {% endfor %}
            </tbody>
          </table>
        </section>

        <section>
          <h2>Usuários</h2>
          <table>
            <thead><tr><th>Usuário</th><th>Status</th><th>Flashcards</th><th>Conclusão</th><th>Acerto</th><th>{{ panel.day_header }}</th></tr></thead>
            <tbody id="userTableBody{{ panel.chart_index }}">
              {% for row in rows.get('userTableBody' ~ panel.chart_index, []) %}
              <tr>{% for cell in row %}<td>{{ cell | safe }}</td>{% endfor %}</tr>
              {% endfor %}
            </tbody>
          </table>
        </section>

        <p class="muted" id="footer-date-{{ panel.suffix }}">{{ text.get('footer-date-' ~ panel.suffix, '') }}</p>
      </div>
      {% endfor %}
    </main>
    <script src="https://cdn.jsdelivr.net/npm/chart.js@4.4.1/dist/chart.umd.min.js"></script>
    <script>
      (function() {
        const configs = {{ chart_configs_json | safe }};
        const charts = {};

        const createChart = (id) => {
          const el = document.getElementById(id);
          const cfg = configs[id];
          if (!el || !cfg || !window.Chart) return;
          if (charts[id]) charts[id].destroy();
          const y = cfg.options && cfg.options.scales && cfg.options.scales.y;
          if (y && y.percentTicks) {
            y.ticks = Object.assign({}, y.ticks, { callback: (value) => value + "%" });
          }
          charts[id] = new Chart(el.getContext("2d"), cfg);
        };

        const showReport = (suffix) => {
          document.querySelectorAll(".report").forEach((panel) => {
            panel.classList.toggle("active", panel.id === "report-" + suffix);
          });
          document.querySelectorAll(".switch button").forEach((btn) => {
            btn.classList.toggle("active", btn.dataset.report === suffix);
          });
          const panel = document.getElementById("report-" + suffix);
          if (!panel) return;
          panel.dataset.charts.split(",").filter(Boolean).forEach(createChart);
        };

        document.querySelectorAll(".switch button").forEach((btn) => {
          btn.addEventListener("click", () => showReport(btn.dataset.report));
        });
        showReport({{ current_report_json | safe }});
      })();
    </script>
  </body>
</html>
""".strip()

_DAY_HEADERS = {
    "current_streak_days": "Sequência atual",
    "study_days_count": "Dias de estudo",
}


def render_html(app: DashboardApp, current_report: ReportType | str | None = None) -> str:
    """Render every report panel, opening on ``current_report`` (default: the app's current report)."""
    shown = ReportType.parse(current_report) if current_report is not None else app.state.current_report
    template = Template(_HTML_TEMPLATE, autoescape=True)
    surface = app.surface
    panels = _build_panels(app, shown)
    last_update = format_datetime_pt_br(app.state.last_update) if app.state.last_update else ""
    return template.render(
        colors=BRAND_COLORS,
        loading=surface.loading,
        last_update=last_update,
        notifications=surface.notifications,
        panels=panels,
        text=surface.text,
        markup=surface.markup,
        progress=surface.progress,
        rows=surface.rows,
        chart_configs_json=_script_json(surface.charts.configs()),
        current_report_json=_script_json(shown.value),
    )


def render_summary_json(app: DashboardApp) -> dict[str, Any]:
    """Derived numbers per report, for the JSON side output and the web API."""
    reports: dict[str, Any] = {}
    for report_type in app.state.snapshots:
        metrics = app.metrics_for(report_type)
        if metrics is not None:
            reports[report_type.value] = metrics.model_dump(mode="json")
    return {
        "current_report": app.state.current_report.value,
        "last_update": app.state.last_update.isoformat() if app.state.last_update else None,
        "error": app.state.error,
        "reports": reports,
    }


def _build_panels(app: DashboardApp, shown: ReportType) -> list[dict[str, Any]]:
    panels = []
    for definition in app.registry.all():
        index = definition.chart_index
        panels.append(
            {
                "suffix": definition.suffix,
                "title": definition.title,
                "chart_index": index,
                "is_current": definition.report_type is shown,
                "day_header": _DAY_HEADERS.get(definition.day_metric, "Dias"),
                "chart_slots": [
                    slot
                    for slot in (f"engagementChart{index}", f"topUsersChart{index}", f"accuracyChart{index}")
                    if _has_chart(app.surface, slot)
                ],
            }
        )
    return panels


def _has_chart(surface: PresentationSurface, slot: str) -> bool:
    return surface.charts.get(slot) is not None


def _script_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False).replace("</", "<\\/")
