from __future__ import annotations

from jsonschema import validate

REPORT_TYPE_SCHEMA: dict = {
    "type": "object",
    "required": [
        "report_type",
        "title",
        "total_flashcards",
        "day_metric",
        "chart_index",
    ],
    "properties": {
        "report_type": {"type": "string"},
        "title": {"type": "string"},
        "deck_id": {"type": "string"},
        "total_flashcards": {"type": "integer", "exclusiveMinimum": 0},
        "day_metric": {"enum": ["current_streak_days", "study_days_count"]},
        "audience_label": {"type": "string"},
        "scope_label": {"type": "string"},
        "chart_index": {"type": "integer", "minimum": 1},
    },
}


def validate_report_type_config(payload: dict) -> None:
    validate(instance=payload, schema=REPORT_TYPE_SCHEMA)
