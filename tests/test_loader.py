import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest

from engagement_dashboard.errors import UnknownReportTypeError
from engagement_dashboard.models import BigNumbers, ReportType
from engagement_dashboard.services.loader import CATEGORIES, DataLoader, default_data

BASE_URL = "http://dashboard.test/data"


def _fetch(files: dict[str, Any], report_type: ReportType | str, requested: list[str] | None = None):
    """Run fetch_all_data against an in-memory HTTP server.

    Values in ``files`` are JSON payloads, an int status code, or an exception to raise.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        if requested is not None:
            requested.append(request.url.path)
        payload = files.get(name)
        if payload is None:
            return httpx.Response(404)
        if isinstance(payload, int):
            return httpx.Response(payload)
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, bytes):
            return httpx.Response(200, content=payload)
        return httpx.Response(200, json=payload)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await DataLoader(BASE_URL, client=client).fetch_all_data(report_type)

    return asyncio.run(scenario())


def test_fetch_all_data_requests_five_prefixed_files() -> None:
    requested: list[str] = []
    _fetch({}, ReportType.BLOME, requested)
    assert sorted(requested) == [
        "/data/blome-big-numbers.json",
        "/data/blome-product-metrics.json",
        "/data/blome-streak-users.json",
        "/data/blome-user-metrics.json",
        "/data/blome-user-rankings.json",
    ]


def test_fetch_all_data_requests_files_concurrently() -> None:
    in_flight = 0
    peak = 0

    async def scenario():
        nonlocal in_flight, peak
        all_started = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            if in_flight == len(CATEGORIES):
                all_started.set()
            try:
                # released only once every category request is open
                await asyncio.wait_for(all_started.wait(), timeout=2)
            finally:
                in_flight -= 1
            return httpx.Response(200, json=[])

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await DataLoader(BASE_URL, client=client).fetch_all_data(ReportType.GENERAL)

    snapshot = asyncio.run(scenario())
    assert peak == len(CATEGORIES) == 5
    assert snapshot.user_metrics == []


def test_fetch_all_data_defaults_when_every_file_fails() -> None:
    snapshot = _fetch({}, "general")
    assert snapshot.report_type is ReportType.GENERAL
    assert snapshot.big_numbers == BigNumbers()
    assert snapshot.big_numbers.total_users_with_access == 0
    assert snapshot.user_metrics == []
    assert snapshot.product_metrics == []
    assert snapshot.streak_users == []
    assert snapshot.user_rankings.top_accuracy == []
    assert snapshot.user_rankings.top_error == []
    assert datetime.fromisoformat(snapshot.timestamp).tzinfo is not None


def test_fetch_all_data_substitutes_only_failed_categories() -> None:
    snapshot = _fetch(
        {
            "general-big-numbers.json": 500,
            "general-user-metrics.json": [
                {"accountName": "Ana Souza", "isActive": True, "totalFlashcardsStudied": 10}
            ],
            "general-user-rankings.json": httpx.ConnectError("connection refused"),
            "general-streak-users.json": b"{not json",
        },
        ReportType.GENERAL,
    )
    assert snapshot.big_numbers == BigNumbers()
    assert len(snapshot.user_metrics) == 1
    user = snapshot.user_metrics[0]
    assert user.account_name == "Ana Souza"
    assert user.total_flashcards_studied == 10
    assert user.accuracy_rate_percentage == 0.0
    assert user.current_streak_days == 0
    assert snapshot.user_rankings.top_accuracy == []
    assert snapshot.streak_users == []


def test_fetch_all_data_coerces_wrong_shapes_and_nulls() -> None:
    snapshot = _fetch(
        {
            "blome-big-numbers.json": [1, 2, 3],
            "blome-user-metrics.json": [
                "not-a-row",
                {"accountName": "Bruno Lima", "isActive": True, "totalFlashcardsStudied": None, "studyDaysCount": 4},
            ],
            "blome-product-metrics.json": {"unexpected": "object"},
        },
        ReportType.BLOME,
    )
    assert snapshot.big_numbers == BigNumbers()
    assert [u.account_name for u in snapshot.user_metrics] == ["Bruno Lima"]
    assert snapshot.user_metrics[0].total_flashcards_studied == 0
    assert snapshot.user_metrics[0].study_days_count == 4
    assert snapshot.product_metrics == []


def test_fetch_all_data_keeps_rows_with_mistyped_fields() -> None:
    snapshot = _fetch(
        {
            "general-user-metrics.json": [
                {
                    "accountName": "Carla Mendes",
                    "isActive": True,
                    "totalFlashcardsStudied": 12.5,
                    "accuracyRatePercentage": "high",
                    "currentStreakDays": 3,
                },
                {"accountName": "Diego Rocha", "isActive": True, "totalFlashcardsStudied": 40},
            ],
        },
        ReportType.GENERAL,
    )
    assert [u.account_name for u in snapshot.user_metrics] == ["Carla Mendes", "Diego Rocha"]
    carla = snapshot.user_metrics[0]
    assert carla.is_active is True
    assert carla.total_flashcards_studied == 0
    assert carla.accuracy_rate_percentage == 0.0
    assert carla.current_streak_days == 3
    assert snapshot.user_metrics[1].total_flashcards_studied == 40


def test_fetch_all_data_rejects_unknown_report_type() -> None:
    with pytest.raises(UnknownReportTypeError):
        _fetch({}, "premium")


def test_fetch_all_data_from_local_directory(sample_data: Path) -> None:
    snapshot = asyncio.run(DataLoader(sample_data).fetch_all_data(ReportType.GENERAL))
    assert snapshot.big_numbers.total_users_with_access == 8
    assert snapshot.big_numbers.total_active_users == 6
    assert len(snapshot.user_metrics) == 8
    assert snapshot.user_rankings.top_accuracy[0].account_name == "Diego Rocha"
    assert snapshot.product_metrics[0].model_extra["productName"] == "NathFarma"


def test_fetch_all_data_from_missing_directory(tmp_path: Path) -> None:
    snapshot = asyncio.run(DataLoader(tmp_path / "nowhere").fetch_all_data(ReportType.BLOME))
    assert snapshot.big_numbers == BigNumbers()
    assert snapshot.user_metrics == []


def test_default_data_by_category() -> None:
    assert default_data("general-big-numbers.json")["totalActiveUsers"] == 0
    assert default_data("blome-user-metrics.json") == []
    assert default_data("blome-streak-users.json") == []
    assert default_data("general-product-metrics.json") == []
    assert default_data("general-user-rankings.json") == {"topAccuracy": [], "topError": []}
    assert default_data("metadata.json") == {}


def test_get_last_update_reads_metadata(sample_data: Path) -> None:
    last_update = asyncio.run(DataLoader(sample_data).get_last_update())
    assert last_update == datetime(2026, 10, 18, 6, 0, tzinfo=timezone.utc)


def test_get_last_update_absent_on_failure(tmp_path: Path) -> None:
    assert asyncio.run(DataLoader(tmp_path).get_last_update()) is None
    (tmp_path / "metadata.json").write_text(json.dumps({"lastUpdated": "yesterday"}), encoding="utf-8")
    assert asyncio.run(DataLoader(tmp_path).get_last_update()) is None
