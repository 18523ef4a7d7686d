"""Loads the per-report JSON snapshot files.

Each report is described by five files named ``{prefix}-{category}.json``
plus a shared ``metadata.json``. The base location is either an HTTP(S) URL
or a local directory. A file that cannot be fetched or decoded is replaced by
an empty default for its category, so one missing file never aborts a load.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator

import httpx
from pydantic import BaseModel, ValidationError

from engagement_dashboard.config import default_data_url
from engagement_dashboard.errors import DashboardLoadError
from engagement_dashboard.models import (
    BigNumbers,
    ProductMetric,
    ReportSnapshot,
    ReportType,
    StreakUser,
    UserMetric,
    UserRankings,
)

logger = logging.getLogger(__name__)

CATEGORIES = ("big-numbers", "user-metrics", "product-metrics", "user-rankings", "streak-users")
METADATA_FILE = "metadata.json"


class ResourceUnavailable(Exception):
    pass


def default_data(filename: str) -> Any:
    if "big-numbers" in filename:
        return {
            "totalUsersWithAccess": 0,
            "totalActiveUsers": 0,
            "activationRatePercentage": 0,
            "globalCompletionRatePercentage": 0,
            "globalAccuracyRatePercentage": 0,
            "averageActiveStreakDays": 0,
        }
    if "user-rankings" in filename:
        return {"topAccuracy": [], "topError": []}
    if "user-metrics" in filename or "streak-users" in filename or "product-metrics" in filename:
        return []
    return {}


class DataLoader:
    def __init__(self, base_url: str | Path | None = None, client: httpx.AsyncClient | None = None) -> None:
        self._base = str(base_url) if base_url is not None else default_data_url()
        self._client = client

    @property
    def base_url(self) -> str:
        return self._base

    @property
    def is_remote(self) -> bool:
        return self._base.startswith(("http://", "https://"))

    async def fetch_all_data(self, report_type: ReportType | str) -> ReportSnapshot:
        report_type = ReportType.parse(report_type)
        prefix = report_type.prefix
        logger.info("Loading %s report data from %s", report_type.value, self._base)
        try:
            async with self._session() as client:
                big_numbers, user_metrics, product_metrics, user_rankings, streak_users = await asyncio.gather(
                    *(self.load_json(f"{prefix}-{category}.json", client=client) for category in CATEGORIES)
                )
            snapshot = ReportSnapshot(
                report_type=report_type,
                big_numbers=_coerce_model(BigNumbers, big_numbers, f"{prefix}-big-numbers.json"),
                user_metrics=_coerce_rows(UserMetric, user_metrics, f"{prefix}-user-metrics.json"),
                product_metrics=_coerce_rows(ProductMetric, product_metrics, f"{prefix}-product-metrics.json"),
                user_rankings=_coerce_model(UserRankings, user_rankings, f"{prefix}-user-rankings.json"),
                streak_users=_coerce_rows(StreakUser, streak_users, f"{prefix}-streak-users.json"),
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
        except Exception as exc:
            logger.error("Error loading %s dashboard data: %s", report_type.value, exc)
            raise DashboardLoadError(f"Could not load {report_type.value} report data: {exc}") from exc

        logger.info(
            "Loaded %s report data (%d users)", report_type.value, len(snapshot.user_metrics)
        )
        return snapshot

    async def load_json(self, filename: str, client: httpx.AsyncClient | None = None) -> Any:
        try:
            if self.is_remote:
                if client is None:
                    async with self._session() as session:
                        return await self._get_remote(session, filename)
                return await self._get_remote(client, filename)
            return await asyncio.to_thread(self._read_local, filename)
        except ResourceUnavailable as exc:
            logger.warning("Failed to load %s: %s", filename, exc)
            return default_data(filename)

    async def get_last_update(self) -> datetime | None:
        metadata = await self.load_json(METADATA_FILE)
        if not isinstance(metadata, dict):
            return None
        raw = metadata.get("lastUpdated")
        if not raw:
            return None
        try:
            return _iso_to_utc(str(raw))
        except ValueError:
            logger.warning("Unparseable lastUpdated value in %s: %r", METADATA_FILE, raw)
            return None

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient | None]:
        if not self.is_remote:
            yield None
        elif self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                yield client

    async def _get_remote(self, client: httpx.AsyncClient, filename: str) -> Any:
        url = f"{self._base.rstrip('/')}/{filename}"
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise ResourceUnavailable(
                f"HTTP {exc.response.status_code}: {exc.response.reason_phrase}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ResourceUnavailable(str(exc) or type(exc).__name__) from exc

    def _read_local(self, filename: str) -> Any:
        path = Path(self._base) / filename
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ResourceUnavailable(str(exc)) from exc


def _coerce_model(model: type[BaseModel], payload: Any, filename: str) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Unexpected shape in %s, using defaults: %s", filename, exc.errors()[:1])
        return model.model_validate(default_data(filename))


def _coerce_rows(model: type[BaseModel], payload: Any, filename: str) -> list[Any]:
    if not isinstance(payload, list):
        logger.warning("Expected a list in %s, got %s", filename, type(payload).__name__)
        return []
    rows = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object row %d in %s", index, filename)
            continue
        row = _validate_row(model, item, filename, index)
        if row is not None:
            rows.append(row)
    return rows


def _validate_row(model: type[BaseModel], item: dict[str, Any], filename: str, index: int) -> Any:
    """Validate one row, resetting fields of the wrong type to their defaults."""
    try:
        return model.model_validate(item)
    except ValidationError as exc:
        cleaned = _without_invalid_fields(model, item, exc)
        logger.warning(
            "Resetting invalid fields %s in row %d of %s", sorted(set(item) - set(cleaned)), index, filename
        )
    try:
        return model.model_validate(cleaned)
    except ValidationError as exc:
        logger.warning("Skipping invalid row %d in %s: %s", index, filename, exc.errors()[:1])
        return None


def _without_invalid_fields(model: type[BaseModel], item: dict[str, Any], exc: ValidationError) -> dict[str, Any]:
    invalid = {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
    for name, info in model.model_fields.items():
        if name in invalid or info.alias in invalid:
            invalid.update({name, info.alias or name})
    return {key: value for key, value in item.items() if key not in invalid}


def _iso_to_utc(iso_text: str) -> datetime:
    normalized = iso_text.replace("Z", "+00:00")
    dt = datetime.fromisoformat(normalized)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
