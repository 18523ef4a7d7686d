from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from engagement_dashboard.errors import UnknownReportTypeError


class ReportType(str, Enum):
    GENERAL = "general"
    BLOME = "blome"

    @classmethod
    def parse(cls, value: ReportType | str) -> ReportType:
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise UnknownReportTypeError(
            f"Unknown report type '{value}'. Expected one of: {[m.value for m in cls]}"
        )

    @property
    def prefix(self) -> str:
        return self.value


class _SnapshotModel(BaseModel):
    """Base for records read from snapshot JSON (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # null in the source means "use the default"
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class BigNumbers(_SnapshotModel):
    total_users_with_access: int = 0
    total_active_users: int = 0
    activation_rate_percentage: float = 0.0
    global_completion_rate_percentage: float = 0.0
    global_accuracy_rate_percentage: float = 0.0
    average_active_streak_days: float = 0.0


class UserMetric(_SnapshotModel):
    model_config = ConfigDict(extra="allow")

    account_name: str = ""
    is_active: bool = False
    total_flashcards_studied: int = 0
    accuracy_rate_percentage: float = 0.0
    current_streak_days: int = 0
    study_days_count: int = 0


class UserRankings(_SnapshotModel):
    top_accuracy: list[UserMetric] = Field(default_factory=list)
    top_error: list[UserMetric] = Field(default_factory=list)


class ProductMetric(_SnapshotModel):
    model_config = ConfigDict(extra="allow")


class StreakUser(_SnapshotModel):
    model_config = ConfigDict(extra="allow")


class ReportSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    report_type: ReportType
    big_numbers: BigNumbers = Field(default_factory=BigNumbers)
    user_metrics: list[UserMetric] = Field(default_factory=list)
    product_metrics: list[ProductMetric] = Field(default_factory=list)
    user_rankings: UserRankings = Field(default_factory=UserRankings)
    streak_users: list[StreakUser] = Field(default_factory=list)
    timestamp: str


class UserRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserMetric
    completion_percentage: float
    day_value: int


class TopUser(UserRow):
    rank: int
    medal: str = ""


class ReportMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    report_type: ReportType
    total_users: int
    active_users: int
    inactive_users: int
    total_flashcards: int
    activation_rate: float
    completion_rate: float
    accuracy_rate: float
    total_studied: int
    average_per_active_user: float
    user_rows: list[UserRow] = Field(default_factory=list)
    top_users: list[TopUser] = Field(default_factory=list)
    accuracy_distribution: list[UserMetric] = Field(default_factory=list)
