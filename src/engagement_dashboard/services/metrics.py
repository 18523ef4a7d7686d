from __future__ import annotations

from typing import Iterable, Sequence

from engagement_dashboard.models import (
    BigNumbers,
    ReportMetrics,
    ReportSnapshot,
    TopUser,
    UserMetric,
    UserRow,
)
from engagement_dashboard.report_types.registry import ReportTypeDefinition

TOP_USERS_LIMIT = 5
MIN_PROGRESS_WIDTH = 10.0
_MEDALS = ("🥇", "🥈", "🥉")


def compute_metrics(definition: ReportTypeDefinition, snapshot: ReportSnapshot) -> ReportMetrics:
    big_numbers = snapshot.big_numbers
    users = snapshot.user_metrics
    studied = total_studied(users)
    return ReportMetrics(
        report_type=snapshot.report_type,
        total_users=big_numbers.total_users_with_access,
        active_users=big_numbers.total_active_users,
        inactive_users=inactive_users(big_numbers),
        total_flashcards=definition.total_flashcards,
        activation_rate=big_numbers.activation_rate_percentage,
        completion_rate=big_numbers.global_completion_rate_percentage,
        accuracy_rate=big_numbers.global_accuracy_rate_percentage,
        total_studied=studied,
        average_per_active_user=average_per_active_user(studied, big_numbers.total_active_users),
        user_rows=[_user_row(user, definition) for user in users],
        top_users=[
            TopUser(
                rank=rank,
                medal=medal_for_rank(rank),
                user=user,
                completion_percentage=completion_percentage(user.total_flashcards_studied, definition.total_flashcards),
                day_value=day_metric_value(user, definition),
            )
            for rank, user in enumerate(top_users(users), start=1)
        ],
        accuracy_distribution=accuracy_distribution(users),
    )


def inactive_users(big_numbers: BigNumbers) -> int:
    return big_numbers.total_users_with_access - big_numbers.total_active_users


def total_studied(users: Iterable[UserMetric]) -> int:
    return sum(user.total_flashcards_studied for user in users)


def average_per_active_user(studied: int, active_users: int) -> float:
    if active_users <= 0:
        return 0.0
    return studied / active_users


def completion_percentage(studied: int, total_flashcards: int) -> float:
    if total_flashcards <= 0:
        return 0.0
    return studied / total_flashcards * 100


def top_users(users: Sequence[UserMetric], limit: int = TOP_USERS_LIMIT) -> list[UserMetric]:
    """Most active learners by volume; ties keep their source order."""
    eligible = [user for user in users if user.is_active and user.total_flashcards_studied > 0]
    return sorted(eligible, key=lambda user: user.total_flashcards_studied, reverse=True)[:limit]


def accuracy_distribution(users: Iterable[UserMetric]) -> list[UserMetric]:
    return [user for user in users if user.is_active and user.accuracy_rate_percentage > 0]


def medal_for_rank(rank: int) -> str:
    if 1 <= rank <= len(_MEDALS):
        return _MEDALS[rank - 1]
    return ""


def day_metric_value(user: UserMetric, definition: ReportTypeDefinition) -> int:
    # streaks and study-day counts are different metrics; each report picks its own
    if definition.day_metric == "study_days_count":
        return user.study_days_count
    return user.current_streak_days


def format_days(days: int) -> str:
    return f"{days} dia{'s' if days != 1 else ''}"


def format_percent(value: float) -> str:
    return f"{value:.2f}%"


def progress_width(rate: float) -> float:
    return max(rate, MIN_PROGRESS_WIDTH)


def first_name(account_name: str) -> str:
    parts = account_name.split()
    return parts[0] if parts else ""


def _user_row(user: UserMetric, definition: ReportTypeDefinition) -> UserRow:
    return UserRow(
        user=user,
        completion_percentage=completion_percentage(user.total_flashcards_studied, definition.total_flashcards),
        day_value=day_metric_value(user, definition),
    )
