from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from engagement_dashboard.report_types.registry import ReportTypeRegistry

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SAMPLE_DATA = PROJECT_ROOT / "samples" / "data"


@pytest.fixture
def sample_data() -> Path:
    return SAMPLE_DATA


@pytest.fixture
def registry() -> ReportTypeRegistry:
    return ReportTypeRegistry(config_dir=PROJECT_ROOT / "configs" / "report_types")


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2026, 10, 19, 9, 30)
