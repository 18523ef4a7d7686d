from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_DATA_URL = "samples/data"
DEFAULT_REPORT_TYPES_DIR = "configs/report_types"


@dataclass(slots=True)
class DashboardSettings:
    data_url: str
    report_types_dir: Path
    log_level: str


def load_env_profile(profile: str = "sandbox") -> None:
    env_path = Path(f".env.{profile}")
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def load_settings() -> DashboardSettings:
    load_env_profile(os.getenv("APP_ENV", "sandbox"))
    return DashboardSettings(
        data_url=os.getenv("DASHBOARD_DATA_URL", "").strip() or default_data_url(),
        report_types_dir=absolute_path(os.getenv("DASHBOARD_REPORT_TYPES_DIR", DEFAULT_REPORT_TYPES_DIR)),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )


def default_data_url() -> str:
    return str(absolute_path(DEFAULT_DATA_URL))


def absolute_path(path_value: str | Path) -> Path:
    path = Path(path_value).expanduser()
    if path.is_absolute():
        return path.resolve()
    return (PROJECT_ROOT / path).resolve()
