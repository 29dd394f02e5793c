"""
Configuration constants for the population projection dashboard.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Tuple

from dotenv import load_dotenv

# ======================================================
#  DATA SOURCE
# ======================================================
DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DEFAULT_CSV_SOURCE: str = str(DATA_DIR / "population_projection.csv")
DEFAULT_SEP: str = ","

CSV_COLUMNS: Tuple[str, ...] = ("year", "month", "state", "gender", "value", "unit", "note")
MIN_COLUMNS: int = 5

YEAR_MIN: int = 1900
YEAR_MAX: int = 2100

# ======================================================
#  AGGREGATION
# ======================================================
TOTAL_GENDER: str = "Total"
MALE: str = "Male"
FEMALE: str = "Female"

MONTH_ORDER: Tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

TOP_STATES_LIMIT: int = 10
TOP_GAPS_CHART_LIMIT: int = 10


@dataclass(frozen=True)
class Settings:
    csv_source: str = DEFAULT_CSV_SOURCE
    http_timeout: float = 30.0
    http_retries: int = 3
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])
    log_level: str = "INFO"
    api_host: str = "127.0.0.1"
    api_port: int = 8000


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from the environment (and a `.env` file if present)."""
    load_dotenv()
    defaults = Settings()
    origins = os.getenv("POPULATION_CORS_ORIGINS")
    return Settings(
        csv_source=os.getenv("POPULATION_CSV_SOURCE") or defaults.csv_source,
        http_timeout=_env_float("POPULATION_HTTP_TIMEOUT", defaults.http_timeout),
        http_retries=max(0, _env_int("POPULATION_HTTP_RETRIES", defaults.http_retries)),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else defaults.cors_origins,
        log_level=(os.getenv("POPULATION_LOG_LEVEL") or defaults.log_level).upper(),
        api_host=os.getenv("POPULATION_API_HOST") or defaults.api_host,
        api_port=_env_int("POPULATION_API_PORT", defaults.api_port),
    )
