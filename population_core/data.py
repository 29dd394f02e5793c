from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from population_core.config import CSV_COLUMNS, DEFAULT_SEP, MIN_COLUMNS, YEAR_MAX, YEAR_MIN, get_settings


logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class PopulationDataError(Exception):
    """Base error for the population data pipeline."""


class DataLoadError(PopulationDataError):
    """The CSV resource could not be fetched or read."""


class CsvParseError(PopulationDataError, ValueError):
    """The CSV text is structurally unusable (no partial dataset)."""


@dataclass(frozen=True)
class PopulationRecord:
    year: int
    month: str
    state: str
    gender: str
    value: int
    unit: str = ""
    note: str = ""


@dataclass(frozen=True)
class ParseResult:
    records: Tuple[PopulationRecord, ...]
    warnings: Tuple[str, ...]


def parse_int(value: object) -> Optional[int]:
    """Parse the leading integer of a field: '2020abc' -> 2020, '12.7' -> 12, 'abc' -> None."""
    if value is None:
        return None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def _field(values: List[str], idx: int) -> str:
    return values[idx].strip() if idx < len(values) else ""


def parse_population_csv(text: str, *, sep: str = DEFAULT_SEP) -> ParseResult:
    """Parse raw CSV text into validated records.

    Malformed data lines are dropped and reported as warnings. Only structural
    problems (no data rows, too few header columns, nothing valid) raise.
    """
    lines = (text or "").strip().split("\n")
    if len(lines) < 2:
        raise CsvParseError("CSV file is empty or has no data rows")

    headers = lines[0].split(sep)
    if len(headers) < MIN_COLUMNS:
        raise CsvParseError("CSV file has insufficient columns")

    records: List[PopulationRecord] = []
    warnings: List[str] = []

    for line_no, raw_line in enumerate(lines[1:], start=2):
        line = raw_line.strip()
        if not line:
            continue

        values = line.split(sep)
        if len(values) < MIN_COLUMNS:
            warnings.append(f"Line {line_no}: Insufficient columns")
            continue

        year = parse_int(values[0])
        value = parse_int(values[4])
        if year is None or value is None:
            warnings.append(f"Line {line_no}: Invalid numeric values")
            continue

        if year < YEAR_MIN or year > YEAR_MAX:
            warnings.append(f"Line {line_no}: Year out of reasonable range")
            continue

        records.append(
            PopulationRecord(
                year=year,
                month=_field(values, 1),
                state=_field(values, 2),
                gender=_field(values, 3),
                value=value,
                unit=_field(values, 5),
                note=_field(values, 6),
            )
        )

    if warnings:
        logger.warning("CSV parsing warnings (%d): %s", len(warnings), warnings)

    if not records:
        raise CsvParseError("No valid data rows found in CSV")

    return ParseResult(records=tuple(records), warnings=tuple(warnings))


def round_half_up(value: float, ndigits: int = 0) -> float:
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_pct(part: int, total: int) -> str:
    """`part` as a percentage of `total` with one decimal; "0.0" for a zero total."""
    if total <= 0:
        return "0.0"
    return f"{round_half_up(part / total * 100, 1):.1f}"


def format_millions(value: int) -> str:
    return f"{round_half_up(value / 1_000_000, 1):.1f}"


def records_to_frame(records: Sequence[PopulationRecord]) -> pd.DataFrame:
    if not records:
        return pd.DataFrame(columns=list(CSV_COLUMNS))
    df = pd.DataFrame([asdict(r) for r in records], columns=list(CSV_COLUMNS))
    df["year"] = df["year"].astype("int64")
    df["value"] = df["value"].astype("int64")
    return df


# ---------------- Loaders ----------------
def _make_session(retries: int) -> requests.Session:
    sess = requests.Session()
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    sess.mount("https://", adapter)
    sess.mount("http://", adapter)
    return sess


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def fetch_population_csv(source: Optional[str] = None) -> str:
    """Return the raw CSV text from a URL or a local path."""
    settings = get_settings()
    source = source or settings.csv_source

    if is_url(source):
        try:
            with _make_session(settings.http_retries) as sess:
                resp = sess.get(source, timeout=settings.http_timeout)
        except requests.RequestException as exc:
            raise DataLoadError(f"Failed to fetch CSV: {exc}") from exc
        if not resp.ok:
            raise DataLoadError(f"Failed to fetch CSV: {resp.status_code} {resp.reason}")
        return resp.text

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DataLoadError(f"Failed to read CSV: {path} ({exc.strerror or exc})") from exc


def file_signature(path: Path) -> Tuple[str, float]:
    return (str(path.resolve()), path.stat().st_mtime)


@lru_cache(maxsize=4)
def _load_local_cached(file_sig: Tuple[str, float]) -> ParseResult:
    return parse_population_csv(fetch_population_csv(file_sig[0]))


def load_population_data(source: Optional[str] = None) -> Dict[str, object]:
    """Run fetch + parse and return the dataset context.

    Local files are cached on (path, mtime); URLs are fetched on every call.
    """
    source = source or get_settings().csv_source
    if is_url(source):
        result = parse_population_csv(fetch_population_csv(source))
    else:
        path = Path(source)
        if not path.is_file():
            raise DataLoadError(f"Failed to read CSV: {path} (file not found)")
        result = _load_local_cached(file_signature(path))

    logger.info("Loaded %d population records from %s (%d warnings)", len(result.records), source, len(result.warnings))
    return {
        "source": source,
        "records": result.records,
        "warnings": list(result.warnings),
    }
