from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from population_core.data import PopulationRecord


@dataclass(frozen=True)
class FilterSpecification:
    years: Tuple[int, ...] = field(default_factory=tuple)
    months: Tuple[str, ...] = field(default_factory=tuple)
    states: Tuple[str, ...] = field(default_factory=tuple)
    genders: Tuple[str, ...] = field(default_factory=tuple)

    def is_empty(self) -> bool:
        return not (self.years or self.months or self.states or self.genders)


def _as_int_list(values: Optional[Iterable[object]]) -> List[int]:
    if not values:
        return []
    out: List[int] = []
    for v in values:
        if v is None or isinstance(v, bool):
            continue
        try:
            n = int(v)
        except (TypeError, ValueError):
            continue
        if n not in out:
            out.append(n)
    return out


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return out


def normalize_filters(raw: Optional[dict]) -> FilterSpecification:
    raw = raw or {}
    return FilterSpecification(
        years=tuple(_as_int_list(raw.get("years"))),
        months=tuple(_as_str_list(raw.get("months"))),
        states=tuple(_as_str_list(raw.get("states"))),
        genders=tuple(_as_str_list(raw.get("genders"))),
    )


def filter_records(
    records: Sequence[PopulationRecord], spec: Optional[FilterSpecification]
) -> Sequence[PopulationRecord]:
    """Return the records matching every non-empty field of `spec`.

    An empty specification hands back `records` itself, not a copy.
    """
    if spec is None or spec.is_empty():
        return records

    years = set(spec.years)
    months = set(spec.months)
    states = set(spec.states)
    genders = set(spec.genders)

    def matches(r: PopulationRecord) -> bool:
        if years and r.year not in years:
            return False
        if months and r.month not in months:
            return False
        if states and r.state not in states:
            return False
        if genders and r.gender not in genders:
            return False
        return True

    return [r for r in records if matches(r)]
