from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from population_core.config import FEMALE, MALE, MONTH_ORDER, TOP_STATES_LIMIT, TOTAL_GENDER
from population_core.data import PopulationRecord, format_pct, records_to_frame
from population_core.insights import InsightSummary, generate_insights


def _empty_filters() -> Dict[str, list]:
    return {"years": [], "months": [], "states": [], "genders": []}


@dataclass(frozen=True)
class DerivedViews:
    records: Sequence[PopulationRecord] = ()
    top_states: List[Dict[str, Any]] = field(default_factory=list)
    gender_distribution: List[Dict[str, Any]] = field(default_factory=list)
    yearly_trends: List[Dict[str, Any]] = field(default_factory=list)
    monthly_distribution: List[Dict[str, Any]] = field(default_factory=list)
    state_gender_gaps: List[Dict[str, Any]] = field(default_factory=list)
    insights: Optional[InsightSummary] = None
    available_filters: Dict[str, list] = field(default_factory=_empty_filters)

    def as_payload(self) -> Dict[str, Any]:
        """JSON-serializable view bundle (records are summarized by count)."""
        return {
            "record_count": len(self.records),
            "top_states": self.top_states,
            "gender_distribution": self.gender_distribution,
            "yearly_trends": self.yearly_trends,
            "monthly_distribution": self.monthly_distribution,
            "state_gender_gaps": self.state_gender_gaps,
            "insights": asdict(self.insights) if self.insights is not None else None,
            "available_filters": self.available_filters,
        }


def _available_filters(df: pd.DataFrame) -> Dict[str, list]:
    return {
        "years": sorted(int(y) for y in df["year"].unique()),
        "months": sorted(str(m) for m in df["month"].unique()),
        "states": sorted(str(s) for s in df["state"].unique()),
        "genders": sorted(str(g) for g in df["gender"].unique()),
    }


def _state_gender_gaps(gs: pd.DataFrame) -> List[Dict[str, Any]]:
    if gs.empty:
        return []
    states = pd.Index(gs["state"].drop_duplicates())
    male = gs[gs["gender"] == MALE].groupby("state", sort=False)["value"].sum()
    female = gs[gs["gender"] == FEMALE].groupby("state", sort=False)["value"].sum()
    gaps = pd.DataFrame(
        {
            "state": states,
            "male": male.reindex(states, fill_value=0).to_numpy(dtype="int64"),
            "female": female.reindex(states, fill_value=0).to_numpy(dtype="int64"),
        }
    )
    gaps["gap"] = (gaps["male"] - gaps["female"]).abs()
    gaps = gaps.sort_values("gap", ascending=False, kind="mergesort")
    return [
        {
            "state": str(r.state),
            "male": int(r.male),
            "female": int(r.female),
            "gap": int(r.gap),
            "gap_percentage": format_pct(int(r.gap), int(r.male) + int(r.female)),
        }
        for r in gaps.itertuples(index=False)
    ]


def aggregate(records: Sequence[PopulationRecord], *, top_n: int = TOP_STATES_LIMIT) -> DerivedViews:
    """Compute every derived view over `records`.

    State and month totals count every row; the gender views skip rows whose
    gender is "Total". Ties keep the first-seen order of the key.
    """
    if not records:
        return DerivedViews(records=records)

    df = records_to_frame(records)

    # Gender-inclusive totals.
    state_totals = df.groupby("state", sort=False)["value"].sum()
    top = state_totals.sort_values(ascending=False, kind="mergesort").head(top_n)
    top_states = [{"state": str(s), "population": int(v)} for s, v in top.items()]

    month_totals = df.groupby("month", sort=False)["value"].sum()
    monthly_distribution = [{"month": m, "value": int(month_totals.get(m, 0))} for m in MONTH_ORDER]

    # Gender-specific totals.
    gs = df[df["gender"] != TOTAL_GENDER]

    gender_totals = gs.groupby("gender", sort=False)["value"].sum()
    total_gender = int(gender_totals.sum())
    gender_distribution = [
        {"gender": str(g), "value": int(v), "percentage": format_pct(int(v), total_gender)}
        for g, v in gender_totals.sort_values(ascending=False, kind="mergesort").items()
    ]

    year_gender = gs.groupby(["year", "gender"])["value"].sum()
    yearly_trends = [
        {
            "year": int(y),
            MALE: int(year_gender.get((y, MALE), 0)),
            FEMALE: int(year_gender.get((y, FEMALE), 0)),
        }
        for y in sorted(gs["year"].unique())
    ]

    views = DerivedViews(
        records=records,
        top_states=top_states,
        gender_distribution=gender_distribution,
        yearly_trends=yearly_trends,
        monthly_distribution=monthly_distribution,
        state_gender_gaps=_state_gender_gaps(gs),
        available_filters=_available_filters(df),
    )
    return replace(views, insights=generate_insights(views, records))
