from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence

from population_core.data import PopulationRecord, format_millions

if TYPE_CHECKING:
    from population_core.metrics import DerivedViews


NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class InsightSummary:
    total_population: str
    total_population_value: int
    top_state: str
    year_range: str
    peak_month: str
    dominant_gender: str
    insights: List[str] = field(default_factory=list)


def generate_insights(views: "DerivedViews", records: Sequence[PopulationRecord]) -> Optional[InsightSummary]:
    """Headline figures and five sentences for the insights panel.

    `None` when there is no ranked state (empty record set).
    """
    if not views.top_states:
        return None

    # Every row counts here, "Total" rows included.
    total_population = sum(r.value for r in records)

    top_state = views.top_states[0]
    peak = max(views.monthly_distribution, key=lambda m: m["value"]) if views.monthly_distribution else None
    peak_month = peak["month"] if peak else NOT_AVAILABLE

    years = sorted({r.year for r in records})
    year_range = f"{years[0]}-{years[-1]}" if years else NOT_AVAILABLE

    gender = views.gender_distribution[0] if views.gender_distribution else None
    gap = views.state_gender_gaps[0] if views.state_gender_gaps else None

    sentences = [
        f"{top_state['state']} leads with {format_millions(top_state['population'])}M projected population",
        f"{gender['gender'] if gender else NOT_AVAILABLE} population accounts for "
        f"{gender['percentage'] if gender else '0.0'}% of total projections",
        f"{peak_month} shows highest projection entries across all years",
        f"{gap['state'] if gap else NOT_AVAILABLE} has the largest gender gap of "
        f"{format_millions(gap['gap']) if gap else '0.0'}M people",
        f"Population projections span {len(years)} years from {year_range}",
    ]

    return InsightSummary(
        total_population=f"{total_population:,}",
        total_population_value=total_population,
        top_state=top_state["state"] or NOT_AVAILABLE,
        year_range=year_range,
        peak_month=peak_month,
        dominant_gender=gender["gender"] if gender else NOT_AVAILABLE,
        insights=sentences,
    )
