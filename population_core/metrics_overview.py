from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from population_core.charts import build_charts
from population_core.config import FEMALE, MALE
from population_core.data import format_millions, format_pct
from population_core.filters import FilterSpecification
from population_core.metrics import DerivedViews


def compute_stat_cards(views: Optional[DerivedViews]) -> Dict[str, Any]:
    if views is None or not views.records:
        return {}
    total = sum(r.value for r in views.records)
    male = sum(r.value for r in views.records if r.gender == MALE)
    female = sum(r.value for r in views.records if r.gender == FEMALE)
    leader = views.top_states[0] if views.top_states else None
    return {
        "total_population": {"value": total, "display": f"{format_millions(total)}M"},
        "leading_state": {
            "state": leader["state"] if leader else "N/A",
            "population": leader["population"] if leader else 0,
            "display": f"{format_millions(leader['population'] if leader else 0)}M population",
        },
        "male_population": {"value": male, "display": f"{format_millions(male)}M", "share_of_total": format_pct(male, total)},
        "female_population": {"value": female, "display": f"{format_millions(female)}M", "share_of_total": format_pct(female, total)},
    }


def compute_overview(filters: FilterSpecification, ctx: Dict[str, Any]) -> Dict[str, Any]:
    views: DerivedViews = ctx.get("views") or DerivedViews()
    filtered_views: Optional[DerivedViews] = ctx.get("filtered_views")
    display: DerivedViews = filtered_views or views

    return {
        "filters": asdict(filters),
        "counts": {
            "total_records": len(views.records),
            "filtered_records": len(ctx.get("filtered_records") or ()),
            "is_filtered": not filters.is_empty(),
        },
        "kpis": compute_stat_cards(display),
        "views": views.as_payload(),
        "filtered_views": filtered_views.as_payload() if filtered_views is not None else None,
        "charts": build_charts(display),
    }
