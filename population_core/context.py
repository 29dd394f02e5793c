from __future__ import annotations

from typing import Dict, Optional

from population_core.filters import FilterSpecification, filter_records, normalize_filters
from population_core.metrics import DerivedViews, aggregate


def prepare_context(filters: dict | FilterSpecification | None, data_ctx: Dict[str, object]) -> Dict[str, object]:
    """Aggregate the full dataset and the subset matching `filters`.

    `filtered_views` is None when nothing matches.
    """
    filt = filters if isinstance(filters, FilterSpecification) else normalize_filters(filters)
    records = data_ctx.get("records") or ()

    views = data_ctx.get("views") or aggregate(records)
    filtered = filter_records(records, filt)
    if filtered is records:
        filtered_views: Optional[DerivedViews] = views
    else:
        filtered_views = aggregate(filtered) if filtered else None

    return {
        "filters": filt,
        "source": data_ctx.get("source"),
        "warnings": data_ctx.get("warnings", []),
        "records": records,
        "views": views,
        "filtered_records": filtered,
        "filtered_views": filtered_views,
        "display_views": filtered_views or views,
    }
