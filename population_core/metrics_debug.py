from __future__ import annotations

from collections import Counter
from dataclasses import asdict
from typing import Any, Dict

from population_core.config import TOTAL_GENDER
from population_core.filters import FilterSpecification


def compute_debug(filters: FilterSpecification, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records = ctx.get("records") or ()
    warnings = list(ctx.get("warnings") or [])
    genders = Counter(r.gender for r in records)
    return {
        "filters": asdict(filters),
        "source": ctx.get("source"),
        "row_counts": {
            "records": len(records),
            "filtered_records": len(ctx.get("filtered_records") or ()),
            "total_gender_rows": genders.get(TOTAL_GENDER, 0),
            "gender_specific_rows": len(records) - genders.get(TOTAL_GENDER, 0),
        },
        "gender_row_counts": dict(genders),
        "parse_warnings": {
            "count": len(warnings),
            "sample": warnings[:20],
        },
    }
