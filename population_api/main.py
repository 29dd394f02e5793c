from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import Any, Dict

import numpy as np
import uvicorn
from fastapi import Depends, FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from population_api.schemas import DashboardFiltersModel, MetaFiltersResponse, RefreshResponse
from population_core.config import get_settings
from population_core.context import prepare_context
from population_core.data import records_to_frame
from population_core.filters import FilterSpecification, normalize_filters
from population_core.metrics_debug import compute_debug
from population_core.metrics_overview import compute_overview
from population_core.session import PopulationDashboard


settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Population Projection Dashboard API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class DataUnavailable(Exception):
    """The dataset failed to load; the message is the load error."""


@lru_cache(maxsize=1)
def get_dashboard() -> PopulationDashboard:
    return PopulationDashboard(get_settings().csv_source)


def _filters_from_model(model: DashboardFiltersModel) -> FilterSpecification:
    return normalize_filters(model.model_dump())


def _context(dashboard: PopulationDashboard, filters: FilterSpecification) -> Dict[str, Any]:
    if dashboard.snapshot is None and dashboard.error is None:
        dashboard.load()
    snap = dashboard.snapshot
    if dashboard.error is not None or snap is None:
        raise DataUnavailable(dashboard.error or "Data is still loading")
    data_ctx = {
        "source": snap.source,
        "records": snap.records,
        "warnings": list(snap.warnings),
        "views": snap.views,
    }
    return prepare_context(filters, data_ctx)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/meta/filters")
def meta_filters(dashboard: PopulationDashboard = Depends(get_dashboard)):
    try:
        ctx = _context(dashboard, FilterSpecification())
        return _json(MetaFiltersResponse(**ctx["views"].available_filters).model_dump())
    except DataUnavailable as exc:
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("meta_filters failed")
        return _error(exc, 500)


@app.post("/overview")
def overview(filters: DashboardFiltersModel, dashboard: PopulationDashboard = Depends(get_dashboard)):
    try:
        f = _filters_from_model(filters)
        ctx = _context(dashboard, f)
        return _json(compute_overview(f, ctx))
    except DataUnavailable as exc:
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc, 500)


@app.post("/insights")
def insights(filters: DashboardFiltersModel, dashboard: PopulationDashboard = Depends(get_dashboard)):
    try:
        f = _filters_from_model(filters)
        ctx = _context(dashboard, f)
        summary = ctx["display_views"].as_payload()["insights"]
        return _json({"filters": f, "insights": summary})
    except DataUnavailable as exc:
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("insights failed")
        return _error(exc, 500)


@app.post("/debug")
def debug(filters: DashboardFiltersModel, dashboard: PopulationDashboard = Depends(get_dashboard)):
    try:
        f = _filters_from_model(filters)
        ctx = _context(dashboard, f)
        return _json(compute_debug(f, ctx))
    except DataUnavailable as exc:
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("debug failed")
        return _error(exc, 500)


@app.post("/refresh")
def refresh(dashboard: PopulationDashboard = Depends(get_dashboard)):
    try:
        if not dashboard.refetch():
            return JSONResponse(status_code=409, content={"error": "A load is already in progress", "type": "LoadInProgress"})
        if dashboard.error is not None:
            return _error(DataUnavailable(dashboard.error), 503)
        return _json(RefreshResponse(reloaded=True, records=len(dashboard.records), warnings=len(dashboard.warnings)).model_dump())
    except Exception as exc:
        logger.exception("refresh failed")
        return _error(exc, 500)


@app.post("/export/records")
def export_records(filters: DashboardFiltersModel, dashboard: PopulationDashboard = Depends(get_dashboard)):
    try:
        ctx = _context(dashboard, _filters_from_model(filters))
        export_df = records_to_frame(ctx["filtered_records"])
        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
        return Response(
            content=csv_bytes,
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=population_records.csv"},
        )
    except DataUnavailable as exc:
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("export_records failed")
        return _error(exc, 500)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())
