from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from population_core.data import PopulationDataError, PopulationRecord, load_population_data
from population_core.filters import FilterSpecification, filter_records
from population_core.metrics import DerivedViews, aggregate


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataSnapshot:
    """One loaded dataset and the views aggregated from it."""

    source: Optional[str]
    records: Sequence[PopulationRecord]
    warnings: Tuple[str, ...]
    views: DerivedViews


class PopulationDashboard:
    """Load state, filter selection and derived views behind the dashboard.

    Loads are serialized: a load requested while another is running is
    ignored. A finished load is published as one `DataSnapshot`, so readers
    never see records from one load next to views from another.
    """

    def __init__(
        self,
        source: Optional[str] = None,
        *,
        loader: Callable[[Optional[str]], Dict[str, object]] = load_population_data,
    ) -> None:
        self.source = source
        self._loader = loader
        self._lock = threading.Lock()
        self._snapshot: Optional[DataSnapshot] = None
        self._filters = FilterSpecification()
        self._error: Optional[str] = None
        self._loading = False
        self._memo: Optional[Tuple[Sequence[PopulationRecord], DerivedViews]] = None
        self._filtered_cache: Optional[Tuple[FilterSpecification, Sequence[PopulationRecord], Sequence[PopulationRecord]]] = None

    # ---------------- Load pipeline ----------------
    def load(self) -> bool:
        """Run fetch -> parse -> aggregate. Returns False if a load is already in flight."""
        if not self._lock.acquire(blocking=False):
            logger.info("Load already in progress; ignoring request")
            return False
        try:
            self._loading = True
            self._error = None
            try:
                data_ctx = self._loader(self.source)
            except PopulationDataError as exc:
                logger.exception("Error loading data")
                self._error = str(exc)
                return True
            records = data_ctx.get("records") or ()
            self._snapshot = DataSnapshot(
                source=self.source,
                records=records,
                warnings=tuple(data_ctx.get("warnings") or ()),
                views=self._aggregate(records),
            )
            return True
        finally:
            self._loading = False
            self._lock.release()

    def refetch(self) -> bool:
        return self.load()

    def _aggregate(self, records: Sequence[PopulationRecord]) -> DerivedViews:
        memo = self._memo
        if memo is not None and memo[0] is records:
            return memo[1]
        views = aggregate(records)
        self._memo = (records, views)
        return views

    # ---------------- Presentation boundary ----------------
    @property
    def snapshot(self) -> Optional[DataSnapshot]:
        return self._snapshot

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def warnings(self) -> List[str]:
        snap = self._snapshot
        return list(snap.warnings) if snap is not None else []

    @property
    def records(self) -> Sequence[PopulationRecord]:
        snap = self._snapshot
        return snap.records if snap is not None else ()

    @property
    def views(self) -> Optional[DerivedViews]:
        snap = self._snapshot
        return snap.views if snap is not None else None

    @property
    def selected_filters(self) -> FilterSpecification:
        return self._filters

    def set_filters(self, spec: Optional[FilterSpecification]) -> None:
        self._filters = spec or FilterSpecification()

    @property
    def filtered_records(self) -> Sequence[PopulationRecord]:
        return self._filter(self.records)

    def _filter(self, records: Sequence[PopulationRecord]) -> Sequence[PopulationRecord]:
        filters = self._filters
        cached = self._filtered_cache
        if cached is not None and cached[0] == filters and cached[1] is records:
            return cached[2]
        filtered = filter_records(records, filters)
        self._filtered_cache = (filters, records, filtered)
        return filtered

    @property
    def filtered_views(self) -> Optional[DerivedViews]:
        snap = self._snapshot
        if snap is None:
            return None
        filtered = self._filter(snap.records)
        if not filtered:
            return None
        if filtered is snap.records:
            return snap.views
        return self._aggregate(filtered)

    @property
    def display_views(self) -> Optional[DerivedViews]:
        return self.filtered_views or self.views
