# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Base classes and helpers shared by the aggregators.

Every aggregation runs as two phases:

1. Fetch: resolve the scope and read every record category once, through the
   injected ``RecordStore``. This is the only phase that does I/O and the only
   one that can fail with ``DataUnavailable``.
2. Compute: a pure function of (periods, fetched records, scope) that buckets
   records in memory and builds one summary per period. It can be called
   directly in tests without a store.

Parameters are validated before the fetch phase starts.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, ClassVar, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

import pandas as pd

from ..core.primitives.enums import EntityEnum, PeriodTypeEnum, ScopeKind, enum_to_string
from ..core.primitives.period import Period, PeriodCalculator
from ..core.primitives.scope import DateFilter, ScopeFilter
from ..core.primitives.settings import ReportSettings
from ..core.store.base import Predicate, RecordStore, eq, is_in, is_null
from ..core.store.records import Room

logger = logging.getLogger(__name__)

SummaryT = TypeVar("SummaryT")
InputsT = TypeVar("InputsT")


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 when the denominator is zero."""
    if not denominator:
        return 0.0
    return float(numerator) / float(denominator)


def safe_percentage(numerator: float, denominator: float) -> float:
    """``numerator / denominator * 100``, or 0.0 when the denominator is zero."""
    return safe_ratio(numerator, denominator) * 100


def records_frame(records: Sequence[Any], columns: Sequence[str]) -> pd.DataFrame:
    """
    Build a DataFrame with exactly ``columns`` from pydantic records.

    Enum values are stored as their string values. An empty record list still
    yields a frame with every column, so column access never fails.
    """
    rows = [
        {c: _plain(getattr(record, c)) for c in columns}
        for record in records
    ]
    return pd.DataFrame(rows, columns=list(columns))


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return enum_to_string(value)
    return value


def date_column(values: Sequence[Optional[date]]) -> pd.Series:
    """Calendar dates as a datetime64 Series (None becomes NaT)."""
    return pd.to_datetime(pd.Series(list(values), dtype=object))


def in_period(series: pd.Series, period: Period) -> pd.Series:
    """Boolean mask of datetime64 values falling inside ``period`` (inclusive)."""
    return (series >= pd.Timestamp(period.start_date)) & (
        series <= pd.Timestamp(period.end_date)
    )


@dataclass(frozen=True)
class ResolvedScope:
    """
    Identifiers a scope expands to after the ownership lookup.

    Attributes:
        scope: The caller's scope filter
        kind: Resolved scope kind
        property_ids: Properties covered by the scope
        rooms: Room records covered by the scope (None when not fetched)
    """

    scope: ScopeFilter
    kind: ScopeKind
    property_ids: Tuple[str, ...]
    rooms: Optional[Tuple[Room, ...]] = None

    @property
    def room_ids(self) -> Tuple[str, ...]:
        if self.rooms is None:
            return ()
        return tuple(r.id for r in self.rooms)

    @property
    def is_empty(self) -> bool:
        """True when the scope covers no property at all."""
        return not self.property_ids


class BaseAggregator(ABC):
    """
    Common scope resolution and empty-result policy.

    Attributes:
        drop_if_empty: When True, periods without activity are removed from the
            result. When False, zero-activity periods are kept, except that a
            series in which no period has any activity collapses to ``[]``.
    """

    drop_if_empty: ClassVar[bool] = True

    def __init__(self, store: RecordStore, settings: Optional[ReportSettings] = None):
        self.store = store
        self.settings = settings or ReportSettings()
        self.calculator = PeriodCalculator(self.settings)

    # --- Fetch helpers -----------------------------------------------------

    def _live(self) -> List[Predicate]:
        """Soft-delete filter, when enabled."""
        if self.settings.exclude_soft_deleted:
            return [is_null("deleted_at")]
        return []

    def resolve_scope(self, scope: ScopeFilter, with_rooms: bool = True) -> ResolvedScope:
        """
        Expand a scope filter into property ids and (optionally) rooms.

        The all-properties scope reads the owner's properties first. Room
        scope reads only the addressed room, and only when it belongs to the
        scope's property, so every aggregator sees the same rooms.
        """
        kind = scope.ensure_complete()

        if kind == ScopeKind.ALL_PROPERTIES:
            properties = self.store.fetch_records(
                EntityEnum.PROPERTY, [eq("owner_id", scope.owner_id)] + self._live()
            )
            property_ids = tuple(p.id for p in properties)
        else:
            property_ids = (scope.property_id,)

        rooms = None
        if with_rooms:
            if kind == ScopeKind.ROOM:
                room_filter = [eq("id", scope.room_id), eq("property_id", scope.property_id)]
            else:
                room_filter = [is_in("property_id", property_ids)]
            rooms = tuple(
                self.store.fetch_records(EntityEnum.ROOM, room_filter + self._live())
            )

        logger.debug(
            f"Resolved {kind.value} scope to {len(property_ids)} properties"
            + (f" and {len(rooms)} rooms" if rooms is not None else "")
        )
        return ResolvedScope(scope=scope, kind=kind, property_ids=property_ids, rooms=rooms)

    # --- Result policy -----------------------------------------------------

    def apply_empty_policy(self, summaries: List[SummaryT]) -> List[SummaryT]:
        active = [s for s in summaries if self.has_activity(s)]
        if self.drop_if_empty:
            dropped = len(summaries) - len(active)
            if dropped:
                logger.debug(f"{type(self).__name__}: dropped {dropped} empty periods")
            return active
        if not active:
            return []
        return summaries

    def has_activity(self, summary: Any) -> bool:
        """Whether a summary counts as non-empty for the drop policy."""
        return True


class PeriodAggregator(BaseAggregator, Generic[InputsT, SummaryT]):
    """
    Template for aggregators producing one summary per period.

    Subclasses implement ``fetch`` (I/O) and ``compute`` (pure).
    """

    def summarize(
        self,
        scope: ScopeFilter,
        period_type: Union[str, PeriodTypeEnum] = PeriodTypeEnum.MONTHLY,
        count: Optional[int] = None,
        date_filter: Optional[DateFilter] = None,
    ) -> List[SummaryT]:
        """
        Compute summaries for up to ``count`` periods, most recent first.

        Args:
            scope: Which records to aggregate
            period_type: WEEKLY, MONTHLY, QUARTERLY or YEARLY
            count: Number of periods (defaults to settings.default_period_count)
            date_filter: Optional anchor override

        Returns:
            Summaries after the aggregator's empty-period policy

        Raises:
            InvalidParameter: Before any store read, for bad parameters
            DataUnavailable: If any store read fails
        """
        if count is None:
            count = self.settings.default_period_count
        periods = self.calculator.compute(period_type, count, date_filter)
        scope.ensure_complete()
        if not periods:
            return []

        inputs = self.fetch(scope, periods)
        summaries = self.compute(periods, inputs, scope)
        return self.apply_empty_policy(summaries)

    @abstractmethod
    def fetch(self, scope: ScopeFilter, periods: List[Period]) -> InputsT:
        """Read every record category needed for ``periods`` in one pass."""
        pass

    @abstractmethod
    def compute(
        self, periods: List[Period], inputs: InputsT, scope: ScopeFilter
    ) -> List[SummaryT]:
        """Bucket ``inputs`` into ``periods`` and build one summary per period."""
        pass
