# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Tuple, Union

import pandas as pd
from pydantic import model_validator

from ..exceptions import InvalidParameter
from .enums import PeriodTypeEnum
from .model import Model
from .scope import DateFilter
from .settings import ReportSettings

logger = logging.getLogger(__name__)

# Calendar-aligned pandas frequencies; W-SAT weeks run Sunday through Saturday
PANDAS_PERIOD_FREQUENCY = {
    PeriodTypeEnum.WEEKLY: "W-SAT",
    PeriodTypeEnum.MONTHLY: "M",
    PeriodTypeEnum.QUARTERLY: "Q-DEC",
    PeriodTypeEnum.YEARLY: "Y-DEC",
}


def normalize_period_type(period_type: Union[str, PeriodTypeEnum]) -> PeriodTypeEnum:
    """
    Resolve a user-supplied period type to its enum.

    Accepts enum members or case-insensitive names ("monthly", "MONTHLY").

    Raises:
        InvalidParameter: For anything that is not one of the four granularities
    """
    if isinstance(period_type, PeriodTypeEnum):
        return period_type
    if isinstance(period_type, str):
        try:
            return PeriodTypeEnum(period_type.strip().upper())
        except ValueError:
            pass
    valid = ", ".join(p.value for p in PeriodTypeEnum)
    raise InvalidParameter(
        f"Unknown period type {period_type!r}. Expected one of: {valid}",
        parameter="period_type",
    )


class Period(Model):
    """
    A contiguous, inclusive calendar date range of one granularity.

    Attributes:
        type: Granularity of the period
        start_date: First day (inclusive)
        end_date: Last day (inclusive)

    Example:
        >>> p = Period(type="MONTHLY", start_date=date(2024, 2, 1), end_date=date(2024, 2, 29))
        >>> p.contains(date(2024, 2, 29))
        True
        >>> p.start
        '2024-02-01'
    """

    type: PeriodTypeEnum
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_ordering(self) -> "Period":
        if self.end_date < self.start_date:
            raise ValueError("Period end_date must not be before start_date")
        return self

    @property
    def start(self) -> str:
        """Start as a plain ``YYYY-MM-DD`` string."""
        return self.start_date.isoformat()

    @property
    def end(self) -> str:
        """End as a plain ``YYYY-MM-DD`` string."""
        return self.end_date.isoformat()

    def contains(self, value: Optional[date]) -> bool:
        """True when ``value`` falls inside the period; None is never contained."""
        if value is None:
            return False
        return self.start_date <= value <= self.end_date

    def overlaps(self, start: Optional[date], end: Optional[date]) -> bool:
        """True when the closed span [start, end] intersects the period."""
        if start is None or end is None:
            return False
        return start <= self.end_date and end >= self.start_date


class PeriodCalculator:
    """
    Produces ordered, non-overlapping calendar periods, most recent first.

    Anchor resolution:
    - a ``DateFilter`` with a year builds the anchor from month, else quarter,
      else January 1st of the year
    - a plain ``date`` is used as-is
    - otherwise the anchor is today in the configured time zone

    Every granularity, WEEKLY included, is derived from the resolved anchor,
    so period[0] always contains it.

    Example:
        >>> calc = PeriodCalculator()
        >>> [p.start for p in calc.compute("MONTHLY", 3, date(2024, 3, 15))]
        ['2024-03-01', '2024-02-01', '2024-01-01']
    """

    def __init__(self, settings: Optional[ReportSettings] = None):
        self.settings = settings or ReportSettings()

    def resolve_anchor(self, anchor: Union[DateFilter, date, None] = None) -> date:
        if isinstance(anchor, DateFilter):
            resolved = anchor.anchor_date()
            if resolved is not None:
                return resolved
        elif isinstance(anchor, date):
            return self.settings.to_local_date(anchor)
        elif anchor is not None:
            raise InvalidParameter(
                f"Unsupported anchor {anchor!r}; expected DateFilter or date",
                parameter="anchor",
            )
        return self.settings.today()

    def compute(
        self,
        period_type: Union[str, PeriodTypeEnum],
        count: int,
        anchor: Union[DateFilter, date, None] = None,
    ) -> List[Period]:
        """
        Compute ``count`` periods ending with the one containing the anchor.

        Args:
            period_type: WEEKLY, MONTHLY, QUARTERLY or YEARLY
            count: Number of periods; zero or negative returns an empty list
            anchor: Optional DateFilter or date (see class docstring)

        Returns:
            Periods ordered most recent first

        Raises:
            InvalidParameter: If period_type is unknown or count is not an integer
        """
        ptype = normalize_period_type(period_type)
        if isinstance(count, bool) or not isinstance(count, int):
            raise InvalidParameter(f"count must be an integer, got {count!r}", parameter="count")
        if count <= 0:
            return []

        anchor_date = self.resolve_anchor(anchor)
        anchor_period = pd.Period(pd.Timestamp(anchor_date), freq=PANDAS_PERIOD_FREQUENCY[ptype])

        periods = []
        for i in range(count):
            p = anchor_period - i
            periods.append(
                Period(
                    type=ptype,
                    start_date=p.start_time.date(),
                    end_date=p.end_time.date(),
                )
            )

        logger.debug(
            f"Computed {len(periods)} {ptype.value} periods anchored at {anchor_date.isoformat()}"
        )
        return periods


def compute_periods(
    period_type: Union[str, PeriodTypeEnum],
    count: int,
    anchor: Union[DateFilter, date, None] = None,
    settings: Optional[ReportSettings] = None,
) -> List[Period]:
    """Functional shortcut for ``PeriodCalculator(settings).compute(...)``."""
    return PeriodCalculator(settings).compute(period_type, count, anchor)


def period_window(periods: List[Period]) -> Optional[Tuple[date, date]]:
    """Earliest start and latest end covered by ``periods`` (None when empty)."""
    if not periods:
        return None
    return (
        min(p.start_date for p in periods),
        max(p.end_date for p in periods),
    )
