# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Tuple, Union

import pandas as pd
from pydantic import Field, field_validator

from .model import Model
from .types import PositiveInt


class ReportSettings(Model):
    """
    Configuration for the reporting engine.

    One instance is passed explicitly into each aggregator; there is no global
    settings object. All fields have defaults so ``ReportSettings()`` is a
    valid production configuration.

    Usage Examples:
        # Production: wall-clock "today" in the default zone
        settings = ReportSettings()

        # Deterministic runs (tests, backfills)
        settings = ReportSettings(reference_date=date(2024, 3, 15))

        # Reconcile room-level financials with the property-level split
        settings = ReportSettings(simplified_room_financials=False)
    """

    timezone: str = Field(
        default="Asia/Ho_Chi_Minh",
        description="IANA zone used to turn timestamps into calendar dates and to resolve 'today'.",
    )
    reference_date: Optional[date] = Field(
        default=None,
        description="Overrides wall-clock 'today' when set.",
    )
    default_period_count: PositiveInt = Field(
        default=12,
        description="Number of periods computed when the caller does not pass a count.",
    )
    expiring_soon_days: PositiveInt = Field(
        default=30,
        description="Lookahead window for the occupancy 'expiring soon' contract count.",
    )
    expiring_windows: Tuple[PositiveInt, PositiveInt, PositiveInt] = Field(
        default=(30, 60, 90),
        description="Lookahead windows (days) for the contract expiring counts.",
    )
    simplified_room_financials: bool = Field(
        default=True,
        description=(
            "Room scope reports paid bill totals as rent and skips the line-item "
            "split. Set False to use the same revenue split as property scope."
        ),
    )
    exclude_soft_deleted: bool = Field(
        default=True,
        description="Exclude rows whose deleted_at is set.",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            pd.Timestamp("2000-01-01", tz=v)
        except Exception as e:
            raise ValueError(f"Unknown timezone '{v}'") from e
        return v

    @field_validator("expiring_windows")
    @classmethod
    def validate_windows_ordered(cls, v: Tuple[int, int, int]) -> Tuple[int, int, int]:
        if list(v) != sorted(v):
            raise ValueError("expiring_windows must be in ascending order")
        return v

    def today(self) -> date:
        """Return the reference date, or the current calendar date in ``timezone``."""
        if self.reference_date is not None:
            return self.reference_date
        return pd.Timestamp.now(tz=self.timezone).date()

    def to_local_date(self, value: Union[date, datetime, None]) -> Optional[date]:
        """
        Reduce a timestamp to its calendar date in the configured zone.

        Naive datetimes are taken to already be local time. Plain dates are
        returned unchanged.
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.date()
            return pd.Timestamp(value).tz_convert(self.timezone).date()
        return value

    def to_local_timestamp(self, value: datetime) -> pd.Timestamp:
        """Timezone-aware timestamp in ``timezone``; naive values are taken as local."""
        ts = pd.Timestamp(value)
        if ts.tzinfo is None:
            return ts.tz_localize(self.timezone)
        return ts.tz_convert(self.timezone)
