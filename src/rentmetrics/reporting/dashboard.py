# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Dashboard assembly on top of the four aggregators.

Example:
    assembler = SummaryAssembler(store, ReportSettings(reference_date=date(2024, 3, 15)))
    overview = assembler.overview(ScopeFilter.for_property("p-1"))
    revenue = assembler.to_dataframe(assembler.trend("financial", scope, periods=6))
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from ..core.exceptions import InvalidParameter
from ..core.primitives.enums import PeriodTypeEnum, ReportTypeEnum
from ..core.primitives.scope import DateFilter, ScopeFilter
from ..core.primitives.settings import ReportSettings
from ..core.store.base import RecordStore
from .base import PeriodAggregator
from .contracts import ContractAggregator
from .financial import FinancialAggregator
from .maintenance import MaintenanceAggregator
from .occupancy import OccupancyAggregator
from .summaries import DashboardOverview

logger = logging.getLogger(__name__)

# Candidate index columns, in order of preference
_INDEX_COLUMNS = ("period_start", "report_date", "month_start")


def normalize_report_type(report_type: Union[str, ReportTypeEnum]) -> ReportTypeEnum:
    if isinstance(report_type, ReportTypeEnum):
        return report_type
    try:
        return ReportTypeEnum(str(report_type).lower())
    except ValueError:
        valid = ", ".join(r.value for r in ReportTypeEnum)
        raise InvalidParameter(
            f"Unknown report type {report_type!r}; expected one of {valid}",
            parameter="report_type",
        ) from None


class SummaryAssembler:
    """
    Composes a dashboard overview and trend series for one scope.

    All aggregators share the same store and settings, so every number on a
    dashboard is computed against the same "today".
    """

    def __init__(self, store: RecordStore, settings: Optional[ReportSettings] = None):
        self.store = store
        self.settings = settings or ReportSettings()
        self.financial = FinancialAggregator(store, self.settings)
        self.maintenance = MaintenanceAggregator(store, self.settings)
        self.contracts = ContractAggregator(store, self.settings)
        self.occupancy = OccupancyAggregator(store, self.settings)

    def _period_aggregators(self) -> Dict[ReportTypeEnum, PeriodAggregator]:
        return {
            ReportTypeEnum.FINANCIAL: self.financial,
            ReportTypeEnum.MAINTENANCE: self.maintenance,
            ReportTypeEnum.CONTRACT: self.contracts,
        }

    def overview(
        self, scope: ScopeFilter, date_filter: Optional[DateFilter] = None
    ) -> DashboardOverview:
        """
        Latest monthly summary of each period report plus the occupancy snapshot.

        A report family with no activity in the examined months is None.
        """
        latest = {}
        for report_type, aggregator in self._period_aggregators().items():
            series = aggregator.summarize(
                scope, PeriodTypeEnum.MONTHLY, date_filter=date_filter
            )
            latest[report_type] = series[0] if series else None

        return DashboardOverview(
            financial=latest[ReportTypeEnum.FINANCIAL],
            occupancy=self.occupancy.summarize(scope),
            maintenance=latest[ReportTypeEnum.MAINTENANCE],
            contracts=latest[ReportTypeEnum.CONTRACT],
        )

    def trend(
        self,
        report_type: Union[str, ReportTypeEnum],
        scope: ScopeFilter,
        periods: int = 6,
        period_type: Union[str, PeriodTypeEnum] = PeriodTypeEnum.MONTHLY,
        date_filter: Optional[DateFilter] = None,
    ) -> List[Any]:
        """
        A chronological (oldest first) series for charting.

        Occupancy has no period history of its own; its trend is derived from
        contract spans month by month, so ``period_type`` and ``date_filter``
        do not apply to it.
        """
        rtype = normalize_report_type(report_type)
        if rtype == ReportTypeEnum.OCCUPANCY:
            return self.occupancy.occupancy_trend(scope, periods)

        series = self._period_aggregators()[rtype].summarize(
            scope, period_type, periods, date_filter
        )
        logger.debug(f"{rtype.value} trend for {scope.label}: {len(series)} points")
        return list(reversed(series))

    @staticmethod
    def to_dataframe(summaries: Sequence[Any]) -> pd.DataFrame:
        """
        Tabulate summaries, one row each, indexed by their date column.

        Returns an empty DataFrame for an empty sequence.
        """
        if not summaries:
            return pd.DataFrame()

        df = pd.DataFrame([s.model_dump() for s in summaries])
        for column in _INDEX_COLUMNS:
            if column in df.columns:
                df = df.set_index(pd.DatetimeIndex(pd.to_datetime(df[column]), name=column))
                df = df.drop(columns=[column])
                break
        return df
