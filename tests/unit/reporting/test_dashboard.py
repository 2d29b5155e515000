# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from datetime import date, datetime

import pandas as pd
import pytest

from rentmetrics.core.exceptions import InvalidParameter
from rentmetrics.core.primitives import DateFilter, ReportTypeEnum, ScopeFilter
from rentmetrics.reporting import (
    DashboardOverview,
    FinancialSummary,
    OccupancyTrendPoint,
    SummaryAssembler,
)
from tests.factories import (
    make_bill,
    make_contract,
    make_line_item,
    make_request,
    make_room,
    make_ticket,
)


@pytest.fixture
def assembler(make_store, settings) -> SummaryAssembler:
    store = make_store(
        rooms=[make_room("r-1", "OCCUPIED", 1_000), make_room("r-2", "VACANT", 800)],
        bills=[
            make_bill("b-1", "r-1", date(2024, 1, 1), "PAID", 1_000),
            make_bill("b-2", "r-1", date(2024, 3, 1), "PAID", 1_000),
            make_bill("b-3", "r-2", date(2024, 3, 1), "OVERDUE", 800),
        ],
        bill_items=[make_line_item("b-1", 1_000), make_line_item("b-2", 1_000)],
        maintenance=[make_ticket("t-1", "COMPLETED", datetime(2024, 2, 5, 9), cost=150)],
        maintenance_requests=[make_request("q-1", datetime(2024, 2, 1, 9))],
        contracts=[
            make_contract("c-1", "r-1", "ACTIVE", date(2023, 6, 1), date(2024, 5, 31),
                          created_at=datetime(2023, 5, 25, 9)),
        ],
    )
    return SummaryAssembler(store, settings)


def test_overview_collects_latest_of_each_report(assembler, property_scope):
    overview = assembler.overview(property_scope)

    assert isinstance(overview, DashboardOverview)
    assert overview.financial.period_start == date(2024, 3, 1)
    assert overview.financial.collection_rate == 50
    # February is the latest month with maintenance activity
    assert overview.maintenance.period_start == date(2024, 2, 1)
    assert overview.maintenance.total_maintenance_cost == 150
    assert overview.contracts.period_start == date(2024, 3, 1)
    assert overview.contracts.active_contracts == 1
    assert overview.occupancy.occupancy_rate == 50
    assert overview.occupancy.revenue_loss == 800


def test_overview_with_date_filter(assembler, property_scope):
    overview = assembler.overview(property_scope, DateFilter(year=2024, month=1))

    assert overview.financial.period_start == date(2024, 1, 1)
    assert overview.maintenance is None


def test_overview_for_empty_scope(make_store, settings, property_scope):
    overview = SummaryAssembler(make_store(), settings).overview(property_scope)

    assert overview.financial is None
    assert overview.maintenance is None
    assert overview.contracts is None
    assert overview.occupancy.total_rooms == 0


def test_room_scope_is_resolved_the_same_by_every_report(assembler):
    own_room = assembler.overview(ScopeFilter.for_room("p-1", "r-1"))

    assert own_room.financial.total_bills_count == 1
    assert own_room.maintenance is not None
    assert own_room.contracts.active_contracts == 1
    assert own_room.occupancy.total_rooms == 1

    # r-1 belongs to p-1, not p-2
    foreign_room = assembler.overview(ScopeFilter.for_room("p-2", "r-1"))

    assert foreign_room.financial is None
    assert foreign_room.maintenance is None
    assert foreign_room.contracts is None
    assert foreign_room.occupancy.total_rooms == 0


def test_trend_is_oldest_first(assembler, property_scope):
    series = assembler.trend("financial", property_scope, periods=3)

    assert [s.period_start for s in series] == [date(2024, 1, 1), date(2024, 3, 1)]
    assert all(isinstance(s, FinancialSummary) for s in series)


def test_trend_accepts_enum_and_period_type(assembler, property_scope):
    series = assembler.trend(ReportTypeEnum.CONTRACT, property_scope, 2, "QUARTERLY")

    assert [s.period_start for s in series] == [date(2023, 10, 1), date(2024, 1, 1)]


def test_occupancy_trend_goes_through_contract_spans(assembler, property_scope):
    series = assembler.trend("OCCUPANCY", property_scope, periods=2)

    assert all(isinstance(p, OccupancyTrendPoint) for p in series)
    assert [p.month_start for p in series] == [date(2024, 2, 1), date(2024, 3, 1)]
    assert [p.occupied for p in series] == [1, 1]


def test_unknown_report_type(assembler, property_scope):
    with pytest.raises(InvalidParameter) as exc_info:
        assembler.trend("revenue", property_scope)
    assert exc_info.value.parameter == "report_type"


def test_to_dataframe_indexes_period_summaries(assembler, property_scope):
    df = SummaryAssembler.to_dataframe(assembler.trend("financial", property_scope, periods=3))

    assert isinstance(df.index, pd.DatetimeIndex)
    assert df.index.name == "period_start"
    assert list(df.index) == [pd.Timestamp("2024-01-01"), pd.Timestamp("2024-03-01")]
    assert df.loc[pd.Timestamp("2024-03-01"), "total_revenue"] == 1_000
    assert "period_start" not in df.columns


def test_to_dataframe_indexes_snapshots_and_trend_points(assembler, property_scope):
    snapshot = assembler.to_dataframe([assembler.overview(property_scope).occupancy])
    points = assembler.to_dataframe(assembler.trend("occupancy", property_scope, periods=3))

    assert snapshot.index.name == "report_date"
    assert snapshot.iloc[0]["occupancy_rate"] == 50
    assert points.index.name == "month_start"
    assert len(points) == 3


def test_to_dataframe_of_nothing_is_empty():
    assert SummaryAssembler.to_dataframe([]).empty
