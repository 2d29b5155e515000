# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import math
from datetime import date, datetime

import pytest

from rentmetrics.core.exceptions import DataUnavailable, InvalidParameter
from rentmetrics.core.primitives import (
    DateFilter,
    PeriodTypeEnum,
    ReportSettings,
    ScopeFilter,
    compute_periods,
)
from rentmetrics.reporting import FinancialAggregator, FinancialCalculationEnum
from rentmetrics.reporting.financial import FinancialInputs
from tests.factories import (
    FailingStore,
    RecordingStore,
    make_bill,
    make_line_item,
    make_property,
    make_room,
    make_ticket,
)

MARCH = DateFilter(year=2024, month=3)


@pytest.fixture
def scenario_rows() -> dict:
    """One PAID rent bill and one UNPAID bill in March 2024."""
    return {
        "rooms": [make_room("r-1"), make_room("r-2")],
        "bills": [
            make_bill("b-a", "r-1", date(2024, 3, 1), "PAID", 1_000_000),
            make_bill("b-b", "r-2", date(2024, 3, 1), "UNPAID", 500_000),
        ],
        "bill_items": [make_line_item("b-a", 1_000_000)],
    }


@pytest.fixture
def aggregator_for(settings):
    def _create(store, **overrides) -> FinancialAggregator:
        return FinancialAggregator(store, settings.copy(updates=overrides))

    return _create


def test_paid_and_unpaid_bill_scenario(make_store, aggregator_for, property_scope, scenario_rows):
    aggregator = aggregator_for(make_store(**scenario_rows))

    summaries = aggregator.summarize(property_scope, "MONTHLY", 3, MARCH)

    assert len(summaries) == 1
    march = summaries[0]
    assert march.id == "property-p-1-2024-03-01"
    assert march.period_type == PeriodTypeEnum.MONTHLY
    assert (march.period_start, march.period_end) == (date(2024, 3, 1), date(2024, 3, 31))
    assert march.calculation == FinancialCalculationEnum.FULL
    assert march.total_potential_revenue == 1_500_000
    assert march.total_revenue == 1_000_000
    assert march.rent_revenue == 1_000_000
    assert march.service_revenue == 0
    assert march.unpaid_amount == 500_000
    assert march.total_unpaid_amount == 500_000
    assert march.total_bills_count == 2
    assert march.paid_bills_count == 1
    assert march.unpaid_bills_count == 1
    assert march.collection_rate == 50
    assert march.net_profit == 1_000_000
    assert march.profit_margin == 100


def test_revenue_split_into_rent_services_and_late_fees(make_store, aggregator_for, property_scope):
    store = make_store(
        rooms=[make_room("r-1")],
        bills=[make_bill("b-1", "r-1", date(2024, 3, 1), "PAID", 2_350_000, late_fee=50_000)],
        bill_items=[
            make_line_item("b-1", 2_000_000),
            make_line_item("b-1", 300_000, service_id="water"),
        ],
    )

    march = aggregator_for(store).summarize(property_scope, "MONTHLY", 1, MARCH)[0]

    assert march.rent_revenue == 2_000_000
    assert march.service_revenue == 300_000
    assert march.late_fee_revenue == 50_000
    assert march.total_revenue == 2_350_000
    assert march.other_revenue == 0


def test_line_items_of_unpaid_bills_are_not_revenue(make_store, aggregator_for, property_scope):
    store = make_store(
        rooms=[make_room("r-1")],
        bills=[make_bill("b-1", "r-1", date(2024, 3, 1), "OVERDUE", 700, late_fee=20)],
        bill_items=[make_line_item("b-1", 700)],
    )

    march = aggregator_for(store).summarize(property_scope, "MONTHLY", 1, MARCH)[0]

    assert march.total_revenue == 0
    assert march.late_fee_revenue == 0
    assert march.overdue_amount == 700
    assert march.overdue_bills_count == 1
    assert march.collection_rate == 0


def test_outstanding_amounts_by_status(make_store, aggregator_for, property_scope):
    store = make_store(
        rooms=[make_room("r-1")],
        bills=[
            make_bill("b-1", "r-1", date(2024, 3, 1), "UNPAID", 100),
            make_bill("b-2", "r-1", date(2024, 3, 1), "OVERDUE", 200),
            make_bill("b-3", "r-1", date(2024, 3, 1), "PARTIALLY_PAID", 300),
            make_bill("b-4", "r-1", date(2024, 3, 1), "PROCESSING", 400),
        ],
    )

    march = aggregator_for(store).summarize(property_scope, "MONTHLY", 1, MARCH)[0]

    assert (march.unpaid_amount, march.overdue_amount) == (100, 200)
    assert (march.partially_paid_amount, march.processing_amount) == (300, 400)
    assert march.total_unpaid_amount == 1_000
    assert march.partially_paid_bills_count == 1
    assert march.processing_bills_count == 1
    assert march.total_potential_revenue == 1_000


def test_maintenance_cost_reduces_profit(make_store, aggregator_for, property_scope, scenario_rows):
    store = make_store(
        maintenance=[
            make_ticket("t-1", "COMPLETED", datetime(2024, 3, 5, 9), cost=200_000),
            make_ticket("t-2", "PENDING", datetime(2024, 3, 6, 9), cost=100_000),
            make_ticket("t-3", "CANCELLED", datetime(2024, 3, 7, 9), cost=900_000),
            make_ticket("t-4", "COMPLETED", datetime(2024, 2, 10, 9), cost=999),
        ],
        **scenario_rows,
    )

    march = aggregator_for(store).summarize(property_scope, "MONTHLY", 3, MARCH)[0]

    assert march.maintenance_cost == 200_000
    assert march.estimated_maintenance_cost == 100_000
    assert march.total_expenses == 200_000
    assert march.estimated_expenses == 100_000
    assert march.net_profit == 800_000
    assert march.profit_margin == 80


def test_periods_without_bills_are_dropped(make_store, aggregator_for, property_scope):
    store = make_store(
        rooms=[make_room("r-1")],
        bills=[
            make_bill("b-1", "r-1", date(2024, 3, 1), "PAID", 100),
            make_bill("b-2", "r-1", date(2024, 1, 1), "PAID", 100),
        ],
        # Maintenance activity alone does not keep a period
        maintenance=[make_ticket("t-1", "COMPLETED", datetime(2024, 2, 3, 9), cost=50)],
    )

    summaries = aggregator_for(store).summarize(property_scope, "MONTHLY", 3, MARCH)

    assert [s.period_start for s in summaries] == [date(2024, 3, 1), date(2024, 1, 1)]
    assert all(s.total_bills_count > 0 for s in summaries)


def test_no_bills_returns_empty_list(make_store, aggregator_for, property_scope):
    store = make_store(rooms=[make_room("r-1")])
    assert aggregator_for(store).summarize(property_scope, "MONTHLY", 6, MARCH) == []


def test_scope_without_rooms_returns_empty_list(make_store, aggregator_for, property_scope):
    assert aggregator_for(make_store()).summarize(property_scope, "YEARLY", 2) == []


def test_zero_bill_period_ratios_are_zero(make_store, aggregator_for, property_scope):
    aggregator = aggregator_for(make_store())
    periods = compute_periods("MONTHLY", 2, date(2024, 3, 15))

    summaries = aggregator.compute(periods, FinancialInputs(), property_scope)

    assert len(summaries) == 2
    for summary in summaries:
        assert summary.total_bills_count == 0
        assert summary.collection_rate == 0
        assert summary.profit_margin == 0
        assert not math.isnan(summary.collection_rate)
        assert not math.isnan(summary.profit_margin)
    assert aggregator.apply_empty_policy(summaries) == []


def test_room_scope_uses_simplified_calculation(make_store, aggregator_for, scenario_rows):
    store = make_store(
        maintenance=[make_ticket("t-1", "COMPLETED", datetime(2024, 3, 5, 9), cost=200_000)],
        **scenario_rows,
    )
    scope = ScopeFilter.for_room("p-1", "r-1")

    summaries = aggregator_for(store).summarize(scope, "MONTHLY", 3, MARCH)

    assert len(summaries) == 1
    march = summaries[0]
    assert march.id == "room-r-1-2024-03-01"
    assert march.room_id == "r-1"
    assert march.calculation == FinancialCalculationEnum.SIMPLIFIED
    assert march.total_revenue == 1_000_000
    assert march.rent_revenue == 1_000_000
    assert march.total_bills_count == 1
    assert march.collection_rate == 100
    # Tickets belong to the property, not to the room
    assert march.maintenance_cost == 0
    assert march.net_profit == 1_000_000


def test_room_scope_full_calculation_when_configured(make_store, aggregator_for):
    store = make_store(
        rooms=[make_room("r-1")],
        bills=[make_bill("b-1", "r-1", date(2024, 3, 1), "PAID", 1_100, late_fee=100)],
        bill_items=[make_line_item("b-1", 800), make_line_item("b-1", 200, service_id="wifi")],
    )
    aggregator = aggregator_for(store, simplified_room_financials=False)

    march = aggregator.summarize(ScopeFilter.for_room("p-1", "r-1"), "MONTHLY", 1, MARCH)[0]

    assert march.calculation == FinancialCalculationEnum.FULL
    assert (march.rent_revenue, march.service_revenue) == (800, 200)
    assert march.total_revenue == 1_100
    assert march.maintenance_cost == 0


def test_all_properties_scope_covers_owner_properties_only(make_store, aggregator_for):
    store = make_store(
        properties=[make_property("p-2"), make_property("p-3", owner_id="owner-2")],
        rooms=[
            make_room("r-1"),
            make_room("r-5", property_id="p-2"),
            make_room("r-9", property_id="p-3"),
        ],
        bills=[
            make_bill("b-1", "r-1", date(2024, 3, 1), "PAID", 100),
            make_bill("b-5", "r-5", date(2024, 3, 1), "PAID", 100),
            make_bill("b-9", "r-9", date(2024, 3, 1), "PAID", 100),
        ],
        bill_items=[
            make_line_item("b-1", 100),
            make_line_item("b-5", 100),
            make_line_item("b-9", 100),
        ],
    )

    summaries = aggregator_for(store).summarize(
        ScopeFilter.all_properties("owner-1"), "MONTHLY", 1, MARCH
    )

    assert len(summaries) == 1
    assert summaries[0].id == "all-properties-2024-03-01"
    assert summaries[0].property_id is None
    assert summaries[0].total_bills_count == 2
    assert summaries[0].total_revenue == 200


def test_soft_deleted_bills_are_excluded(make_store, aggregator_for, property_scope, scenario_rows):
    scenario_rows["bills"].append(
        make_bill("b-x", "r-1", date(2024, 3, 1), "PAID", 9_999, deleted_at=datetime(2024, 3, 20))
    )
    store = make_store(**scenario_rows)

    march = aggregator_for(store).summarize(property_scope, "MONTHLY", 1, MARCH)[0]
    assert march.total_bills_count == 2

    included = aggregator_for(store, exclude_soft_deleted=False)
    assert included.summarize(property_scope, "MONTHLY", 1, MARCH)[0].total_bills_count == 3


def test_default_count_and_anchor_come_from_settings(make_store, property_scope, scenario_rows):
    settings = ReportSettings(reference_date=date(2024, 3, 15), default_period_count=2)
    scenario_rows["bills"].append(make_bill("b-old", "r-1", date(2024, 1, 1), "PAID", 10))
    aggregator = FinancialAggregator(make_store(**scenario_rows), settings)

    summaries = aggregator.summarize(property_scope)

    # January is outside the two-month default window
    assert [s.period_start for s in summaries] == [date(2024, 3, 1)]


def test_each_record_category_is_fetched_once(settings, property_scope, scenario_rows):
    store = RecordingStore({"properties": [make_property("p-1")], **scenario_rows})

    FinancialAggregator(store, settings).summarize(property_scope, "MONTHLY", 12, MARCH)

    assert store.calls == ["rooms", "bills", "bill_items", "maintenance"]


def test_invalid_period_type_fails_before_any_read(settings, property_scope):
    store = FailingStore(ConnectionError("unreachable"))

    with pytest.raises(InvalidParameter):
        FinancialAggregator(store, settings).summarize(property_scope, "FORTNIGHTLY", 3)
    assert store.calls == []


def test_incomplete_scope_fails_before_any_read(settings):
    store = FailingStore(ConnectionError("unreachable"))

    with pytest.raises(InvalidParameter):
        FinancialAggregator(store, settings).summarize(ScopeFilter(), "MONTHLY", 3)
    assert store.calls == []


def test_store_failure_aborts_whole_aggregation(settings, property_scope):
    cause = ConnectionError("connection reset by peer")

    with pytest.raises(DataUnavailable) as exc_info:
        FinancialAggregator(FailingStore(cause), settings).summarize(property_scope, "MONTHLY", 3)

    assert exc_info.value.__cause__ is cause
    assert exc_info.value.retryable


def test_repeated_calls_are_identical(make_store, aggregator_for, property_scope, scenario_rows):
    aggregator = aggregator_for(make_store(**scenario_rows))

    first = aggregator.summarize(property_scope, "QUARTERLY", 4, MARCH)
    second = aggregator.summarize(property_scope, "QUARTERLY", 4, MARCH)

    assert first == second
    assert [s.model_dump_json() for s in first] == [s.model_dump_json() for s in second]


def test_summaries_dump_with_camel_case_aliases(make_store, aggregator_for, property_scope, scenario_rows):
    march = aggregator_for(make_store(**scenario_rows)).summarize(property_scope, "MONTHLY", 1, MARCH)[0]

    dumped = march.model_dump(by_alias=True)
    assert dumped["collectionRate"] == 50
    assert dumped["totalPotentialRevenue"] == 1_500_000
    assert dumped["periodStart"] == date(2024, 3, 1)
