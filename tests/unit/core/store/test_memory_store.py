# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from datetime import date, datetime

import pytest

from rentmetrics.core.exceptions import DataUnavailable
from rentmetrics.core.primitives import BillStatusEnum, EntityEnum, RoomStatusEnum
from rentmetrics.core.store import (
    Bill,
    InMemoryRecordStore,
    OrderBy,
    Room,
    eq,
    gte,
    is_in,
    is_null,
    lte,
)
from tests.factories import FailingStore, make_bill, make_room


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore(
        {
            "rooms": [
                make_room("r-1", "OCCUPIED", 2_000_000),
                make_room("r-2", "VACANT", None),
                make_room("r-3", "VACANT", 1_500_000, property_id="p-2"),
            ],
            "bills": [
                make_bill("b-1", "r-1", date(2024, 1, 1), "PAID", 100),
                make_bill("b-2", "r-1", date(2024, 2, 1), "UNPAID", 200),
                make_bill("b-3", "r-2", None, "UNPAID", 300),
                make_bill("b-4", "r-2", date(2024, 3, 1), "PAID", 400, deleted_at=datetime(2024, 3, 2)),
            ],
        }
    )


def test_eq_and_in_filters(store):
    rows = store.fetch(EntityEnum.ROOM, [eq("property_id", "p-1")])
    assert [r["id"] for r in rows] == ["r-1", "r-2"]

    rows = store.fetch(EntityEnum.ROOM, [is_in("id", ["r-3", "r-1"])])
    assert {r["id"] for r in rows} == {"r-1", "r-3"}


def test_empty_in_matches_nothing(store):
    assert store.fetch(EntityEnum.ROOM, [is_in("id", [])]) == []


def test_range_filters_are_inclusive(store):
    rows = store.fetch(
        EntityEnum.BILL,
        [gte("period_start", date(2024, 1, 1)), lte("period_start", date(2024, 2, 1))],
    )
    assert [r["id"] for r in rows] == ["b-1", "b-2"]


def test_null_values_never_match_comparisons(store):
    rows = store.fetch(EntityEnum.BILL, [lte("period_start", date(2030, 1, 1))])
    assert "b-3" not in [r["id"] for r in rows]


def test_is_null_filter(store):
    rows = store.fetch(EntityEnum.BILL, [is_null("deleted_at")])
    assert [r["id"] for r in rows] == ["b-1", "b-2", "b-3"]


def test_timestamps_compare_by_date_against_date_bounds():
    store = InMemoryRecordStore(
        {"maintenance_requests": [{"id": "q-1", "property_id": "p-1", "status": "PENDING",
                                   "created_at": datetime(2024, 3, 31, 23, 0)}]}
    )
    rows = store.fetch(EntityEnum.MAINTENANCE_REQUEST, [lte("created_at", date(2024, 3, 31))])
    assert len(rows) == 1


def test_iso_date_strings_are_parsed_on_insert():
    store = InMemoryRecordStore(
        {
            "bills": [
                make_bill("b-1", "r-1", "2024-03-01", "PAID", 100),
                make_bill("b-2", "r-1", date(2024, 2, 1), "PAID", 200),
                make_bill("b-3", "r-1", "2024-01-01", "PAID", 300, created_at="2024-01-02T09:30:00"),
            ]
        }
    )

    rows = store.fetch(
        EntityEnum.BILL,
        [gte("period_start", date(2024, 2, 1))],
        OrderBy(column="period_start", descending=True),
    )
    assert [r["id"] for r in rows] == ["b-1", "b-2"]
    assert rows[0]["period_start"] == date(2024, 3, 1)

    b3 = store.fetch(EntityEnum.BILL, [eq("id", "b-3")])[0]
    assert b3["created_at"] == datetime(2024, 1, 2, 9, 30)


def test_order_by_puts_nulls_last(store):
    rows = store.fetch(EntityEnum.BILL, [], OrderBy(column="period_start", descending=True))
    assert [r["id"] for r in rows] == ["b-4", "b-2", "b-1", "b-3"]

    rows = store.fetch(EntityEnum.BILL, [], OrderBy(column="period_start"))
    assert [r["id"] for r in rows] == ["b-1", "b-2", "b-4", "b-3"]


def test_records_inserted_as_models_match_string_predicates():
    store = InMemoryRecordStore()
    store.insert(
        "bills",
        [Bill(id="b-1", room_id="r-1", period_start=date(2024, 1, 1), status=BillStatusEnum.PAID)],
    )

    assert store.count("bills") == 1
    assert len(store.fetch(EntityEnum.BILL, [eq("status", "PAID")])) == 1


def test_fetch_returns_copies(store):
    row = store.fetch(EntityEnum.ROOM, [eq("id", "r-1")])[0]
    row["status"] = "VACANT"

    assert store.fetch(EntityEnum.ROOM, [eq("id", "r-1")])[0]["status"] == "OCCUPIED"


def test_fetch_records_returns_typed_records(store):
    rooms = store.fetch_records("rooms", [eq("property_id", "p-1")])

    assert all(isinstance(r, Room) for r in rooms)
    assert rooms[0].status == RoomStatusEnum.OCCUPIED
    # NULL rent reads as zero
    assert rooms[1].monthly_rent == 0.0


def test_fetch_records_ignores_unknown_columns():
    store = InMemoryRecordStore({"rooms": [make_room("r-1", floor=3)]})
    assert store.fetch_records("rooms")[0].id == "r-1"


def test_invalid_rows_surface_as_data_unavailable():
    store = InMemoryRecordStore({"rooms": [{"id": "r-1", "property_id": "p-1", "status": "HAUNTED"}]})

    with pytest.raises(DataUnavailable) as exc_info:
        store.fetch_records("rooms")
    assert exc_info.value.entity == "rooms"


def test_backend_failures_are_wrapped_with_cause():
    cause = ConnectionError("connection reset by peer")
    store = FailingStore(cause)

    with pytest.raises(DataUnavailable) as exc_info:
        store.fetch_records(EntityEnum.CONTRACT)

    assert exc_info.value.__cause__ is cause
    assert exc_info.value.entity == "contracts"
    assert exc_info.value.retryable


def test_unknown_entity_name_is_rejected():
    with pytest.raises(ValueError):
        InMemoryRecordStore().fetch_records("invoices")
