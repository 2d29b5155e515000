# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Test fixtures for RentMetrics testing.

Every fixture pins ``reference_date`` so "today" never depends on the wall
clock. Row builders live in ``tests.factories``.
"""

from __future__ import annotations

from datetime import date

import pytest

from rentmetrics.core.primitives import ReportSettings, ScopeFilter
from rentmetrics.core.store import InMemoryRecordStore

from .factories import make_property

REFERENCE_DATE = date(2024, 3, 15)


@pytest.fixture
def settings() -> ReportSettings:
    return ReportSettings(reference_date=REFERENCE_DATE)


@pytest.fixture
def property_scope() -> ScopeFilter:
    return ScopeFilter.for_property("p-1")


@pytest.fixture
def make_store():
    """
    Factory fixture for an in-memory store.

    Property ``p-1`` owned by ``owner-1`` is always present; keyword arguments
    are entity table names mapped to row lists and are added on top.
    """

    def _create_store(**rows) -> InMemoryRecordStore:
        store = InMemoryRecordStore({"properties": [make_property("p-1")]})
        for entity, entity_rows in rows.items():
            store.insert(entity, entity_rows)
        return store

    return _create_store
