# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
RentMetrics - Period-Based Reporting for Rental Property Portfolios

Turns raw transactional records (bills, bill line items, maintenance tickets
and requests, contracts, rooms) into time-bucketed summary metrics for
dashboards.

Key Entry Points:
- rentmetrics.core.primitives.compute_periods() - Calendar period boundaries
- rentmetrics.reporting.FinancialAggregator - Revenue, collection and profit
- rentmetrics.reporting.MaintenanceAggregator - Ticket and request activity
- rentmetrics.reporting.ContractAggregator - Contract lifecycle metrics
- rentmetrics.reporting.OccupancyAggregator - Current occupancy snapshot
- rentmetrics.reporting.SummaryAssembler - Dashboard overview and trends

Example Usage:
    ```python
    from rentmetrics.core.primitives import DateFilter, ScopeFilter
    from rentmetrics.core.store import InMemoryRecordStore
    from rentmetrics.reporting import FinancialAggregator

    store = InMemoryRecordStore()
    store.insert("bills", bill_rows)

    aggregator = FinancialAggregator(store)
    summaries = aggregator.summarize(
        ScopeFilter.for_property("p-1"),
        "MONTHLY",
        6,
        DateFilter(year=2024, month=3),
    )
    print(f"Collection rate: {summaries[0].collection_rate:.1f}%")
    ```
"""

import importlib
import logging

# Libraries leave handler configuration to the application.
logging.getLogger(__name__).addHandler(logging.NullHandler())


# Public API surface (lazy-loaded on first attribute access)
__all__ = [  # noqa: F822 - lazy loading
    "core",
    "reporting",
]


_LAZY_MODULES = {
    "core": "rentmetrics.core",
    "reporting": "rentmetrics.reporting",
}


def __getattr__(name: str):
    module_path = _LAZY_MODULES.get(name)
    if module_path is None:
        raise AttributeError(f"module 'rentmetrics' has no attribute '{name}'")
    module = importlib.import_module(module_path)
    globals()[name] = module
    return module
