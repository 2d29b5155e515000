# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
RentMetrics Reporting Module

Aggregators that bucket store records into calendar periods, the summary
models they produce, and the dashboard assembler that combines them.
"""

from .base import (
    BaseAggregator,
    PeriodAggregator,
    ResolvedScope,
    safe_percentage,
    safe_ratio,
)
from .contracts import ContractAggregator
from .dashboard import SummaryAssembler, normalize_report_type
from .financial import FinancialAggregator
from .maintenance import MaintenanceAggregator
from .occupancy import OccupancyAggregator
from .summaries import (
    ContractSummary,
    DashboardOverview,
    ExpiringContract,
    FinancialCalculationEnum,
    FinancialSummary,
    MaintenanceSummary,
    OccupancySummary,
    OccupancyTrendPoint,
    PeriodSummary,
)

__all__ = [
    # Base classes and helpers
    "BaseAggregator",
    "PeriodAggregator",
    "ResolvedScope",
    "safe_percentage",
    "safe_ratio",
    # Aggregators
    "ContractAggregator",
    "FinancialAggregator",
    "MaintenanceAggregator",
    "OccupancyAggregator",
    # Dashboard
    "SummaryAssembler",
    "normalize_report_type",
    # Summary models
    "ContractSummary",
    "DashboardOverview",
    "ExpiringContract",
    "FinancialCalculationEnum",
    "FinancialSummary",
    "MaintenanceSummary",
    "OccupancySummary",
    "OccupancyTrendPoint",
    "PeriodSummary",
]
