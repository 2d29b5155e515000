# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
RentMetrics Core Primitives

Essential building blocks for period-based reporting: the immutable model
base, enums, settings, scope/date filters and calendar period calculation.
"""

from .enums import (
    BillStatusEnum,
    ContractStatusEnum,
    EntityEnum,
    MaintenanceTypeEnum,
    PeriodTypeEnum,
    PredicateOpEnum,
    PriorityEnum,
    ReportTypeEnum,
    RequestStatusEnum,
    RoomStatusEnum,
    ScopeKind,
    TicketStatusEnum,
    enum_to_string,
)
from .model import Model
from .period import (
    PANDAS_PERIOD_FREQUENCY,
    Period,
    PeriodCalculator,
    compute_periods,
    normalize_period_type,
    period_window,
)
from .scope import DateFilter, ScopeFilter
from .settings import ReportSettings
from .types import (
    MonthNumber,
    NonNegativeFloat,
    NonNegativeInt,
    Percentage,
    PositiveInt,
    QuarterNumber,
)

__all__ = [
    # Core models
    "Model",
    "Period",
    "PeriodCalculator",
    "compute_periods",
    "normalize_period_type",
    "period_window",
    "PANDAS_PERIOD_FREQUENCY",
    # Parameters
    "ScopeFilter",
    "DateFilter",
    "ReportSettings",
    # Enums
    "BillStatusEnum",
    "ContractStatusEnum",
    "EntityEnum",
    "MaintenanceTypeEnum",
    "PeriodTypeEnum",
    "PredicateOpEnum",
    "PriorityEnum",
    "ReportTypeEnum",
    "RequestStatusEnum",
    "RoomStatusEnum",
    "ScopeKind",
    "TicketStatusEnum",
    "enum_to_string",
    # Types
    "MonthNumber",
    "NonNegativeFloat",
    "NonNegativeInt",
    "Percentage",
    "PositiveInt",
    "QuarterNumber",
]
