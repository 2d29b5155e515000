# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Derived summary models.

Summaries are never persisted: every aggregation call builds them fresh from
the store's current contents. Field names are snake_case in Python and
camelCase when dumped with ``by_alias=True`` for dashboard consumers.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from ..core.primitives.enums import PeriodTypeEnum
from ..core.primitives.model import Model
from ..core.primitives.types import NonNegativeFloat, NonNegativeInt, Percentage


class FinancialCalculationEnum(str, Enum):
    """
    How a financial summary was computed.

    FULL splits paid revenue into rent, service and late-fee lines and
    subtracts maintenance cost. SIMPLIFIED (room scope by default) reports
    paid bill totals as rent and carries no maintenance cost.
    """

    FULL = "FULL"
    SIMPLIFIED = "SIMPLIFIED"


class SummaryModel(Model):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PeriodSummary(SummaryModel):
    """Fields shared by every period-series summary."""

    id: str
    property_id: Optional[str] = None
    room_id: Optional[str] = None
    period_type: PeriodTypeEnum
    period_start: date
    period_end: date


class FinancialSummary(PeriodSummary):
    """Revenue, outstanding balances, maintenance cost and profit for one period."""

    calculation: FinancialCalculationEnum = FinancialCalculationEnum.FULL

    # Revenue
    total_potential_revenue: float = 0.0
    total_revenue: float = 0.0
    rent_revenue: float = 0.0
    service_revenue: float = 0.0
    late_fee_revenue: float = 0.0
    other_revenue: float = 0.0

    # Outstanding
    unpaid_amount: float = 0.0
    overdue_amount: float = 0.0
    partially_paid_amount: float = 0.0
    processing_amount: float = 0.0
    total_unpaid_amount: float = 0.0

    # Expenses
    maintenance_cost: float = 0.0
    estimated_maintenance_cost: float = 0.0
    utility_costs: float = 0.0
    other_expenses: float = 0.0
    total_expenses: float = 0.0
    estimated_expenses: float = 0.0

    # Profitability
    net_profit: float = 0.0
    profit_margin: float = 0.0

    # Bill counts
    total_bills_count: NonNegativeInt = 0
    paid_bills_count: NonNegativeInt = 0
    unpaid_bills_count: NonNegativeInt = 0
    overdue_bills_count: NonNegativeInt = 0
    partially_paid_bills_count: NonNegativeInt = 0
    processing_bills_count: NonNegativeInt = 0
    collection_rate: Percentage = 0.0


class MaintenanceSummary(PeriodSummary):
    """Request intake, ticket progress and cost for one period."""

    # Requests (intake stage)
    total_requests: NonNegativeInt = 0
    pending_requests: NonNegativeInt = 0
    approved_requests: NonNegativeInt = 0
    rejected_requests: NonNegativeInt = 0
    cancelled_requests: NonNegativeInt = 0

    # Tickets (work orders)
    total_tickets: NonNegativeInt = 0
    pending_tickets: NonNegativeInt = 0
    in_progress_tickets: NonNegativeInt = 0
    completed_tickets: NonNegativeInt = 0
    cancelled_tickets: NonNegativeInt = 0
    completion_rate: Percentage = 0.0
    avg_resolution_days: float = 0.0

    # Cost
    total_maintenance_cost: float = 0.0
    estimated_maintenance_cost: float = 0.0
    avg_cost_per_request: float = 0.0
    avg_cost_per_ticket: float = 0.0

    # Breakdown
    building_maintenance_count: NonNegativeInt = 0
    room_maintenance_count: NonNegativeInt = 0
    other_maintenance_count: NonNegativeInt = 0
    urgent_priority_count: NonNegativeInt = 0
    high_priority_count: NonNegativeInt = 0
    medium_priority_count: NonNegativeInt = 0
    low_priority_count: NonNegativeInt = 0


class ContractSummary(PeriodSummary):
    """Contract lifecycle activity for one period."""

    total_contracts: NonNegativeInt = 0
    draft_contracts: NonNegativeInt = 0
    active_contracts: NonNegativeInt = 0
    expired_contracts: NonNegativeInt = 0
    terminated_contracts: NonNegativeInt = 0
    new_contracts: NonNegativeInt = 0
    renewals: NonNegativeInt = 0
    terminations: NonNegativeInt = 0
    active_at_period_start: NonNegativeInt = 0
    renewal_rate: Percentage = 0.0
    churn_rate: NonNegativeFloat = 0.0

    # Wall-clock windows, identical for every period of one call
    expiring_30_days: NonNegativeInt = 0
    expiring_60_days: NonNegativeInt = 0
    expiring_90_days: NonNegativeInt = 0


class OccupancySummary(SummaryModel):
    """Current-state occupancy snapshot."""

    id: str
    property_id: Optional[str] = None
    room_id: Optional[str] = None
    report_date: date

    total_rooms: NonNegativeInt = 0
    occupied_rooms: NonNegativeInt = 0
    vacant_rooms: NonNegativeInt = 0
    maintenance_rooms: NonNegativeInt = 0
    deposited_rooms: NonNegativeInt = 0
    occupancy_rate: Percentage = 0.0

    total_tenants: NonNegativeInt = 0
    active_contracts: NonNegativeInt = 0
    expiring_soon_contracts: NonNegativeInt = 0

    revenue_loss: float = 0.0
    total_rent_potential: float = 0.0
    actual_rent_collected: float = 0.0


class OccupancyTrendPoint(SummaryModel):
    """Occupancy for one calendar month, derived from contract spans."""

    month_start: date
    occupied: NonNegativeInt
    vacant: int
    total: NonNegativeInt
    occupancy_rate: float


class ExpiringContract(SummaryModel):
    """An ACTIVE contract ending within a lookahead window."""

    id: str
    room_id: str
    room_name: Optional[str] = None
    property_id: Optional[str] = None
    property_name: Optional[str] = None
    end_date: date
    days_remaining: NonNegativeInt


class DashboardOverview(SummaryModel):
    """Latest value of each report family for one scope."""

    financial: Optional[FinancialSummary] = None
    occupancy: OccupancySummary
    maintenance: Optional[MaintenanceSummary] = None
    contracts: Optional[ContractSummary] = None
