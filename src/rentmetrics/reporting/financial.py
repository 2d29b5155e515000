# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Financial aggregation: revenue, outstanding balances, maintenance cost and
profitability per period.

Bills are bucketed by ``period_start``; maintenance tickets by the local date
of ``created_at``. Only PAID bills contribute realized revenue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

import pandas as pd

from ..core.primitives.enums import (
    BillStatusEnum,
    EntityEnum,
    ScopeKind,
    TicketStatusEnum,
)
from ..core.primitives.period import Period, period_window
from ..core.primitives.scope import ScopeFilter
from ..core.store.base import OrderBy, gte, is_in, lte
from ..core.store.records import Bill, BillLineItem, MaintenanceTicket
from .base import PeriodAggregator, date_column, in_period, records_frame, safe_percentage
from .summaries import FinancialCalculationEnum, FinancialSummary

logger = logging.getLogger(__name__)

BILL_COLUMNS = ["id", "status", "total_amount", "late_fee"]
LINE_ITEM_COLUMNS = ["bill_id", "service_id", "amount"]
TICKET_COLUMNS = ["status", "cost"]

# Outstanding bill statuses and the summary fields they feed
OUTSTANDING_STATUSES = {
    BillStatusEnum.UNPAID: ("unpaid_amount", "unpaid_bills_count"),
    BillStatusEnum.OVERDUE: ("overdue_amount", "overdue_bills_count"),
    BillStatusEnum.PARTIALLY_PAID: ("partially_paid_amount", "partially_paid_bills_count"),
    BillStatusEnum.PROCESSING: ("processing_amount", "processing_bills_count"),
}

OPEN_TICKET_STATUSES = [TicketStatusEnum.PENDING.value, TicketStatusEnum.IN_PROGRESS.value]


@dataclass
class FinancialInputs:
    """Records read for one financial aggregation."""

    bills: List[Bill] = field(default_factory=list)
    line_items: List[BillLineItem] = field(default_factory=list)
    tickets: List[MaintenanceTicket] = field(default_factory=list)


class FinancialAggregator(PeriodAggregator[FinancialInputs, FinancialSummary]):
    """
    Builds one ``FinancialSummary`` per period.

    Per period:
    - potential revenue is the total of every bill, whatever its status
    - realized revenue comes from PAID bills only: line items without a
      service are rent, the rest are services, plus late fees
    - outstanding amounts and counts are grouped by UNPAID, OVERDUE,
      PARTIALLY_PAID and PROCESSING
    - maintenance cost is the cost of COMPLETED tickets created in the period;
      the estimate covers PENDING and IN_PROGRESS tickets
    - collection rate and profit margin are 0 when their denominator is 0

    Periods without bills are dropped.

    Room scope uses the simplified calculation unless
    ``settings.simplified_room_financials`` is False: paid bill totals are
    reported as rent and maintenance cost is not attributed to the room.
    """

    drop_if_empty = True

    def uses_simplified(self, scope: ScopeFilter) -> bool:
        return scope.kind == ScopeKind.ROOM and self.settings.simplified_room_financials

    def fetch(self, scope: ScopeFilter, periods: List[Period]) -> FinancialInputs:
        resolved = self.resolve_scope(scope)
        room_ids = resolved.room_ids
        if not room_ids:
            logger.debug("Financial scope has no rooms; nothing to aggregate")
            return FinancialInputs()

        window_start, window_end = period_window(periods)
        bills = self.store.fetch_records(
            EntityEnum.BILL,
            [
                is_in("room_id", room_ids),
                gte("period_start", window_start),
                lte("period_start", window_end),
            ]
            + self._live(),
            OrderBy(column="period_start", descending=True),
        )

        line_items = []
        if bills and not self.uses_simplified(scope):
            line_items = self.store.fetch_records(
                EntityEnum.BILL_LINE_ITEM, [is_in("bill_id", [b.id for b in bills])]
            )

        tickets = []
        if resolved.kind != ScopeKind.ROOM:
            tickets = self.store.fetch_records(
                EntityEnum.MAINTENANCE_TICKET,
                [
                    is_in("property_id", resolved.property_ids),
                    is_in(
                        "status",
                        [TicketStatusEnum.COMPLETED.value] + OPEN_TICKET_STATUSES,
                    ),
                ]
                + self._live(),
            )

        logger.debug(
            f"Financial fetch: {len(bills)} bills, {len(line_items)} line items, "
            f"{len(tickets)} tickets"
        )
        return FinancialInputs(bills=bills, line_items=line_items, tickets=tickets)

    def compute(
        self, periods: List[Period], inputs: FinancialInputs, scope: ScopeFilter
    ) -> List[FinancialSummary]:
        simplified = self.uses_simplified(scope)

        bills = records_frame(inputs.bills, BILL_COLUMNS)
        bills["period_start"] = date_column([b.period_start for b in inputs.bills])
        items = records_frame(inputs.line_items, LINE_ITEM_COLUMNS)
        tickets = records_frame(inputs.tickets, TICKET_COLUMNS)
        tickets["created_on"] = date_column(
            [self.settings.to_local_date(t.created_at) for t in inputs.tickets]
        )

        return [
            self._summarize_period(period, bills, items, tickets, scope, simplified)
            for period in periods
        ]

    def _summarize_period(
        self,
        period: Period,
        bills: pd.DataFrame,
        items: pd.DataFrame,
        tickets: pd.DataFrame,
        scope: ScopeFilter,
        simplified: bool,
    ) -> FinancialSummary:
        period_bills = bills[in_period(bills["period_start"], period)]
        paid = period_bills[period_bills["status"] == BillStatusEnum.PAID.value]

        total_potential_revenue = float(period_bills["total_amount"].sum())
        late_fee_revenue = float(paid["late_fee"].sum())

        if simplified:
            total_revenue = float(paid["total_amount"].sum())
            rent_revenue = total_revenue
            service_revenue = 0.0
        else:
            paid_items = items[items["bill_id"].isin(paid["id"])]
            rent_revenue = float(paid_items.loc[paid_items["service_id"].isna(), "amount"].sum())
            service_revenue = float(
                paid_items.loc[paid_items["service_id"].notna(), "amount"].sum()
            )
            total_revenue = rent_revenue + service_revenue + late_fee_revenue

        outstanding = {}
        for status, (amount_field, count_field) in OUTSTANDING_STATUSES.items():
            status_bills = period_bills[period_bills["status"] == status.value]
            outstanding[amount_field] = float(status_bills["total_amount"].sum())
            outstanding[count_field] = len(status_bills)
        total_unpaid_amount = sum(
            outstanding[amount_field] for amount_field, _ in OUTSTANDING_STATUSES.values()
        )

        maintenance_cost = 0.0
        estimated_maintenance_cost = 0.0
        if scope.kind != ScopeKind.ROOM:
            period_tickets = tickets[in_period(tickets["created_on"], period)]
            maintenance_cost = float(
                period_tickets.loc[
                    period_tickets["status"] == TicketStatusEnum.COMPLETED.value, "cost"
                ].sum()
            )
            estimated_maintenance_cost = float(
                period_tickets.loc[period_tickets["status"].isin(OPEN_TICKET_STATUSES), "cost"].sum()
            )

        total_bills_count = len(period_bills)
        paid_bills_count = len(paid)
        net_profit = total_revenue - maintenance_cost

        return FinancialSummary(
            id=f"{scope.label}-{period.start}",
            property_id=scope.property_id,
            room_id=scope.room_id if scope.kind == ScopeKind.ROOM else None,
            period_type=period.type,
            period_start=period.start_date,
            period_end=period.end_date,
            calculation=(
                FinancialCalculationEnum.SIMPLIFIED if simplified else FinancialCalculationEnum.FULL
            ),
            total_potential_revenue=total_potential_revenue,
            total_revenue=total_revenue,
            rent_revenue=rent_revenue,
            service_revenue=service_revenue,
            late_fee_revenue=late_fee_revenue,
            total_unpaid_amount=total_unpaid_amount,
            maintenance_cost=maintenance_cost,
            estimated_maintenance_cost=estimated_maintenance_cost,
            total_expenses=maintenance_cost,
            estimated_expenses=estimated_maintenance_cost,
            net_profit=net_profit,
            profit_margin=safe_percentage(net_profit, total_revenue),
            total_bills_count=total_bills_count,
            paid_bills_count=paid_bills_count,
            collection_rate=safe_percentage(paid_bills_count, total_bills_count),
            **outstanding,
        )

    def has_activity(self, summary: FinancialSummary) -> bool:
        return summary.total_bills_count > 0
