# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Maintenance aggregation over two independent record streams.

Maintenance requests (intake) and maintenance tickets (work orders) are both
bucketed by the local date of ``created_at``; they are never joined.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List

import pandas as pd

from ..core.primitives.enums import (
    EntityEnum,
    MaintenanceTypeEnum,
    PriorityEnum,
    RequestStatusEnum,
    ScopeKind,
    TicketStatusEnum,
)
from ..core.primitives.period import Period
from ..core.primitives.scope import ScopeFilter
from ..core.store.base import OrderBy, is_in
from ..core.store.records import MaintenanceRequest, MaintenanceTicket
from .base import (
    PeriodAggregator,
    date_column,
    in_period,
    records_frame,
    safe_percentage,
    safe_ratio,
)
from .summaries import MaintenanceSummary

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

TICKET_COLUMNS = ["id", "status", "cost", "maintenance_type", "priority"]
REQUEST_COLUMNS = ["id", "status"]

REQUEST_STATUS_FIELDS = {
    RequestStatusEnum.PENDING: "pending_requests",
    RequestStatusEnum.APPROVED: "approved_requests",
    RequestStatusEnum.REJECTED: "rejected_requests",
    RequestStatusEnum.CANCELLED: "cancelled_requests",
}

TICKET_STATUS_FIELDS = {
    TicketStatusEnum.PENDING: "pending_tickets",
    TicketStatusEnum.IN_PROGRESS: "in_progress_tickets",
    TicketStatusEnum.COMPLETED: "completed_tickets",
    TicketStatusEnum.CANCELLED: "cancelled_tickets",
}

TYPE_FIELDS = {
    MaintenanceTypeEnum.BUILDING: "building_maintenance_count",
    MaintenanceTypeEnum.ROOM: "room_maintenance_count",
    MaintenanceTypeEnum.OTHER: "other_maintenance_count",
}

PRIORITY_FIELDS = {
    PriorityEnum.URGENT: "urgent_priority_count",
    PriorityEnum.HIGH: "high_priority_count",
    PriorityEnum.MEDIUM: "medium_priority_count",
    PriorityEnum.LOW: "low_priority_count",
}


@dataclass
class MaintenanceInputs:
    """Records read for one maintenance aggregation."""

    tickets: List[MaintenanceTicket] = field(default_factory=list)
    requests: List[MaintenanceRequest] = field(default_factory=list)


def _count_by(frame: pd.DataFrame, column: str, fields: dict) -> dict:
    return {name: int((frame[column] == key.value).sum()) for key, name in fields.items()}


class MaintenanceAggregator(PeriodAggregator[MaintenanceInputs, MaintenanceSummary]):
    """
    Builds one ``MaintenanceSummary`` per period.

    Notes on derived values:
    - ``avg_resolution_days`` averages whole days (rounded up) between
      ``created_at`` and ``completed_at`` over COMPLETED tickets that have both;
      tickets without ``completed_at`` are left out rather than counted as 0.
    - ``avg_cost_per_request`` divides completed ticket cost by the number of
      requests in the period. Requests and tickets are different entities, so
      this is an approximation; ``avg_cost_per_ticket`` divides the same cost
      by the completed ticket count.

    Periods with neither tickets nor requests are dropped.

    Tickets and requests are recorded per property, so a room scope reports
    on the room's property.
    """

    drop_if_empty = True

    def fetch(self, scope: ScopeFilter, periods: List[Period]) -> MaintenanceInputs:
        is_room = scope.kind == ScopeKind.ROOM
        resolved = self.resolve_scope(scope, with_rooms=is_room)
        if is_room:
            if not resolved.rooms:
                logger.debug(f"Room {scope.room_id} is not in property {scope.property_id}")
                return MaintenanceInputs()
            logger.debug(
                f"Maintenance records carry no room; reporting on property {scope.property_id}"
            )
        if resolved.is_empty:
            return MaintenanceInputs()

        by_property = [is_in("property_id", resolved.property_ids)] + self._live()
        newest_first = OrderBy(column="created_at", descending=True)
        tickets = self.store.fetch_records(
            EntityEnum.MAINTENANCE_TICKET, by_property, newest_first
        )
        requests = self.store.fetch_records(
            EntityEnum.MAINTENANCE_REQUEST, by_property, newest_first
        )

        logger.debug(f"Maintenance fetch: {len(tickets)} tickets, {len(requests)} requests")
        return MaintenanceInputs(tickets=tickets, requests=requests)

    def compute(
        self, periods: List[Period], inputs: MaintenanceInputs, scope: ScopeFilter
    ) -> List[MaintenanceSummary]:
        tickets = records_frame(inputs.tickets, TICKET_COLUMNS)
        tickets["created_on"] = date_column(
            [self.settings.to_local_date(t.created_at) for t in inputs.tickets]
        )
        tickets["resolution_days"] = [self._resolution_days(t) for t in inputs.tickets]

        requests = records_frame(inputs.requests, REQUEST_COLUMNS)
        requests["created_on"] = date_column(
            [self.settings.to_local_date(r.created_at) for r in inputs.requests]
        )

        return [
            self._summarize_period(period, tickets, requests, scope) for period in periods
        ]

    def _resolution_days(self, ticket: MaintenanceTicket) -> float:
        """Whole days from creation to completion, NaN when not measurable."""
        if (
            ticket.status != TicketStatusEnum.COMPLETED
            or ticket.created_at is None
            or ticket.completed_at is None
        ):
            return math.nan
        created = self.settings.to_local_timestamp(ticket.created_at)
        completed = self.settings.to_local_timestamp(ticket.completed_at)
        return float(math.ceil((completed - created).total_seconds() / SECONDS_PER_DAY))

    def _summarize_period(
        self,
        period: Period,
        tickets: pd.DataFrame,
        requests: pd.DataFrame,
        scope: ScopeFilter,
    ) -> MaintenanceSummary:
        period_tickets = tickets[in_period(tickets["created_on"], period)]
        period_requests = requests[in_period(requests["created_on"], period)]

        total_tickets = len(period_tickets)
        total_requests = len(period_requests)
        ticket_counts = _count_by(period_tickets, "status", TICKET_STATUS_FIELDS)
        completed_tickets = ticket_counts["completed_tickets"]

        completed = period_tickets[period_tickets["status"] == TicketStatusEnum.COMPLETED.value]
        total_cost = float(completed["cost"].sum())
        estimated_cost = float(
            period_tickets.loc[
                period_tickets["status"].isin(
                    [TicketStatusEnum.PENDING.value, TicketStatusEnum.IN_PROGRESS.value]
                ),
                "cost",
            ].sum()
        )

        resolution = completed["resolution_days"].dropna()
        avg_resolution_days = float(resolution.mean()) if len(resolution) else 0.0

        return MaintenanceSummary(
            id=f"{scope.label}-maintenance-{period.start}",
            property_id=scope.property_id,
            room_id=scope.room_id if scope.kind == ScopeKind.ROOM else None,
            period_type=period.type,
            period_start=period.start_date,
            period_end=period.end_date,
            total_requests=total_requests,
            total_tickets=total_tickets,
            completion_rate=safe_percentage(completed_tickets, total_tickets),
            avg_resolution_days=avg_resolution_days,
            total_maintenance_cost=total_cost,
            estimated_maintenance_cost=estimated_cost,
            avg_cost_per_request=safe_ratio(total_cost, total_requests),
            avg_cost_per_ticket=safe_ratio(total_cost, completed_tickets),
            **_count_by(period_requests, "status", REQUEST_STATUS_FIELDS),
            **ticket_counts,
            **_count_by(period_tickets, "maintenance_type", TYPE_FIELDS),
            **_count_by(period_tickets, "priority", PRIORITY_FIELDS),
        )

    def has_activity(self, summary: MaintenanceSummary) -> bool:
        return summary.total_tickets > 0 or summary.total_requests > 0
