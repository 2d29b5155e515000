# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Occupancy snapshot and occupancy trend.

Unlike the period aggregators, the snapshot describes the current state of a
scope and is always returned, even for a scope without rooms.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List

from ..core.exceptions import InvalidParameter
from ..core.primitives.enums import (
    ContractStatusEnum,
    EntityEnum,
    PeriodTypeEnum,
    RoomStatusEnum,
    ScopeKind,
)
from ..core.primitives.scope import ScopeFilter
from ..core.store.base import eq, is_in
from ..core.store.records import Contract, Room, Tenant
from .base import BaseAggregator, safe_percentage
from .summaries import OccupancySummary, OccupancyTrendPoint

logger = logging.getLogger(__name__)


@dataclass
class OccupancyInputs:
    """Records read for one occupancy snapshot."""

    rooms: List[Room] = field(default_factory=list)
    contracts: List[Contract] = field(default_factory=list)
    tenants: List[Tenant] = field(default_factory=list)


class OccupancyAggregator(BaseAggregator):
    """
    Computes a single ``OccupancySummary`` for a scope.

    - rooms are counted by status; occupancy rate is occupied / total * 100
    - DRAFT contracts count as deposited rooms, ACTIVE ones as active contracts
    - expiring soon: ACTIVE contracts ending between today and
      today + ``settings.expiring_soon_days``
    - tenants: tenant records flagged active in one of the scope's rooms
    - revenue loss: monthly rent of VACANT rooms

    The snapshot is never dropped: a scope with no rooms yields an all-zero
    summary.
    """

    drop_if_empty = False

    def summarize(self, scope: ScopeFilter) -> OccupancySummary:
        """
        Compute the occupancy snapshot for ``scope``.

        Raises:
            InvalidParameter: If the scope is incomplete (before any read)
            DataUnavailable: If any store read fails
        """
        scope.ensure_complete()
        inputs = self.fetch(scope)
        return self.compute(inputs, scope)

    def fetch(self, scope: ScopeFilter) -> OccupancyInputs:
        resolved = self.resolve_scope(scope)
        rooms = list(resolved.rooms)
        if not rooms:
            logger.debug("Occupancy scope has no rooms; returning zero snapshot")
            return OccupancyInputs()

        room_ids = [r.id for r in rooms]
        contracts = self.store.fetch_records(
            EntityEnum.CONTRACT, [is_in("room_id", room_ids)] + self._live()
        )
        tenants = self.store.fetch_records(
            EntityEnum.TENANT, [is_in("room_id", room_ids), eq("active_in_room", True)]
        )
        return OccupancyInputs(rooms=rooms, contracts=contracts, tenants=tenants)

    def compute(self, inputs: OccupancyInputs, scope: ScopeFilter) -> OccupancySummary:
        today = self.settings.today()
        horizon = today + timedelta(days=self.settings.expiring_soon_days)

        def rooms_with(status: RoomStatusEnum) -> List[Room]:
            return [r for r in inputs.rooms if r.status == status]

        occupied = len(rooms_with(RoomStatusEnum.OCCUPIED))
        vacant_rooms = rooms_with(RoomStatusEnum.VACANT)
        under_maintenance = len(rooms_with(RoomStatusEnum.MAINTENANCE))
        total_rooms = occupied + len(vacant_rooms) + under_maintenance

        active = [c for c in inputs.contracts if c.status == ContractStatusEnum.ACTIVE]
        expiring_soon = [
            c for c in active if c.end_date is not None and today <= c.end_date <= horizon
        ]

        return OccupancySummary(
            id=f"{scope.label}-occupancy-{today.isoformat()}",
            property_id=scope.property_id,
            room_id=scope.room_id if scope.kind == ScopeKind.ROOM else None,
            report_date=today,
            total_rooms=total_rooms,
            occupied_rooms=occupied,
            vacant_rooms=len(vacant_rooms),
            maintenance_rooms=under_maintenance,
            deposited_rooms=sum(
                1 for c in inputs.contracts if c.status == ContractStatusEnum.DRAFT
            ),
            occupancy_rate=safe_percentage(occupied, total_rooms),
            total_tenants=sum(1 for t in inputs.tenants if t.active_in_room),
            active_contracts=len(active),
            expiring_soon_contracts=len(expiring_soon),
            revenue_loss=sum(r.monthly_rent for r in vacant_rooms),
            total_rent_potential=sum(r.monthly_rent for r in inputs.rooms),
        )

    def occupancy_trend(self, scope: ScopeFilter, months: int = 12) -> List[OccupancyTrendPoint]:
        """
        Month-by-month occupancy derived from contract spans, oldest first.

        A room counts as occupied in a month when an ACTIVE contract started on
        or before the month's last day and has no end date or ends on or after
        its first day. The current room count is used as the denominator for
        every month.

        Args:
            scope: Which rooms to look at
            months: Number of calendar months ending with the current one

        Returns:
            One point per month, or an empty list when the scope has no rooms
        """
        if isinstance(months, bool) or not isinstance(months, int) or months <= 0:
            raise InvalidParameter(
                f"months must be a positive integer, got {months!r}", parameter="months"
            )
        scope.ensure_complete()

        resolved = self.resolve_scope(scope)
        rooms = list(resolved.rooms)
        if not rooms:
            return []

        contracts = self.store.fetch_records(
            EntityEnum.CONTRACT,
            [
                is_in("room_id", [r.id for r in rooms]),
                eq("status", ContractStatusEnum.ACTIVE.value),
            ]
            + self._live(),
        )
        total = len(rooms)

        points = []
        for period in reversed(self.calculator.compute(PeriodTypeEnum.MONTHLY, months)):
            occupied = sum(
                1
                for c in contracts
                if c.start_date is not None
                and c.start_date <= period.end_date
                and (c.end_date is None or c.end_date >= period.start_date)
            )
            points.append(
                OccupancyTrendPoint(
                    month_start=period.start_date,
                    occupied=occupied,
                    vacant=total - occupied,
                    total=total,
                    occupancy_rate=round(safe_percentage(occupied, total), 2),
                )
            )
        return points
