# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Contract lifecycle aggregation.

A contract is relevant to a period when it was created, started or ended in
the period, or when its [start_date, end_date] span overlaps the period. The
predicate is deliberately broad: a long contract is counted in every period
it spans.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Optional

import pandas as pd

from ..core.exceptions import InvalidParameter
from ..core.primitives.enums import ContractStatusEnum, EntityEnum, ScopeKind
from ..core.primitives.period import Period
from ..core.primitives.scope import ScopeFilter
from ..core.primitives.settings import ReportSettings
from ..core.store.base import OrderBy, eq, is_in
from ..core.store.records import Contract, PropertyRecord, Room
from .base import PeriodAggregator, date_column, in_period, records_frame, safe_percentage
from .summaries import ContractSummary, ExpiringContract

logger = logging.getLogger(__name__)

CONTRACT_COLUMNS = ["id", "room_id", "status"]

STATUS_FIELDS = {
    ContractStatusEnum.DRAFT: "draft_contracts",
    ContractStatusEnum.ACTIVE: "active_contracts",
    ContractStatusEnum.EXPIRED: "expired_contracts",
    ContractStatusEnum.TERMINATED: "terminated_contracts",
}

ENDED_STATUSES = [ContractStatusEnum.EXPIRED.value, ContractStatusEnum.TERMINATED.value]


@dataclass
class ContractInputs:
    """Records read for one contract aggregation."""

    contracts: List[Contract] = field(default_factory=list)


def _contracts_frame(contracts: List[Contract], settings: ReportSettings) -> pd.DataFrame:
    frame = records_frame(contracts, CONTRACT_COLUMNS)
    frame["start_date"] = date_column([c.start_date for c in contracts])
    frame["end_date"] = date_column([c.end_date for c in contracts])
    frame["created_on"] = date_column([settings.to_local_date(c.created_at) for c in contracts])
    return frame


class ContractAggregator(PeriodAggregator[ContractInputs, ContractSummary]):
    """
    Builds one ``ContractSummary`` per period.

    Per period, among relevant contracts:
    - status counts (DRAFT, ACTIVE, EXPIRED, TERMINATED)
    - new contracts: created in the period
    - renewals: ACTIVE and started in the period. There is no link between
      successive contracts of a room, so any ACTIVE contract starting in the
      period counts.
    - terminations: EXPIRED or TERMINATED with ``end_date`` in the period
    - renewal rate: renewals / (renewals + terminations) * 100
    - churn rate: terminations / contracts ACTIVE at the period start * 100,
      where "active at start" means status ACTIVE, started before the period
      and not ended before it

    ``expiring_30/60/90_days`` count ACTIVE contracts of the whole scope whose
    ``end_date`` lies between today and today + N days, so they are the same
    for every period of one call.

    Zero-activity periods are kept; the result is empty only when no contract
    is relevant to any period.
    """

    drop_if_empty = False

    def _scope_room_ids(self, scope: ScopeFilter) -> List[str]:
        return list(self.resolve_scope(scope).room_ids)

    def fetch(self, scope: ScopeFilter, periods: List[Period]) -> ContractInputs:
        room_ids = self._scope_room_ids(scope)
        if not room_ids:
            logger.debug("Contract scope has no rooms; nothing to aggregate")
            return ContractInputs()

        contracts = self.store.fetch_records(
            EntityEnum.CONTRACT,
            [is_in("room_id", room_ids)] + self._live(),
            OrderBy(column="start_date", descending=True),
        )
        logger.debug(f"Contract fetch: {len(contracts)} contracts")
        return ContractInputs(contracts=contracts)

    def compute(
        self, periods: List[Period], inputs: ContractInputs, scope: ScopeFilter
    ) -> List[ContractSummary]:
        contracts = _contracts_frame(inputs.contracts, self.settings)
        expiring = self._expiring_counts(contracts)
        return [
            self._summarize_period(period, contracts, expiring, scope) for period in periods
        ]

    def _expiring_counts(self, contracts: pd.DataFrame) -> Dict[str, int]:
        today = pd.Timestamp(self.settings.today())
        active = contracts[contracts["status"] == ContractStatusEnum.ACTIVE.value]
        names = ("expiring_30_days", "expiring_60_days", "expiring_90_days")
        counts = {}
        for name, days in zip(names, self.settings.expiring_windows):
            horizon = today + pd.Timedelta(days=days)
            mask = (active["end_date"] >= today) & (active["end_date"] <= horizon)
            counts[name] = int(mask.sum())
        return counts

    def _summarize_period(
        self,
        period: Period,
        contracts: pd.DataFrame,
        expiring: Dict[str, int],
        scope: ScopeFilter,
    ) -> ContractSummary:
        period_start = pd.Timestamp(period.start_date)
        period_end = pd.Timestamp(period.end_date)

        created_in = in_period(contracts["created_on"], period)
        started_in = in_period(contracts["start_date"], period)
        ended_in = in_period(contracts["end_date"], period)
        spans = (contracts["start_date"] <= period_end) & (contracts["end_date"] >= period_start)
        relevant_mask = created_in | started_in | ended_in | spans
        relevant = contracts[relevant_mask]

        status = relevant["status"]
        is_active = status == ContractStatusEnum.ACTIVE.value
        new_contracts = int(created_in[relevant_mask].sum())
        renewals = int((started_in[relevant_mask] & is_active).sum())
        terminations = int((ended_in[relevant_mask] & status.isin(ENDED_STATUSES)).sum())

        active_at_start = int(
            (
                (contracts["status"] == ContractStatusEnum.ACTIVE.value)
                & (contracts["start_date"] < period_start)
                & (contracts["end_date"].isna() | (contracts["end_date"] >= period_start))
            ).sum()
        )

        status_counts = {
            name: int((status == key.value).sum()) for key, name in STATUS_FIELDS.items()
        }

        return ContractSummary(
            id=f"{scope.label}-contracts-{period.start}",
            property_id=scope.property_id,
            room_id=scope.room_id if scope.kind == ScopeKind.ROOM else None,
            period_type=period.type,
            period_start=period.start_date,
            period_end=period.end_date,
            total_contracts=len(relevant),
            new_contracts=new_contracts,
            renewals=renewals,
            terminations=terminations,
            active_at_period_start=active_at_start,
            renewal_rate=safe_percentage(renewals, renewals + terminations),
            churn_rate=safe_percentage(terminations, active_at_start),
            **status_counts,
            **expiring,
        )

    def has_activity(self, summary: ContractSummary) -> bool:
        return summary.total_contracts > 0

    def expiring_contracts(
        self, scope: ScopeFilter, days: Optional[int] = None
    ) -> List[ExpiringContract]:
        """
        List ACTIVE contracts ending between today and today + ``days``.

        Args:
            scope: Which rooms to look at
            days: Lookahead in days (defaults to ``settings.expiring_soon_days``)

        Returns:
            Contracts sorted by end date, soonest first, with room and
            property names attached where known
        """
        if days is None:
            days = self.settings.expiring_soon_days
        if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
            raise InvalidParameter(f"days must be a positive integer, got {days!r}", parameter="days")

        resolved = self.resolve_scope(scope)
        rooms: Dict[str, Room] = {r.id: r for r in resolved.rooms}
        if not rooms:
            return []

        contracts = self.store.fetch_records(
            EntityEnum.CONTRACT,
            [is_in("room_id", list(rooms)), eq("status", ContractStatusEnum.ACTIVE.value)]
            + self._live(),
        )
        properties: Dict[str, PropertyRecord] = {
            p.id: p
            for p in self.store.fetch_records(
                EntityEnum.PROPERTY, [is_in("id", resolved.property_ids)]
            )
        }

        today = self.settings.today()
        horizon = today + timedelta(days=days)
        expiring = []
        for contract in contracts:
            end = contract.end_date
            if end is None or not (today <= end <= horizon):
                continue
            room = rooms.get(contract.room_id)
            prop = properties.get(room.property_id) if room else None
            expiring.append(
                ExpiringContract(
                    id=contract.id,
                    room_id=contract.room_id,
                    room_name=room.name if room else None,
                    property_id=room.property_id if room else None,
                    property_name=prop.name if prop else None,
                    end_date=end,
                    days_remaining=(end - today).days,
                )
            )

        expiring.sort(key=lambda c: (c.end_date, c.id))
        return expiring
