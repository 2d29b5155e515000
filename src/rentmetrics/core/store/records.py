# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Typed records read from a record store.

Rows coming back from a store are plain dictionaries; they are validated into
these immutable models at the fetch boundary so the compute phase only ever
sees typed values. Unknown columns are ignored, numeric nulls read as zero.
"""

from __future__ import annotations

import datetime
from typing import Annotated, Dict, Optional, Type

from pydantic import BeforeValidator, ConfigDict

from ..primitives.enums import (
    BillStatusEnum,
    ContractStatusEnum,
    EntityEnum,
    MaintenanceTypeEnum,
    PriorityEnum,
    RequestStatusEnum,
    RoomStatusEnum,
    TicketStatusEnum,
)
from ..primitives.model import Model


class Record(Model):
    """Base for store records; tolerant of extra columns."""

    model_config = ConfigDict(extra="ignore")


def _none_to_zero(v):
    return 0.0 if v is None else v


# Numeric columns stored as NULL read as zero
Amount = Annotated[float, BeforeValidator(_none_to_zero)]


class PropertyRecord(Record):
    id: str
    owner_id: Optional[str] = None
    name: Optional[str] = None
    deleted_at: Optional[datetime.datetime] = None


class Room(Record):
    """A rentable room. ``monthly_rent`` feeds occupancy revenue loss."""

    id: str
    property_id: str
    status: RoomStatusEnum
    monthly_rent: Amount = 0.0
    name: Optional[str] = None
    deleted_at: Optional[datetime.datetime] = None


class Tenant(Record):
    id: str
    room_id: Optional[str] = None
    active_in_room: bool = False


class Contract(Record):
    """A rental contract; ``end_date`` is None for open-ended contracts."""

    id: str
    room_id: str
    status: ContractStatusEnum
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    created_at: Optional[datetime.datetime] = None
    deleted_at: Optional[datetime.datetime] = None


class Bill(Record):
    """
    A bill issued for one room and billing period.

    Bills are bucketed into reporting periods by ``period_start``.
    """

    id: str
    room_id: str
    period_start: Optional[datetime.date] = None
    status: BillStatusEnum
    total_amount: Amount = 0.0
    late_fee: Amount = 0.0
    created_at: Optional[datetime.datetime] = None
    deleted_at: Optional[datetime.datetime] = None


class BillLineItem(Record):
    """
    One line of a bill. A null ``service_id`` marks the rent line; any other
    line is a metered or fixed service charge.
    """

    bill_id: str
    service_id: Optional[str] = None
    amount: Amount = 0.0

    @property
    def is_rent(self) -> bool:
        return self.service_id is None


class MaintenanceTicket(Record):
    """A maintenance work order against a property."""

    id: str
    property_id: str
    status: TicketStatusEnum
    cost: Amount = 0.0
    maintenance_type: Optional[MaintenanceTypeEnum] = None
    priority: Optional[PriorityEnum] = None
    created_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None
    deleted_at: Optional[datetime.datetime] = None


class MaintenanceRequest(Record):
    """
    An intake-stage maintenance request. Not linked to tickets; requests and
    tickets are reported as independent streams.
    """

    id: str
    property_id: str
    status: RequestStatusEnum
    created_at: Optional[datetime.datetime] = None
    deleted_at: Optional[datetime.datetime] = None


RECORD_TYPES: Dict[EntityEnum, Type[Record]] = {
    EntityEnum.PROPERTY: PropertyRecord,
    EntityEnum.ROOM: Room,
    EntityEnum.TENANT: Tenant,
    EntityEnum.CONTRACT: Contract,
    EntityEnum.BILL: Bill,
    EntityEnum.BILL_LINE_ITEM: BillLineItem,
    EntityEnum.MAINTENANCE_TICKET: MaintenanceTicket,
    EntityEnum.MAINTENANCE_REQUEST: MaintenanceRequest,
}
