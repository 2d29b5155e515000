# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from enum import Enum


class PeriodTypeEnum(str, Enum):
    """
    Calendar granularities a reporting period can take.

    All periods are calendar aligned and inclusive on both ends:
    - WEEKLY: Sunday through Saturday
    - MONTHLY: 1st through last day of the month
    - QUARTERLY: Jan-Mar, Apr-Jun, Jul-Sep, Oct-Dec
    - YEARLY: Jan 1st through Dec 31st
    """

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class BillStatusEnum(str, Enum):
    """Lifecycle status of a bill. Only PAID bills count as realized revenue."""

    UNPAID = "UNPAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PROCESSING = "PROCESSING"


class TicketStatusEnum(str, Enum):
    """Status of a maintenance ticket (work order)."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class RequestStatusEnum(str, Enum):
    """Status of a maintenance request (intake stage, upstream of tickets)."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class MaintenanceTypeEnum(str, Enum):
    BUILDING = "BUILDING"
    ROOM = "ROOM"
    OTHER = "OTHER"


class PriorityEnum(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ContractStatusEnum(str, Enum):
    """
    Status of a rental contract.

    DRAFT contracts represent rooms holding a deposit that have not yet
    moved in; they are reported as "deposited" rooms in occupancy.
    """

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"


class RoomStatusEnum(str, Enum):
    OCCUPIED = "OCCUPIED"
    VACANT = "VACANT"
    MAINTENANCE = "MAINTENANCE"


class EntityEnum(str, Enum):
    """Entities readable from a record store. Values double as table names."""

    PROPERTY = "properties"
    ROOM = "rooms"
    TENANT = "tenants"
    CONTRACT = "contracts"
    BILL = "bills"
    BILL_LINE_ITEM = "bill_items"
    MAINTENANCE_TICKET = "maintenance"
    MAINTENANCE_REQUEST = "maintenance_requests"


class PredicateOpEnum(str, Enum):
    """Comparison operators a record store must support."""

    EQ = "eq"
    IN = "in"
    GTE = "gte"
    LTE = "lte"
    IS_NULL = "is_null"


class ScopeKind(str, Enum):
    """Which records an aggregation covers."""

    ALL_PROPERTIES = "all_properties"  # Every property owned by the caller
    PROPERTY = "property"  # Every room of one property
    ROOM = "room"  # A single room


class ReportTypeEnum(str, Enum):
    """Report families exposed through the dashboard assembler."""

    FINANCIAL = "financial"
    OCCUPANCY = "occupancy"
    MAINTENANCE = "maintenance"
    CONTRACT = "contract"


def enum_to_string(value) -> str:
    """
    Convert enum values to their string representation for storage.

    Args:
        value: Any value, but primarily expected to be enum instances

    Returns:
        String representation of the enum value, or str(value) for non-enums

    Examples:
        >>> enum_to_string(BillStatusEnum.PAID)
        'PAID'
        >>> enum_to_string("already_string")
        'already_string'
    """
    if isinstance(value, Enum):
        return value.value
    return str(value)
