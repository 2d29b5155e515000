# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Record store backends.

The reporting engine depends only on ``RecordStore``; two implementations are
provided: a Python-list store and a DuckDB-backed store.
"""

from .base import (
    OrderBy,
    Predicate,
    RecordStore,
    coerce_entity,
    eq,
    gte,
    is_in,
    is_null,
    lte,
)
from .duckdb_store import DuckDBRecordStore
from .memory import InMemoryRecordStore
from .records import (
    RECORD_TYPES,
    Bill,
    BillLineItem,
    Contract,
    MaintenanceRequest,
    MaintenanceTicket,
    PropertyRecord,
    Record,
    Room,
    Tenant,
)

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "DuckDBRecordStore",
    "Predicate",
    "OrderBy",
    "coerce_entity",
    "eq",
    "gte",
    "is_in",
    "is_null",
    "lte",
    "RECORD_TYPES",
    "Record",
    "Bill",
    "BillLineItem",
    "Contract",
    "MaintenanceRequest",
    "MaintenanceTicket",
    "PropertyRecord",
    "Room",
    "Tenant",
]
