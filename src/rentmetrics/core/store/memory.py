# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
In-memory record store.

Holds rows per entity in plain lists and evaluates predicates in Python.
Intended for tests, notebooks and small single-owner datasets.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel, TypeAdapter

from ..primitives.enums import EntityEnum, PredicateOpEnum
from .base import OrderBy, Predicate, RecordStore, Row, coerce_entity
from .records import RECORD_TYPES

logger = logging.getLogger(__name__)

_TEMPORAL_TYPES = (date, datetime, Optional[date], Optional[datetime])

_temporal_adapters: Dict[EntityEnum, Dict[str, TypeAdapter]] = {}


def _temporal_columns(entity: EntityEnum) -> Dict[str, TypeAdapter]:
    """Adapters for the date and timestamp columns of an entity."""
    if entity not in _temporal_adapters:
        _temporal_adapters[entity] = {
            name: TypeAdapter(info.annotation)
            for name, info in RECORD_TYPES[entity].model_fields.items()
            if info.annotation in _TEMPORAL_TYPES
        }
    return _temporal_adapters[entity]


def _comparable(value: Any, other: Any) -> Any:
    """Align a row value with a predicate value so they can be compared."""
    if isinstance(value, Enum):
        value = value.value
    # A timestamp compared against a calendar bound is compared by its date
    if isinstance(value, datetime) and isinstance(other, date) and not isinstance(other, datetime):
        return value.date()
    return value


def _matches(row: Row, predicate: Predicate) -> bool:
    value = row.get(predicate.column)
    if predicate.op == PredicateOpEnum.IS_NULL:
        return value is None
    if value is None:
        return False
    if predicate.op == PredicateOpEnum.EQ:
        return _comparable(value, predicate.value) == predicate.value
    if predicate.op == PredicateOpEnum.IN:
        return _comparable(value, None) in predicate.value
    if predicate.op == PredicateOpEnum.GTE:
        return _comparable(value, predicate.value) >= predicate.value
    if predicate.op == PredicateOpEnum.LTE:
        return _comparable(value, predicate.value) <= predicate.value
    raise ValueError(f"Unsupported predicate operator: {predicate.op}")


class InMemoryRecordStore(RecordStore):
    """
    Record store backed by Python lists.

    Example:
        ```python
        store = InMemoryRecordStore()
        store.insert("rooms", [{"id": "r-1", "property_id": "p-1", "status": "VACANT"}])
        rooms = store.fetch_records("rooms", [eq("property_id", "p-1")])
        ```
    """

    def __init__(self, data: Optional[Dict[Union[EntityEnum, str], Iterable[Any]]] = None):
        self._rows: Dict[EntityEnum, List[Row]] = defaultdict(list)
        for entity, rows in (data or {}).items():
            self.insert(entity, rows)

    def insert(self, entity: Union[EntityEnum, str], rows: Iterable[Any]) -> None:
        """
        Append rows (dicts or pydantic records) to an entity.

        ISO strings in date and timestamp columns are parsed here, so range
        predicates and ordering compare typed values.

        Raises:
            ValidationError: If such a string is not a valid date or timestamp
        """
        entity = coerce_entity(entity)
        temporal = _temporal_columns(entity)
        added = 0
        for row in rows:
            if isinstance(row, BaseModel):
                row = row.model_dump()
            row = dict(row)
            for name, adapter in temporal.items():
                if isinstance(row.get(name), str):
                    row[name] = adapter.validate_python(row[name])
            self._rows[entity].append(row)
            added += 1
        logger.debug(f"Inserted {added} rows into in-memory '{entity.value}'")

    def count(self, entity: Union[EntityEnum, str]) -> int:
        return len(self._rows[coerce_entity(entity)])

    def fetch(
        self,
        entity: EntityEnum,
        predicates: Sequence[Predicate] = (),
        order_by: Optional[OrderBy] = None,
    ) -> List[Row]:
        rows = [
            dict(row)
            for row in self._rows[coerce_entity(entity)]
            if all(_matches(row, p) for p in predicates)
        ]
        if order_by is None:
            return rows

        present = [r for r in rows if r.get(order_by.column) is not None]
        missing = [r for r in rows if r.get(order_by.column) is None]
        present.sort(
            key=lambda r: _comparable(r[order_by.column], None),
            reverse=order_by.descending,
        )
        return present + missing
