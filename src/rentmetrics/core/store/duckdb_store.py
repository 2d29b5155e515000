# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
DuckDB-backed record store.

One in-memory DuckDB table per entity. Rows are bulk-inserted with
``executemany`` and predicates are compiled to parameterised SQL, so range and
membership filters run inside DuckDB instead of in Python.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import duckdb
import pandas as pd
from pydantic import BaseModel

from ..primitives.enums import EntityEnum, PredicateOpEnum
from .base import OrderBy, Predicate, RecordStore, Row, coerce_entity

logger = logging.getLogger(__name__)

# Column name -> DuckDB type, per entity. Timestamps are stored as naive UTC.
TABLE_SCHEMAS: Dict[EntityEnum, List[Tuple[str, str]]] = {
    EntityEnum.PROPERTY: [
        ("id", "VARCHAR"),
        ("owner_id", "VARCHAR"),
        ("name", "VARCHAR"),
        ("deleted_at", "TIMESTAMP"),
    ],
    EntityEnum.ROOM: [
        ("id", "VARCHAR"),
        ("property_id", "VARCHAR"),
        ("status", "VARCHAR(20)"),
        ("monthly_rent", "DOUBLE"),
        ("name", "VARCHAR"),
        ("deleted_at", "TIMESTAMP"),
    ],
    EntityEnum.TENANT: [
        ("id", "VARCHAR"),
        ("room_id", "VARCHAR"),
        ("active_in_room", "BOOLEAN"),
    ],
    EntityEnum.CONTRACT: [
        ("id", "VARCHAR"),
        ("room_id", "VARCHAR"),
        ("status", "VARCHAR(20)"),
        ("start_date", "DATE"),
        ("end_date", "DATE"),
        ("created_at", "TIMESTAMP"),
        ("deleted_at", "TIMESTAMP"),
    ],
    EntityEnum.BILL: [
        ("id", "VARCHAR"),
        ("room_id", "VARCHAR"),
        ("period_start", "DATE"),
        ("status", "VARCHAR(20)"),
        ("total_amount", "DOUBLE"),
        ("late_fee", "DOUBLE"),
        ("created_at", "TIMESTAMP"),
        ("deleted_at", "TIMESTAMP"),
    ],
    EntityEnum.BILL_LINE_ITEM: [
        ("bill_id", "VARCHAR"),
        ("service_id", "VARCHAR"),
        ("amount", "DOUBLE"),
    ],
    EntityEnum.MAINTENANCE_TICKET: [
        ("id", "VARCHAR"),
        ("property_id", "VARCHAR"),
        ("status", "VARCHAR(20)"),
        ("cost", "DOUBLE"),
        ("maintenance_type", "VARCHAR(20)"),
        ("priority", "VARCHAR(20)"),
        ("created_at", "TIMESTAMP"),
        ("completed_at", "TIMESTAMP"),
        ("deleted_at", "TIMESTAMP"),
    ],
    EntityEnum.MAINTENANCE_REQUEST: [
        ("id", "VARCHAR"),
        ("property_id", "VARCHAR"),
        ("status", "VARCHAR(20)"),
        ("created_at", "TIMESTAMP"),
        ("deleted_at", "TIMESTAMP"),
    ],
}

_SQL_OPERATORS = {
    PredicateOpEnum.EQ: "=",
    PredicateOpEnum.GTE: ">=",
    PredicateOpEnum.LTE: "<=",
}


class DuckDBRecordStore(RecordStore):
    """
    Record store over an in-memory DuckDB connection.

    Timestamps are normalised to UTC on insert and come back timezone-aware.
    Naive datetimes passed to ``insert`` are read as local time in
    ``timezone``, matching how the aggregators interpret naive values.

    Example:
        ```python
        store = DuckDBRecordStore()
        store.insert("bills", bill_rows)
        bills = store.fetch_records("bills", [gte("period_start", date(2024, 1, 1))])
        ```
    """

    def __init__(self, timezone_name: str = "Asia/Ho_Chi_Minh"):
        self.con = duckdb.connect(database=":memory:", read_only=False)
        self.timezone_name = timezone_name
        for entity, columns in TABLE_SCHEMAS.items():
            column_sql = ",\n    ".join(f"{name} {sql_type}" for name, sql_type in columns)
            self.con.execute(f"CREATE TABLE {entity.value} (\n    {column_sql}\n);")
            logger.debug(f"DuckDB table '{entity.value}' created in memory.")

    def close(self) -> None:
        self.con.close()

    def _column_types(self, entity: EntityEnum) -> Dict[str, str]:
        return dict(TABLE_SCHEMAS[entity])

    def _to_sql_value(self, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, datetime):
            ts = pd.Timestamp(value)
            if ts.tzinfo is None:
                ts = ts.tz_localize(self.timezone_name)
            return ts.tz_convert("UTC").tz_localize(None).to_pydatetime()
        return value

    def insert(self, entity: Union[EntityEnum, str], rows: Iterable[Any]) -> None:
        """Bulk-insert rows (dicts or pydantic records); unknown columns are dropped."""
        entity = coerce_entity(entity)
        columns = [name for name, _ in TABLE_SCHEMAS[entity]]
        values = []
        for row in rows:
            if isinstance(row, BaseModel):
                row = row.model_dump()
            values.append([self._to_sql_value(row.get(c)) for c in columns])
        if not values:
            return

        placeholders = ", ".join("?" for _ in columns)
        self.con.executemany(
            f"INSERT INTO {entity.value} ({', '.join(columns)}) VALUES ({placeholders})",
            values,
        )
        logger.debug(f"Inserted {len(values)} rows into DuckDB '{entity.value}'")

    def _compile(
        self,
        entity: EntityEnum,
        predicates: Sequence[Predicate],
        order_by: Optional[OrderBy],
    ) -> Tuple[str, List[Any]]:
        column_types = self._column_types(entity)
        clauses: List[str] = []
        params: List[Any] = []

        for predicate in predicates:
            column = predicate.column
            if column not in column_types:
                raise ValueError(f"Unknown column '{column}' for '{entity.value}'")
            if predicate.op == PredicateOpEnum.IS_NULL or (
                predicate.op == PredicateOpEnum.EQ and predicate.value is None
            ):
                clauses.append(f"{column} IS NULL")
            elif predicate.op == PredicateOpEnum.IN:
                members = list(predicate.value or ())
                if not members:
                    clauses.append("FALSE")
                else:
                    clauses.append(f"{column} IN ({', '.join('?' for _ in members)})")
                    params.extend(self._to_sql_value(m) for m in members)
            else:
                clauses.append(f"{column} {_SQL_OPERATORS[predicate.op]} ?")
                params.append(self._to_sql_value(predicate.value))

        sql = f"SELECT * FROM {entity.value}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        if order_by is not None:
            if order_by.column not in column_types:
                raise ValueError(f"Unknown order column '{order_by.column}' for '{entity.value}'")
            direction = "DESC" if order_by.descending else "ASC"
            sql += f" ORDER BY {order_by.column} {direction} NULLS LAST"
        return sql, params

    def fetch(
        self,
        entity: EntityEnum,
        predicates: Sequence[Predicate] = (),
        order_by: Optional[OrderBy] = None,
    ) -> List[Row]:
        entity = coerce_entity(entity)
        sql, params = self._compile(entity, predicates, order_by)
        logger.debug(f"DuckDB fetch: {sql} {params}")

        cursor = self.con.execute(sql, params)
        names = [d[0] for d in cursor.description]
        timestamp_columns = {
            name for name, sql_type in TABLE_SCHEMAS[entity] if sql_type == "TIMESTAMP"
        }

        rows = []
        for values in cursor.fetchall():
            row = dict(zip(names, values))
            for name in timestamp_columns:
                if row.get(name) is not None:
                    row[name] = row[name].replace(tzinfo=timezone.utc)
            rows.append(row)
        return rows
