# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Abstract record store interface.

The reporting engine reads everything through one capability:
``fetch(entity, predicates, order_by) -> rows``. Predicates are limited to
equality, range, membership and null checks so that any backend (SQL, REST,
in-memory) can implement them without a query language of its own.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from ..exceptions import DataUnavailable, RentMetricsError
from ..primitives.enums import EntityEnum, PredicateOpEnum
from ..primitives.model import Model
from .records import RECORD_TYPES, Record

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class Predicate(Model):
    """
    A single column condition. All predicates of a fetch are AND-ed.

    Use the module-level constructors rather than building these directly:

        >>> is_in("room_id", ["r-1", "r-2"]).op
        <PredicateOpEnum.IN: 'in'>
    """

    column: str
    op: PredicateOpEnum
    value: Any = None


class OrderBy(Model):
    """Sort specification; nulls always sort last."""

    column: str
    descending: bool = False


def eq(column: str, value: Any) -> Predicate:
    return Predicate(column=column, op=PredicateOpEnum.EQ, value=value)


def is_in(column: str, values: Iterable[Any]) -> Predicate:
    return Predicate(column=column, op=PredicateOpEnum.IN, value=tuple(values))


def gte(column: str, value: Union[date, float, str]) -> Predicate:
    return Predicate(column=column, op=PredicateOpEnum.GTE, value=value)


def lte(column: str, value: Union[date, float, str]) -> Predicate:
    return Predicate(column=column, op=PredicateOpEnum.LTE, value=value)


def is_null(column: str) -> Predicate:
    return Predicate(column=column, op=PredicateOpEnum.IS_NULL)


def coerce_entity(entity: Union[EntityEnum, str]) -> EntityEnum:
    """Accept an EntityEnum or its table name."""
    if isinstance(entity, EntityEnum):
        return entity
    return EntityEnum(entity)


class RecordStore(ABC):
    """
    Read-only source of raw entities.

    Subclasses implement ``fetch``. Callers should use ``fetch_records``,
    which returns typed records and converts any backend failure into
    ``DataUnavailable`` with the original exception chained.
    """

    @abstractmethod
    def fetch(
        self,
        entity: EntityEnum,
        predicates: Sequence[Predicate] = (),
        order_by: Optional[OrderBy] = None,
    ) -> List[Row]:
        """
        Return rows of ``entity`` matching every predicate.

        Args:
            entity: Entity to read
            predicates: Conditions, combined with AND
            order_by: Optional sort specification

        Returns:
            List of row dictionaries keyed by column name
        """
        pass

    def fetch_records(
        self,
        entity: Union[EntityEnum, str],
        predicates: Sequence[Predicate] = (),
        order_by: Optional[OrderBy] = None,
    ) -> List[Record]:
        """
        Fetch rows and validate them into the entity's record type.

        Raises:
            DataUnavailable: If the backend raises or a row fails validation
        """
        entity = coerce_entity(entity)
        record_type = RECORD_TYPES[entity]
        try:
            rows = self.fetch(entity, list(predicates), order_by)
            records = [record_type.model_validate(row) for row in rows]
        except RentMetricsError:
            raise
        except Exception as e:
            logger.warning(f"Fetch of '{entity.value}' failed: {e}")
            raise DataUnavailable(
                f"Could not read '{entity.value}' from the record store: {e}",
                entity=entity.value,
            ) from e
        logger.debug(f"Fetched {len(records)} '{entity.value}' records")
        return records
