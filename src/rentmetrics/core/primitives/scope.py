# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Caller-facing scope and date filter parameters.

Both are explicit, always-present-field models shared by every aggregator.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import Field

from ..exceptions import InvalidParameter
from .enums import ScopeKind
from .model import Model
from .types import MonthNumber, QuarterNumber


class ScopeFilter(Model):
    """
    Restricts which records an aggregation operates over.

    The kind is derived from which identifiers are present:
    - ``property_id is None``: every property owned by ``owner_id``
    - ``room_id`` set: the single room ``room_id`` of ``property_id``
    - otherwise: every room of ``property_id``

    A ``room_id`` without a ``property_id`` is ignored and the scope covers all
    properties of the owner.

    Examples:
        >>> ScopeFilter.all_properties("owner-1").kind
        <ScopeKind.ALL_PROPERTIES: 'all_properties'>
        >>> ScopeFilter.for_room("p-1", "r-7").kind
        <ScopeKind.ROOM: 'room'>
    """

    owner_id: Optional[str] = Field(default=None, description="Caller's user id (all-properties scope).")
    property_id: Optional[str] = Field(default=None, description="Property id; None means all properties.")
    room_id: Optional[str] = Field(default=None, description="Room id within property_id.")

    @classmethod
    def all_properties(cls, owner_id: str) -> "ScopeFilter":
        return cls(owner_id=owner_id)

    @classmethod
    def for_property(cls, property_id: str) -> "ScopeFilter":
        return cls(property_id=property_id)

    @classmethod
    def for_room(cls, property_id: str, room_id: str) -> "ScopeFilter":
        return cls(property_id=property_id, room_id=room_id)

    @property
    def kind(self) -> ScopeKind:
        if not self.property_id:
            return ScopeKind.ALL_PROPERTIES
        if self.room_id:
            return ScopeKind.ROOM
        return ScopeKind.PROPERTY

    def ensure_complete(self) -> ScopeKind:
        """
        Check that the identifiers required by the scope kind are present.

        Returns:
            The resolved scope kind

        Raises:
            InvalidParameter: If the all-properties scope has no owner
        """
        kind = self.kind
        if kind == ScopeKind.ALL_PROPERTIES and not self.owner_id:
            raise InvalidParameter(
                "owner_id is required when property_id is not given", parameter="scope"
            )
        return kind

    @property
    def label(self) -> str:
        """Stable prefix used to build summary ids."""
        kind = self.kind
        if kind == ScopeKind.ROOM:
            return f"room-{self.room_id}"
        if kind == ScopeKind.PROPERTY:
            return f"property-{self.property_id}"
        return "all-properties"


class DateFilter(Model):
    """
    Optional anchor override for period calculation.

    Month takes priority over quarter, quarter over a bare year. Month and
    quarter are only meaningful together with a year.
    """

    year: Optional[int] = Field(default=None, ge=1, le=9999)
    month: Optional[MonthNumber] = None
    quarter: Optional[QuarterNumber] = None

    @property
    def is_empty(self) -> bool:
        return self.year is None and self.month is None and self.quarter is None

    def anchor_date(self) -> Optional[date]:
        """
        Build the anchor date described by this filter.

        Returns:
            The first day of the selected month, quarter or year, or None
            when no year was given

        Raises:
            InvalidParameter: If month or quarter is given without a year
        """
        if self.year is None:
            if self.month is not None or self.quarter is not None:
                raise InvalidParameter(
                    "date filter month/quarter requires a year", parameter="date_filter"
                )
            return None
        if self.month is not None:
            return date(self.year, self.month, 1)
        if self.quarter is not None:
            return date(self.year, (self.quarter - 1) * 3 + 1, 1)
        return date(self.year, 1, 1)
