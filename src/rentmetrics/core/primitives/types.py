# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Annotated

from pydantic import Field

PositiveInt = Annotated[int, Field(gt=0)]
NonNegativeInt = Annotated[int, Field(ge=0)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]
Percentage = Annotated[float, Field(ge=0.0, le=100.0)]
MonthNumber = Annotated[int, Field(ge=1, le=12)]
QuarterNumber = Annotated[int, Field(ge=1, le=4)]
