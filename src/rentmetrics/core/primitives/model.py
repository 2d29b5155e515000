# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base Pydantic model with common configuration.

    Immutable models. Records, parameters and summaries are all
    recomputed per request, so nothing needs to be mutated after construction.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,  # Immutable models; per-request state lives in local variables
        extra="forbid",  # Catches typos and missing field definitions immediately
    )

    def copy(self, *, updates: dict = None) -> "Model":
        """
        Return a deep copy of the model (shorter alias for model_copy)

        Args:
            updates: Optional dictionary of field values to update

        Returns:
            A deep copy of the model with any specified updates
        """
        return self.model_copy(deep=True, update=updates)
