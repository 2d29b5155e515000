# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
RentMetrics Core Framework

Primitives (periods, scopes, settings, enums), the error taxonomy and the
record store abstraction consumed by every aggregator.
"""

from . import exceptions, primitives, store
from .exceptions import (
    DataUnavailable,
    InvalidParameter,
    RentMetricsError,
    is_retryable_error,
)

__all__ = [
    "exceptions",
    "primitives",
    "store",
    "DataUnavailable",
    "InvalidParameter",
    "RentMetricsError",
    "is_retryable_error",
]
