# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Error taxonomy for the reporting engine.

Aggregations are all-or-nothing: a failure never produces a partial summary.
Parameter problems are reported before any store read; store problems are
wrapped once, at the fetch boundary, with the original exception chained as
``__cause__``.
"""

from __future__ import annotations

from typing import Optional

# Substrings in an error message that indicate a transient condition
_RETRYABLE_MARKERS = (
    "network",
    "fetch",
    "timeout",
    "timed out",
    "rate limit",
    "too many requests",
    "429",
    "500",
    "502",
    "503",
    "504",
)


class RentMetricsError(Exception):
    """Base class for every error raised by rentmetrics."""


class InvalidParameter(RentMetricsError, ValueError):
    """
    A caller-supplied parameter cannot be used.

    Raised for unknown period or report types, scopes missing the identifiers
    their kind requires, and date filters that cannot be turned into an anchor.
    """

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message)
        self.parameter = parameter


class DataUnavailable(RentMetricsError):
    """
    Reading from the record store failed.

    The underlying exception is attached as ``__cause__``. The engine performs
    no retry; ``retryable`` tells the caller whether retrying the whole call
    is likely to help.
    """

    def __init__(self, message: str, entity: Optional[str] = None):
        super().__init__(message)
        self.entity = entity

    @property
    def retryable(self) -> bool:
        return is_retryable_error(self.__cause__)


def is_retryable_error(error: Optional[BaseException]) -> bool:
    """
    Classify an exception as transient (network, timeout, rate limit, 5xx).

    Args:
        error: Exception to classify; ``None`` is never retryable

    Returns:
        True when the message carries a known transient marker

    Examples:
        >>> is_retryable_error(TimeoutError("read timed out"))
        True
        >>> is_retryable_error(PermissionError("permission denied"))
        False
    """
    if error is None:
        return False
    if isinstance(error, (TimeoutError, ConnectionError)):
        return True
    message = str(error).lower()
    return any(marker in message for marker in _RETRYABLE_MARKERS)
