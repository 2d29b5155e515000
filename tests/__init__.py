# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
RentMetrics test suite.

This package contains tests for the record stores, period primitives and
aggregators, organized into unit and integration test categories.
"""
