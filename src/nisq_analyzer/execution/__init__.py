# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""Execution records, their store and the worker pool running plugins."""

from __future__ import annotations

from nisq_analyzer.execution.pool import WorkerPool
from nisq_analyzer.execution.result import (
    CANCELLED_MESSAGE,
    INITIAL_MESSAGE,
    ExecutionResult,
    ExecutionStatus,
)
from nisq_analyzer.execution.store import ExecutionStore, ReadWriteLock


__all__ = [
    "CANCELLED_MESSAGE",
    "INITIAL_MESSAGE",
    "ExecutionResult",
    "ExecutionStatus",
    "ExecutionStore",
    "ReadWriteLock",
    "WorkerPool",
]
