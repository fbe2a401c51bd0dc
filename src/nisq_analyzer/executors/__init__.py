# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""Executor plugin interface, discovery and built-in plugins."""

from __future__ import annotations

from nisq_analyzer.executors.base import CancellablePlugin, ExecutorPlugin, supports
from nisq_analyzer.executors.registry import (
    EXECUTOR_ENTRY_POINT_GROUP,
    ExecutorRegistry,
    PluginLoadError,
)


__all__ = [
    "EXECUTOR_ENTRY_POINT_GROUP",
    "CancellablePlugin",
    "ExecutorPlugin",
    "ExecutorRegistry",
    "PluginLoadError",
    "supports",
]
