# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Executor plugin discovery and resolution.

Plugins are discovered via Python entry points under the
``nisq_analyzer.executors`` group, or registered directly. Each plugin
declares the programming languages and SDKs it supports; resolution
picks the first registered plugin covering both.

Entry Point Group
-----------------
``nisq_analyzer.executors``
    Entry points should point to plugin classes implementing
    :class:`~nisq_analyzer.executors.base.ExecutorPlugin`. Classes are
    instantiated without arguments.
"""

from __future__ import annotations

import logging
import threading
import traceback
from dataclasses import dataclass
from importlib.metadata import EntryPoint, entry_points
from typing import Any, Iterable

from nisq_analyzer.errors import NoExecutorError
from nisq_analyzer.executors.base import CancellablePlugin, ExecutorPlugin, supports


logger = logging.getLogger(__name__)

# Entry point group name for plugin discovery
EXECUTOR_ENTRY_POINT_GROUP = "nisq_analyzer.executors"


@dataclass(frozen=True)
class PluginLoadError:
    """
    Captures a plugin load or instantiation failure for diagnostics.

    Parameters
    ----------
    entry_point : str
        Entry point that failed (name=value).
    exc_type : str
        Exception type name.
    message : str
        Exception message.
    traceback : str
        Full formatted traceback.
    """

    entry_point: str
    exc_type: str
    message: str
    traceback: str

    def __str__(self) -> str:
        return f"{self.entry_point}: {self.exc_type}: {self.message}"


def _iter_executor_entry_points() -> list[EntryPoint]:
    """Entry points registered under ``nisq_analyzer.executors``, by name."""
    eps = entry_points()
    select = getattr(eps, "select", None)
    if callable(select):
        found = list(eps.select(group=EXECUTOR_ENTRY_POINT_GROUP))
    else:
        found = list(eps.get(EXECUTOR_ENTRY_POINT_GROUP, []))
    return sorted(found, key=lambda ep: ep.name)


def _make_load_error(ep: EntryPoint, exc: Exception) -> PluginLoadError:
    return PluginLoadError(
        entry_point=f"{ep.name}={ep.value}",
        exc_type=type(exc).__name__,
        message=str(exc),
        traceback=traceback.format_exc(),
    )


class ExecutorRegistry:
    """
    Ordered collection of executor plugins.

    Registration order decides which plugin wins when several support
    the same language and SDK, so resolution is deterministic.

    Parameters
    ----------
    plugins : iterable of ExecutorPlugin, optional
        Plugins to register, in order.

    Examples
    --------
    >>> registry = ExecutorRegistry([QiskitServiceExecutor()])
    >>> registry.resolve("Python", "Qiskit").name
    'qiskit-service'
    """

    def __init__(self, plugins: Iterable[ExecutorPlugin] = ()) -> None:
        self._plugins: list[ExecutorPlugin] = []
        self._load_errors: list[PluginLoadError] = []
        self._lock = threading.RLock()
        for plugin in plugins:
            self.register(plugin)

    @classmethod
    def from_entry_points(cls) -> ExecutorRegistry:
        """
        Build a registry from installed entry points.

        Plugins that fail to load, lack a name, do not implement the
        plugin interface, or duplicate an already loaded name are
        skipped; the failures are available via :attr:`load_errors`.

        Returns
        -------
        ExecutorRegistry
            Registry with every successfully loaded plugin, ordered by
            entry point name.
        """
        registry = cls()
        logger.debug("Loading executor plugins from entry points")

        for ep in _iter_executor_entry_points():
            ep_spec = f"{ep.name}={ep.value}"
            logger.debug("Loading executor plugin: %s", ep_spec)
            try:
                plugin_cls = ep.load()
                plugin = plugin_cls()
                registry.register(plugin)
                if ep.name != plugin.name:
                    logger.warning(
                        "Entry point name %r does not match plugin.name %r",
                        ep.name,
                        plugin.name,
                    )
            except Exception as e:
                registry._load_errors.append(_make_load_error(ep, e))
                logger.warning(
                    "Failed to load executor plugin %s: %s", ep_spec, e, exc_info=True
                )

        logger.debug(
            "Executor plugin loading complete: %d loaded, %d errors",
            len(registry._plugins),
            len(registry._load_errors),
        )
        return registry

    def register(self, plugin: ExecutorPlugin) -> None:
        """
        Append a plugin.

        Raises
        ------
        TypeError
            If the object has no name or does not implement the plugin
            interface.
        ValueError
            If a plugin with the same name is already registered.
        """
        name = getattr(plugin, "name", None)
        if not name:
            raise TypeError(f"Plugin {type(plugin).__name__} has no 'name' attribute")
        if not isinstance(plugin, ExecutorPlugin):
            raise TypeError(f"Plugin {name} does not implement ExecutorPlugin")

        with self._lock:
            if any(p.name == name for p in self._plugins):
                raise ValueError(f"Duplicate executor plugin name detected: {name!r}")
            self._plugins.append(plugin)
        logger.info("Registered executor plugin: %s", name)

    @property
    def plugins(self) -> list[ExecutorPlugin]:
        with self._lock:
            return list(self._plugins)

    @property
    def load_errors(self) -> list[PluginLoadError]:
        with self._lock:
            return list(self._load_errors)

    def get(self, name: str) -> ExecutorPlugin | None:
        """Plugin registered under ``name``, or None."""
        for plugin in self.plugins:
            if plugin.name == name:
                return plugin
        return None

    def resolve(self, programming_language: str, sdk: str) -> ExecutorPlugin:
        """
        Find the plugin for an implementation's language and SDK.

        Parameters
        ----------
        programming_language : str
            Programming language of the implementation.
        sdk : str
            SDK name of the implementation.

        Returns
        -------
        ExecutorPlugin
            First registered plugin supporting both.

        Raises
        ------
        NoExecutorError
            If no registered plugin supports the pair.
        """
        for plugin in self.plugins:
            try:
                if supports(plugin, programming_language, sdk):
                    logger.debug(
                        "Resolved executor plugin %s for %s/%s",
                        plugin.name,
                        programming_language,
                        sdk,
                    )
                    return plugin
            except Exception as e:
                logger.warning(
                    "Executor plugin %s failed to report its capabilities: %s",
                    plugin.name,
                    e,
                    exc_info=True,
                )
        raise NoExecutorError(programming_language, sdk)

    def describe(self) -> list[dict[str, Any]]:
        """Plugin capabilities for display, in registration order."""
        rows = []
        for plugin in self.plugins:
            rows.append(
                {
                    "name": plugin.name,
                    "languages": sorted(plugin.supported_programming_languages()),
                    "sdks": sorted(plugin.supported_sdks()),
                    "cancellable": isinstance(plugin, CancellablePlugin),
                }
            )
        return rows

    def __len__(self) -> int:
        with self._lock:
            return len(self._plugins)
