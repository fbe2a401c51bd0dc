# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Executor plugin interface.

An executor plugin knows how to run implementations written in given
programming languages and SDKs on a QPU. It receives the live
execution record and moves it through its states:

1. ``result.mark_running()`` once the job is accepted. A ``False``
   return means the execution was cancelled in the meantime; the
   plugin must return without producing output.
2. ``result.mark_finished(output)`` or ``result.mark_failed(message)``.

Raising from :meth:`ExecutorPlugin.run` is also allowed; the worker
then marks the record failed with the exception message. Plugins must
not keep the record after it reached a terminal state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Protocol, runtime_checkable


if TYPE_CHECKING:
    from nisq_analyzer.execution.result import ExecutionResult
    from nisq_analyzer.models import Qpu


@runtime_checkable
class ExecutorPlugin(Protocol):
    """
    Protocol defining the executor plugin interface.

    Attributes
    ----------
    name : str
        Unique plugin identifier (e.g., "qiskit-service").
    """

    name: str

    def supported_programming_languages(self) -> set[str]:
        """Programming languages this plugin can execute."""
        ...

    def supported_sdks(self) -> set[str]:
        """SDK names this plugin can execute."""
        ...

    def run(
        self,
        file_location: str,
        qpu: Qpu,
        params: Mapping[str, str],
        result: ExecutionResult,
    ) -> None:
        """
        Execute an implementation and record its progress.

        Parameters
        ----------
        file_location : str
            Location of the implementation as stored in the catalogue.
        qpu : Qpu
            Target QPU.
        params : Mapping
            Input parameters as ``{name: str}``.
        result : ExecutionResult
            Live record owned by this call.
        """
        ...


@runtime_checkable
class CancellablePlugin(ExecutorPlugin, Protocol):
    """Executor plugin that can abort a running execution."""

    def cancel(self, result: ExecutionResult) -> bool:
        """
        Request cancellation of a running execution.

        Returns
        -------
        bool
            True if the request was accepted. The plugin then moves the
            record to FAILED itself.
        """
        ...


def supports(plugin: ExecutorPlugin, programming_language: str, sdk: str) -> bool:
    """True if ``plugin`` covers both the language and the SDK."""
    return (
        programming_language in plugin.supported_programming_languages()
        and sdk in plugin.supported_sdks()
    )
