# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Public exception hierarchy.

All exceptions raised by nisq-analyzer inherit from
:class:`NisqAnalyzerError`, allowing a single catch-all handler for
library errors.

Hierarchy
---------
::

    NisqAnalyzerError
    ├── NotFoundError
    │   ├── AlgorithmNotFoundError
    │   ├── ImplementationNotFoundError
    │   ├── QpuNotFoundError
    │   └── ExecutionNotFoundError
    ├── RuleError
    │   ├── RuleSyntaxError
    │   ├── UnboundParameterError
    │   ├── RuleTimeoutError
    │   └── RuleEngineUnavailableError
    ├── SelectionParameterError
    ├── NoExecutorError
    ├── PluginError
    ├── CancelIgnoredError
    ├── OverloadedError
    ├── InvalidTransitionError
    └── ConfigError

Examples
--------
>>> from nisq_analyzer.errors import NisqAnalyzerError, NoExecutorError
>>> try:
...     result = service.execute(impl_id, qpu_id, {"N": "15"})
... except NoExecutorError as exc:
...     print(f"No plugin for {exc.programming_language}/{exc.sdk}")
... except NisqAnalyzerError:
...     print("Other nisq-analyzer error")
"""

from __future__ import annotations

from typing import Iterable
from uuid import UUID


__all__ = [
    "NisqAnalyzerError",
    # Lookup
    "NotFoundError",
    "AlgorithmNotFoundError",
    "ImplementationNotFoundError",
    "QpuNotFoundError",
    "ExecutionNotFoundError",
    # Rules
    "RuleError",
    "RuleSyntaxError",
    "UnboundParameterError",
    "RuleTimeoutError",
    "RuleEngineUnavailableError",
    "SelectionParameterError",
    # Dispatch
    "NoExecutorError",
    "PluginError",
    "CancelIgnoredError",
    "OverloadedError",
    "InvalidTransitionError",
    # Config
    "ConfigError",
]


class NisqAnalyzerError(Exception):
    """
    Base exception for all nisq-analyzer operations.

    Every public exception is a subclass of this type, so
    ``except NisqAnalyzerError`` intercepts any error originating
    from the library.
    """


# =============================================================================
# Lookup errors
# =============================================================================


class NotFoundError(NisqAnalyzerError):
    """
    Raised when a catalogue entity or execution does not exist.

    Parameters
    ----------
    entity : str
        Kind of the missing entity (e.g. "algorithm").
    identifier : UUID or str
        Identifier that was looked up.
    """

    entity = "entity"

    def __init__(self, identifier: UUID | str) -> None:
        self.identifier = identifier
        super().__init__(f"{self.entity.capitalize()} not found: {identifier}")


class AlgorithmNotFoundError(NotFoundError):
    """Raised when an algorithm id is unknown to the catalogue."""

    entity = "algorithm"


class ImplementationNotFoundError(NotFoundError):
    """Raised when an implementation id is unknown to the catalogue."""

    entity = "implementation"


class QpuNotFoundError(NotFoundError):
    """Raised when a QPU id is unknown to the catalogue."""

    entity = "qpu"


class ExecutionNotFoundError(NotFoundError):
    """Raised when an execution id is unknown to the execution store."""

    entity = "execution"


# =============================================================================
# Rule engine errors
# =============================================================================


class RuleError(NisqAnalyzerError):
    """
    Raised when the rule engine cannot parse, bind or evaluate a rule.

    The engine's diagnostic message is preserved as the exception
    message.

    Parameters
    ----------
    message : str
        Diagnostic message.
    rule : str, optional
        Rule text the error refers to, if any.
    """

    def __init__(self, message: str, *, rule: str | None = None) -> None:
        self.rule = rule
        super().__init__(message)


class RuleSyntaxError(RuleError):
    """Raised when a selection rule is not a well-formed clause."""


class UnboundParameterError(RuleError):
    """
    Raised when a rule references parameters missing from the binding.

    Parameters
    ----------
    names : iterable of str
        Names of the unbound parameters.
    rule : str, optional
        Rule text.
    """

    def __init__(self, names: Iterable[str], *, rule: str | None = None) -> None:
        self.names = tuple(sorted(names))
        super().__init__(
            f"Missing values for rule parameters: {', '.join(self.names)}",
            rule=rule,
        )


class RuleTimeoutError(RuleError):
    """Raised when a rule engine query exceeds its time budget."""


class RuleEngineUnavailableError(RuleError):
    """
    Raised when the rule engine itself cannot serve queries.

    Unlike other rule errors this is fatal for a whole selection
    request: the engine is closed, missing, or crashed.
    """


class SelectionParameterError(NisqAnalyzerError, ValueError):
    """Raised when the capacity inputs of a selection are missing or invalid."""


# =============================================================================
# Dispatch errors
# =============================================================================


class NoExecutorError(NisqAnalyzerError):
    """
    Raised when no executor plugin supports an implementation.

    Parameters
    ----------
    programming_language : str
        Programming language of the implementation.
    sdk : str
        SDK name of the implementation.
    """

    def __init__(self, programming_language: str, sdk: str) -> None:
        self.programming_language = programming_language
        self.sdk = sdk
        super().__init__(
            f"Unable to find executor plugin for programming language "
            f"{programming_language!r} and sdk name {sdk!r}"
        )


class PluginError(NisqAnalyzerError):
    """
    Raised by executor plugins when a remote execution fails.

    Never reaches callers of ``execute``: the worker stores the
    message in the execution record as ``FAILED``.
    """


class CancelIgnoredError(NisqAnalyzerError):
    """
    Raised when a cancellation request cannot be honoured.

    Parameters
    ----------
    execution_id : UUID
        Execution the request referred to.
    status : str
        Status of the execution at the time of the request.
    reason : str
        Why the request was ignored.
    """

    def __init__(self, execution_id: UUID, status: str, reason: str) -> None:
        self.execution_id = execution_id
        self.status = status
        super().__init__(f"Cancel ignored for execution {execution_id} ({status}): {reason}")


class OverloadedError(NisqAnalyzerError):
    """Raised when the worker pool has no free capacity for a new execution."""


class InvalidTransitionError(NisqAnalyzerError):
    """Raised when an execution record is moved along an illegal edge."""


class ConfigError(NisqAnalyzerError, ValueError):
    """Raised when configuration values cannot be parsed."""
