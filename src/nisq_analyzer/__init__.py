# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
nisq-analyzer: selection and dispatch of quantum algorithm implementations.

Quick Start
-----------
>>> from nisq_analyzer import ControlService, ExecutorRegistry, PrologRuleEngine
>>> from nisq_analyzer import load_catalogue
>>> catalogue = load_catalogue("catalogue.json")
>>> engine = PrologRuleEngine.from_config().open()
>>> with ControlService(catalogue, engine, ExecutorRegistry.from_entry_points()) as svc:
...     svc.required_selection_parameters(algorithm_id)
...     candidates = svc.select_candidates(algorithm_id, {"N": "15"},
...                                        required_qubits=10, circuit_depth=64)

Dispatch
--------
>>> record = svc.execute(implementation_id, qpu_id, {"N": "15"})
>>> svc.wait(record.id, timeout=600).status
<ExecutionStatus.FINISHED: 'FINISHED'>

Submodules
----------
- nisq_analyzer.control: Control service
- nisq_analyzer.catalogue: Catalogue reader and in-memory catalogue
- nisq_analyzer.models: Parameters and catalogue entities
- nisq_analyzer.rules: Prolog rule engine and knowledge base
- nisq_analyzer.executors: Executor plugin interface and registry
- nisq_analyzer.execution: Execution records, store and worker pool
- nisq_analyzer.config: Configuration management
- nisq_analyzer.errors: Public exception types
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, Any


__all__ = [
    # Version
    "__version__",
    # Control
    "ControlService",
    # Catalogue
    "InMemoryCatalogue",
    "load_catalogue",
    "Algorithm",
    "Implementation",
    "Qpu",
    "Parameter",
    "ParameterKind",
    # Rules
    "PrologRuleEngine",
    # Executors
    "ExecutorRegistry",
    "ExecutorPlugin",
    # Execution
    "ExecutionResult",
    "ExecutionStatus",
    # Config
    "Config",
    "get_config",
    "set_config",
]


try:
    __version__ = version("nisq-analyzer")
except PackageNotFoundError:
    __version__ = "0.0.0"


if TYPE_CHECKING:
    from nisq_analyzer.catalogue import InMemoryCatalogue, load_catalogue
    from nisq_analyzer.config import Config, get_config, set_config
    from nisq_analyzer.control import ControlService
    from nisq_analyzer.execution.result import ExecutionResult, ExecutionStatus
    from nisq_analyzer.executors.base import ExecutorPlugin
    from nisq_analyzer.executors.registry import ExecutorRegistry
    from nisq_analyzer.models import Algorithm, Implementation, Parameter, ParameterKind, Qpu
    from nisq_analyzer.rules.engine import PrologRuleEngine


_LAZY_IMPORTS = {
    # Control
    "ControlService": ("nisq_analyzer.control", "ControlService"),
    # Catalogue
    "InMemoryCatalogue": ("nisq_analyzer.catalogue", "InMemoryCatalogue"),
    "load_catalogue": ("nisq_analyzer.catalogue", "load_catalogue"),
    "Algorithm": ("nisq_analyzer.models", "Algorithm"),
    "Implementation": ("nisq_analyzer.models", "Implementation"),
    "Qpu": ("nisq_analyzer.models", "Qpu"),
    "Parameter": ("nisq_analyzer.models", "Parameter"),
    "ParameterKind": ("nisq_analyzer.models", "ParameterKind"),
    # Rules
    "PrologRuleEngine": ("nisq_analyzer.rules.engine", "PrologRuleEngine"),
    # Executors
    "ExecutorRegistry": ("nisq_analyzer.executors.registry", "ExecutorRegistry"),
    "ExecutorPlugin": ("nisq_analyzer.executors.base", "ExecutorPlugin"),
    # Execution
    "ExecutionResult": ("nisq_analyzer.execution.result", "ExecutionResult"),
    "ExecutionStatus": ("nisq_analyzer.execution.result", "ExecutionStatus"),
    # Config
    "Config": ("nisq_analyzer.config", "Config"),
    "get_config": ("nisq_analyzer.config", "get_config"),
    "set_config": ("nisq_analyzer.config", "set_config"),
}


def __getattr__(name: str) -> Any:
    """Lazy import handler for module-level attributes."""
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = __import__(module_path, fromlist=[attr_name])
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    """List available attributes for autocomplete."""
    return sorted(set(__all__) | set(_LAZY_IMPORTS.keys()))
