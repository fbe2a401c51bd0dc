# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Control service.

Selection and dispatch of quantum algorithm implementations:

- :meth:`ControlService.required_selection_parameters` - what a caller
  must supply before selecting
- :meth:`ControlService.select_candidates` - implementations whose
  selection rule holds, each with the QPUs able to run it
- :meth:`ControlService.execute` - hand an implementation to the
  matching executor plugin and return its execution record
- :meth:`ControlService.cancel` - stop a pending or running execution

All collaborators are passed to the constructor.

Examples
--------
>>> with ControlService(catalogue, engine, registry) as service:
...     candidates = service.select_candidates(
...         algorithm_id, {"N": "15"}, required_qubits=10, circuit_depth=64
...     )
...     impl_id, qpu_ids = next(iter(candidates.items()))
...     record = service.execute(impl_id, qpu_ids[0], {"N": "15"})
...     service.wait(record.id, timeout=600)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Mapping
from uuid import UUID

from nisq_analyzer.catalogue import CatalogueReader
from nisq_analyzer.config import Config, get_config
from nisq_analyzer.errors import (
    CancelIgnoredError,
    OverloadedError,
    QpuNotFoundError,
    RuleEngineUnavailableError,
    RuleError,
    SelectionParameterError,
)
from nisq_analyzer.execution.pool import WorkerPool
from nisq_analyzer.execution.result import ExecutionResult, ExecutionStatus
from nisq_analyzer.execution.store import ExecutionStore
from nisq_analyzer.executors.base import CancellablePlugin, ExecutorPlugin
from nisq_analyzer.executors.registry import ExecutorRegistry
from nisq_analyzer.models import (
    Implementation,
    Parameter,
    ParameterBinding,
    ParameterKind,
    Qpu,
    as_binding,
    missing_parameters,
)
from nisq_analyzer.rules.engine import RuleEngineProtocol
from nisq_analyzer.utils.common import Clock, as_uuid, utc_now


logger = logging.getLogger(__name__)

#: Message of records whose plugin returned before accepting the job.
NOT_ACCEPTED_MESSAGE = "executor plugin returned without accepting the job"


def _capacity_value(name: str, explicit: int | None, binding: Mapping[str, str]) -> int:
    if explicit is not None:
        raw: Any = explicit
    elif name in binding:
        raw = binding[name]
    else:
        raise SelectionParameterError(
            f"Missing capacity parameter {name!r}: pass it explicitly or in the binding"
        )

    if isinstance(raw, bool):
        raise SelectionParameterError(f"{name} must be an integer, got {raw!r}")
    try:
        value = int(raw.strip()) if isinstance(raw, str) else int(raw)
    except (TypeError, ValueError) as e:
        raise SelectionParameterError(f"{name} must be an integer, got {raw!r}") from e
    if isinstance(raw, float) and raw != value:
        raise SelectionParameterError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise SelectionParameterError(f"{name} must not be negative, got {value}")
    return value


class ControlService:
    """
    Selection and dispatch front of the analyzer.

    Parameters
    ----------
    catalogue : CatalogueReader
        Read-through access to algorithms, implementations and QPUs.
    rule_engine : RuleEngineProtocol
        Evaluates selection rules and QPU capacity.
    registry : ExecutorRegistry
        Executor plugins in resolution order.
    store : ExecutionStore, optional
        Owner of execution records. A new store is created when omitted.
    pool : WorkerPool, optional
        Workers running plugins. Sized from ``config`` when omitted.
    config : Config, optional
        Configuration; defaults to :func:`~nisq_analyzer.config.get_config`.
    clock : callable, optional
        Timestamp source for execution records.
    """

    def __init__(
        self,
        catalogue: CatalogueReader,
        rule_engine: RuleEngineProtocol,
        registry: ExecutorRegistry,
        store: ExecutionStore | None = None,
        pool: WorkerPool | None = None,
        config: Config | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or get_config()
        self.catalogue = catalogue
        self.rule_engine = rule_engine
        self.registry = registry
        self.store = store if store is not None else ExecutionStore()
        self.pool = pool or WorkerPool(self.config.max_workers, self.config.max_pending)
        self.clock = clock or utc_now

        self._dispatched: dict[UUID, ExecutorPlugin] = {}
        self._lock = threading.Lock()
        self._closed = False

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def required_selection_parameters(self, algorithm_id: UUID | str) -> set[Parameter]:
        """
        Parameters a binding must cover to select for an algorithm.

        The result is the union of the algorithm's declared inputs, the
        declared inputs of each of its implementations, the variables
        of each implementation's selection rule and the two capacity
        parameters. When a name is declared more than once, the first
        declaration wins; rule variables are reported as strings.

        Parameters
        ----------
        algorithm_id : UUID or str
            Algorithm to select for.

        Returns
        -------
        set of Parameter
            Required parameters, one per name.

        Raises
        ------
        AlgorithmNotFoundError
            If the algorithm is unknown.
        """
        algorithm = self.catalogue.find_algorithm(as_uuid(algorithm_id))
        implementations = self.catalogue.find_implementations_by_algorithm(algorithm.id)
        logger.debug(
            "Retrieving required selection parameters based on %d implementations",
            len(implementations),
        )

        required: dict[str, Parameter] = {}

        def add(parameter: Parameter) -> None:
            required.setdefault(parameter.name, parameter)

        for parameter in algorithm.input_parameters:
            add(parameter)
        for impl in implementations:
            for parameter in impl.input_parameters:
                add(parameter)
            try:
                names = self.rule_engine.free_variables(impl.selection_rule)
            except RuleError as e:
                logger.warning(
                    "Cannot extract parameters of selection rule of implementation %s: %s",
                    impl.id,
                    e,
                )
                continue
            for name in sorted(names):
                add(Parameter(name))

        add(Parameter(self.config.qubits_parameter, ParameterKind.INTEGER))
        add(Parameter(self.config.depth_parameter, ParameterKind.INTEGER))
        return set(required.values())

    def select_candidates(
        self,
        algorithm_id: UUID | str,
        binding: Mapping[str, Any],
        *,
        required_qubits: int | None = None,
        circuit_depth: int | None = None,
    ) -> dict[UUID, list[UUID]]:
        """
        Select implementations and QPUs able to run an algorithm.

        Parameters
        ----------
        algorithm_id : UUID or str
            Algorithm to select for.
        binding : Mapping
            Parameter values keyed by name. Extra entries are ignored.
        required_qubits : int, optional
            Qubits the circuit needs. Read from the binding under the
            configured ``qubits_parameter`` name when omitted.
        circuit_depth : int, optional
            Depth of the circuit. Read from the binding under the
            configured ``depth_parameter`` name when omitted.

        Returns
        -------
        dict
            Fresh ``{implementation_id: [qpu_id, ...]}`` mapping in
            catalogue order. Implementations without a suitable QPU are
            omitted.

        Raises
        ------
        AlgorithmNotFoundError
            If the algorithm is unknown.
        SelectionParameterError
            If a capacity value is missing or not a non-negative integer.
        RuleEngineUnavailableError
            If the rule engine cannot serve queries at all.

        Notes
        -----
        Rule errors affecting a single implementation are logged and
        that implementation is dropped; they never fail the request.
        """
        binding = as_binding(binding)
        algorithm = self.catalogue.find_algorithm(as_uuid(algorithm_id))
        qubits = _capacity_value(self.config.qubits_parameter, required_qubits, binding)
        depth = _capacity_value(self.config.depth_parameter, circuit_depth, binding)

        logger.debug(
            "Performing implementation and QPU selection for algorithm %s", algorithm.id
        )
        implementations = self.catalogue.find_implementations_by_algorithm(algorithm.id)
        logger.debug("Found %d implementations for the algorithm", len(implementations))

        missing = missing_parameters(
            self.required_selection_parameters(algorithm.id), binding
        )
        # Capacity values may have been passed as keywords
        missing -= {self.config.qubits_parameter, self.config.depth_parameter}
        if missing:
            logger.warning(
                "Binding for algorithm %s lacks parameters: %s",
                algorithm.id,
                ", ".join(sorted(missing)),
            )

        candidates: dict[UUID, list[UUID]] = {}
        for impl in implementations:
            if not self._is_executable(impl, binding):
                continue
            qpu_ids = self._suitable_qpus(impl, qubits, depth)
            if qpu_ids:
                candidates[impl.id] = qpu_ids

        logger.info(
            "Selection for algorithm %s: %d of %d implementations are candidates",
            algorithm.id,
            len(candidates),
            len(implementations),
        )
        return candidates

    def _is_executable(self, impl: Implementation, binding: ParameterBinding) -> bool:
        try:
            return bool(self.rule_engine.check_executability(impl.selection_rule, binding))
        except RuleEngineUnavailableError:
            raise
        except RuleError as e:
            logger.error(
                "Dropping implementation %s: selection rule failed: %s", impl.id, e
            )
            return False

    def _suitable_qpus(self, impl: Implementation, qubits: int, depth: int) -> list[UUID]:
        try:
            found = self.rule_engine.suitable_qpus(impl.id, qubits, depth)
        except RuleEngineUnavailableError:
            raise
        except RuleError as e:
            logger.error(
                "Dropping implementation %s: error while evaluating suitable QPUs: %s",
                impl.id,
                e,
            )
            return []

        qpu_ids: list[UUID] = []
        for qpu_id in found:
            try:
                qpu = self.catalogue.find_qpu(qpu_id)
            except QpuNotFoundError:
                logger.debug("Ignoring unknown QPU %s for implementation %s", qpu_id, impl.id)
                continue
            if qpu.id not in qpu_ids:
                qpu_ids.append(qpu.id)
        logger.debug("Found %d suitable QPUs for implementation %s", len(qpu_ids), impl.id)
        return qpu_ids

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def execute(
        self,
        implementation_id: UUID | str,
        qpu_id: UUID | str,
        binding: Mapping[str, Any],
    ) -> ExecutionResult:
        """
        Dispatch an implementation to its executor plugin.

        The record is stored as INITIALIZED before the plugin is
        scheduled, and this method returns without waiting for it.
        Failures after dispatch are observed through the record.

        Parameters
        ----------
        implementation_id : UUID or str
            Implementation to run.
        qpu_id : UUID or str
            Target QPU.
        binding : Mapping
            Input parameters forwarded to the plugin.

        Returns
        -------
        ExecutionResult
            Snapshot of the new record, status INITIALIZED.

        Raises
        ------
        ImplementationNotFoundError, QpuNotFoundError
            If either id is unknown.
        NoExecutorError
            If no plugin supports the implementation. No record is
            created.
        OverloadedError
            If the worker pool is saturated. The record is removed again.
        """
        binding = as_binding(binding)
        impl = self.catalogue.find_implementation(as_uuid(implementation_id))
        qpu = self.catalogue.find_qpu(as_uuid(qpu_id))
        logger.debug(
            "Executing implementation %s (%s) on QPU %s", impl.id, impl.name, qpu.name
        )

        plugin = self.registry.resolve(impl.programming_language, impl.sdk)

        result = ExecutionResult(qpu_id=qpu.id, implementation_id=impl.id, clock=self.clock)
        self.store.put(result)
        with self._lock:
            self._dispatched[result.id] = plugin
        result.add_done_callback(self._on_terminal)
        snapshot = result.snapshot()

        try:
            self.pool.submit(self._run_plugin, plugin, impl, qpu, binding, result)
        except OverloadedError:
            self._forget(result.id)
            self.store.discard(result.id)
            logger.warning("Rejected execution of implementation %s: pool saturated", impl.id)
            raise

        logger.info(
            "Execution %s dispatched to plugin %s (implementation %s, QPU %s)",
            result.id,
            plugin.name,
            impl.id,
            qpu.name,
        )
        return snapshot

    def _run_plugin(
        self,
        plugin: ExecutorPlugin,
        impl: Implementation,
        qpu: Qpu,
        binding: ParameterBinding,
        result: ExecutionResult,
    ) -> None:
        """Worker body owning ``result`` for the duration of the plugin call."""
        if result.is_terminal:
            logger.info(
                "Execution %s is already %s, not starting plugin %s",
                result.id,
                result.status.value,
                plugin.name,
            )
            return
        try:
            plugin.run(impl.file_location, qpu, dict(binding), result)
        except Exception as e:
            logger.warning(
                "Executor plugin %s failed for execution %s: %s",
                plugin.name,
                result.id,
                e,
                exc_info=True,
            )
            result.mark_failed(str(e) or type(e).__name__)
            return
        if result.status is ExecutionStatus.INITIALIZED:
            result.mark_failed(NOT_ACCEPTED_MESSAGE)

    def _on_terminal(self, result: ExecutionResult) -> None:
        # Plugins may finish a record after run() returned
        self._forget(result.id)

    def _forget(self, execution_id: UUID) -> ExecutorPlugin | None:
        with self._lock:
            return self._dispatched.pop(execution_id, None)

    def cancel(self, execution_id: UUID | str) -> ExecutionResult:
        """
        Cancel an execution.

        A record still INITIALIZED fails immediately with message
        ``"cancelled"`` and its plugin is never started. For a RUNNING
        record the request is forwarded to the plugin.

        Parameters
        ----------
        execution_id : UUID or str
            Execution to cancel.

        Returns
        -------
        ExecutionResult
            Snapshot taken after the request was applied. A forwarded
            request may still show RUNNING until the plugin reacts.

        Raises
        ------
        ExecutionNotFoundError
            If the id is unknown.
        CancelIgnoredError
            If the execution is terminal, or running on a plugin that
            cannot or will not cancel it.
        """
        record = self.store.record(execution_id)

        if record.mark_cancelled():
            logger.info("Execution %s cancelled before start", record.id)
            return record.snapshot()

        status = record.status
        if status.is_terminal:
            raise CancelIgnoredError(record.id, status.value, "execution already ended")

        with self._lock:
            plugin = self._dispatched.get(record.id)
        if plugin is None and record.is_terminal:
            raise CancelIgnoredError(
                record.id, record.status.value, "execution already ended"
            )
        if not isinstance(plugin, CancellablePlugin):
            raise CancelIgnoredError(
                record.id, status.value, "executor plugin does not support cancellation"
            )
        if not plugin.cancel(record):
            raise CancelIgnoredError(
                record.id, status.value, f"executor plugin {plugin.name} refused"
            )
        logger.info("Cancellation of execution %s forwarded to %s", record.id, plugin.name)
        return record.snapshot()

    # -------------------------------------------------------------------------
    # Store queries
    # -------------------------------------------------------------------------

    def get_execution(self, execution_id: UUID | str) -> ExecutionResult:
        """Snapshot of an execution record."""
        return self.store.get(execution_id)

    def list_executions(
        self,
        *,
        status: ExecutionStatus | str | None = None,
        qpu_id: UUID | str | None = None,
    ) -> list[ExecutionResult]:
        """Snapshots of stored executions, optionally filtered."""
        return self.store.list(status=status, qpu_id=qpu_id)

    def wait(
        self,
        execution_id: UUID | str,
        timeout: float | None = None,
        *,
        poll_interval: float = 0.1,
    ) -> ExecutionResult:
        """
        Poll an execution until it reaches a terminal state.

        Parameters
        ----------
        execution_id : UUID or str
            Execution to wait for.
        timeout : float, optional
            Seconds to wait at most. Waits indefinitely when None.
        poll_interval : float, optional
            Seconds between polls. Default is 0.1.

        Returns
        -------
        ExecutionResult
            Latest snapshot; not terminal if the timeout elapsed.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            snapshot = self.store.get(execution_id)
            if snapshot.is_terminal:
                return snapshot
            if deadline is not None and time.monotonic() >= deadline:
                return snapshot
            time.sleep(poll_interval)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self, wait: bool = True) -> None:
        """Shut down the worker pool. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self.pool.shutdown(wait=wait)
        logger.debug("Control service closed")

    def __enter__(self) -> ControlService:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
