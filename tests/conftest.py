# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Test fixtures for nisq-analyzer.

Provides an in-memory catalogue, a scriptable rule engine, test executor
plugins and isolated workspace fixtures, so tests run without
SWI-Prolog or a Qiskit service.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping
from uuid import UUID

import pytest
from click.testing import CliRunner

from nisq_analyzer.catalogue import InMemoryCatalogue
from nisq_analyzer.cli import cli
from nisq_analyzer.config import ENV_PREFIX, Config, reset_config, set_config
from nisq_analyzer.control import ControlService
from nisq_analyzer.execution.result import ExecutionResult
from nisq_analyzer.executors.registry import ExecutorRegistry
from nisq_analyzer.models import Algorithm, Implementation, Parameter, ParameterKind, Qpu


# =============================================================================
# Identifiers
# =============================================================================

ALGORITHM_ID = UUID("00000000-0000-4000-8000-00000000000a")
IMPL_1_ID = UUID("00000000-0000-4000-8000-000000000001")
IMPL_2_ID = UUID("00000000-0000-4000-8000-000000000002")
QPU_1_ID = UUID("00000000-0000-4000-8000-0000000000f1")
QPU_2_ID = UUID("00000000-0000-4000-8000-0000000000f2")

RULE_1 = "executable(NQubits) :- NQubits >= 2."
RULE_2 = "executable(NQubits) :- NQubits >= 100."


# =============================================================================
# Rule engine fake
# =============================================================================


class FakeRuleEngine:
    """
    Scriptable rule engine.

    ``rules`` maps rule text to a bool, a callable taking the binding,
    or an exception instance to raise. ``qpus`` maps implementation ids
    to a list of QPU ids or an exception instance.
    """

    def __init__(
        self,
        rules: Mapping[str, Any] | None = None,
        qpus: Mapping[UUID, Any] | None = None,
        variables: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self.rules = dict(rules or {})
        self.qpus = dict(qpus or {})
        self.variables = {k: set(v) for k, v in (variables or {}).items()}
        self.checked: list[tuple[str, dict[str, str]]] = []
        self.capacity_calls: list[tuple[UUID, int, int]] = []

    def check_executability(self, rule: str, binding: Mapping[str, str]) -> bool:
        self.checked.append((rule, dict(binding)))
        outcome = self.rules.get(rule, False)
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome(binding)
        return outcome

    def suitable_qpus(
        self, implementation_id: UUID, required_qubits: int, circuit_depth: int
    ) -> list[UUID]:
        self.capacity_calls.append((implementation_id, required_qubits, circuit_depth))
        outcome = self.qpus.get(implementation_id, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    def free_variables(self, rule: str) -> set[str]:
        outcome = self.variables.get(rule, set())
        if isinstance(outcome, Exception):
            raise outcome
        return set(outcome)


# =============================================================================
# Executor plugin fakes
# =============================================================================


class InstantPlugin:
    """Finishes every execution with a fixed output."""

    def __init__(
        self,
        name: str = "instant",
        languages: Iterable[str] = ("Python",),
        sdks: Iterable[str] = ("Qiskit",),
        output: Any = "0110",
    ) -> None:
        self.name = name
        self.languages = set(languages)
        self.sdks = set(sdks)
        self.output = output
        self.calls: list[tuple[str, UUID, dict[str, str]]] = []

    def supported_programming_languages(self) -> set[str]:
        return set(self.languages)

    def supported_sdks(self) -> set[str]:
        return set(self.sdks)

    def run(
        self, file_location: str, qpu: Qpu, params: Mapping[str, str], result: ExecutionResult
    ) -> None:
        self.calls.append((file_location, qpu.id, dict(params)))
        if result.mark_running():
            result.mark_finished(self.output)


class BlockingPlugin(InstantPlugin):
    """
    Blocks on ``gate`` before accepting the job.

    ``started`` is set when ``run`` begins; ``accepted`` records whether
    ``mark_running`` succeeded once the gate opened.
    """

    def __init__(self, name: str = "blocking", **kwargs: Any) -> None:
        super().__init__(name=name, **kwargs)
        self.started = threading.Event()
        self.gate = threading.Event()
        self.done = threading.Event()
        self.accepted: bool | None = None

    def run(
        self, file_location: str, qpu: Qpu, params: Mapping[str, str], result: ExecutionResult
    ) -> None:
        self.calls.append((file_location, qpu.id, dict(params)))
        self.started.set()
        try:
            self.gate.wait(timeout=5)
            self.accepted = result.mark_running()
            if self.accepted:
                result.mark_finished(self.output)
        finally:
            self.done.set()


class CancellableBlockingPlugin(InstantPlugin):
    """Enters RUNNING, then waits for :meth:`cancel`."""

    def __init__(self, name: str = "cancellable", *, accept_cancel: bool = True, **kwargs: Any):
        super().__init__(name=name, **kwargs)
        self.accept_cancel = accept_cancel
        self.running = threading.Event()
        self.cancelled = threading.Event()

    def run(
        self, file_location: str, qpu: Qpu, params: Mapping[str, str], result: ExecutionResult
    ) -> None:
        self.calls.append((file_location, qpu.id, dict(params)))
        result.mark_running()
        self.running.set()
        if self.cancelled.wait(timeout=5):
            result.mark_failed("cancelled")
        else:
            result.mark_finished(self.output)

    def cancel(self, result: ExecutionResult) -> bool:
        if not self.accept_cancel:
            return False
        self.cancelled.set()
        return True


class LaunchingPlugin(InstantPlugin):
    """
    Accepts the job and returns from ``run`` while it is still RUNNING.

    A background thread finishes the record once ``finish`` is set, or
    fails it when :meth:`cancel` was called first.
    """

    def __init__(self, name: str = "launching", **kwargs: Any) -> None:
        super().__init__(name=name, **kwargs)
        self.returned = threading.Event()
        self.finish = threading.Event()
        self.cancelled = threading.Event()
        self.threads: list[threading.Thread] = []

    def run(
        self, file_location: str, qpu: Qpu, params: Mapping[str, str], result: ExecutionResult
    ) -> None:
        self.calls.append((file_location, qpu.id, dict(params)))
        if not result.mark_running():
            return
        worker = threading.Thread(target=self._complete, args=(result,), daemon=True)
        self.threads.append(worker)
        worker.start()
        self.returned.set()

    def _complete(self, result: ExecutionResult) -> None:
        self.finish.wait(timeout=5)
        if self.cancelled.is_set():
            result.mark_failed("cancelled")
        else:
            result.mark_finished(self.output)

    def cancel(self, result: ExecutionResult) -> bool:
        self.cancelled.set()
        self.finish.set()
        return True


class FailingPlugin(InstantPlugin):
    """Raises from ``run``."""

    def __init__(self, name: str = "failing", message: str = "backend exploded", **kwargs: Any):
        super().__init__(name=name, **kwargs)
        self.message = message

    def run(
        self, file_location: str, qpu: Qpu, params: Mapping[str, str], result: ExecutionResult
    ) -> None:
        self.calls.append((file_location, qpu.id, dict(params)))
        raise RuntimeError(self.message)


class IdlePlugin(InstantPlugin):
    """Returns without touching the record."""

    def run(
        self, file_location: str, qpu: Qpu, params: Mapping[str, str], result: ExecutionResult
    ) -> None:
        self.calls.append((file_location, qpu.id, dict(params)))


# =============================================================================
# Catalogue fixtures
# =============================================================================


@pytest.fixture
def algorithm() -> Algorithm:
    return Algorithm(
        id=ALGORITHM_ID,
        name="Shor",
        input_parameters=(Parameter("N", ParameterKind.INTEGER, "number to factor"),),
    )


@pytest.fixture
def impl_1() -> Implementation:
    return Implementation(
        id=IMPL_1_ID,
        name="shor-general-qiskit",
        algorithm_id=ALGORITHM_ID,
        programming_language="Python",
        sdk="Qiskit",
        file_location="https://example.org/shor/general.py",
        selection_rule=RULE_1,
        input_parameters=(Parameter("NQubits", ParameterKind.INTEGER),),
    )


@pytest.fixture
def impl_2() -> Implementation:
    return Implementation(
        id=IMPL_2_ID,
        name="shor-fix-15-qiskit",
        algorithm_id=ALGORITHM_ID,
        programming_language="Python",
        sdk="Qiskit",
        file_location="https://example.org/shor/fix15.py",
        selection_rule=RULE_2,
    )


@pytest.fixture
def qpu_1() -> Qpu:
    return Qpu(
        id=QPU_1_ID,
        name="ibmq_lima",
        qubit_count=5,
        t1_time=100.0,
        max_gate_time=0.5,
        sdks=("Qiskit",),
        provider="IBMQ",
    )


@pytest.fixture
def qpu_2() -> Qpu:
    return Qpu(
        id=QPU_2_ID,
        name="ibmq_16_melbourne",
        qubit_count=15,
        t1_time=60.0,
        max_gate_time=1.0,
        sdks=("Qiskit",),
        provider="IBMQ",
    )


@pytest.fixture
def catalogue(
    algorithm: Algorithm,
    impl_1: Implementation,
    impl_2: Implementation,
    qpu_1: Qpu,
    qpu_2: Qpu,
) -> InMemoryCatalogue:
    return InMemoryCatalogue(
        algorithms=[algorithm],
        implementations=[impl_1, impl_2],
        qpus=[qpu_1, qpu_2],
    )


@pytest.fixture
def catalogue_file(tmp_path: Path, catalogue: InMemoryCatalogue) -> Path:
    """Catalogue fixture serialized as JSON."""

    def params(items: Iterable[Parameter]) -> list[dict[str, Any]]:
        return [p.to_dict() for p in items]

    data = {
        "algorithms": [
            {"id": str(a.id), "name": a.name, "input_parameters": params(a.input_parameters)}
            for a in catalogue.algorithms
        ],
        "implementations": [
            {
                "id": str(i.id),
                "name": i.name,
                "algorithm_id": str(i.algorithm_id),
                "programming_language": i.programming_language,
                "sdk": i.sdk,
                "file_location": i.file_location,
                "selection_rule": i.selection_rule,
                "input_parameters": params(i.input_parameters),
            }
            for i in catalogue.implementations
        ],
        "qpus": [
            {
                "id": str(q.id),
                "name": q.name,
                "qubit_count": q.qubit_count,
                "t1_time": q.t1_time,
                "max_gate_time": q.max_gate_time,
                "sdks": list(q.sdks),
                "provider": q.provider,
            }
            for q in catalogue.qpus
        ],
    }
    path = tmp_path / "catalogue.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Isolated temporary working directory."""
    ws = tmp_path / ".nisq-analyzer"
    ws.mkdir(parents=True)
    return ws


@pytest.fixture
def config(workspace: Path) -> Config:
    """Config pointing to temp workspace."""
    return Config(root_dir=workspace, max_workers=2, max_pending=2)


@pytest.fixture
def rule_engine() -> FakeRuleEngine:
    """Engine scripted for the two fixture implementations."""
    return FakeRuleEngine(
        rules={
            RULE_1: lambda b: int(b["NQubits"]) >= 2,
            RULE_2: lambda b: int(b["NQubits"]) >= 100,
        },
        qpus={IMPL_1_ID: [QPU_1_ID, QPU_2_ID], IMPL_2_ID: []},
        variables={RULE_1: {"NQubits"}, RULE_2: {"NQubits"}},
    )


@pytest.fixture
def make_service(
    catalogue: InMemoryCatalogue,
    rule_engine: FakeRuleEngine,
    config: Config,
) -> Callable[..., ControlService]:
    """
    Factory for control services; every service is closed after the test.

    Usage:
        service = make_service(InstantPlugin())
        service = make_service(plugin, rule_engine=custom_engine)
    """
    services: list[ControlService] = []
    plugins: list[Any] = []

    def _create(*plugin_list: Any, **kwargs: Any) -> ControlService:
        plugins.extend(plugin_list)
        kwargs.setdefault("config", config)
        service = ControlService(
            kwargs.pop("catalogue", catalogue),
            kwargs.pop("rule_engine", rule_engine),
            ExecutorRegistry(plugin_list),
            **kwargs,
        )
        services.append(service)
        return service

    yield _create

    for plugin in plugins:
        for attr in ("gate", "cancelled"):
            event = getattr(plugin, attr, None)
            if event is not None:
                event.set()
    for service in services:
        service.close(wait=True)


# =============================================================================
# Environment and CLI fixtures
# =============================================================================


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Environment without NISQ_ANALYZER_* variables and a fresh config cache."""
    import os

    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    return monkeypatch


@pytest.fixture(autouse=True)
def _reset_global_config():
    """Never leak a process-wide configuration between tests."""
    yield
    reset_config()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def invoke(
    cli_runner: CliRunner,
    workspace: Path,
    catalogue_file: Path,
    clean_env: pytest.MonkeyPatch,
) -> Callable[..., Any]:
    """
    Invoke CLI commands in isolated workspace with the fixture catalogue.

    Usage:
        result = invoke("params", str(ALGORITHM_ID))
        result = invoke("config", "--format", "json")
    """

    def _invoke(*args: str, input: str | None = None):
        return cli_runner.invoke(
            cli,
            ["--root", str(workspace), "--catalogue", str(catalogue_file), *args],
            catch_exceptions=False,
            input=input,
        )

    return _invoke


@pytest.fixture
def global_config(config: Config) -> Config:
    """Install the workspace config as process-wide configuration."""
    set_config(config)
    return config
