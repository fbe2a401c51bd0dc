# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Rule engine adapter.

The control service talks to the logic engine through three operations
only (:class:`RuleEngineProtocol`):

- ``check_executability`` - evaluate a selection rule for a binding
- ``suitable_qpus`` - QPUs with enough capacity for an implementation
- ``free_variables`` - parameters referenced by a selection rule

:class:`PrologRuleEngine` implements them on top of a
:class:`~nisq_analyzer.rules.backend.PrologBackend` and a
:class:`~nisq_analyzer.rules.knowledge.KnowledgeBase`.

Examples
--------
>>> from nisq_analyzer.rules import PrologRuleEngine
>>> with PrologRuleEngine.from_config() as engine:
...     engine.check_executability("executable(N) :- N > 2.", {"N": "4"})
True
"""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Iterator, Mapping, Protocol, runtime_checkable
from uuid import UUID

from nisq_analyzer.config import Config, get_config
from nisq_analyzer.errors import RuleEngineUnavailableError, RuleError
from nisq_analyzer.rules.backend import PrologBackend, SwiplBackend
from nisq_analyzer.rules.knowledge import CAPACITY_PREDICATE, KnowledgeBase
from nisq_analyzer.rules.syntax import build_goal, parse_rule, quote_atom
from nisq_analyzer.rules.syntax import free_variables as _free_variables


logger = logging.getLogger(__name__)


@runtime_checkable
class RuleEngineProtocol(Protocol):
    """
    Protocol for the rule engine collaborator of the control service.

    Failures are reported as :class:`~nisq_analyzer.errors.RuleError`,
    never as a false result.
    """

    def check_executability(self, rule: str, binding: Mapping[str, str]) -> bool:
        """True iff ``rule`` is satisfied by ``binding``."""
        ...

    def suitable_qpus(
        self,
        implementation_id: UUID,
        required_qubits: int,
        circuit_depth: int,
    ) -> list[UUID]:
        """QPUs for which capacity can be proven, in solution order."""
        ...

    def free_variables(self, rule: str) -> set[str]:
        """Names of the parameters ``rule`` may branch on."""
        ...


class PrologRuleEngine(RuleEngineProtocol):
    """
    Prolog-backed rule engine with an explicit lifecycle.

    Parameters
    ----------
    backend : PrologBackend
        Query backend.
    knowledge_base : KnowledgeBase
        Catalogue facts consulted by :meth:`suitable_qpus`.
    timeout : float, optional
        Time budget per query in seconds. Default is 30.0.
    serialize : bool, optional
        Run at most one query at a time. Default is True.

    Notes
    -----
    :meth:`free_variables` is purely syntactic and works on a closed
    engine; the two query operations require :meth:`open`.
    """

    def __init__(
        self,
        backend: PrologBackend,
        knowledge_base: KnowledgeBase,
        *,
        timeout: float = 30.0,
        serialize: bool = True,
    ) -> None:
        self.backend = backend
        self.knowledge_base = knowledge_base
        self.timeout = timeout
        self.serialize = serialize
        self._query_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._open = False

    @classmethod
    def from_config(cls, config: Config | None = None) -> PrologRuleEngine:
        """Create an engine running ``swipl`` over the configured knowledge base."""
        cfg = config or get_config()
        return cls(
            SwiplBackend(cfg.swipl_path),
            KnowledgeBase(cfg.knowledge_dir),
            timeout=cfg.rule_timeout,
            serialize=cfg.serialize_rule_queries,
        )

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> PrologRuleEngine:
        """
        Make the engine ready for queries.

        Raises
        ------
        RuleEngineUnavailableError
            If the backend cannot run queries.
        """
        with self._state_lock:
            if self._open:
                return self
            self.backend.check()
            self.knowledge_base.files()
            self._open = True
        logger.debug("Rule engine opened (knowledge base: %s)", self.knowledge_base.directory)
        return self

    def close(self) -> None:
        """Stop serving queries. Idempotent."""
        with self._state_lock:
            self._open = False
        logger.debug("Rule engine closed")

    def __enter__(self) -> PrologRuleEngine:
        return self.open()

    def __exit__(self, *args: object) -> None:
        self.close()

    @contextlib.contextmanager
    def _query(self) -> Iterator[None]:
        if not self._open:
            raise RuleEngineUnavailableError("Rule engine is not open")
        if self.serialize:
            with self._query_lock:
                yield
        else:
            yield

    def check_executability(self, rule: str, binding: Mapping[str, str]) -> bool:
        """
        Evaluate a selection rule against a parameter binding.

        Parameters
        ----------
        rule : str
            Selection rule text.
        binding : Mapping
            Parameter values keyed by name.

        Returns
        -------
        bool
            True iff the rule's goal has a solution.

        Raises
        ------
        RuleSyntaxError
            If the rule cannot be parsed.
        UnboundParameterError
            If a head variable has no value in ``binding``.
        RuleError
            If Prolog reports an error.
        """
        parsed = parse_rule(rule)
        goal = build_goal(parsed, binding)
        with self._query():
            try:
                result = self.backend.has_solution(
                    goal, program=parsed.program, timeout=self.timeout
                )
            except RuleError as e:
                if e.rule is None:
                    e.rule = rule
                raise
        logger.debug("Rule %s evaluated to %s for goal %s", parsed.name, result, goal)
        return result

    def suitable_qpus(
        self,
        implementation_id: UUID,
        required_qubits: int,
        circuit_depth: int,
    ) -> list[UUID]:
        """
        Find QPUs able to run an implementation.

        Parameters
        ----------
        implementation_id : UUID
            Implementation to place.
        required_qubits : int
            Qubits the circuit needs.
        circuit_depth : int
            Depth of the circuit.

        Returns
        -------
        list of UUID
            Distinct QPU ids in the engine's solution order.

        Raises
        ------
        RuleError
            If the query fails or yields a non-UUID solution.
        """
        goal = (
            f"{CAPACITY_PREDICATE}({int(required_qubits)}, {int(circuit_depth)}, "
            f"{quote_atom(str(implementation_id))}, Qpu)"
        )
        with self._query():
            files = self.knowledge_base.files()
            solutions = self.backend.find_all(
                "Qpu", goal, files=files, timeout=self.timeout
            )

        qpu_ids: list[UUID] = []
        for solution in solutions:
            try:
                qpu_id = UUID(solution)
            except ValueError as e:
                raise RuleError(f"Invalid QPU identifier in solution: {solution!r}") from e
            if qpu_id not in qpu_ids:
                qpu_ids.append(qpu_id)
        logger.debug(
            "Found %d suitable QPUs for implementation %s", len(qpu_ids), implementation_id
        )
        return qpu_ids

    def free_variables(self, rule: str) -> set[str]:
        """Named head variables of every clause of ``rule``."""
        return _free_variables(rule)
