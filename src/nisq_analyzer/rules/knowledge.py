# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Prolog knowledge base generated from the catalogue.

QPU suitability is decided by Prolog over facts describing the
catalogue. The knowledge base directory holds three files:

``implementations.pl``
    ``requiredSdk(Impl, Sdk)`` per implementation.
``qpus.pl``
    ``qubits/2``, ``t1Time/2``, ``maxGateTime/2`` and ``usedSdk/2``
    per QPU.
``rules.pl``
    The capacity rule ``executableOnQpu/4``.

Identifiers are rendered as quoted atoms of their UUID string form.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable

from nisq_analyzer.models import Implementation, Qpu
from nisq_analyzer.rules.syntax import quote_atom


logger = logging.getLogger(__name__)

IMPLEMENTATIONS_FILE = "implementations.pl"
QPUS_FILE = "qpus.pl"
RULES_FILE = "rules.pl"

#: Predicate queried for QPU suitability.
CAPACITY_PREDICATE = "executableOnQpu"

CAPACITY_RULES = """\
executableOnQpu(RequiredQubits, CircuitDepth, Impl, Qpu) :-
    requiredSdk(Impl, Sdk),
    usedSdk(Qpu, Sdk),
    qubits(Qpu, AvailableQubits),
    AvailableQubits >= RequiredQubits,
    t1Time(Qpu, T1Time),
    maxGateTime(Qpu, GateTime),
    GateTime > 0,
    CircuitDepth =< T1Time / GateTime.
"""

_FACT_PREDICATES = "requiredSdk/2, usedSdk/2, qubits/2, t1Time/2, maxGateTime/2"

# Every file contributing clauses declares the fact predicates multifile;
# dynamic keeps queries from raising existence errors on an empty catalogue.
_HEADER = (
    "% Generated by nisq-analyzer. Do not edit.\n"
    f":- multifile {_FACT_PREDICATES}.\n"
    f":- dynamic {_FACT_PREDICATES}.\n\n"
)


def _number(value: float) -> str:
    return repr(int(value)) if float(value).is_integer() else repr(float(value))


def implementation_facts(implementations: Iterable[Implementation]) -> str:
    """Render ``requiredSdk/2`` facts for implementations."""
    lines = [_HEADER]
    for impl in implementations:
        lines.append(f"requiredSdk({quote_atom(str(impl.id))}, {quote_atom(impl.sdk)}).\n")
    return "".join(lines)


def qpu_facts(qpus: Iterable[Qpu]) -> str:
    """Render capacity and SDK facts for QPUs."""
    lines = [_HEADER]
    for qpu in qpus:
        atom = quote_atom(str(qpu.id))
        lines.append(f"qubits({atom}, {int(qpu.qubit_count)}).\n")
        lines.append(f"t1Time({atom}, {_number(qpu.t1_time)}).\n")
        lines.append(f"maxGateTime({atom}, {_number(qpu.max_gate_time)}).\n")
        for sdk in qpu.sdks:
            lines.append(f"usedSdk({atom}, {quote_atom(sdk)}).\n")
    return "".join(lines)


def _write_atomic(path: Path, content: str) -> None:
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class KnowledgeBase:
    """
    Directory of Prolog files consulted by QPU suitability queries.

    Parameters
    ----------
    directory : Path
        Location of the generated files. Created on first write.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def files(self) -> list[Path]:
        """
        Knowledge base files to consult, in load order.

        Writes the capacity rules if they are missing; fact files are
        only listed once generated.
        """
        rules = self.directory / RULES_FILE
        if not rules.exists():
            self.write_rules()
        return [
            p
            for p in (
                rules,
                self.directory / IMPLEMENTATIONS_FILE,
                self.directory / QPUS_FILE,
            )
            if p.exists()
        ]

    def write_rules(self) -> None:
        """Write the capacity rule file."""
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            _write_atomic(self.directory / RULES_FILE, _HEADER + CAPACITY_RULES)

    def update_implementations(self, implementations: Iterable[Implementation]) -> None:
        """Regenerate ``implementations.pl``."""
        content = implementation_facts(implementations)
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            _write_atomic(self.directory / IMPLEMENTATIONS_FILE, content)

    def update_qpus(self, qpus: Iterable[Qpu]) -> None:
        """Regenerate ``qpus.pl``."""
        content = qpu_facts(qpus)
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            _write_atomic(self.directory / QPUS_FILE, content)

    def sync(
        self,
        implementations: Iterable[Implementation],
        qpus: Iterable[Qpu],
    ) -> None:
        """
        Regenerate every knowledge base file from catalogue entities.

        Parameters
        ----------
        implementations : iterable of Implementation
            All implementations of the catalogue.
        qpus : iterable of Qpu
            All QPUs of the catalogue.
        """
        impls = list(implementations)
        qpu_list = list(qpus)
        self.write_rules()
        self.update_implementations(impls)
        self.update_qpus(qpu_list)
        logger.info(
            "Knowledge base synced in %s: %d implementations, %d qpus",
            self.directory,
            len(impls),
            len(qpu_list),
        )
