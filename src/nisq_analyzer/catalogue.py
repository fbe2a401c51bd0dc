# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Read-only view of the algorithm catalogue.

The control service never owns catalogue entities. It navigates them
through a :class:`CatalogueReader`, which a deployment backs with its
persistence layer. :class:`InMemoryCatalogue` serves tests and the CLI,
where the catalogue is loaded from a JSON file.

File Format
-----------
.. code-block:: json

    {
      "algorithms": [{"id": "...", "name": "Shor", "input_parameters": []}],
      "implementations": [{"id": "...", "algorithm_id": "...", "...": "..."}],
      "qpus": [{"id": "...", "name": "ibmq_lima", "qubit_count": 5, "...": "..."}]
    }
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable
from uuid import UUID

from nisq_analyzer.errors import (
    AlgorithmNotFoundError,
    ImplementationNotFoundError,
    NisqAnalyzerError,
    QpuNotFoundError,
)
from nisq_analyzer.models import Algorithm, Implementation, Qpu
from nisq_analyzer.utils.common import as_uuid


logger = logging.getLogger(__name__)


@runtime_checkable
class CatalogueReader(Protocol):
    """
    Protocol for the catalogue collaborator of the control service.

    Every lookup returns an immutable value or raises the matching
    :class:`~nisq_analyzer.errors.NotFoundError` subclass.
    """

    def find_algorithm(self, algorithm_id: UUID) -> Algorithm:
        """Return the algorithm with the given id."""
        ...

    def find_implementations_by_algorithm(
        self, algorithm_id: UUID
    ) -> list[Implementation]:
        """Return the implementations of an algorithm in catalogue order."""
        ...

    def find_implementation(self, implementation_id: UUID) -> Implementation:
        """Return the implementation with the given id."""
        ...

    def find_qpu(self, qpu_id: UUID) -> Qpu:
        """Return the QPU with the given id."""
        ...


class InMemoryCatalogue(CatalogueReader):
    """
    Dictionary-backed catalogue.

    Insertion order is the catalogue's natural order.

    Parameters
    ----------
    algorithms : iterable of Algorithm, optional
    implementations : iterable of Implementation, optional
    qpus : iterable of Qpu, optional
    """

    def __init__(
        self,
        algorithms: Iterable[Algorithm] = (),
        implementations: Iterable[Implementation] = (),
        qpus: Iterable[Qpu] = (),
    ) -> None:
        self._lock = threading.RLock()
        self._algorithms: dict[UUID, Algorithm] = {}
        self._implementations: dict[UUID, Implementation] = {}
        self._qpus: dict[UUID, Qpu] = {}
        for algorithm in algorithms:
            self.add_algorithm(algorithm)
        for implementation in implementations:
            self.add_implementation(implementation)
        for qpu in qpus:
            self.add_qpu(qpu)

    def add_algorithm(self, algorithm: Algorithm) -> None:
        """Insert or replace an algorithm."""
        with self._lock:
            self._algorithms[algorithm.id] = algorithm

    def add_implementation(self, implementation: Implementation) -> None:
        """Insert or replace an implementation."""
        with self._lock:
            self._implementations[implementation.id] = implementation

    def add_qpu(self, qpu: Qpu) -> None:
        """Insert or replace a QPU."""
        with self._lock:
            self._qpus[qpu.id] = qpu

    @property
    def algorithms(self) -> list[Algorithm]:
        with self._lock:
            return list(self._algorithms.values())

    @property
    def implementations(self) -> list[Implementation]:
        with self._lock:
            return list(self._implementations.values())

    @property
    def qpus(self) -> list[Qpu]:
        with self._lock:
            return list(self._qpus.values())

    def find_algorithm(self, algorithm_id: UUID) -> Algorithm:
        algorithm_id = as_uuid(algorithm_id)
        with self._lock:
            try:
                return self._algorithms[algorithm_id]
            except KeyError:
                raise AlgorithmNotFoundError(algorithm_id) from None

    def find_implementations_by_algorithm(
        self, algorithm_id: UUID
    ) -> list[Implementation]:
        algorithm_id = as_uuid(algorithm_id)
        with self._lock:
            if algorithm_id not in self._algorithms:
                raise AlgorithmNotFoundError(algorithm_id)
            return [
                impl
                for impl in self._implementations.values()
                if impl.algorithm_id == algorithm_id
            ]

    def find_implementation(self, implementation_id: UUID) -> Implementation:
        implementation_id = as_uuid(implementation_id)
        with self._lock:
            try:
                return self._implementations[implementation_id]
            except KeyError:
                raise ImplementationNotFoundError(implementation_id) from None

    def find_qpu(self, qpu_id: UUID) -> Qpu:
        qpu_id = as_uuid(qpu_id)
        with self._lock:
            try:
                return self._qpus[qpu_id]
            except KeyError:
                raise QpuNotFoundError(qpu_id) from None


def load_catalogue(path: Path | str) -> InMemoryCatalogue:
    """
    Load a catalogue from a JSON file.

    Parameters
    ----------
    path : Path or str
        JSON file with ``algorithms``, ``implementations`` and ``qpus``
        arrays.

    Returns
    -------
    InMemoryCatalogue
        Catalogue holding the file's entities in file order.

    Raises
    ------
    NisqAnalyzerError
        If the file cannot be read or an entity is malformed.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise NisqAnalyzerError(f"Cannot read catalogue {path}: {e}") from e

    try:
        catalogue = InMemoryCatalogue(
            algorithms=[Algorithm.from_dict(a) for a in data.get("algorithms", [])],
            implementations=[
                Implementation.from_dict(i) for i in data.get("implementations", [])
            ],
            qpus=[Qpu.from_dict(q) for q in data.get("qpus", [])],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise NisqAnalyzerError(f"Malformed catalogue entry in {path}: {e}") from e

    logger.debug(
        "Loaded catalogue %s: %d algorithms, %d implementations, %d qpus",
        path,
        len(catalogue.algorithms),
        len(catalogue.implementations),
        len(catalogue.qpus),
    )
    return catalogue
