# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
In-process execution store.

The store owns every live :class:`ExecutionResult`. Its index is
guarded by a reader-writer lock; each record additionally guards its
own fields, so readers receive consistent per-record snapshots while
the owning worker keeps writing.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Iterator
from uuid import UUID

from nisq_analyzer.errors import ExecutionNotFoundError
from nisq_analyzer.execution.result import ExecutionResult, ExecutionStatus
from nisq_analyzer.utils.common import as_uuid


logger = logging.getLogger(__name__)


class ReadWriteLock:
    """
    Writer-preferring reader-writer lock.

    Any number of readers may hold the lock together; a writer holds it
    alone. Waiting writers block new readers.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextlib.contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextlib.contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ExecutionStore:
    """
    Thread-safe mapping of execution ids to execution records.

    Examples
    --------
    >>> store = ExecutionStore()
    >>> store.put(result)
    >>> store.get(result.id).status
    <ExecutionStatus.INITIALIZED: 'INITIALIZED'>
    """

    def __init__(self) -> None:
        self._records: dict[UUID, ExecutionResult] = {}
        self._lock = ReadWriteLock()

    def put(self, result: ExecutionResult) -> None:
        """
        Insert a record, taking ownership of it.

        Parameters
        ----------
        result : ExecutionResult
            Live record; later mutations are visible through :meth:`get`.

        Raises
        ------
        ValueError
            If a record with the same id is already stored.
        """
        with self._lock.write():
            if result.id in self._records:
                raise ValueError(f"Execution already stored: {result.id}")
            self._records[result.id] = result
        logger.debug("Stored execution %s", result.id)

    def record(self, execution_id: UUID | str) -> ExecutionResult:
        """
        Return the live record for its owner.

        Raises
        ------
        ExecutionNotFoundError
            If the id is unknown.
        """
        execution_id = as_uuid(execution_id)
        with self._lock.read():
            try:
                return self._records[execution_id]
            except KeyError:
                raise ExecutionNotFoundError(execution_id) from None

    def get(self, execution_id: UUID | str) -> ExecutionResult:
        """
        Return a snapshot of a record.

        Raises
        ------
        ExecutionNotFoundError
            If the id is unknown.
        """
        return self.record(execution_id).snapshot()

    def list(
        self,
        *,
        status: ExecutionStatus | str | None = None,
        qpu_id: UUID | str | None = None,
    ) -> list[ExecutionResult]:
        """
        Snapshots of the stored records, oldest first.

        Parameters
        ----------
        status : ExecutionStatus or str, optional
            Keep only records in this status.
        qpu_id : UUID or str, optional
            Keep only records targeting this QPU.

        Returns
        -------
        list of ExecutionResult
            Matching snapshots.
        """
        wanted_status = ExecutionStatus(status) if status is not None else None
        wanted_qpu = as_uuid(qpu_id) if qpu_id is not None else None

        with self._lock.read():
            records = list(self._records.values())

        snapshots = [r.snapshot() for r in records]
        return [
            s
            for s in snapshots
            if (wanted_status is None or s.status is wanted_status)
            and (wanted_qpu is None or s.qpu_id == wanted_qpu)
        ]

    def discard(self, execution_id: UUID | str) -> bool:
        """Remove a record; returns False if it was not stored."""
        execution_id = as_uuid(execution_id)
        with self._lock.write():
            removed = self._records.pop(execution_id, None) is not None
        if removed:
            logger.debug("Discarded execution %s", execution_id)
        return removed

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._records)

    def __contains__(self, execution_id: object) -> bool:
        if not isinstance(execution_id, (UUID, str)):
            return False
        try:
            key = as_uuid(execution_id)
        except ValueError:
            return False
        with self._lock.read():
            return key in self._records
