# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Execution records and their status state machine.

::

    INITIALIZED ──► RUNNING ──► FINISHED
         │             │
         └─────────────┴──────► FAILED

Terminal states are absorbing: once ``FINISHED`` or ``FAILED``, further
transition requests are ignored and report ``False``. Every transition
stamps ``updated_at`` strictly after the previous timestamp.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable
from uuid import UUID, uuid4

from nisq_analyzer.errors import InvalidTransitionError
from nisq_analyzer.utils.common import Clock, isoformat, utc_now


logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)

#: Message of records created by the control service.
INITIAL_MESSAGE = "passing execution to executor plugin"
#: Message of records failed by cancellation.
CANCELLED_MESSAGE = "cancelled"


class ExecutionStatus(str, Enum):
    """
    Status of a dispatched execution.

    Attributes
    ----------
    INITIALIZED
        Record created; plugin not yet accepted the job.
    RUNNING
        Plugin accepted the job.
    FINISHED
        Execution completed; output is available.
    FAILED
        Execution failed or was cancelled; message holds the reason.
    """

    INITIALIZED = "INITIALIZED"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.FINISHED, ExecutionStatus.FAILED)


_ALLOWED = {
    ExecutionStatus.INITIALIZED: {ExecutionStatus.RUNNING, ExecutionStatus.FAILED},
    ExecutionStatus.RUNNING: {ExecutionStatus.FINISHED, ExecutionStatus.FAILED},
}


@dataclass(eq=False)
class ExecutionResult:
    """
    Observable status record of one dispatched execution.

    The record lives in the execution store; the worker running the
    plugin is its only writer. Readers should work on :meth:`snapshot`
    copies.

    Parameters
    ----------
    qpu_id : UUID
        QPU the execution targets.
    implementation_id : UUID, optional
        Implementation being executed.
    id : UUID, optional
        Execution identifier. Generated when omitted.
    status : ExecutionStatus, optional
        Initial status. Default is INITIALIZED.
    message : str, optional
        Human-readable status message.
    output : Any, optional
        Plugin output, set when FINISHED.
    clock : callable, optional
        Source of timestamps. Defaults to UTC wall-clock time.
    """

    qpu_id: UUID
    implementation_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)
    status: ExecutionStatus = ExecutionStatus.INITIALIZED
    message: str = INITIAL_MESSAGE
    output: Any = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    clock: Clock = field(default=utc_now, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _callbacks: list[Callable[[ExecutionResult], Any]] = field(
        default_factory=list, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.created_at is None:
            self.created_at = self.clock()
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def _transition(
        self,
        target: ExecutionStatus,
        message: str | None,
        output: Any = None,
        *,
        expect: ExecutionStatus | None = None,
    ) -> bool:
        with self._lock:
            if expect is not None and self.status is not expect:
                return False
            if self.status.is_terminal:
                logger.debug(
                    "Execution %s already %s, ignoring transition to %s",
                    self.id,
                    self.status.value,
                    target.value,
                )
                return False
            if target not in _ALLOWED[self.status]:
                raise InvalidTransitionError(
                    f"Execution {self.id}: cannot move from "
                    f"{self.status.value} to {target.value}"
                )
            now = self.clock()
            floor = self.updated_at + _TICK
            self.updated_at = now if now >= floor else floor
            self.status = target
            if message is not None:
                self.message = message
            if target is ExecutionStatus.FINISHED:
                self.output = output
            callbacks: list[Callable[[ExecutionResult], Any]] = []
            if target.is_terminal:
                callbacks, self._callbacks = self._callbacks, []
        logger.info("Execution %s -> %s", self.id, target.value)
        for fn in callbacks:
            self._invoke(fn)
        return True

    def _invoke(self, fn: Callable[[ExecutionResult], Any]) -> None:
        try:
            fn(self)
        except Exception:
            logger.exception("Done callback %r raised for execution %s", fn, self.id)

    def add_done_callback(self, fn: Callable[[ExecutionResult], Any]) -> None:
        """
        Call ``fn(record)`` once the record reaches a terminal state.

        Runs immediately, in the calling thread, if the record is already
        terminal; otherwise in the thread that performs the terminal
        transition. Exceptions raised by ``fn`` are logged.
        """
        with self._lock:
            if not self.status.is_terminal:
                self._callbacks.append(fn)
                return
        self._invoke(fn)

    def mark_running(self, message: str = "executing on QPU") -> bool:
        """
        Record that the plugin accepted the job.

        Returns
        -------
        bool
            False if the record was already terminal (e.g. cancelled);
            the caller must then stop without producing output.
        """
        return self._transition(ExecutionStatus.RUNNING, message)

    def mark_finished(self, output: Any, message: str = "execution finished") -> bool:
        """
        Record successful completion with the plugin's output.

        Raises
        ------
        InvalidTransitionError
            If the record never entered RUNNING.
        """
        return self._transition(ExecutionStatus.FINISHED, message, output)

    def mark_failed(self, message: str) -> bool:
        """Record a failure with a diagnostic message."""
        return self._transition(ExecutionStatus.FAILED, message)

    def mark_cancelled(self) -> bool:
        """
        Fail the record with the cancellation message if no plugin has
        accepted it yet.

        Returns
        -------
        bool
            False if the record had already left INITIALIZED.
        """
        return self._transition(
            ExecutionStatus.FAILED, CANCELLED_MESSAGE, expect=ExecutionStatus.INITIALIZED
        )

    def snapshot(self) -> ExecutionResult:
        """
        Return a consistent copy of the record.

        The copy shares no lock with the live record; mutating it does not
        affect the stored record.
        """
        with self._lock:
            return ExecutionResult(
                qpu_id=self.qpu_id,
                implementation_id=self.implementation_id,
                id=self.id,
                status=self.status,
                message=self.message,
                output=self.output,
                created_at=self.created_at,
                updated_at=self.updated_at,
                clock=self.clock,
            )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        snap = self.snapshot()
        d: dict[str, Any] = {
            "id": str(snap.id),
            "qpu_id": str(snap.qpu_id),
            "status": snap.status.value,
            "message": snap.message,
            "created_at": isoformat(snap.created_at),
            "updated_at": isoformat(snap.updated_at),
        }
        if snap.implementation_id is not None:
            d["implementation_id"] = str(snap.implementation_id)
        if snap.output is not None:
            d["output"] = snap.output
        return d
