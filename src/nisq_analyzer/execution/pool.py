# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""Bounded worker pool for plugin executions."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from nisq_analyzer.errors import OverloadedError


logger = logging.getLogger(__name__)


class WorkerPool:
    """
    Thread pool with a bounded task queue.

    At most ``max_workers`` tasks run at once and at most
    ``max_pending`` more wait for a worker. Submitting beyond that
    raises :class:`~nisq_analyzer.errors.OverloadedError` instead of
    queueing without bound.

    Parameters
    ----------
    max_workers : int
        Worker threads.
    max_pending : int
        Queued tasks allowed in addition to the running ones.
    thread_name_prefix : str, optional
        Prefix for worker thread names.
    """

    def __init__(
        self,
        max_workers: int,
        max_pending: int = 0,
        *,
        thread_name_prefix: str = "nisq-exec",
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if max_pending < 0:
            raise ValueError("max_pending must not be negative")
        self.max_workers = max_workers
        self.max_pending = max_pending
        self._slots = threading.BoundedSemaphore(max_workers + max_pending)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self._closed = False

    @property
    def capacity(self) -> int:
        return self.max_workers + self.max_pending

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """
        Schedule ``fn(*args, **kwargs)`` on a worker.

        Returns
        -------
        Future
            Future of the call.

        Raises
        ------
        OverloadedError
            If every running and queued slot is taken, or the pool is
            shut down.
        """
        if self._closed:
            raise OverloadedError("Worker pool is shut down")
        if not self._slots.acquire(blocking=False):
            raise OverloadedError(
                f"Worker pool saturated ({self.capacity} executions in flight)"
            )
        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except RuntimeError as e:
            self._slots.release()
            raise OverloadedError(f"Worker pool rejected task: {e}") from e
        future.add_done_callback(lambda _: self._slots.release())
        return future

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting tasks and optionally wait for running ones."""
        self._closed = True
        self._executor.shutdown(wait=wait)
        logger.debug("Worker pool shut down (wait=%s)", wait)

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown(wait=True)
