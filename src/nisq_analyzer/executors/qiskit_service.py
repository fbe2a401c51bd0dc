# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Executor plugin delegating to a remote Qiskit execution service.

The service accepts a job via ``POST /qiskit-service/api/v1.0/execute``
and answers ``202 Accepted`` with a ``Location`` header. The plugin then
polls that resource until it reports ``complete`` or an ``error``.

Configuration
-------------
Defaults come from :func:`nisq_analyzer.config.get_config`:

.. code-block:: bash

    export NISQ_ANALYZER_QISKIT_SERVICE_URL=http://qiskit-service:5013
    export NISQ_ANALYZER_QISKIT_TOKEN=xxxxxxxx
    export NISQ_ANALYZER_POLL_INTERVAL=5
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any, Callable, Mapping
from urllib.parse import urljoin
from uuid import UUID

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from nisq_analyzer.config import get_config
from nisq_analyzer.errors import PluginError
from nisq_analyzer.execution.result import CANCELLED_MESSAGE


if TYPE_CHECKING:
    from nisq_analyzer.execution.result import ExecutionResult
    from nisq_analyzer.models import Qpu


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF = 0.5  # seconds

EXECUTE_PATH = "/qiskit-service/api/v1.0/execute"


class QiskitServiceExecutor:
    """
    Run Python/Qiskit implementations through the Qiskit service.

    Parameters
    ----------
    service_url : str, optional
        Base URL of the service. Defaults to the configured URL.
    token : str, optional
        Access token forwarded with every job. Defaults to the
        configured token.
    poll_interval : float, optional
        Seconds between result polls.
    execution_timeout : float, optional
        Seconds after which a job still running is marked failed.
    request_timeout : float, optional
        Timeout of a single HTTP request. Default is 30.0.
    retry_attempts : int, optional
        Retries for transient HTTP failures. Default is 3.
    retry_backoff : float, optional
        Base backoff between retries. Default is 0.5.
    monotonic : callable, optional
        Time source for the execution deadline.
    """

    name = "qiskit-service"

    def __init__(
        self,
        service_url: str | None = None,
        token: str | None = None,
        *,
        poll_interval: float | None = None,
        execution_timeout: float | None = None,
        request_timeout: float = DEFAULT_TIMEOUT,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        cfg = get_config()
        self.service_url = (service_url or cfg.qiskit_service_url).rstrip("/")
        self.token = token if token is not None else cfg.qiskit_token
        self.poll_interval = (
            poll_interval if poll_interval is not None else cfg.poll_interval
        )
        self.execution_timeout = (
            execution_timeout
            if execution_timeout is not None
            else cfg.execution_timeout
        )
        self.request_timeout = request_timeout
        self._monotonic = monotonic
        self.session = self._create_session(retry_attempts, retry_backoff)

        self._cancel_events: dict[UUID, threading.Event] = {}
        self._lock = threading.Lock()

        logger.debug("QiskitServiceExecutor initialized: service=%s", self.service_url)

    def _create_session(self, retry_attempts: int, retry_backoff: float) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": "nisq-analyzer/0.3",
            }
        )

        # Job submission (POST) is never retried
        retry_strategy = Retry(
            total=retry_attempts,
            backoff_factor=retry_backoff,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def supported_programming_languages(self) -> set[str]:
        return {"Python"}

    def supported_sdks(self) -> set[str]:
        return {"Qiskit"}

    def _request(self, method: str, url: str, *, json: Any = None) -> requests.Response:
        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json,
                timeout=self.request_timeout,
            )
        except requests.exceptions.Timeout as e:
            raise PluginError(
                f"Request timeout after {self.request_timeout}s: {method} {url}"
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise PluginError(
                f"Connection error to Qiskit service {self.service_url}: {e}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise PluginError(f"Request failed: {method} {url}: {e}") from e

        logger.debug("Qiskit service %s %s -> %d", method, url, response.status_code)
        return response

    @staticmethod
    def _raise_for_status(response: requests.Response, context: str) -> None:
        if response.ok:
            return
        try:
            detail = response.json().get("message", response.text)
        except (ValueError, AttributeError):
            detail = response.text
        raise PluginError(
            f"{context}: Qiskit service error ({response.status_code}): {detail}"
        )

    def _submit(self, file_location: str, qpu: Qpu, params: Mapping[str, str]) -> str:
        """Post the job and return the absolute URL of its result resource."""
        body = {
            "impl_url": file_location,
            "qpu_name": qpu.name,
            "input_params": dict(params),
            "token": self.token,
        }
        response = self._request("POST", self.service_url + EXECUTE_PATH, json=body)
        self._raise_for_status(response, "Job submission failed")

        location = response.headers.get("Location")
        if response.status_code != 202 or not location:
            raise PluginError(
                f"Job submission failed: expected 202 with Location header, "
                f"got {response.status_code}"
            )
        return urljoin(self.service_url + "/", location)

    def run(
        self,
        file_location: str,
        qpu: Qpu,
        params: Mapping[str, str],
        result: ExecutionResult,
    ) -> None:
        """
        Submit the implementation and poll until the job ends.

        The record is marked RUNNING once the service accepted the job
        and is left FINISHED or FAILED when this method returns. A record
        that is already terminal, e.g. cancelled, is not submitted.

        Raises
        ------
        PluginError
            If the job cannot be submitted or its status cannot be read.
        """
        if result.is_terminal:
            logger.info(
                "Execution %s is already %s, not submitting to Qiskit service",
                result.id,
                result.status.value,
            )
            return

        event = threading.Event()
        with self._lock:
            self._cancel_events[result.id] = event
        try:
            location = self._submit(file_location, qpu, params)
            logger.info(
                "Execution %s accepted by Qiskit service on %s", result.id, qpu.name
            )
            if not result.mark_running(f"executing on {qpu.name}"):
                # Service has no cancel endpoint; the job runs unobserved
                logger.warning(
                    "Execution %s was %s while submitting; remote job at %s is orphaned",
                    result.id,
                    result.status.value,
                    location,
                )
                return
            self._poll(location, result, event)
        finally:
            with self._lock:
                self._cancel_events.pop(result.id, None)

    def _poll(self, location: str, result: ExecutionResult, event: threading.Event) -> None:
        deadline = self._monotonic() + self.execution_timeout
        while True:
            if event.is_set():
                result.mark_failed(CANCELLED_MESSAGE)
                return
            if self._monotonic() >= deadline:
                result.mark_failed(
                    f"execution timed out after {self.execution_timeout}s"
                )
                return

            response = self._request("GET", location)
            self._raise_for_status(response, "Result polling failed")
            try:
                body = response.json()
            except ValueError as e:
                raise PluginError(f"Result polling failed: invalid JSON: {e}") from e

            if body.get("error"):
                result.mark_failed(str(body["error"]))
                return
            if body.get("complete"):
                result.mark_finished(body.get("result"))
                return

            # Poll delay; cancel() wakes it early
            event.wait(self.poll_interval)

    def cancel(self, result: ExecutionResult) -> bool:
        """
        Stop polling a running job and mark it cancelled.

        Returns
        -------
        bool
            False if this plugin is not running the execution.
        """
        with self._lock:
            event = self._cancel_events.get(result.id)
        if event is None:
            return False
        event.set()
        logger.info("Cancellation requested for execution %s", result.id)
        return True

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self) -> QiskitServiceExecutor:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
