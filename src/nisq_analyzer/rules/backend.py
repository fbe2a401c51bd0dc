# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Prolog backends.

A backend answers two kinds of questions over a set of consulted files
and an optional inline program:

- :meth:`PrologBackend.has_solution` - does a goal succeed?
- :meth:`PrologBackend.find_all` - which values of a template satisfy
  a goal?

:class:`SwiplBackend` runs SWI-Prolog in a fresh subprocess per query,
so queries never share interpreter state.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

from nisq_analyzer.errors import (
    RuleEngineUnavailableError,
    RuleError,
    RuleTimeoutError,
)


logger = logging.getLogger(__name__)

# Exit statuses of the generated goal wrappers
_EXIT_TRUE = 0
_EXIT_FALSE = 3
_EXIT_EXCEPTION = 2

_STDERR_LIMIT = 2000


@runtime_checkable
class PrologBackend(Protocol):
    """Protocol for Prolog query backends."""

    def check(self) -> None:
        """Raise ``RuleEngineUnavailableError`` if queries cannot run."""
        ...

    def has_solution(
        self,
        goal: str,
        *,
        program: str = "",
        files: Sequence[Path] = (),
        timeout: float,
    ) -> bool:
        """Return True iff ``goal`` has at least one solution."""
        ...

    def find_all(
        self,
        template: str,
        goal: str,
        *,
        program: str = "",
        files: Sequence[Path] = (),
        timeout: float,
    ) -> list[str]:
        """Return the values of ``template`` for every solution of ``goal``."""
        ...


def _unquote(term: str) -> str:
    """Turn a ``write_canonical`` atom back into its text."""
    if len(term) >= 2 and term[0] == "'" and term[-1] == "'":
        body = term[1:-1]
        out: list[str] = []
        i = 0
        while i < len(body):
            ch = body[i]
            if ch == "\\" and i + 1 < len(body):
                out.append(body[i + 1])
                i += 2
                continue
            if ch == "'" and i + 1 < len(body) and body[i + 1] == "'":
                out.append("'")
                i += 2
                continue
            out.append(ch)
            i += 1
        return "".join(out)
    return term


class SwiplBackend(PrologBackend):
    """
    SWI-Prolog subprocess backend.

    Parameters
    ----------
    executable : str
        Name or path of the ``swipl`` binary.

    Notes
    -----
    Each query consults the given files and the inline program, runs a
    wrapped goal and reports through the exit status: 0 for success,
    3 for failure, 2 for an uncaught exception. Load errors halt the
    interpreter with status 1 (``--on-error=halt``).
    """

    def __init__(self, executable: str = "swipl") -> None:
        self.executable = executable

    def _resolve(self) -> str:
        path = shutil.which(self.executable)
        if path is None:
            raise RuleEngineUnavailableError(
                f"SWI-Prolog executable not found: {self.executable!r}"
            )
        return path

    def check(self) -> None:
        self._resolve()

    def _run(
        self,
        wrapped_goal: str,
        program: str,
        files: Sequence[Path],
        timeout: float,
    ) -> subprocess.CompletedProcess[str]:
        executable = self._resolve()
        program_file: str | None = None
        try:
            consult = [str(f) for f in files]
            if program:
                fd, program_file = tempfile.mkstemp(prefix="nisq-rule-", suffix=".pl")
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(program)
                consult.append(program_file)

            command = [
                executable,
                "-q",
                "--on-error=halt",
                "-g",
                wrapped_goal,
                "-t",
                "halt(1)",
                *consult,
            ]
            logger.debug("Running Prolog query: %s", wrapped_goal)
            try:
                return subprocess.run(
                    command,
                    capture_output=True,
                    text=True,
                    timeout=timeout,
                    check=False,
                )
            except subprocess.TimeoutExpired as e:
                raise RuleTimeoutError(
                    f"Prolog query timed out after {timeout}s: {wrapped_goal}"
                ) from e
            except OSError as e:
                raise RuleEngineUnavailableError(
                    f"Cannot start SWI-Prolog ({executable}): {e}"
                ) from e
        finally:
            if program_file is not None:
                Path(program_file).unlink(missing_ok=True)

    @staticmethod
    def _diagnostic(result: subprocess.CompletedProcess[str]) -> str:
        stderr = (result.stderr or "").strip()
        return stderr[:_STDERR_LIMIT] or f"exit status {result.returncode}"

    def has_solution(
        self,
        goal: str,
        *,
        program: str = "",
        files: Sequence[Path] = (),
        timeout: float,
    ) -> bool:
        wrapped = (
            f"catch(({goal} -> halt({_EXIT_TRUE}) ; halt({_EXIT_FALSE})), E, "
            f"(print_message(error, E), halt({_EXIT_EXCEPTION})))"
        )
        result = self._run(wrapped, program, files, timeout)
        if result.returncode == _EXIT_TRUE:
            return True
        if result.returncode == _EXIT_FALSE:
            return False
        raise RuleError(f"Prolog evaluation failed: {self._diagnostic(result)}")

    def find_all(
        self,
        template: str,
        goal: str,
        *,
        program: str = "",
        files: Sequence[Path] = (),
        timeout: float,
    ) -> list[str]:
        wrapped = (
            f"catch((forall({goal}, (write_canonical({template}), nl)), "
            f"halt({_EXIT_TRUE})), E, "
            f"(print_message(error, E), halt({_EXIT_EXCEPTION})))"
        )
        result = self._run(wrapped, program, files, timeout)
        if result.returncode != _EXIT_TRUE:
            raise RuleError(f"Prolog query failed: {self._diagnostic(result)}")
        return [_unquote(line.strip()) for line in result.stdout.splitlines() if line.strip()]
