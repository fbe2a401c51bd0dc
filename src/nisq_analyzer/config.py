# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Configuration management.

Configuration is read from ``NISQ_ANALYZER_*`` environment variables by
:func:`load_config`, cached process-wide by :func:`get_config` and can be
replaced explicitly with :func:`set_config`.

Custom Configuration
--------------------
>>> from nisq_analyzer.config import Config, set_config
>>> from pathlib import Path
>>> set_config(Config(root_dir=Path("/srv/nisq"), max_workers=8))

Resetting
---------
>>> from nisq_analyzer.config import reset_config
>>> reset_config()  # next get_config() reloads from environment
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from nisq_analyzer.errors import ConfigError


logger = logging.getLogger(__name__)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "set_config",
    "reset_config",
]

ENV_PREFIX = "NISQ_ANALYZER_"

_TRUTHY = {"1", "true", "yes", "on"}
_REDACTED = "[REDACTED]"


def _default_root() -> Path:
    return Path.home() / ".nisq-analyzer"


@dataclass
class Config:
    """
    Runtime configuration for the control service and its collaborators.

    Parameters
    ----------
    root_dir : Path
        Working directory; the Prolog knowledge base lives below it.
    max_workers : int
        Number of worker threads executing plugins.
    max_pending : int
        Executions allowed to wait for a worker before ``execute``
        fails with ``OverloadedError``.
    rule_timeout : float
        Upper bound in seconds for a single rule engine query.
    swipl_path : str
        SWI-Prolog executable.
    serialize_rule_queries : bool
        Serialize concurrent rule engine queries.
    qubits_parameter : str
        Binding name holding the required qubit count for selection.
    depth_parameter : str
        Binding name holding the circuit depth for selection.
    qiskit_service_url : str
        Base URL of the Qiskit execution service.
    qiskit_token : str
        Access token forwarded to the Qiskit execution service.
    poll_interval : float
        Seconds between result polls of remote executions.
    execution_timeout : float
        Seconds after which a remote execution is marked failed.
    """

    root_dir: Path = field(default_factory=_default_root)
    max_workers: int = 4
    max_pending: int = 16
    rule_timeout: float = 30.0
    swipl_path: str = "swipl"
    serialize_rule_queries: bool = True
    qubits_parameter: str = "requiredQubits"
    depth_parameter: str = "circuitDepth"
    qiskit_service_url: str = "http://localhost:5013"
    qiskit_token: str = ""
    poll_interval: float = 5.0
    execution_timeout: float = 3600.0

    def __post_init__(self) -> None:
        self.root_dir = Path(self.root_dir).expanduser()
        if self.max_workers < 1:
            raise ConfigError("max_workers must be at least 1")
        if self.max_pending < 0:
            raise ConfigError("max_pending must not be negative")
        if self.rule_timeout <= 0:
            raise ConfigError("rule_timeout must be positive")

    @property
    def knowledge_dir(self) -> Path:
        """Directory holding the generated Prolog knowledge base."""
        return self.root_dir / "knowledge"

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize to a JSON-friendly dictionary with secrets redacted.

        Returns
        -------
        dict
            Configuration values; ``qiskit_token`` is masked when set.
        """
        data = asdict(self)
        data["root_dir"] = str(self.root_dir)
        data["knowledge_dir"] = str(self.knowledge_dir)
        if data["qiskit_token"]:
            data["qiskit_token"] = _REDACTED
        return data


def _parse_bool(value: str | None, default: bool = True) -> bool:
    """Parse a boolean environment value; empty or unset yields ``default``."""
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUTHY


def _parse_int(name: str, value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def _parse_float(name: str, value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {value!r}") from e


def _env(key: str) -> str | None:
    return os.environ.get(ENV_PREFIX + key)


def load_config() -> Config:
    """
    Build a :class:`Config` from ``NISQ_ANALYZER_*`` environment variables.

    Returns
    -------
    Config
        Fresh configuration; unset variables take their defaults.

    Raises
    ------
    ConfigError
        If a numeric variable cannot be parsed.
    """
    defaults = Config.__dataclass_fields__
    home = _env("HOME")
    root_dir = Path(home).expanduser().resolve() if home else _default_root()

    cfg = Config(
        root_dir=root_dir,
        max_workers=_parse_int(
            "NISQ_ANALYZER_MAX_WORKERS",
            _env("MAX_WORKERS"),
            defaults["max_workers"].default,
        ),
        max_pending=_parse_int(
            "NISQ_ANALYZER_MAX_PENDING",
            _env("MAX_PENDING"),
            defaults["max_pending"].default,
        ),
        rule_timeout=_parse_float(
            "NISQ_ANALYZER_RULE_TIMEOUT",
            _env("RULE_TIMEOUT"),
            defaults["rule_timeout"].default,
        ),
        swipl_path=_env("SWIPL") or defaults["swipl_path"].default,
        serialize_rule_queries=_parse_bool(_env("SERIALIZE_RULES"), default=True),
        qubits_parameter=_env("QUBITS_PARAMETER")
        or defaults["qubits_parameter"].default,
        depth_parameter=_env("DEPTH_PARAMETER") or defaults["depth_parameter"].default,
        qiskit_service_url=_env("QISKIT_SERVICE_URL")
        or defaults["qiskit_service_url"].default,
        qiskit_token=_env("QISKIT_TOKEN") or "",
        poll_interval=_parse_float(
            "NISQ_ANALYZER_POLL_INTERVAL",
            _env("POLL_INTERVAL"),
            defaults["poll_interval"].default,
        ),
        execution_timeout=_parse_float(
            "NISQ_ANALYZER_EXECUTION_TIMEOUT",
            _env("EXECUTION_TIMEOUT"),
            defaults["execution_timeout"].default,
        ),
    )
    logger.debug("Loaded configuration: root_dir=%s", cfg.root_dir)
    return cfg


_config: Config | None = None
_config_lock = threading.Lock()


def get_config() -> Config:
    """
    Return the process-wide configuration, loading it on first use.

    Returns
    -------
    Config
        Cached configuration instance.
    """
    global _config
    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def set_config(config: Config) -> None:
    """
    Replace the process-wide configuration.

    Parameters
    ----------
    config : Config
        Configuration returned by subsequent :func:`get_config` calls.
    """
    global _config
    with _config_lock:
        _config = config


def reset_config() -> None:
    """Drop the cached configuration so the next access reloads it."""
    global _config
    with _config_lock:
        _config = None
