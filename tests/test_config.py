# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""Tests for nisq_analyzer.config: env loading, validation, redaction."""

from __future__ import annotations

from pathlib import Path

import pytest

from nisq_analyzer.config import (
    Config,
    _parse_bool,
    _parse_float,
    _parse_int,
    get_config,
    load_config,
    reset_config,
    set_config,
)
from nisq_analyzer.errors import ConfigError


class TestParseBool:
    """Edge cases for boolean parsing from env vars."""

    @pytest.mark.parametrize("val", ["1", "true", "yes", "on", "TRUE", " on "])
    def test_truthy_values(self, val):
        assert _parse_bool(val) is True

    @pytest.mark.parametrize("val", ["0", "false", "no", "off", "maybe"])
    def test_falsy_values(self, val):
        assert _parse_bool(val) is False

    def test_unset_returns_default(self):
        assert _parse_bool(None) is True
        assert _parse_bool("", default=False) is False


class TestParseNumbers:
    def test_int(self):
        assert _parse_int("X", " 8 ", 1) == 8
        assert _parse_int("X", None, 3) == 3

    def test_float(self):
        assert _parse_float("X", "0.5", 1.0) == 0.5
        assert _parse_float("X", "  ", 2.0) == 2.0

    def test_invalid_int_names_variable(self):
        with pytest.raises(ConfigError, match="NISQ_ANALYZER_MAX_WORKERS"):
            _parse_int("NISQ_ANALYZER_MAX_WORKERS", "four", 4)

    def test_invalid_float(self):
        with pytest.raises(ConfigError):
            _parse_float("NISQ_ANALYZER_RULE_TIMEOUT", "soon", 1.0)


class TestConfig:
    """Validation and serialization of Config."""

    def test_knowledge_dir_below_root(self, tmp_path):
        cfg = Config(root_dir=tmp_path)
        assert cfg.knowledge_dir == tmp_path / "knowledge"

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_workers": 0}, {"max_pending": -1}, {"rule_timeout": 0}],
    )
    def test_invalid_values(self, tmp_path, kwargs):
        """Out-of-range settings are rejected at construction."""
        with pytest.raises(ConfigError):
            Config(root_dir=tmp_path, **kwargs)

    def test_to_dict_redacts_token(self, tmp_path):
        """The Qiskit token never appears in serialized output."""
        data = Config(root_dir=tmp_path, qiskit_token="hunter2").to_dict()

        assert data["qiskit_token"] == "[REDACTED]"
        assert "hunter2" not in str(data)
        assert data["root_dir"] == str(tmp_path)
        assert data["knowledge_dir"] == str(tmp_path / "knowledge")

    def test_to_dict_empty_token(self, tmp_path):
        assert Config(root_dir=tmp_path).to_dict()["qiskit_token"] == ""


class TestLoadConfig:
    """E2E: env vars => load_config => Config with correct values."""

    def test_defaults_with_clean_env(self, clean_env):
        """No env vars => sensible defaults."""
        cfg = load_config()

        assert cfg.root_dir == Path.home() / ".nisq-analyzer"
        assert cfg.max_workers == 4
        assert cfg.max_pending == 16
        assert cfg.swipl_path == "swipl"
        assert cfg.serialize_rule_queries is True
        assert cfg.qubits_parameter == "requiredQubits"
        assert cfg.depth_parameter == "circuitDepth"
        assert cfg.qiskit_token == ""

    def test_custom_home(self, clean_env, tmp_path):
        """NISQ_ANALYZER_HOME overrides root_dir."""
        custom = tmp_path / "custom"
        clean_env.setenv("NISQ_ANALYZER_HOME", str(custom))

        cfg = load_config()

        assert cfg.root_dir == custom.resolve()

    def test_overrides(self, clean_env):
        """Every setting can be overridden from the environment."""
        clean_env.setenv("NISQ_ANALYZER_MAX_WORKERS", "8")
        clean_env.setenv("NISQ_ANALYZER_MAX_PENDING", "0")
        clean_env.setenv("NISQ_ANALYZER_RULE_TIMEOUT", "2.5")
        clean_env.setenv("NISQ_ANALYZER_SWIPL", "/opt/swipl/bin/swipl")
        clean_env.setenv("NISQ_ANALYZER_SERIALIZE_RULES", "off")
        clean_env.setenv("NISQ_ANALYZER_QUBITS_PARAMETER", "qubits")
        clean_env.setenv("NISQ_ANALYZER_DEPTH_PARAMETER", "depth")
        clean_env.setenv("NISQ_ANALYZER_QISKIT_SERVICE_URL", "http://qiskit:5013")
        clean_env.setenv("NISQ_ANALYZER_QISKIT_TOKEN", "tok")
        clean_env.setenv("NISQ_ANALYZER_POLL_INTERVAL", "0.5")
        clean_env.setenv("NISQ_ANALYZER_EXECUTION_TIMEOUT", "60")

        cfg = load_config()

        assert cfg.max_workers == 8
        assert cfg.max_pending == 0
        assert cfg.rule_timeout == 2.5
        assert cfg.swipl_path == "/opt/swipl/bin/swipl"
        assert cfg.serialize_rule_queries is False
        assert cfg.qubits_parameter == "qubits"
        assert cfg.depth_parameter == "depth"
        assert cfg.qiskit_service_url == "http://qiskit:5013"
        assert cfg.qiskit_token == "tok"
        assert cfg.poll_interval == 0.5
        assert cfg.execution_timeout == 60.0

    def test_malformed_number(self, clean_env):
        """Unparseable numbers fail loudly instead of falling back."""
        clean_env.setenv("NISQ_ANALYZER_MAX_WORKERS", "many")

        with pytest.raises(ConfigError):
            load_config()

    def test_out_of_range_number(self, clean_env):
        clean_env.setenv("NISQ_ANALYZER_MAX_WORKERS", "0")

        with pytest.raises(ConfigError):
            load_config()


class TestConfigSingleton:
    """get_config caches, set_config overrides, reset_config clears."""

    def test_get_config_caches(self, clean_env):
        """Two calls to get_config return the same object."""
        assert get_config() is get_config()

    def test_set_config_overrides(self, tmp_path):
        """set_config replaces the cached singleton."""
        custom = Config(root_dir=tmp_path)
        set_config(custom)

        assert get_config() is custom

    def test_reset_then_get_reloads(self, clean_env):
        """After reset, get_config creates a fresh instance."""
        first = get_config()
        reset_config()

        assert get_config() is not first
