"""
Unit tests for configuration loading: YAML file, environment overrides and
validation errors.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from platcheck.config import (
    GeneratorConfig,
    HarnessSettings,
    OracleConfig,
    RunnerConfig,
    load_config,
)
from platcheck.errors import ConfigError


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # no stray .env or config/default.yaml from the working directory
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PLATCHECK_CONFIG_PATH", raising=False)
    monkeypatch.delenv("PLATCHECK_RUNNER__MAX_EXAMPLES", raising=False)
    monkeypatch.delenv("PLATCHECK_RUNNER__SEED", raising=False)


def _write(tmp_path, text: str, name: str = "platcheck.yaml"):
    path = tmp_path / name
    path.write_text(text)
    return path


# ─── Defaults ─────────────────────────────────────────────────────


class TestDefaults:
    def test_run_constants(self):
        config = HarnessSettings()
        assert config.runner.max_examples == 2000
        assert config.runner.max_discards == 100_000
        assert config.runner.max_consecutive_discards == 100_000
        assert config.runner.seed is None
        assert config.runner.shrink is True

    def test_generator_bounds(self):
        config = HarnessSettings()
        assert config.generator.min_fragments == 0
        assert config.generator.max_fragments == 5
        assert config.generator.max_depth == 4
        assert config.generator.max_children == 4

    def test_oracle(self):
        config = HarnessSettings()
        assert config.oracle.codec == "platcheck.platform:GemPlatformCodec"
        assert config.oracle.rejection_template == "empty cpu in platform {candidate!r}"

    def test_missing_default_file_uses_builtins(self):
        config = load_config()
        assert config.runner.max_examples == 2000


# ─── YAML ─────────────────────────────────────────────────────────


class TestLoadConfig:
    def test_reads_yaml(self, tmp_path):
        path = _write(tmp_path, "runner:\n  max_examples: 50\n  seed: 7\n")
        config = load_config(path)
        assert config.runner.max_examples == 50
        assert config.runner.seed == 7
        assert config.runner.max_discards == 100_000

    def test_default_path_in_working_directory(self, tmp_path):
        (tmp_path / "config").mkdir()
        _write(tmp_path, "runner:\n  max_examples: 12\n", name="config/default.yaml")
        assert load_config().runner.max_examples == 12

    def test_path_from_environment(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "generator:\n  max_depth: 2\n")
        monkeypatch.setenv("PLATCHECK_CONFIG_PATH", str(path))
        assert load_config().generator.max_depth == 2

    def test_empty_file(self, tmp_path):
        path = _write(tmp_path, "")
        assert load_config(path).runner.max_examples == 2000

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Config not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path, "runner: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_root_must_be_mapping(self, tmp_path):
        path = _write(tmp_path, "- 1\n- 2\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(path)

    def test_invalid_value(self, tmp_path):
        path = _write(tmp_path, "runner:\n  max_examples: 0\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)


# ─── Environment ──────────────────────────────────────────────────


class TestEnvironmentOverrides:
    def test_env_wins_over_yaml(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "runner:\n  max_examples: 50\n")
        monkeypatch.setenv("PLATCHECK_RUNNER__MAX_EXAMPLES", "17")
        assert load_config(path).runner.max_examples == 17

    def test_env_without_yaml(self, monkeypatch):
        monkeypatch.setenv("PLATCHECK_RUNNER__SEED", "5")
        assert load_config().runner.seed == 5


# ─── Validation ───────────────────────────────────────────────────


class TestValidation:
    def test_fragment_bounds_ordered(self):
        with pytest.raises(ValidationError):
            GeneratorConfig(min_fragments=3, max_fragments=2)

    def test_template_needs_candidate(self):
        with pytest.raises(ValidationError):
            OracleConfig(rejection_template="empty cpu")

    def test_negative_budget(self):
        with pytest.raises(ValidationError):
            RunnerConfig(max_discards=-1)

    def test_zero_discards_allowed(self):
        assert RunnerConfig(max_consecutive_discards=0).max_consecutive_discards == 0
