"""Tests for configuration loading and overrides."""
from pathlib import Path

import pytest

from chronos_exporter.config import Config, load_config

EXAMPLE_CONFIG = Path(__file__).parent.parent / "configs" / "chronos.yaml"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("CHRONOS_URI", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


def test_defaults():
    config = load_config()

    assert config.chronos.uri == "http://chronos.mesos:4400"
    assert config.chronos.timeout_s == 10
    assert config.chronos.insecure_skip_verify is True
    assert config.web.host == "0.0.0.0"
    assert config.web.port == 9044
    assert config.web.telemetry_path == "/metrics"
    assert config.global_.log_level == "INFO"


def test_example_config_loads():
    config = load_config(str(EXAMPLE_CONFIG))
    assert isinstance(config, Config)
    assert config.chronos.metrics_path == "/metrics"


def test_yaml_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "global:\n"
        "  log_level: debug\n"
        "chronos:\n"
        "  uri: https://chronos.example.com:4400/\n"
        "  insecure_skip_verify: false\n"
        "web:\n"
        "  listen_address: 127.0.0.1:9100\n"
    )

    config = load_config(str(path))

    assert config.global_.log_level == "DEBUG"
    assert config.chronos.uri == "https://chronos.example.com:4400"
    assert config.chronos.insecure_skip_verify is False
    assert config.web.host == "127.0.0.1"
    assert config.web.port == 9100


def test_empty_yaml_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert load_config(str(path)).web.port == 9044


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CHRONOS_URI", "http://leader.chronos:4400")
    monkeypatch.setenv("LOG_LEVEL", "warning")

    config = load_config()

    assert config.chronos.uri == "http://leader.chronos:4400"
    assert config.global_.log_level == "WARNING"


def test_cli_overrides_win_over_env(monkeypatch):
    monkeypatch.setenv("CHRONOS_URI", "http://from-env:4400")

    config = load_config(overrides={
        "chronos_uri": "http://from-cli:4400",
        "listen_address": ":9999",
        "telemetry_path": "/probe",
        "log_level": None,
    })

    assert config.chronos.uri == "http://from-cli:4400"
    assert config.web.port == 9999
    assert config.web.telemetry_path == "/probe"
    assert config.global_.log_level == "INFO"


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/chronos.yaml")


@pytest.mark.parametrize("overrides", [
    {"chronos_uri": "chronos.mesos:4400"},
    {"listen_address": "9044"},
    {"telemetry_path": "/"},
    {"log_level": "verbose"},
])
def test_invalid_values(overrides):
    with pytest.raises(ValueError, match="Configuration validation failed"):
        load_config(overrides=overrides)
