"""Configuration models using Pydantic for validation."""
from typing import Any, Dict, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator
import os


class ChronosConfig(BaseModel):
    """Upstream Chronos endpoint."""
    uri: str = "http://chronos.mesos:4400"
    metrics_path: str = "/metrics"
    timeout_s: float = 10.0
    insecure_skip_verify: bool = True
    retry_interval_s: float = 10.0

    @field_validator('uri')
    @classmethod
    def validate_uri(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Chronos URI must be http(s): {v}")
        return v.rstrip("/")

    @field_validator('timeout_s', 'retry_interval_s')
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("Must be greater than zero")
        return v


class WebConfig(BaseModel):
    """HTTP listener for the landing page and telemetry."""
    listen_address: str = ":9044"
    telemetry_path: str = "/metrics"

    @field_validator('listen_address')
    @classmethod
    def validate_listen_address(cls, v):
        host, sep, port = v.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"Listen address must be [host]:port, got {v!r}")
        return v

    @field_validator('telemetry_path')
    @classmethod
    def validate_telemetry_path(cls, v):
        if not v.startswith("/") or v == "/":
            raise ValueError(f"Telemetry path must start with '/' and not be the root: {v!r}")
        return v

    @property
    def host(self) -> str:
        return self.listen_address.rpartition(":")[0] or "0.0.0.0"

    @property
    def port(self) -> int:
        return int(self.listen_address.rpartition(":")[2])


class GlobalConfig(BaseModel):
    """Global configuration settings."""
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level


class Config(BaseModel):
    """Root configuration model."""
    model_config = ConfigDict(populate_by_name=True)

    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    chronos: ChronosConfig = Field(default_factory=ChronosConfig)
    web: WebConfig = Field(default_factory=WebConfig)


# (section, key) for each CLI override
CLI_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "chronos_uri": ("chronos", "uri"),
    "listen_address": ("web", "listen_address"),
    "telemetry_path": ("web", "telemetry_path"),
    "log_level": ("global", "log_level"),
}


def _set(raw_config: Dict[str, Any], section: str, key: str, value: Any):
    if section not in raw_config or raw_config[section] is None:
        raw_config[section] = {}
    raw_config[section][key] = value


def load_config(config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Config:
    """
    Load and validate configuration.

    Values come from the YAML file (if given), then environment variables
    (CHRONOS_URI, LOG_LEVEL), then explicit overrides such as CLI flags.

    Args:
        config_path: Optional path to a YAML file
        overrides: Mapping of CLI_OVERRIDES keys to values; None values are skipped

    Returns:
        Validated Config
    """
    import yaml

    raw_config: Dict[str, Any] = {}
    if config_path is not None:
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

    # Apply environment variable overrides
    if env_uri := os.getenv('CHRONOS_URI'):
        _set(raw_config, 'chronos', 'uri', env_uri)

    if env_log_level := os.getenv('LOG_LEVEL'):
        _set(raw_config, 'global', 'log_level', env_log_level)

    for name, value in (overrides or {}).items():
        if value is None:
            continue
        section, key = CLI_OVERRIDES[name]
        _set(raw_config, section, key, value)

    try:
        return Config(**raw_config)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")
