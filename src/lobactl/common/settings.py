"""Runtime settings and configuration file models for lobactl."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONFIG_PATH = Path("/etc/goloba/golobactl.yml")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class ConfigurationError(Exception):
    """Raised when the configuration file or the environment settings are unusable."""

    def __init__(self, path: Optional[Path], reason: str) -> None:
        super().__init__(reason if path is None else f"{reason} (config file: {path})")
        self.path = path
        self.reason = reason


def env_field(default, env_name: str):
    return Field(default, validation_alias=env_name)


def parse_duration(value: str) -> float:
    """Parse a duration such as ``5s``, ``500ms`` or ``1m30s`` into seconds."""

    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return 0.0
    total = 0.0
    position = 0
    while position < len(text):
        match = _DURATION_PART.match(text, position)
        if match is None:
            raise ValueError(f"invalid duration {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    return sign * total


class CtlSettings(BaseSettings):
    """Environment driven settings for the lobactl command."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    config_path: Path = env_field(DEFAULT_CONFIG_PATH, "LOBACTL_CONFIG")
    log_level: str = env_field("WARNING", "LOBACTL_LOG_LEVEL")
    otel_exporter_endpoint: Optional[str] = env_field(None, "LOBACTL_OTEL_EXPORTER_ENDPOINT")
    otel_exporter_headers: Optional[str] = env_field(None, "LOBACTL_OTEL_EXPORTER_HEADERS")
    otel_sampler_ratio: float = env_field(1.0, "LOBACTL_OTEL_SAMPLER_RATIO")


def load_settings() -> CtlSettings:
    try:
        return CtlSettings()
    except ValidationError as exc:
        raise ConfigurationError(None, f"invalid environment settings: {exc}") from exc


class ApiServerConfig(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def _require_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("url must not be empty")
        return value


class CtlConfig(BaseModel):
    """Contents of the YAML configuration file."""

    timeout: Optional[float] = None
    api_servers: list[ApiServerConfig] = Field(default_factory=list)

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value):
        if isinstance(value, str):
            value = parse_duration(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if value < 0:
                raise ValueError("timeout must not be negative")
            return value or None
        return value

    @field_validator("api_servers", mode="before")
    @classmethod
    def _default_servers(cls, value):
        if value is None:
            return []
        return value

    @property
    def targets(self) -> list[str]:
        return [server.url for server in self.api_servers]


def load_config(path: Path) -> CtlConfig:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(path, f"failed to read config file: {exc}") from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(path, f"failed to parse config file: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(path, "failed to parse config file: top level must be a mapping")
    try:
        return CtlConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(path, f"invalid config file: {exc}") from exc
