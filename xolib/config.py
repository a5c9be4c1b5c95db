"""
Client configuration for the XO backup orchestrator.

Configuration is an explicit value passed to ``XOClient``. The environment
and YAML loaders build that value; nothing here keeps global state.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

import yaml

from xolib.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    ENV_INSECURE,
    ENV_PASSWORD,
    ENV_REQUEST_TIMEOUT,
    ENV_TOKEN,
    ENV_URL,
    ENV_USER,
    LOGGER_NAME,
)
from xolib.exceptions import ConfigurationError
from xolib.validation import InputValidator

logger = logging.getLogger(LOGGER_NAME)

_TRUE_VALUES = ("1", "true", "yes", "on")


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _parse_timeout(value: Any, source: str) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid request timeout '{value}' in {source}") from e
    if timeout <= 0:
        raise ConfigurationError(f"Request timeout must be positive, got {value} in {source}")
    return timeout


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for the remote API."""

    url: str
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    insecure: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __repr__(self) -> str:
        # Credentials stay out of logs and tracebacks.
        return (
            f"ClientConfig(url={self.url!r}, username={self.username!r}, "
            f"token={'***' if self.token else None}, insecure={self.insecure}, "
            f"request_timeout={self.request_timeout})"
        )

    def validate(self) -> None:
        """Raise ConfigurationError when the settings cannot be used."""
        if not self.url:
            raise ConfigurationError("No API URL configured")
        InputValidator.validate_url(self.url)
        if not self.token and not (self.username and self.password):
            raise ConfigurationError("Either a token or a username and password must be configured")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """Build a config from ``XOA_*`` environment variables."""
        env = os.environ if environ is None else environ
        timeout = env.get(ENV_REQUEST_TIMEOUT)
        return cls(
            url=env.get(ENV_URL, ""),
            token=env.get(ENV_TOKEN) or None,
            username=env.get(ENV_USER) or None,
            password=env.get(ENV_PASSWORD) or None,
            insecure=_parse_bool(env.get(ENV_INSECURE, "")),
            request_timeout=(
                _parse_timeout(timeout, ENV_REQUEST_TIMEOUT) if timeout else DEFAULT_REQUEST_TIMEOUT
            ),
        )

    @classmethod
    def from_file(cls, path: str) -> "ClientConfig":
        """Build a config from a YAML mapping with the field names as keys."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(f"Failed to read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return cls.from_mapping(data, source=path)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any], source: str = "config") -> "ClientConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys in %s: %s", source, ", ".join(unknown))

        values = {key: value for key, value in data.items() if key in known}
        if "insecure" in values:
            values["insecure"] = _parse_bool(values["insecure"])
        if "request_timeout" in values:
            values["request_timeout"] = _parse_timeout(values["request_timeout"], source)
        values.setdefault("url", "")
        return cls(**values)
