"""Configuration loading and validation for the travel chat client."""

from __future__ import annotations

from copy import deepcopy
import logging
from pathlib import Path
import re
import tomllib
from typing import Any
from urllib.parse import urlparse

from platformdirs import user_config_path
from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .dispatcher import DEFAULT_ENDPOINT
from .exceptions import ConfigValidationError
from .session import GREETING
from .ui_state import COPY_RESET_SECONDS

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = user_config_path("travelchat")
CONFIG_PATH = CONFIG_DIR / "config.toml"

VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
_KEYBIND_PATTERN = re.compile(r"^[a-z0-9_+,\-]+$")


def _required_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("Expected a string value.")
    normalized = value.strip()
    if not normalized:
        raise ValueError("String value must not be empty.")
    return normalized


class AppConfig(BaseModel):
    """Header text shown above the conversation."""

    title: str = "Vietnam Travel Assistant"
    subtitle: str = "Plan your dream Vietnam trip with AI guidance"

    @field_validator("title", mode="before")
    @classmethod
    def _validate_title(cls, value: Any) -> str:
        return _required_string(value)

    @field_validator("subtitle", mode="before")
    @classmethod
    def _normalize_subtitle(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Expected a string value.")
        return value.strip()


class BackendConfig(BaseModel):
    """Chat endpoint and HTTP client settings."""

    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = Field(default=120.0, ge=1, le=3600)

    @field_validator("endpoint", mode="before")
    @classmethod
    def _validate_endpoint(cls, value: Any) -> str:
        return _required_string(value)


class SecurityConfig(BaseModel):
    """Policy for talking to non-local backends."""

    allow_remote_hosts: bool = False
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "::1"]

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def _validate_allowed_hosts(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            raise ValueError("allowed_hosts must be a list.")
        normalized_hosts = [
            item.strip().lower()
            for item in value
            if isinstance(item, str) and item.strip()
        ]
        if not normalized_hosts:
            raise ValueError("allowed_hosts must contain at least one host.")
        return normalized_hosts


class UIConfig(BaseModel):
    """Conversation presentation settings."""

    greeting: str = GREETING
    copy_reset_seconds: float = Field(default=COPY_RESET_SECONDS, ge=0.1, le=60)
    show_timestamps: bool = True

    @field_validator("greeting", mode="before")
    @classmethod
    def _normalize_greeting(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("greeting must be a string.")
        return value.strip()


class KeybindsConfig(BaseModel):
    """Keyboard action mapping."""

    quit: str = "ctrl+q"
    copy_last_message: str = "ctrl+y"
    toggle_last_reasoning: str = "ctrl+r"
    scroll_up: str = "ctrl+k"
    scroll_down: str = "ctrl+j"

    @field_validator("*", mode="before")
    @classmethod
    def _validate_keybind(cls, value: Any) -> str:
        normalized = _required_string(value).lower()
        if not _KEYBIND_PATTERN.match(normalized):
            raise ValueError(f"Unsupported keybind {normalized!r}.")
        return normalized


class LoggingConfig(BaseModel):
    """Logging behavior and output destinations."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: str = "~/.local/state/travelchat/app.log"

    @field_validator("level", mode="before")
    @classmethod
    def _validate_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Unsupported log level {normalized!r}.")
        return normalized

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _validate_log_file_path(cls, value: Any) -> str:
        return _required_string(value)


class Config(BaseModel):
    """Root configuration model for all sections."""

    app: AppConfig = AppConfig()
    backend: BackendConfig = BackendConfig()
    security: SecurityConfig = SecurityConfig()
    ui: UIConfig = UIConfig()
    keybinds: KeybindsConfig = KeybindsConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="after")
    def _validate_security_policy(self) -> Config:
        check_endpoint_policy(self.backend.endpoint, self.security.model_dump())
        return self


def check_endpoint_policy(endpoint: str, security: dict[str, Any]) -> None:
    """Raise ``ValueError`` when ``endpoint`` is not an allowed http(s) URL."""
    parsed = urlparse(endpoint)
    scheme = parsed.scheme.lower()
    hostname = (parsed.hostname or "").strip().lower()

    if scheme not in {"http", "https"}:
        raise ValueError("backend.endpoint must use http or https scheme.")
    if not hostname:
        raise ValueError("backend.endpoint must include a hostname.")
    allowed_hosts = {str(item).strip().lower() for item in security.get("allowed_hosts", [])}
    if not bool(security.get("allow_remote_hosts", False)) and hostname not in allowed_hosts:
        raise ValueError(
            "backend.endpoint is not in security.allowed_hosts while allow_remote_hosts is false."
        )


DEFAULT_CONFIG: dict[str, dict[str, Any]] = Config().model_dump()


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Ensure that the config directory exists and return its path."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create config directory %s: %s", directory, exc)
    return directory


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override values onto base values."""
    merged: dict[str, Any] = deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _safe_default_config() -> dict[str, dict[str, Any]]:
    """Return a deep copy of validated default config data."""
    return deepcopy(DEFAULT_CONFIG)


def _validate_config(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Validate merged config and fallback to safe defaults when possible."""
    try:
        return Config.model_validate(raw).model_dump()
    except ValidationError as exc:
        LOGGER.warning(
            "config.invalid",
            extra={"event": "config.invalid", "reason": str(exc)},
        )
        return _safe_default_config()
    except Exception as exc:  # noqa: BLE001 - unexpected model construction failure.
        raise ConfigValidationError(f"Unable to validate configuration: {exc}") from exc


def load_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> dict[str, dict[str, Any]]:
    """Load configuration from TOML, merge defaults and overrides, and validate.

    The file is only read. ``overrides`` carries command-line values and is
    merged last.
    """
    target_path = config_path or CONFIG_PATH

    raw_data: dict[str, Any] = {}
    if target_path.exists():
        try:
            raw_data = tomllib.loads(target_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
            LOGGER.warning(
                "config.parse_failed",
                extra={
                    "event": "config.parse_failed",
                    "path": str(target_path),
                    "reason": str(exc),
                },
            )
            raw_data = {}

    config = _validate_config(_deep_merge(DEFAULT_CONFIG, raw_data))
    if overrides:
        config = _validate_overrides(config, overrides)
    return config


def _validate_overrides(
    config: dict[str, dict[str, Any]], overrides: dict[str, Any]
) -> dict[str, dict[str, Any]]:
    """Apply explicit overrides; a rejected override is an error, not a fallback."""
    try:
        return Config.model_validate(_deep_merge(config, overrides)).model_dump()
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid override: {exc}") from exc
