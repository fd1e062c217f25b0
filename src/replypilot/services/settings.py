"""Runtime settings with CLI and environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from ..models import REPLY_MAX_CHARS
from .storage_area import DEFAULT_QUOTA_BYTES

__all__ = ["RuntimeSettings", "load_runtime_settings", "DEFAULT_STORAGE_PATH"]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".replypilot"
DEFAULT_STORAGE_PATH = _SETTINGS_DIR / "storage.json"
_PATH_ENV_OVERRIDES: Mapping[str, str] = {
    "REPLYPILOT_STORAGE_PATH": "storage_path",
    "REPLYPILOT_LOG_DIR": "log_dir",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "REPLYPILOT_DEBUG_LOGGING": "debug_logging",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "REPLYPILOT_REQUEST_TIMEOUT": "request_timeout",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "REPLYPILOT_STORAGE_QUOTA": "storage_quota_bytes",
    "REPLYPILOT_REPLY_MAX_CHARS": "reply_max_chars",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}


@dataclass(slots=True, frozen=True)
class RuntimeSettings:
    """Process-level knobs; nothing here is persisted."""

    storage_path: Path = DEFAULT_STORAGE_PATH
    storage_quota_bytes: int = DEFAULT_QUOTA_BYTES
    request_timeout: float = 30.0
    reply_max_chars: int = REPLY_MAX_CHARS
    debug_logging: bool = False
    log_dir: Path | None = None


def load_runtime_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> RuntimeSettings:
    """Build settings from defaults, then CLI ``overrides``, then environment variables."""

    settings = RuntimeSettings()
    if overrides:
        settings = _apply_overrides(settings, overrides, source="CLI")
    settings = _apply_env_overrides(settings, os.environ if environ is None else environ)
    return _sanitize(settings)


def _apply_overrides(
    settings: RuntimeSettings,
    overrides: Mapping[str, Any],
    *,
    source: str = "runtime",
) -> RuntimeSettings:
    allowed = {field.name for field in fields(RuntimeSettings)}
    filtered: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in allowed or value is None:
            continue
        if key in ("storage_path", "log_dir"):
            value = Path(value).expanduser()
        filtered[key] = value
    if filtered:
        LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
        settings = replace(settings, **filtered)
    return settings


def _apply_env_overrides(settings: RuntimeSettings, environ: Mapping[str, str]) -> RuntimeSettings:
    overrides: Dict[str, Any] = {}
    for env_name, field_name in _PATH_ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            overrides[field_name] = value
    for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is not None:
            overrides[field_name] = value.strip().lower() in _TRUE_VALUES
    for env_name, field_name in _INT_ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None:
            continue
        try:
            overrides[field_name] = int(value, 10)
        except ValueError:
            LOGGER.warning("Environment override %s=%s is not a valid integer", env_name, value)
    for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None:
            continue
        try:
            overrides[field_name] = float(value)
        except ValueError:
            LOGGER.warning("Environment override %s=%s is not a valid float", env_name, value)
    if overrides:
        settings = _apply_overrides(settings, overrides, source="environment")
    return settings


def _sanitize(settings: RuntimeSettings) -> RuntimeSettings:
    defaults = RuntimeSettings()
    updates: Dict[str, Any] = {}
    if settings.request_timeout <= 0:
        LOGGER.warning("request_timeout must be positive; using %s", defaults.request_timeout)
        updates["request_timeout"] = defaults.request_timeout
    if settings.storage_quota_bytes <= 0:
        LOGGER.warning("storage_quota_bytes must be positive; using %s", defaults.storage_quota_bytes)
        updates["storage_quota_bytes"] = defaults.storage_quota_bytes
    if settings.reply_max_chars <= 1:
        LOGGER.warning("reply_max_chars must be greater than 1; using %s", defaults.reply_max_chars)
        updates["reply_max_chars"] = defaults.reply_max_chars
    elif settings.reply_max_chars > REPLY_MAX_CHARS:
        LOGGER.warning("reply_max_chars cannot exceed %s; capping it", REPLY_MAX_CHARS)
        updates["reply_max_chars"] = REPLY_MAX_CHARS
    return replace(settings, **updates) if updates else settings
