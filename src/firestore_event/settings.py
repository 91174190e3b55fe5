from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping
import os

from firestore_event.diagnostics import DEFAULT_DIAGNOSTICS_LOGGER


DEFAULT_APP_ENV = "development"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_EVENT_PAYLOAD_MAX_BYTES = 1024 * 1024
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SettingsError(ValueError):
    """Raised when settings values are invalid."""


@dataclass(frozen=True)
class AppSettings:
    app_env: str
    log_level: str
    diagnostics_logger: str
    event_payload_max_bytes: int


def _read_dotenv(dotenv_path: Path) -> dict[str, str]:
    if not dotenv_path.is_file():
        return {}
    pairs = (
        line.partition("=")
        for line in (raw.strip() for raw in dotenv_path.read_text(encoding="utf-8").splitlines())
        if line and not line.startswith("#")
    )
    return {key.strip(): value.strip().strip("'\"") for key, sep, value in pairs if sep and key.strip()}


def _name(values: Mapping[str, str], key: str, default: str) -> str:
    value = values.get(key, default).strip()
    if not value:
        raise SettingsError(f"{key} must not be empty.")
    return value


def _payload_limit(values: Mapping[str, str]) -> int:
    key = "EVENT_PAYLOAD_MAX_BYTES"
    raw_value = values.get(key, "").strip()
    if not raw_value:
        return DEFAULT_EVENT_PAYLOAD_MAX_BYTES
    if not raw_value.isdigit() or int(raw_value) == 0:
        raise SettingsError(f"{key} must be a positive integer: {raw_value}")
    return int(raw_value)


def load_settings(
    *,
    env: Mapping[str, str] | None = None,
    dotenv_path: str | Path = ".env",
) -> AppSettings:
    """Load settings from .env and environment variables.

    Priority: OS environment > .env > default.
    """

    merged = {**_read_dotenv(Path(dotenv_path)), **(os.environ if env is None else env)}

    log_level = _name(merged, "LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    if log_level not in LOG_LEVELS:
        raise SettingsError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}: {log_level}")

    return AppSettings(
        app_env=_name(merged, "APP_ENV", DEFAULT_APP_ENV),
        log_level=log_level,
        diagnostics_logger=_name(merged, "DIAGNOSTICS_LOGGER", DEFAULT_DIAGNOSTICS_LOGGER),
        event_payload_max_bytes=_payload_limit(merged),
    )
