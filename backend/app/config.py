from __future__ import annotations

from dataclasses import dataclass
import os
from urllib.parse import urlparse


class SettingsError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    report_api_base: str
    report_api_key: str
    report_model: str
    report_timeout_seconds: float
    default_period: str
    max_active_sessions: int


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise SettingsError(f"Missing required environment variable: {name}")
    return value


def _optional_env(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _require_url(name: str, value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise SettingsError(f"Invalid URL for {name}: {value}")
    return value


def _positive_number(name: str, default: float, cast: type) -> float:
    raw = _optional_env(name)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise SettingsError(f"Invalid value for {name}: {raw}") from exc
    if value <= 0:
        raise SettingsError(f"{name} must be positive, got {raw}")
    return value


def load_settings() -> Settings:
    report_api_base = _require_url("REPORT_API_BASE", _require_env("REPORT_API_BASE"))
    report_api_key = _require_env("REPORT_API_KEY")
    report_model = _require_env("REPORT_MODEL")
    report_timeout_seconds = _positive_number("REPORT_TIMEOUT_SECONDS", 30.0, float)
    default_period = _optional_env("EVALUATION_DEFAULT_PERIOD") or ""
    max_active_sessions = _positive_number("MAX_ACTIVE_SESSIONS", 100, int)

    return Settings(
        report_api_base=report_api_base,
        report_api_key=report_api_key,
        report_model=report_model,
        report_timeout_seconds=report_timeout_seconds,
        default_period=default_period,
        max_active_sessions=max_active_sessions,
    )
