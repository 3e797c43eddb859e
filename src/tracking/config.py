"""Tracking engine settings.

Framework configuration (databases, brokers, event store) lives in
``domain.toml``. The values here are engine tunables read from the
environment, with defaults matching the production thresholds.
"""

import os
from dataclasses import dataclass

_settings_instance = None


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class TrackingSettings:
    """Engine tunables."""

    delay_warning_hours: int = 48
    delay_critical_hours: int = 72
    webhook_tolerance_seconds: int = 300
    append_max_attempts: int = 3
    scan_limit: int = 10000

    @classmethod
    def from_env(cls) -> "TrackingSettings":
        return cls(
            delay_warning_hours=_int_env("TRACKING_DELAY_WARNING_HOURS", 48),
            delay_critical_hours=_int_env("TRACKING_DELAY_CRITICAL_HOURS", 72),
            webhook_tolerance_seconds=_int_env("TRACKING_WEBHOOK_TOLERANCE_SECONDS", 300),
            append_max_attempts=max(1, _int_env("TRACKING_APPEND_MAX_ATTEMPTS", 3)),
            scan_limit=_int_env("TRACKING_SCAN_LIMIT", 10000),
        )


def get_settings() -> TrackingSettings:
    """Return the engine settings (singleton, read once from the environment)."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = TrackingSettings.from_env()
    return _settings_instance


def reset_settings():
    """Reset the settings singleton (useful for testing)."""
    global _settings_instance
    _settings_instance = None
