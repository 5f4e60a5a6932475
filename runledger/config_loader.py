"""Load, validate, and hot-reload the RunLedger sync tuning configuration.

The config lives in ``sync_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_sync_config()`` to re-read from
disk after an edit, no restart required.

Usage::

    from runledger.config_loader import get_sync_config

    config = get_sync_config()
    timeout = config.api.timeout_seconds                # 30.0
    delay = config.scheduler.backoff_delay(attempt=3)   # 120.0
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger("runledger.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "sync_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class ApiConfig:
    """HTTP settings for the remote run log."""

    timeout_seconds: float
    connection_test_timeout_seconds: float
    default_per_page: int


@dataclass
class SchedulerConfig:
    """Background sync cadence and retry policy."""

    periodic_interval_seconds: float
    backoff_initial_seconds: float
    backoff_multiplier: float
    backoff_max_seconds: float
    max_retries: int

    def backoff_delay(self, attempt: int) -> float:
        """Return the wait before retry number ``attempt`` (1-based).

        Args:
            attempt: How many retries have already been scheduled, plus one.

        Returns:
            Delay in seconds, capped at ``backoff_max_seconds``.
        """
        exponent = max(0, attempt - 1)
        delay = self.backoff_initial_seconds * (self.backoff_multiplier ** exponent)
        return min(delay, self.backoff_max_seconds)


@dataclass
class SyncConfig:
    """Complete, validated sync configuration.

    Attributes:
        version:   Config schema version string.
        api:       HTTP client settings.
        scheduler: Periodic sync and backoff settings.
    """

    version: str
    api: ApiConfig
    scheduler: SchedulerConfig
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when sync_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Sync config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> SyncConfig:
    """Validate the raw YAML dict and construct a SyncConfig.

    Missing keys fall back to defaults; wrong types and out-of-range values
    are collected and reported together.

    Raises:
        ConfigValidationError: If any value is invalid.
    """
    errors: list[str] = []

    def _number(section: dict, key: str, default: float, name: str, minimum: float = 0.0) -> float:
        value = section.get(key, default)
        try:
            number = float(value)
        except (TypeError, ValueError):
            errors.append(f"{name}.{key} must be a number, got {value!r}")
            return default
        if number < minimum:
            errors.append(f"{name}.{key} = {number} must be >= {minimum}")
        return number

    version = str(raw.get("version", "1.0"))

    # ── API ──
    api_raw = raw.get("api") or {}
    if not isinstance(api_raw, dict):
        errors.append("'api' must be a mapping")
        api_raw = {}
    api = ApiConfig(
        timeout_seconds=_number(api_raw, "timeout_seconds", 30.0, "api", minimum=1.0),
        connection_test_timeout_seconds=_number(
            api_raw, "connection_test_timeout_seconds", 15.0, "api", minimum=1.0
        ),
        default_per_page=int(_number(api_raw, "default_per_page", 15, "api", minimum=1)),
    )

    # ── Scheduler ──
    sc_raw = raw.get("scheduler") or {}
    if not isinstance(sc_raw, dict):
        errors.append("'scheduler' must be a mapping")
        sc_raw = {}
    scheduler = SchedulerConfig(
        periodic_interval_seconds=_number(
            sc_raw, "periodic_interval_seconds", 3600.0, "scheduler", minimum=1.0
        ),
        backoff_initial_seconds=_number(sc_raw, "backoff_initial_seconds", 30.0, "scheduler"),
        backoff_multiplier=_number(sc_raw, "backoff_multiplier", 2.0, "scheduler", minimum=1.0),
        backoff_max_seconds=_number(sc_raw, "backoff_max_seconds", 18000.0, "scheduler"),
        max_retries=int(_number(sc_raw, "max_retries", 10, "scheduler")),
    )
    if scheduler.backoff_max_seconds < scheduler.backoff_initial_seconds:
        errors.append(
            "scheduler.backoff_max_seconds must not be smaller than "
            "scheduler.backoff_initial_seconds"
        )

    if errors:
        raise ConfigValidationError(
            f"sync_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return SyncConfig(version=version, api=api, scheduler=scheduler, _raw=raw)


def load_sync_config(path: Path | None = None) -> SyncConfig:
    """Load and validate the sync config from disk.

    Args:
        path: Override path to YAML. Uses the bundled sync_config.yaml by default.

    Returns:
        Validated SyncConfig instance.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded sync config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: SyncConfig | None = None
_config_lock = threading.Lock()


def get_sync_config() -> SyncConfig:
    """Return the global SyncConfig singleton, loading it on first call."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_sync_config()
    return _config


def reload_sync_config(path: Path | None = None) -> SyncConfig:
    """Reload the sync config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_sync_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded sync config: %s → %s", old_version, new_config.version)
    return new_config
