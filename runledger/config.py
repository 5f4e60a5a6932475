"""Application configuration loaded from environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_name: str = "RunLedger"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Local state ---
    data_dir: Path = Path(".runledger")
    credentials_file: str = "credentials.json"  # mode 0600, holds the bearer token
    sync_status_file: str = "sync_status.json"
    session_cache_file: str = "run_sessions.json"

    # --- Telemetry ---
    telemetry_export_path: Path = Path("health_export.json")
    local_timezone: str | None = None  # IANA name for run titles; None = system zone

    # --- Sync ---
    sync_on_startup: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "RUNLEDGER_",
    }

    @property
    def credentials_path(self) -> Path:
        return self.data_dir / self.credentials_file

    @property
    def sync_status_path(self) -> Path:
        return self.data_dir / self.sync_status_file

    @property
    def session_cache_path(self) -> Path:
        return self.data_dir / self.session_cache_file


@lru_cache
def get_settings() -> Settings:
    return Settings()
