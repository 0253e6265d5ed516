"""Application configuration loaded from environment."""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """logview settings from LOGVIEW_* env vars."""

    model_config = SettingsConfigDict(
        env_prefix="LOGVIEW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend log service; fixed for the lifetime of the process
    api_base_url: str = "http://localhost:8080/api"
    # Endpoint paths differ between deployments (/logs vs /log, /logs vs /dataLogger)
    upload_path: str = "/logs"
    fetch_path: str = "/logs"
    clear_path: str = "/clear"
    status_path: str = "/status"

    # Upload cascade: clear stored logs first, re-fetch afterwards
    clear_before_upload: bool = True
    refresh_after_upload: bool = True

    # None keeps the httpx transport default
    request_timeout_seconds: float | None = None

    log_level: str = "INFO"

    def endpoint(self, path: str) -> str:
        """Join the base URL and an endpoint path."""
        return self.api_base_url.rstrip("/") + "/" + path.lstrip("/")


def get_settings() -> Settings:
    """Return loaded settings from environment (and .env if present)."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Install a basic root handler at the configured level."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
