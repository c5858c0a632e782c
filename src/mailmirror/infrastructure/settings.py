"""Application settings using Pydantic Settings for configuration management."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Mailmirror"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # Exchange Web Services
    ews_url: str = "https://localhost/EWS/Exchange.asmx"
    ews_username: str | None = None
    ews_password: SecretStr | None = None
    ews_timeout_seconds: float = 60.0
    ews_verify_tls: bool = True

    # What to sync (comma separated)
    sync_users: str = ""
    sync_roots: str = "msgfolderroot"

    # Paging and parallelism
    id_page_size: int = Field(default=512)
    item_page_size: int = Field(default=100)
    max_folder_workers: int = Field(default=4)

    # Progress storage
    state_backend: Literal["sqlite", "memory"] = "sqlite"
    state_db_path: str = "/app/data/mailmirror.db"

    # Worker
    poll_interval_minutes: int = 15

    @computed_field
    @property
    def user_list(self) -> list[str]:
        """Users to sync, parsed from ``sync_users``."""
        return [u.strip() for u in self.sync_users.split(",") if u.strip()]

    @computed_field
    @property
    def root_list(self) -> list[str]:
        """Roots to discover folders under, parsed from ``sync_roots``."""
        return [r.strip() for r in self.sync_roots.split(",") if r.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
