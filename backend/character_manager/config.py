from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Header a caller may use to identify itself when no host user object is set
HANDLE_HEADER = "X-User-Handle"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    data_dir: Path = Path("data/sillytavern-character-manager")
    # Derived from data_dir when unset
    db_url: str | None = None
    # Routes are mounted under this prefix by the host (or the standalone app)
    api_prefix: str = "/api/plugins/sillytavern-character-manager"

    # Single-user hosts run every request as "default-user"
    admin_handle: str = "default-user"
    default_user_handle: str = "default-user"

    default_tag_color: str = "#007bff"
    default_category_color: str = "#28a745"

    cors_origins: list[str] = ["http://localhost:8000"]
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _normalize(self) -> Settings:
        self.admin_handle = self.admin_handle.strip()
        if not self.admin_handle:
            raise ValueError("ADMIN_HANDLE must not be empty.")
        prefix = self.api_prefix.strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = f"/{prefix}"
        self.api_prefix = prefix
        if not self.db_url:
            self.db_url = f"sqlite:///{self.data_dir.as_posix()}/character_manager.db"
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
