# invoice_dashboard/core/config.py
"""
Application settings loaded from environment variables (and .env).
"""

import os
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# Default SQLite file lives in {project_root}/data/db/
DATA_DIR = os.path.normpath(os.path.join(os.path.dirname(__file__), "..", "..", "data"))
DEFAULT_DATABASE_FILE = os.path.join(DATA_DIR, "db", "invoices.sqlite")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "development"
    log_level: str = "INFO"

    database_url: str = f"sqlite:///{DEFAULT_DATABASE_FILE}"
    allowed_origins: str = "http://localhost:8000"

    # --- SMTP (reminder emails) ---
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    email_from: str = ""
    smtp_use_tls: bool = True
    smtp_timeout: float = 20.0

    # --- Final amount verification ---
    sync_verify_delay: float = 0.1
    sync_verify_attempts: int = 2

    @property
    def origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
