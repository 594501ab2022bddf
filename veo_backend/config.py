"""
Backend configuration using Pydantic BaseSettings.
Loads from .env and provides typed access to all backend settings.
"""

from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Environment ──────────────────────────────────────
    ENVIRONMENT: str = "development"
    APP_VERSION: str = "1.0.0"

    # ── Storage ──────────────────────────────────────────
    STORAGE_LOCAL_PATH: Path = Path("./uploads")

    # ── Upload limits ────────────────────────────────────
    MAX_FILE_SIZE_MB: int = 100
    UPLOAD_MAX_FILES: int = 10
    UPLOAD_MAX_FIELDS: int = 20

    # ── Temp file housekeeping ───────────────────────────
    TEMP_MAX_AGE_HOURS: int = 24
    TEMP_SWEEP_INTERVAL_MINUTES: int = 60

    # ── Logging ──────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: Path | None = None

    # ── Server ───────────────────────────────────────────
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 3001
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def temp_dir(self) -> Path:
        return self.STORAGE_LOCAL_PATH / "temp"

    @property
    def media_dir(self) -> Path:
        return self.STORAGE_LOCAL_PATH / "media"


settings = Settings()
