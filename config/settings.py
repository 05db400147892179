"""Application settings loaded from environment variables / .env file."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── API ──────────────────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8501"]

    # ── Podcast validation ───────────────────────────────────────────────
    note_min_chars: int = 100
    note_max_chars: int = 10_000
    title_max_chars: int = 100

    # ── Listing ──────────────────────────────────────────────────────────
    default_page_size: int = 12
    max_page_size: int = 100

    # ── Worker channel ───────────────────────────────────────────────────
    worker_token: str = "change-me"
    webhook_timeout_seconds: float = 10.0

    # ── Frontend ─────────────────────────────────────────────────────────
    api_base_url: str = "http://localhost:8000/api/v1"

    # ── Logging ──────────────────────────────────────────────────────────
    log_level: str = "INFO"


settings = Settings()
