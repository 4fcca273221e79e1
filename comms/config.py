"""COMMS — Central Configuration via Pydantic Settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""
    database_echo: bool = False  # log emitted SQL

    # ── App ──
    log_level: str = "INFO"
    allow_seed: bool = True  # POST /admin/seed

    # ── Analytics ──
    recent_activity_limit: int = 5
    recent_activity_window_days: int = 7
    default_color: str = "#94A3B8"  # Platforms without a brand color

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        return self.database_url or "sqlite:///./comms.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
