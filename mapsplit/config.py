"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    mapsplit_log_level: str = "info"

    # Split defaults, used when a request or command line leaves them out
    mapsplit_overlap: float = 1.0
    mapsplit_workers: int | None = None
    mapsplit_close_policy: str = "reclose"
    mapsplit_file_prefix: str = "tile"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
