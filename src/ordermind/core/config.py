from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"

    database_url: str = "sqlite:///./ordermind.db"
    redis_url: str = "redis://localhost:6379/0"

    # Shared secret for the /api routes; auth is disabled when unset.
    api_key: str | None = None

    storage_backend: Literal["local", "s3"] = "local"
    local_storage_path: Path = Path(".local_storage")

    s3_endpoint_url: str | None = None
    s3_region: str | None = None
    s3_bucket: str = "ordermind-attachments"
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None

    openai_base_url: str = "https://api.openai.com/v1"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"

    extraction_ai_enabled: bool = True
    extraction_ai_timeout_seconds: float = 60.0
    extraction_ai_max_chars: int = 60000

    evidence_max_rows_per_table: int = 50
    parse_error_penalty: float = 0.15


settings = Settings()
