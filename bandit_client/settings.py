"""Client settings loaded from environment variables."""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bandit_client.storage.keys import assignments_key


class ClientSettings(BaseSettings):
    """Runtime settings for the bandit client and its CLI."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    server_url: str = Field(
        default="http://localhost:8000/experiments/", alias="BANDIT_SERVER_URL"
    )
    storage_key: str = Field(default=assignments_key(), alias="BANDIT_STORAGE_KEY")
    redis_url: Optional[str] = Field(default=None, alias="BANDIT_REDIS_URL")
    http_timeout: float = Field(default=5.0, gt=0.0, alias="BANDIT_HTTP_TIMEOUT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
