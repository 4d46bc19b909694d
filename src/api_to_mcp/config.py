"""Configuration for source loading."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_TO_MCP_", case_sensitive=False)

    postman_api_url: str = Field(
        default="https://api.getpostman.com/collections/{collection_id}"
    )
    postman_api_key: Optional[str] = Field(default=None)
    request_timeout_seconds: float = Field(default=30)

    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
