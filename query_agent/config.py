from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Query agent service
    QUERY_AGENT_HOST: str = "https://api.agents.weaviate.io"
    QUERY_AGENT_TIMEOUT: float = Field(default=60.0, description="Seconds, applied by the httpx client")
    QUERY_AGENT_REQUEST_ORIGIN: str = "python-client"

    # Weaviate cluster the agent queries on our behalf
    WEAVIATE_URL: str = ""
    WEAVIATE_API_KEY: str = ""

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = Field(default="json", description="'json' for production, 'console' for dev")


def get_settings() -> Settings:
    return Settings()
