""" Runtime settings, read from ``AGENT_FLOW_*`` environment variables. """

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from the environment (or a local ``.env``)."""

    model_config = SettingsConfigDict(
        env_prefix="AGENT_FLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Endpoint fronting the generation service; unset means "use mocks".
    generate_url: Optional[str] = Field(default=None)
    api_key: Optional[SecretStr] = Field(default=None)
    request_timeout: float = Field(default=60.0, gt=0)

    autosave_delay: float = Field(default=2.0, ge=0)
    storage_dir: Optional[Path] = Field(default=None)
    storage_key: str = Field(default="agent-flow-workflows")

    # None lets the registry decide from LLM availability.
    use_mock: Optional[bool] = Field(default=None)


@lru_cache
def get_settings() -> Settings:
    return Settings()
