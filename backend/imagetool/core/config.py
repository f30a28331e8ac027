"""Image tool configuration (DALL-E credentials, networking, storage paths)."""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory (parent of backend/)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent.resolve()

# Load .env file into environment variables
env_path = PROJECT_ROOT / ".env"
load_dotenv(env_path)


class Settings(BaseSettings):
    """Image tool configuration, read from the environment and .env."""

    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

    # OpenAI Images (DALL-E 3)
    dalle_api_key: str | None = Field(default=None, description="DALLE_API_KEY")
    dalle_model: str = Field(default="dall-e-3")
    dalle_timeout_s: float = Field(default=120.0)
    dalle3_system_prompt: str | None = Field(default=None)

    # Networking
    dalle_reverse_proxy: str | None = Field(default=None, description="Alternate API base URL")
    proxy: str | None = Field(default=None, description="Outbound HTTP(S) proxy URL")

    # File storage
    file_strategy: str = Field(default="local")
    data_dir: str = Field(default=str(PROJECT_ROOT / "data"))

    # Cost tracking (USD per process)
    max_cost_per_run: float = Field(default=10.0)

    log_level: str = Field(default="INFO")


settings = Settings()
