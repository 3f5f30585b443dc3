"""Configuration settings for boardpilot."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or overrides."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, populate_by_name=True, protected_namespaces=()
    )

    model_provider: str = Field(default="openai", validation_alias="BOARDPILOT_MODEL_PROVIDER")
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL"
    )
    openai_model: str = Field(default="gpt-4.1", validation_alias="OPENAI_MODEL")
    openai_extra_headers: str | None = Field(
        default=None, validation_alias="OPENAI_EXTRA_HEADERS"
    )
    anthropic_api_key: str | None = Field(default=None, validation_alias="ANTHROPIC_API_KEY")
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com", validation_alias="ANTHROPIC_BASE_URL"
    )
    anthropic_model: str = Field(default="claude-sonnet-4-5", validation_alias="ANTHROPIC_MODEL")
    model_timeout_seconds: int = Field(default=60, validation_alias="MODEL_TIMEOUT_SECONDS")

    webdriver_url: str = Field(default="http://localhost:4444", validation_alias="WEBDRIVER_URL")
    browser_name: str = Field(default="firefox", validation_alias="BROWSER_NAME")
    game_url: str = Field(default="http://localhost:3000/", validation_alias="GAME_URL")
    viewport_width: int = Field(default=1200, validation_alias="VIEWPORT_WIDTH")
    viewport_height: int = Field(default=900, validation_alias="VIEWPORT_HEIGHT")

    memory_dir: str = Field(default="./memory", validation_alias="MEMORY_DIR")
    workspace_dir: str = Field(default="./workspace", validation_alias="WORKSPACE_DIR")
    max_steps: int = Field(default=100, validation_alias="MAX_STEPS")
    keep_screenshots: int = Field(default=1, validation_alias="KEEP_SCREENSHOTS")
    save_screenshots: bool = Field(default=False, validation_alias="SAVE_SCREENSHOTS")
    review_memory: bool = Field(default=True, validation_alias="REVIEW_MEMORY")
