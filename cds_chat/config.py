"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PREAMBLE = (
    "When providing answers, use markdown when applicable including formatting, "
    "lists, tables, codeblocks, etc."
)


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """CDS Chat configuration. All values come from environment variables."""

    # Completion endpoint
    chat_endpoint: str = Field(default="http://127.0.0.1:3000/chat")
    chat_timeout_seconds: float | None = Field(default=None)

    # Local storage
    storage_path: Path = Field(default=Path("data/storage.json"))
    preferences_key: str = Field(default="cds_chat.settings")

    # Preferences
    default_model: str = Field(default="claude-3.7-sonnet")
    default_temperature: float = Field(default=0.3)
    strict_preferences: bool = Field(default=False)

    # Conversation
    system_preamble: str = Field(default=DEFAULT_PREAMBLE)
    greeting: str = Field(default="Hello! How can I help you today?")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="CDS_CHAT_",
        env_file=_env_file(),
        env_file_encoding="utf-8",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)


settings = Settings()
