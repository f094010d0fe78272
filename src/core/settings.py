from enum import Enum

from dotenv import find_dotenv
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    AUTO = "auto"
    SHELL = "shell"
    JSON = "json"


class Settings(BaseSettings):
    """Runtime configuration, read from the environment and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=find_dotenv(),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        validate_default=False,
    )

    # Model
    DEFAULT_MODEL: str = "gemini-2.0-flash"
    GOOGLE_API_KEY: SecretStr | None = None
    ANTHROPIC_API_KEY: SecretStr | None = None
    CHAT_USE_MODEL: bool = False

    # Storage
    STORAGE_BACKEND: StorageBackend = StorageBackend.AUTO
    PLANNER_DATA_FILE: str | None = None
    SHELL_URL: str | None = None
    SHELL_TIMEOUT: float = 5.0

    # Shell service
    SHELL_HOST: str = "127.0.0.1"
    SHELL_PORT: int = 8765

    LOG_LEVEL: str = "INFO"


settings = Settings()
