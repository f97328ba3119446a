"""Runtime configuration read from the environment and ``.env``."""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Environment = Literal["development", "staging", "production"]


class Settings(BaseSettings):
    """
    Process settings.

    The ``ai_*`` values only seed the provider binding at startup; later
    changes go through ``POST /api/settings`` and are not written back.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Server
    environment: Environment = "development"
    host: str = "0.0.0.0"
    port: int = Field(default=8080, validation_alias=AliasChoices("SERVER_PORT", "PORT"))
    debug: bool = False
    log_level: LogLevel = "INFO"
    log_file: Optional[str] = None

    # HTTP
    cors_origins: str = "*"
    max_request_bytes: int = Field(default=1024 * 1024, gt=0)

    # Conversation store
    database_url: str = Field(
        default="sqlite:///./data/chat.db",
        validation_alias=AliasChoices("DATABASE_URL", "DATABASE_DSN"),
    )
    database_auto_create: bool = True

    # Initial provider binding
    ai_provider: str = "openai"
    ai_model: str = "gpt-3.5-turbo"
    ai_base_url: str = ""
    ai_api_key: str = Field(default="", validation_alias=AliasChoices("AI_API_KEY", "OPENAI_API_KEY"))
    provider_timeout_seconds: float = Field(default=120, gt=0)
    provider_verify_on_update: bool = False
    # 0 disables the per-generation deadline
    chat_stream_timeout_seconds: float = Field(default=0, ge=0)

    @field_validator("log_level", "environment", mode="before")
    @classmethod
    def _normalize_case(cls, value: object, info: ValidationInfo) -> object:
        if not isinstance(value, str):
            return value
        value = value.strip()
        return value.upper() if info.field_name == "log_level" else value.lower()

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
