"""ScreenSift settings, read from the environment and an optional .env file."""

import json
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

VISION_MODELS = frozenset({"gpt-4o-mini", "gpt-4o", "gpt-4.1-mini", "gpt-4.1"})
LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class Settings(BaseSettings):
    """Runtime configuration. Field names map to upper-case env vars."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Vision classifier
    openai_api_key: SecretStr = Field(..., description="Key for the OpenAI vision API")
    vision_model: str = Field(default="gpt-4o-mini", description="Model that classifies screenshots")
    vision_detail_level: Literal["low", "high", "auto"] = Field(
        default="low", description="Image detail sent with each request"
    )
    classifier_timeout: float = Field(
        default=60.0, gt=0, description="Seconds before a classification call is abandoned"
    )

    # Catalog database
    database_url: str = Field(
        default="postgresql+asyncpg://postgres@localhost/screensift_local",
        description="Async SQLAlchemy URL (postgresql+asyncpg or sqlite+aiosqlite)",
    )
    database_echo: bool = Field(default=False, description="Log every SQL statement")

    # Image bytes
    blob_storage_dir: Path = Field(
        default=Path("blob_storage"), description="Root directory of the local blob store"
    )
    blob_cache_control: str = Field(
        default="max-age=86400", description="Cache-Control stored with each uploaded image"
    )
    max_upload_bytes: int = Field(
        default=20 * 1024 * 1024, gt=0, description="Uploads above this size are rejected"
    )

    # Runtime
    log_level: str = Field(default="INFO", description="Root log level")
    environment: str = Field(
        default="development", description="development, production or test"
    )
    cors_allowed_origins: Annotated[list[str], NoDecode] = Field(
        default=["*"], description="Origins allowed by CORS (comma separated in env)"
    )

    # Access control
    api_key: SecretStr | None = Field(default=None, description="Shared X-API-Key value")
    require_api_key: bool = Field(
        default=False, description="Enforce X-API-Key on /api/v1 and /mcp"
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def split_origins(cls, v: str | list[str]) -> list[str]:
        """Accept ``a,b`` as well as a JSON list."""
        if isinstance(v, str) and v.lstrip().startswith("["):
            return json.loads(v)
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("vision_model")
    @classmethod
    def check_vision_model(cls, v: str) -> str:
        if v not in VISION_MODELS:
            raise ValueError(
                f"Invalid vision_model: {v}. Allowed values: {', '.join(sorted(VISION_MODELS))}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {v}")
        return level

    @model_validator(mode="after")
    def ensure_blob_storage_dir(self) -> "Settings":
        try:
            self.blob_storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ValueError(
                f"Cannot create blob storage directory {self.blob_storage_dir}: {e}"
            ) from e
        return self

    @model_validator(mode="after")
    def require_key_in_production(self) -> "Settings":
        """Enforcing API keys in production without a key configured is a startup error."""
        if self.require_api_key and self.is_production and self.api_key is None:
            raise ValueError(
                "API_KEY must be set when REQUIRE_API_KEY=true in production. "
                "Set API_KEY or set REQUIRE_API_KEY=false."
            )
        return self


settings = Settings()  # type: ignore[call-arg]
