"""Settings module using pydantic-settings for configuration management."""

from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service Configuration
    service_name: str = Field(default="review-ledger-service", env="SERVICE_NAME")
    environment: str = Field(default="development", env="ENVIRONMENT")
    port: int = Field(default=8006, env="PORT")
    host: str = Field(default="0.0.0.0", env="HOST")

    # Ledger Configuration ("sql" or "memory")
    ledger_backend: str = Field(default="sql", env="LEDGER_BACKEND")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./review_ledger.db",
        env="DATABASE_URL"
    )

    # Response Configuration
    max_payload_bytes: int = Field(default=1048576, env="MAX_PAYLOAD_BYTES")  # 1 MiB

    # Search Configuration
    search_result_limit: int = Field(default=99, env="SEARCH_RESULT_LIMIT")
    fold_quotes_in_patterns: bool = Field(default=True, env="FOLD_QUOTES_IN_PATTERNS")
    strict_decoding: bool = Field(default=False, env="STRICT_DECODING")

    # Argument Validation (recommended bounds, off unless enabled)
    enforce_field_bounds: bool = Field(default=False, env="ENFORCE_FIELD_BOUNDS")
    max_id_length: int = Field(default=64, env="MAX_ID_LENGTH")
    max_text_length: int = Field(default=255, env="MAX_TEXT_LENGTH")
    max_pattern_length: int = Field(default=64, env="MAX_PATTERN_LENGTH")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
