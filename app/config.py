"""Application configuration using Pydantic Settings."""

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings are validated at startup. Missing required settings
    or invalid values will cause the application to fail fast with
    clear error messages.
    """

    # API Settings
    api_title: str = Field(default="JSON Redis Feeder", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")

    # Storage Settings
    storage_location: str = Field(
        default="upload-dir",
        description="Folder where uploaded files are stored",
    )
    max_file_size: int = Field(
        default=50 * 1024 * 1024,  # 50MB
        ge=1,
        description="Maximum upload file size in bytes",
    )

    # Redis Vector Store Settings
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URI",
    )
    redis_index: str = Field(
        default="spring-ai-index",
        min_length=1,
        description="Name of the RediSearch vector index",
    )
    redis_prefix: str = Field(
        default="embedding:",
        min_length=1,
        description="Key prefix for indexed records",
    )

    # Embedding Settings
    openai_api_key: SecretStr | None = Field(default=None, description="OpenAI API key")
    openai_embedding_model: str = Field(
        default="text-embedding-3-small",
        description="OpenAI model for text embeddings",
    )
    embedding_dimensions: int = Field(
        default=1536,
        ge=1,
        description="Dimension of the embedding vectors",
    )

    # Logging Settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("storage_location")
    @classmethod
    def validate_storage_location(cls, v: str) -> str:
        """Reject a blank upload folder."""
        if v.strip() == "":
            raise ValueError("storage_location cannot be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"log_level must be one of {valid_levels}, got '{v}'"
            )
        return v_upper

    @field_validator("openai_api_key")
    @classmethod
    def validate_api_key(cls, v: SecretStr | None) -> SecretStr | None:
        """Ensure API key is not empty and has reasonable format if provided."""
        if v is None:
            return v
        key = v.get_secret_value()
        if key.strip() == "":
            raise ValueError("openai_api_key cannot be empty string")
        # OpenAI keys typically start with 'sk-'
        if not key.startswith("sk-"):
            raise ValueError(
                "openai_api_key should start with 'sk-' "
                "(OpenAI API key format)"
            )
        return v


# Global settings instance, created lazily so that
# invalid configuration fails on first access
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns:
        Settings: The application settings

    Raises:
        ValueError: If settings validation fails
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment.

    Returns:
        Settings: The reloaded application settings
    """
    global _settings
    _settings = Settings()
    return _settings
