"""Configuration management for pipesh."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="PIPESH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Prompt Configuration
    prompt: str = Field(default=">>> ", description="Prompt written before each line is read")

    # Parser Bounds
    max_args: int = Field(default=32, ge=1, description="Maximum number of arguments per command")
    max_line_length: int = Field(default=100, ge=1, description="Longest accepted input line, in characters (inclusive)")

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Log level")


def get_settings(**overrides: object) -> Settings:
    """Get application settings.

    Args:
        overrides: Explicit values that take precedence over the environment

    Returns:
        Settings instance
    """
    # pydantic-settings reads PIPESH_* variables and the .env file
    return Settings(**overrides)
