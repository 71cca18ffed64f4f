"""
Configuration management for the lesson games engine
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///data/lessongames.db",
        description="SQLAlchemy URL of the store holding lessons and games",
    )
    database_echo: bool = Field(default=False)

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)

    # Logging
    log_level: Literal["DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        Field(default="INFO")
    )
    log_file: Optional[str] = Field(default=None)

    # Authoring limits
    blank_marker: str = Field(
        default="_", min_length=1, description="Marker for the blank in a sentence"
    )
    max_rounds: int = Field(default=10, ge=1)
    min_choices: int = Field(default=2, ge=2)
    max_choices: int = Field(
        default=6, ge=2, description="Upper bound for multiple choice options"
    )

    # No authentication here; used when a request names no author
    default_author_id: int = Field(default=1)

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
