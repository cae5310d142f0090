"""
Application settings management using Pydantic Settings.

Loads configuration from environment variables with type validation.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # OpenAI (generative fallback)
    # =========================================================================
    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        description="OpenAI API Key. Leave unset to use the rule-based fallback only",
    )
    openai_model: str = Field(default="gpt-4o", description="OpenAI model for chat")
    openai_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    openai_max_tokens: int = Field(default=500, gt=0)
    generative_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Upper bound for one generative call"
    )

    # =========================================================================
    # Azure AI Search (knowledge articles)
    # =========================================================================
    azure_search_endpoint: Optional[str] = Field(
        default=None, description="Azure AI Search service endpoint"
    )
    azure_search_api_key: Optional[SecretStr] = Field(
        default=None, description="Azure AI Search query API key"
    )
    azure_search_index_name: str = Field(
        default="hr-knowledge", description="Index holding knowledge articles"
    )
    knowledge_search_timeout_seconds: float = Field(default=3.0, gt=0)

    # =========================================================================
    # HR collaborator services
    # =========================================================================
    leave_service_url: str = Field(default="http://localhost:3005")
    attendance_service_url: str = Field(default="http://localhost:3004")
    payroll_service_url: str = Field(default="http://localhost:3006")
    employee_service_url: str = Field(default="http://localhost:3003")
    action_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Timeout for a single downstream action"
    )

    # =========================================================================
    # Dialogue
    # =========================================================================
    history_limit: int = Field(
        default=10, gt=0, description="Messages of history sent to the generative backend"
    )

    # =========================================================================
    # Application Settings
    # =========================================================================
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def generative_enabled(self) -> bool:
        """Whether a generative backend is configured."""
        return self.openai_api_key is not None and bool(
            self.openai_api_key.get_secret_value()
        )

    @property
    def knowledge_search_enabled(self) -> bool:
        """Whether Azure AI Search is configured for knowledge articles."""
        return bool(self.azure_search_endpoint and self.azure_search_api_key)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.
    
    Returns:
        Settings: Application configuration instance
    """
    return Settings()
