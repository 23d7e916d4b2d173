"""
Configuration management using Pydantic Settings.
All environment variables are loaded and validated here.
"""

from typing import List, Literal
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    All configuration is environment-aware with zero code changes between Dev/UAT/Prod.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    environment: Literal["development", "uat", "production"] = "development"
    app_name: str = "VibeChat Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API Configuration
    api_prefix: str = "/api"
    api_host: str = "0.0.0.0"
    api_port: int = 3000

    # CORS Settings
    cors_origins: str = "*"
    cors_credentials: bool = False
    cors_methods: str = "GET,POST,PUT,DELETE,PATCH"
    cors_headers: str = "*"

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert comma-separated CORS origins to list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def cors_methods_list(self) -> List[str]:
        """Convert comma-separated CORS methods to list."""
        return [method.strip() for method in self.cors_methods.split(",")]

    # Database - Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_service_role_key: str = Field(..., description="Supabase service role key")

    # AI - Embeddings
    openai_api_key: str = Field(..., description="OpenAI API key")
    openai_embedding_model: str = "text-embedding-3-small"
    openai_embedding_dimensions: int = 1536
    openai_embedding_max_tokens: int = 8191
    openai_timeout_seconds: int = 30

    # Message Search
    search_semantic_threshold: float = 0.4
    search_semantic_score_multiplier: float = 10.0
    search_lexical_score_multiplier: float = 20.0  # FTS rank is ~0.1-1.0, weigh it over loose semantic hits
    search_lexical_rank_floor: float = 0.1
    search_overfetch_multiplier: int = 2
    search_default_limit: int = 30
    search_max_limit: int = 100

    # Global Search
    global_search_default_limit: int = 20
    global_search_preview_limit: int = 5

    # Batch Endpoints
    message_batch_max_ids: int = 100

    # Embedding Backfill
    embedding_backfill_batch_size: int = 50

    # Testing & Development
    enable_api_docs: bool = True
    enable_reload: bool = True

    @field_validator("search_semantic_threshold")
    @classmethod
    def validate_semantic_threshold(cls, v: float) -> float:
        """Ensure similarity threshold is between 0 and 1."""
        if not 0 <= v <= 1:
            raise ValueError("search_semantic_threshold must be between 0 and 1")
        return v

    @field_validator("search_overfetch_multiplier")
    @classmethod
    def validate_overfetch_multiplier(cls, v: int) -> int:
        """Over-fetch must at least cover one full page."""
        if v < 1:
            raise ValueError("search_overfetch_multiplier must be at least 1")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_uat(self) -> bool:
        """Check if running in UAT environment."""
        return self.environment == "uat"


# Global settings instance
settings = Settings()
