"""Configuration settings using Pydantic"""
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # API Keys (all optional - a missing key disables that collaborator)
    cohere_api_key: Optional[str] = Field(default=None, alias="COHERE_API_KEY")
    tavily_api_key: Optional[str] = Field(default=None, alias="TAVILY_API_KEY")
    llm_api_key: Optional[str] = Field(default=None, alias="LLM_API_KEY")

    # Supabase Configuration
    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_key: Optional[str] = Field(default=None, alias="SUPABASE_KEY")

    # Catalog backend: "supabase" for production, "memory" for local development
    catalog_backend: Literal["supabase", "memory"] = Field(default="supabase", alias="CATALOG_BACKEND")
    catalog_seed_path: Optional[str] = Field(default=None, alias="CATALOG_SEED_PATH")

    # Application Settings
    env: str = Field(default="development", alias="ENV")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")

    # Model Settings
    llm_base_url: str = Field(default="https://api.openai.com/v1", alias="LLM_BASE_URL")
    model_name: str = Field(default="gpt-4o-mini", alias="MODEL_NAME")
    model_temperature: float = 0.4
    model_max_tokens: int = 4000
    embedding_model: str = Field(default="embed-english-v3.0", alias="EMBEDDING_MODEL")

    # Outbound call timeouts
    embedding_timeout_seconds: float = Field(default=15.0, alias="EMBEDDING_TIMEOUT_SECONDS")
    catalog_timeout_seconds: float = Field(default=10.0, alias="CATALOG_TIMEOUT_SECONDS")
    web_search_timeout_seconds: float = Field(default=20.0, alias="WEB_SEARCH_TIMEOUT_SECONDS")
    llm_timeout_seconds: float = Field(default=90.0, alias="LLM_TIMEOUT_SECONDS")

    # Trip validation
    max_budget: float = Field(default=10_000_000, alias="MAX_BUDGET")
    max_destination_length: int = Field(default=100, alias="MAX_DESTINATION_LENGTH")
    max_travelers: int = 50
    max_trip_days: int = 60

    # Grounding check applied to generated itineraries: accept | warn | reject
    grounding_policy: Literal["accept", "warn", "reject"] = Field(default="warn", alias="GROUNDING_POLICY")

    # Security Settings
    request_timeout_seconds: int = Field(default=120, alias="REQUEST_TIMEOUT_SECONDS")
    require_auth: bool = Field(default=False, alias="REQUIRE_AUTH")
    admin_api_key: Optional[str] = Field(default=None, alias="ADMIN_API_KEY")

    # CORS Settings
    allowed_origins: str = Field(
        default="http://localhost:5173",
        alias="ALLOWED_ORIGINS",
        description="Comma-separated list of allowed origins for CORS"
    )


# Global settings instance
settings = Settings()
