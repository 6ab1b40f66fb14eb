"""
Application configuration with Pydantic Settings for validation and type safety.
Supports environment-specific configurations and .env file loading.
"""

from enum import Enum
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator

DEFAULT_JWT_SECRET = "change-me"


class Environment(str, Enum):
    """Application environment types"""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """
    Application settings with validation.
    Settings are loaded from environment variables or .env file.
    """

    # Application settings
    app_name: str = Field(default="NutriCoach", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")

    # Managed database (Supabase Postgres)
    database_url: str = Field(
        default="postgresql+psycopg2://postgres@localhost:5432/nutricoach",
        description="SQLAlchemy database URL",
    )
    db_echo: bool = Field(default=False, description="SQLAlchemy echo SQL statements")
    db_init_attempts: int = Field(
        default=8, ge=1, description="Database initialization retry attempts"
    )
    db_init_delay_sec: float = Field(
        default=2.0, ge=0, description="Delay between DB init attempts"
    )

    # Identity provider
    supabase_jwt_secret: str = Field(
        default=DEFAULT_JWT_SECRET, description="Secret used to sign access tokens (HS256)"
    )
    supabase_jwt_audience: str = Field(
        default="authenticated", description="Expected access token audience"
    )
    auth_cookie_name: str = Field(
        default="__session", description="Cookie carrying the id token"
    )

    # External meal-optimization service
    optimization_api_base_url: str = Field(
        default="https://optimization-system-for-ai-nutrition.onrender.com",
        description="Base URL of the meal-optimization service",
    )
    optimization_timeout_ms: int = Field(
        default=30000, ge=1, description="Optimization request timeout in milliseconds"
    )
    optimization_retry_attempts: int = Field(
        default=3, ge=1, description="Attempts for optimization requests"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Log format string",
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(
        default=True, description="Allow CORS credentials"
    )
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"], description="Allowed HTTP methods"
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "Authorization"], description="Allowed HTTP headers"
    )

    # API settings
    api_prefix: str = Field(default="/api", description="API route prefix")
    api_title: str = Field(
        default="NutriCoach API", description="API documentation title"
    )
    api_description: str = Field(
        default="Coach and client nutrition dashboard backend",
        description="API documentation description",
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment value"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @model_validator(mode="after")
    def validate_production_secret(self):
        """Refuse to run production with a placeholder token secret"""
        if self.is_production() and self.supabase_jwt_secret.strip() in ("", DEFAULT_JWT_SECRET):
            raise ValueError("SUPABASE_JWT_SECRET must be set in production")
        return self

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        """Check if running in testing environment"""
        return self.environment == Environment.TESTING


# Global settings instance
settings = Settings()
