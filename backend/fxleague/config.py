"""Application configuration."""
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_env: str = "development"
    app_debug: bool = True
    log_level: str = "DEBUG"

    # Database - required
    database_url: str = Field(
        ...,
        description="Database connection URL (required)",
    )
    db_pool_size: int = Field(
        default=20,
        description="DB connection pool size",
    )
    db_max_overflow: int = Field(
        default=10,
        description="Max overflow connections",
    )

    # Identity tokens are issued by the external auth provider; we only verify them.
    jwt_secret_key: str = Field(
        ...,
        description="Shared secret used to verify access tokens (required, minimum 32 characters)",
    )
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = Field(
        default=None,
        description="Expected 'aud' claim (e.g. 'authenticated'); not checked when unset",
    )

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Tournament rules
    max_winners_count: int = Field(
        default=20,
        description="Upper bound for a tournament's winners_count",
    )
    demo_starting_balance: int = Field(
        default=10000,
        description="Demo account starting balance used for ROI on the winners board",
    )
    default_page_size: int = 50

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        """Validate JWT secret key length."""
        if len(v) < 32:
            raise ValueError(
                "jwt_secret_key must be at least 32 characters long"
            )

        weak_patterns = [
            "change-this",
            "password",
            "12345",
            "qwerty",
        ]
        lower_v = v.lower()
        for pattern in weak_patterns:
            if pattern in lower_v:
                raise ValueError(
                    f"jwt_secret_key contains weak pattern '{pattern}'. "
                    "Use a strong, random secret key."
                )

        return v

    @field_validator("max_winners_count")
    @classmethod
    def validate_max_winners_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_winners_count must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate settings for production environment."""
        if self.app_env == "production":
            if self.app_debug:
                raise ValueError(
                    "app_debug must be False in production environment"
                )

            origins = [o.strip() for o in self.cors_origins.split(",")]
            if "*" in origins:
                raise ValueError(
                    "CORS wildcard '*' is not allowed in production environment. "
                    "Specify explicit allowed origins."
                )

            if self.log_level == "DEBUG":
                import warnings
                warnings.warn(
                    "DEBUG log level in production may expose sensitive information"
                )

        return self

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
