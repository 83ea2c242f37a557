from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", case_sensitive=True, extra="ignore"
    )

    # Application
    APP_NAME: str = "MagicLinkEngine"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Passwordless email magic links for OAuth2/OIDC authorization flows"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"
    APP_URL: str = "http://localhost:8000"
    LOGIN_URL: str = "http://localhost:3000/login"

    # Database URLs
    POSTGRES_URL: str = Field(..., description="PostgreSQL connection URL")
    MONGODB_URL: str = Field(..., description="MongoDB connection URL")
    REDIS_URL: str = Field(..., description="Redis connection URL")

    # PostgreSQL specific
    POSTGRES_POOL_SIZE: int = 20
    POSTGRES_MAX_OVERFLOW: int = 10

    # MongoDB specific
    MONGODB_DB_NAME: str = "magiclink"

    # Redis specific
    REDIS_MAX_CONNECTIONS: int = 50

    # JWT Settings (action token signing)
    JWT_SECRET_KEY: str = Field(..., min_length=32)
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "magiclink-engine"
    JWT_AUDIENCE: str = "magiclink-engine"

    # Magic link
    MAGIC_LINK_ENABLED: bool = False
    MAGIC_LINK_CODE_TTL_SECONDS: int = Field(default=900, gt=0)
    MAGIC_LINK_REPLAY_GRACE_SECONDS: int = 60
    EMAIL_CODE_LENGTH: int = Field(default=6, ge=4, le=12)
    REPLAY_BACKEND: Literal["redis", "memory"] = "redis"

    # Authorization sessions
    AUTH_SESSION_TTL_SECONDS: int = 1800
    AUTH_SESSION_COOKIE: str = "AUTH_SESSION_ID"
    AUTH_CODE_TTL_SECONDS: int = 60

    # Email
    EMAIL_PROVIDER: str = "console"
    EMAIL_PROVIDER_API_KEY: str = ""
    EMAIL_SENDER: str = "no-reply@localhost"

    # CORS
    CORS_ORIGINS: str | list[str] = ["http://localhost:3000", "http://localhost:8000"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: str | list[str] = ["*"]
    CORS_ALLOW_HEADERS: str | list[str] = ["*"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> Any:
        if isinstance(v, str):
            if v.startswith("[") and v.endswith("]"):
                try:
                    import json

                    return json.loads(v)
                except ValueError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("CORS_ALLOW_METHODS", "CORS_ALLOW_HEADERS", mode="before")
    @classmethod
    def parse_lists(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


# Global settings instance
try:
    settings = Settings()
except Exception as e:
    print(f"Error loading settings: {e}")
    raise e
