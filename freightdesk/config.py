"""
Application Configuration
Uses Pydantic Settings for environment-based configuration
"""

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra env vars like MARIADB_* used by docker-compose
    )

    # Application
    PROJECT_NAME: str = "FreightDesk API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    API_V1_STR: str = "/api/v1"

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "freightdesk"
    JWT_AUDIENCE: str = "freightdesk-clients"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    # Refresh tokens
    # Lifetime is fixed at sign-in and never extended by rotation
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    REFRESH_TOKEN_BYTES: int = Field(default=32, ge=32)
    REFRESH_TOKEN_RETENTION_EXPIRED_DAYS: int = Field(default=7, ge=0)
    REFRESH_TOKEN_RETENTION_DEACTIVATED_DAYS: int = Field(default=7, ge=0)
    REFRESH_TOKEN_CLEANUP_HOUR: int = Field(default=3, ge=0, le=23)

    # Fingerprinting (secondary binding factor for refresh tokens)
    FINGERPRINT_IPV4_PREFIX: int = Field(default=24, ge=0, le=32)
    FINGERPRINT_IPV6_PREFIX: int = Field(default=64, ge=0, le=128)

    # CORS
    # Allow str because it can be a comma-separated string in .env
    CORS_ORIGINS: str | list[str] = Field(
        default=["http://localhost:4200", "http://localhost:8000"]
    )

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_ECHO: bool = False
    # Consume/turn-in must not let two transactions both act on the same active row
    DB_ISOLATION_LEVEL: str = Field(
        default="REPEATABLE READ",
        pattern="^(READ COMMITTED|REPEATABLE READ|SERIALIZABLE)$",
    )

    # Arq (background worker)
    ARQ_REDIS_URL: str = Field(default="redis://localhost:6379/1")
    ARQ_KEEP_RESULT: int = 3600  # 1 hour

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v


# Create global settings instance
load_dotenv()
settings = Settings()  # type: ignore[call-arg]


class UserRole:
    """User role constants (every user holds exactly one)"""

    CUSTOMER = "customer"
    PILOT = "pilot"
    ADMINISTRATOR = "administrator"

    ALL = (CUSTOMER, PILOT, ADMINISTRATOR)
