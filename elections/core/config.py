"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional, Union

from elections.core.constants import (
    ACCESS_TOKEN_EXPIRE_MINUTES as DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES,
    Groups,
)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Database - Support both full URL and individual components
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_HOST: Optional[str] = None
    POSTGRES_PORT: Optional[str] = None
    POSTGRES_DB: Optional[str] = None

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ADMIN_PASSWORD: str = "adminpass"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES

    # Host-issued JWT carrying the voter identity and group memberships
    USER_TOKEN_COOKIE: str = "user_token"

    # CORS - Can be a list or comma-separated string
    CORS_ORIGINS: Union[list, str] = ["*"]

    # Reverse proxies whose X-Forwarded-For header is believed (list or comma-separated)
    TRUSTED_PROXIES: Union[list, str] = []

    @field_validator('CORS_ORIGINS', 'TRUSTED_PROXIES', mode='before')
    @classmethod
    def parse_address_list(cls, v):
        """Parse a comma-separated string or list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(',') if item.strip()]
        return v

    # Application
    APP_TITLE: str = "Elections"
    APP_DESCRIPTION: str = "Multi-question elections with sealed, voter-verifiable ballots"
    APP_VERSION: str = "1.0.0"

    # Environment
    ENVIRONMENT: str = "development"  # development, staging, production

    # Logging
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL

    # Voting
    VOTE_COOKIE_PREFIX: str = "elections"
    VOTE_COOKIE_TTL_SECONDS: int = 86400  # Anonymous "already voted" cookie lifetime
    IP_RETENTION_SECONDS: int = 604800  # Voter IP addresses are blanked after a week
    ARCHIVE_AFTER_DAYS: int = 365  # Closed elections are archived after this many days
    KEY_DERIVATION_ITERATIONS: int = 100_000  # PBKDF2 rounds for ballot sealing keys

    # Election limits
    MAX_QUESTIONS: int = 10
    MAX_ANSWERS: int = 10
    DEFAULT_VOTING_GROUP: int = Groups.ALL_USERS
    DEFAULT_RESULTS_GROUP: int = Groups.ALL_USERS

    # Database Connection Pool Configuration
    DB_POOL_SIZE: int = 15
    DB_MAX_OVERFLOW: int = 25

    def get_database_url(self) -> str:
        """
        Get database URL from either DATABASE_URL or individual components.
        Priority: DATABASE_URL > individual components > default (dev only)
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL

        if all([self.POSTGRES_USER, self.POSTGRES_PASSWORD,
                self.POSTGRES_HOST, self.POSTGRES_DB]):
            port = self.POSTGRES_PORT or "5432"
            return (
                f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_HOST}:{port}/{self.POSTGRES_DB}"
            )

        # Development fallback only
        if self.ENVIRONMENT == "development":
            return "sqlite:///elections.db"

        raise ValueError(
            "Database configuration missing. Provide either DATABASE_URL or "
            "all of: POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_HOST, POSTGRES_DB"
        )

    def validate_production_config(self) -> None:
        """Validate that production-critical settings are properly configured."""
        if self.ENVIRONMENT == "production":
            issues = []

            if self.SECRET_KEY == "your-secret-key-change-in-production":
                issues.append("SECRET_KEY must be changed from default value")

            if self.ADMIN_PASSWORD == "adminpass":
                issues.append("ADMIN_PASSWORD must be changed from default value")

            if self.CORS_ORIGINS == ["*"]:
                issues.append("CORS_ORIGINS should be restricted to specific domains")

            if self.KEY_DERIVATION_ITERATIONS < 10_000:
                issues.append("KEY_DERIVATION_ITERATIONS is too low for production")

            if issues:
                raise ValueError(
                    "Production configuration errors:\n" +
                    "\n".join(f"  - {issue}" for issue in issues)
                )


settings = Settings()
