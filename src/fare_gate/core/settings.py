"""Application settings and configuration.

This module defines all configuration options for the Fare Gate service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Fare policy (price, transfer window, issuance limits and fraud severity
    tiers) lives here so operators can tune it without code changes.
    """

    # Application metadata
    app_name: str = Field(default="Fare Gate", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./fare_gate.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Fare policy
    ticket_price: float = Field(default=9.00, alias="TICKET_PRICE")
    short_code_length: int = Field(default=6, alias="SHORT_CODE_LENGTH")
    transfer_window_hours: int = Field(default=24, alias="TRANSFER_WINDOW_HOURS")
    daily_issue_limit: int = Field(default=20, alias="DAILY_ISSUE_LIMIT")
    # Anchors "today" for contexts without a registered timezone.
    default_timezone: str = Field(default="America/Hermosillo", alias="DEFAULT_TIMEZONE")

    # Fraud severity tiers, expressed as the holder attempt count (inclusive of
    # the current attempt) at which each tier starts.
    fraud_severity_medium_at: int = Field(default=2, alias="FRAUD_SEVERITY_MEDIUM_AT")
    fraud_severity_high_at: int = Field(default=4, alias="FRAUD_SEVERITY_HIGH_AT")
    fraud_severity_critical_at: int = Field(default=6, alias="FRAUD_SEVERITY_CRITICAL_AT")

    # Storage failures during the initial ticket lookup are retried this many times.
    lookup_retry_attempts: int = Field(default=1, alias="LOOKUP_RETRY_ATTEMPTS")

    # Background reclaim of overdue transfers (lazy reclaim at redemption time
    # is sufficient on its own).
    transfer_sweep_enabled: bool = Field(default=False, alias="TRANSFER_SWEEP_ENABLED")
    transfer_sweep_interval_seconds: float = Field(
        default=300.0,
        alias="TRANSFER_SWEEP_INTERVAL_SECONDS",
    )

    # CORS configuration for validator apps
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def severity_thresholds(self) -> dict[str, int]:
        """Return the fraud severity tier thresholds as a dictionary."""
        return {
            "medium": self.fraud_severity_medium_at,
            "high": self.fraud_severity_high_at,
            "critical": self.fraud_severity_critical_at,
        }


settings = Settings()  # type: ignore[call-arg]
