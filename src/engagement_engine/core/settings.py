"""Engine settings and configuration.

This module defines all configuration options for the engagement engine.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FRAUD_SIGNAL_WEIGHTS: dict[str, int] = {
    "velocity_spike": 30,
    "new_account": 15,
    "duplicate_device": 25,
    "ip_overlap": 20,
}


class Settings(BaseSettings):
    """Engine settings loaded from environment variables.

    Every business rule the engine applies (rate table, fraud weights,
    moderation thresholds, payout minimum) is configuration, so the same
    engine can be run against alternative tables without code changes.
    """

    # Application metadata
    app_name: str = Field(default="Engagement Engine", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./engagement.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Optional redis backing for the fraud score cache
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Content moderation
    auto_hide_confidence_threshold: float = Field(
        default=0.95, ge=0.0, le=1.0, alias="AUTO_HIDE_CONFIDENCE_THRESHOLD"
    )
    auto_flag_confidence_threshold: float = Field(
        default=0.80, ge=0.0, le=1.0, alias="AUTO_FLAG_CONFIDENCE_THRESHOLD"
    )
    report_escalation_threshold: int = Field(
        default=3, ge=1, alias="REPORT_ESCALATION_THRESHOLD"
    )

    # Fraud scoring
    fraud_payout_block_threshold: int = Field(
        default=50, ge=0, le=100, alias="FRAUD_PAYOUT_BLOCK_THRESHOLD"
    )
    fraud_window_days: int = Field(default=90, ge=1, alias="FRAUD_WINDOW_DAYS")
    fraud_signal_weights: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_FRAUD_SIGNAL_WEIGHTS),
        alias="FRAUD_SIGNAL_WEIGHTS",
    )
    like_velocity_per_hour: int = Field(default=50, ge=1, alias="LIKE_VELOCITY_PER_HOUR")

    # Earnings rate table (cents per divisor crossings)
    like_rate_divisor: int = Field(default=1000, ge=1, alias="LIKE_RATE_DIVISOR")
    like_rate_cents: int = Field(default=50, ge=0, alias="LIKE_RATE_CENTS")
    reply_rate_divisor: int = Field(default=200, ge=1, alias="REPLY_RATE_DIVISOR")
    reply_rate_cents: int = Field(default=50, ge=0, alias="REPLY_RATE_CENTS")

    # Payouts
    minimum_payout_cents: int = Field(default=1000, ge=0, alias="MINIMUM_PAYOUT_CENTS")

    # Outbound sinks (notification + export)
    notification_sink_url: str | None = Field(default=None, alias="NOTIFICATION_SINK_URL")
    export_sink_url: str | None = Field(default=None, alias="EXPORT_SINK_URL")
    sink_timeout_seconds: float = Field(default=10.0, gt=0, alias="SINK_TIMEOUT_SECONDS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url


settings = Settings()
