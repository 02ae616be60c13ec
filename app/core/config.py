"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Nothing is required at load time: the SQL layer
checks DATABASE_URL when it is first used, and Redis failures degrade
to "cache disabled" / "no event delivery" with a warning.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TELEMETRY_EXPORTERS = ("console", "otlp", "jaeger", "none")


class Settings(BaseSettings):
    """Automation engine settings loaded from environment and .env."""

    # App
    app_name: str = "crm-automation"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database (PostgreSQL via asyncpg; schema managed by Alembic)
    database_url: str = ""
    database_echo: bool = False
    db_pool_size: int | None = None
    db_max_overflow: int | None = None
    db_command_timeout: int | None = None

    # Redis: cache + domain event bus
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    event_channel_prefix: str = ""
    # Listener resubscribes after a Redis error: backoff, 2x backoff, ... then gives up.
    event_bus_reconnect_attempts: int = 5
    event_bus_reconnect_backoff_seconds: float = 1.0
    cache_ttl_workflows: int = 300

    # Actions
    message_from_address: str = "noreply@crm.local"
    default_message_subject: str = "CRM Notification"
    webhook_timeout_seconds: float = 30.0
    # Comma-separated entity types the update_field action may touch (table = <type>s).
    updatable_entity_types: str = "lead,deal,contact"

    # Execution history
    execution_history_limit: int = 50

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_jaeger_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_limits_and_exporter(self) -> "Settings":
        """Reject values that would make the engine misbehave at runtime."""
        if self.webhook_timeout_seconds <= 0:
            raise ValueError(
                f"webhook_timeout_seconds must be positive, got {self.webhook_timeout_seconds}"
            )
        if self.event_bus_reconnect_attempts < 0:
            raise ValueError(
                f"event_bus_reconnect_attempts must be >= 0, got {self.event_bus_reconnect_attempts}"
            )
        if self.event_bus_reconnect_backoff_seconds <= 0:
            raise ValueError("event_bus_reconnect_backoff_seconds must be positive")
        if self.execution_history_limit < 1:
            raise ValueError(
                f"execution_history_limit must be >= 1, got {self.execution_history_limit}"
            )
        if self.telemetry_exporter not in _TELEMETRY_EXPORTERS:
            raise ValueError(
                f"telemetry_exporter must be one of {', '.join(_TELEMETRY_EXPORTERS)}; "
                f"got {self.telemetry_exporter!r}"
            )
        if not 0.0 <= self.telemetry_sample_rate <= 1.0:
            raise ValueError("telemetry_sample_rate must be between 0.0 and 1.0")
        return self

    @property
    def updatable_entity_type_set(self) -> frozenset[str]:
        """Parsed updatable_entity_types (lowercased, blanks dropped)."""
        return frozenset(
            t.strip().lower() for t in self.updatable_entity_types.split(",") if t.strip()
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
