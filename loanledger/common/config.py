"""Central environment-driven settings for the statement service.

The process loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "statement"
    log_level: str = "INFO"
    postgres_dsn: str
    api_key: str
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    otel_enabled: bool = True
    otel_sample_ratio: float = 1.0
    source_fetch_timeout_seconds: float = 10.0
    country_calling_code: str = "254"
    payment_fallback_reference: str = "MPESA"
    statement_timezone: str = "Africa/Nairobi"
    default_page_size: int = 10
    max_page_size: int = 500
    db_pool_recycle_seconds: int = 1800
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = CommonSettings()
