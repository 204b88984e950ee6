"""Typed, environment-driven settings for the transform engine.

The process builds one `Settings` instance at startup and hands it to each
component constructor. Nothing below the entrypoint reads the environment.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "transform-engine"
    log_level: str = "INFO"
    bind_host: str = "0.0.0.0"
    bind_port: int = 9090

    postgres_dsn: str
    db_pool_size: int = Field(default=5, ge=1)
    db_connect_timeout_seconds: float = Field(default=5.0, gt=0)
    db_statement_timeout_seconds: float = Field(default=5.0, gt=0)

    vault_addr: str = "http://localhost:8200"
    vault_token: SecretStr
    vault_transform_role: str = "payments"
    vault_timeout_seconds: float = Field(default=5.0, gt=0)

    # Bounded exponential backoff while waiting for the database at startup.
    startup_max_attempts: int = Field(default=8, ge=1)
    startup_initial_backoff_seconds: float = Field(default=0.5, ge=0)
    startup_max_backoff_seconds: float = Field(default=8.0, ge=0)
    startup_max_wait_seconds: float = Field(default=60.0, ge=0)

    otel_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
