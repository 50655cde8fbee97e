"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is driven by environment variables."""

    # Managed host connection
    ssh_host: str = ""
    ssh_port: int = 22
    ssh_username: str = ""
    ssh_private_key_path: str = ""
    ssh_password: str = ""
    connect_timeout_seconds: int = Field(default=15, alias="SSH_CONNECT_TIMEOUT")

    # Command execution
    command_timeout_ms: int = Field(default=15000, gt=0)
    ssh_max_workers: int = Field(default=8, ge=1)

    # Circuit breaker
    max_consecutive_failures: int = Field(default=3, ge=1)
    # Whether nonzero-exit-with-stderr results count toward the breaker
    count_command_failures: bool = True

    # Operator-driven reconnect
    max_reconnect_attempts: int = Field(default=5, ge=1)
    reconnect_base_delay_ms: int = Field(default=1000, ge=0)

    # API key
    api_key: str = ""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }


# Default settings – the app factory reads these at startup
settings = Settings()
