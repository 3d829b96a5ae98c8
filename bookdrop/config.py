"""Runtime settings — env-driven via pydantic-settings.

Reads ``BOOKDROP_*`` environment variables and an optional ``.env`` file.
Settings are loaded once at startup and turned into an explicit
``DeliveryConfig`` that is passed to each component; nothing in the core
reads settings globally.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bookdrop.core.errors import ConfigurationError
from bookdrop.models.config import MIB, BackoffPolicy, DeliveryConfig


class BotSettings(BaseSettings):
    """Bot settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export BOOKDROP_TELEGRAM_TOKEN=123456:ABC...
        export BOOKDROP_BOT_EMAIL=books@example.com
        export BOOKDROP_DB_PATH=/data/bookdrop.db

    Or via .env file::

        BOOKDROP_MAX_WORKERS=32
        BOOKDROP_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BOOKDROP_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Credentials and storage
    telegram_token: str = ""
    bot_email: str = ""
    db_path: Path = Path(".bookdrop/bookdrop.db")
    aws_region: str | None = None

    # Dispatch and delivery
    max_workers: int = Field(16, ge=1)
    max_payload_size: int = Field(20 * MIB, gt=0)
    download_timeout: float = Field(30.0, gt=0)
    network_timeout: float = Field(30.0, gt=0)
    poll_timeout: int = Field(60, ge=0)
    destination_suffix: str = "@kindle.com"

    # Retry policy for fetch and transmit; max_elapsed must stay finite
    retry_initial_interval: float = Field(0.5, gt=0)
    retry_multiplier: float = Field(1.5, ge=1.0)
    retry_max_interval: float = Field(60.0, gt=0)
    retry_max_elapsed: float = Field(120.0, gt=0)
    retry_max_attempts: int | None = Field(None, ge=1)

    # Observability
    log_level: str = "INFO"

    def require_credentials(self) -> None:
        """Raise ``ConfigurationError`` naming every missing credential."""
        missing = [
            f"BOOKDROP_{name.upper()}"
            for name in ("telegram_token", "bot_email")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            )

    def backoff_policy(self) -> BackoffPolicy:
        return BackoffPolicy(
            initial_interval=self.retry_initial_interval,
            multiplier=self.retry_multiplier,
            max_interval=self.retry_max_interval,
            max_elapsed=self.retry_max_elapsed,
            max_attempts=self.retry_max_attempts,
        )

    def to_delivery_config(self) -> DeliveryConfig:
        """Build the frozen configuration value consumed by the core."""
        return DeliveryConfig(
            max_workers=self.max_workers,
            max_payload_size=self.max_payload_size,
            download_timeout=self.download_timeout,
            network_timeout=self.network_timeout,
            destination_suffix=self.destination_suffix,
            sender_address=self.bot_email,
            backoff=self.backoff_policy(),
        )


def load_settings(**overrides: object) -> BotSettings:
    """Load settings from the environment, applying keyword *overrides*."""
    return BotSettings(**overrides)
