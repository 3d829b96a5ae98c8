"""Core configuration values, passed into each component at construction."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

MIB = 1024 * 1024


class BackoffPolicy(BaseModel):
    """Exponential backoff schedule for a single network operation.

    The interval before retry *n* (0-based) is
    ``min(max_interval, initial_interval * multiplier ** n)``, randomised
    by +/- ``randomization_factor``.  Retrying stops once the next wait
    would cross ``max_elapsed`` seconds since the first attempt, or after
    ``max_attempts`` attempts when that is set.
    """

    model_config = ConfigDict(frozen=True)

    initial_interval: float = Field(0.5, gt=0)
    multiplier: float = Field(1.5, ge=1.0)
    max_interval: float = Field(60.0, gt=0)
    max_elapsed: float = Field(120.0, gt=0)
    max_attempts: int | None = Field(None, ge=1)
    randomization_factor: float = Field(0.5, ge=0.0, le=1.0)


class DeliveryConfig(BaseModel):
    """Configuration surface consumed by the dispatch and delivery core."""

    model_config = ConfigDict(frozen=True)

    max_workers: int = Field(16, ge=1)
    max_payload_size: int = Field(20 * MIB, gt=0)
    download_timeout: float = Field(30.0, gt=0)
    network_timeout: float = Field(30.0, gt=0)
    destination_suffix: str = "@kindle.com"
    sender_address: str = ""
    backoff: BackoffPolicy = BackoffPolicy()
