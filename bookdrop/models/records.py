"""Persisted record models for the Record Store.

- ``UserConfig``: one row per user, upserted by ``set_kindle_email``.
- ``DeliveryRecord``: append-only audit row, written once per successful
  transmit.  There is no update or delete path.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserConfig(BaseModel):
    """A user's validated delivery destination."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    destination: str
    created_at: datetime


class DeliveryRecord(BaseModel):
    """Audit row for one delivered payload."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    name: str
    size: int
    created_at: datetime
