"""Athlete profile schemas (Pydantic)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import Field

from app.core.schemas import CamelModel


class UserProfileSchema(CamelModel):
    id: str
    provider: str | None = None
    provider_user_id: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    gender: str | None = None
    birthdate: date | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    weekly_training_days: int | None = None
    best_race_distance: str | None = None
    best_race_time_seconds: int | None = None
    timezone: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login_at: datetime | None = None


class UserProfileUpdate(CamelModel):
    """Partial profile update; None fields are left unchanged."""

    display_name: str | None = None
    avatar_url: str | None = None
    gender: str | None = None
    birthdate: date | None = None
    height_cm: float | None = Field(default=None, gt=0)
    weight_kg: float | None = Field(default=None, gt=0)
    weekly_training_days: int | None = Field(default=None, ge=0, le=7)
    best_race_distance: str | None = None
    best_race_time_seconds: int | None = Field(default=None, ge=0)
    timezone: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
