from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import JSON, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class User(Base):
    """Athlete profile keyed by the identity provider's user id.

    Stores:
    - id: User ID (string UUID format)
    - provider / provider_user_id: Identity provider and its stable subject
    - anthropometrics: gender, birthdate, height_cm, weight_kg
    - availability: weekly_training_days, timezone
    - best race history: best_race_distance, best_race_time_seconds
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    provider: Mapped[str | None] = mapped_column(String, nullable=True)
    provider_user_id: Mapped[str | None] = mapped_column(String, nullable=True)
    display_name: Mapped[str | None] = mapped_column(String, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String, nullable=True)
    gender: Mapped[str | None] = mapped_column(String, nullable=True)
    birthdate: Mapped[date | None] = mapped_column(Date, nullable=True)
    height_cm: Mapped[float | None] = mapped_column(Float, nullable=True)
    weight_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    weekly_training_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    best_race_distance: Mapped[str | None] = mapped_column(String, nullable=True)
    best_race_time_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    timezone: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (UniqueConstraint("provider", "provider_user_id", name="uq_users_provider_identity"),)


class TrainingPlan(Base):
    """Generated training plan and its generation lifecycle.

    Status moves draft -> completed | failed exactly once per generation.
    prompt_context is an immutable snapshot of what was sent to the provider;
    plan_payload is the parsed provider output (null until completed).
    """

    __tablename__ = "training_plans"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    goal_race_distance: Mapped[str] = mapped_column(String, nullable=False)
    goal_race_date: Mapped[date] = mapped_column(Date, nullable=False)
    goal_target_time_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    goal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    ai_model: Mapped[str | None] = mapped_column(String, nullable=True)
    prompt_context: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    plan_payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    generation_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    confidence_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("idx_training_plans_user_status_created", "user_id", "status", "created_at"),  # Latest completed plan lookup
    )


class Workout(Base):
    """One scheduled session of a training plan.

    The set of workouts for a plan is replaced wholesale on each successful
    generation. Only check-in/log fields are mutated afterwards.
    """

    __tablename__ = "workouts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    training_plan_id: Mapped[str] = mapped_column(
        String, ForeignKey("training_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    workout_type: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    distance_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_pace: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="scheduled")
    pre_run_sleep_quality: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pre_run_body_feel: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_feedback_difficulty: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_feedback_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    additional_payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("idx_workouts_plan_scheduled_date", "training_plan_id", "scheduled_date"),
    )
