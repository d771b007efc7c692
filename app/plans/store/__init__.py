"""Plan, workout and profile stores.

build_stores() is the only place that chooses between the relational
backend and the in-process backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from loguru import logger
from sqlalchemy.engine import Engine

from app.core.clock import Clock, utc_now
from app.db.session import create_db_engine, create_session_factory, ensure_schema
from app.plans.store.base import PlanStore, WorkoutStore
from app.plans.store.memory import InMemoryPlanStore, InMemoryWorkoutStore
from app.plans.store.sql import SqlPlanStore, SqlWorkoutStore
from app.users.store import InMemoryUserStore, SqlUserStore, UserStore

StoreBackend = Literal["sql", "memory"]


@dataclass(frozen=True)
class Stores:
    plans: PlanStore
    workouts: WorkoutStore
    users: UserStore
    backend: StoreBackend
    engine: Engine | None = None


def build_stores(database_url: str | None, clock: Clock = utc_now, *, create_schema: bool = True) -> Stores:
    """Build the stores for a configured database URL.

    Args:
        database_url: SQLAlchemy URL; empty selects the in-process backend
        clock: Time source for record timestamps
        create_schema: Create missing tables on the relational backend

    Returns:
        Stores sharing one backend
    """
    if not database_url:
        logger.warning("DATABASE_URL not set. Using in-process stores; data is lost on restart.")
        return Stores(
            plans=InMemoryPlanStore(clock),
            workouts=InMemoryWorkoutStore(clock),
            users=InMemoryUserStore(clock),
            backend="memory",
        )

    engine = create_db_engine(database_url)
    if create_schema:
        ensure_schema(engine)
    factory = create_session_factory(engine)
    return Stores(
        plans=SqlPlanStore(factory, clock),
        workouts=SqlWorkoutStore(factory, clock),
        users=SqlUserStore(factory, clock),
        backend="sql",
        engine=engine,
    )


__all__ = [
    "InMemoryPlanStore",
    "InMemoryWorkoutStore",
    "PlanStore",
    "SqlPlanStore",
    "SqlWorkoutStore",
    "StoreBackend",
    "Stores",
    "WorkoutStore",
    "build_stores",
]
