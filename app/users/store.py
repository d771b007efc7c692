"""Athlete profile stores.

The profile is an input collaborator of plan generation: the pipeline reads
it, profile updates mutate it independently.
"""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod

from sqlalchemy.orm import Session, sessionmaker

from app.core.clock import Clock, utc_now
from app.db.models import User
from app.db.session import store_transaction
from app.users.schemas import UserProfileSchema, UserProfileUpdate


class UserStore(ABC):
    @abstractmethod
    def get_user(self, user_id: str) -> UserProfileSchema | None: ...

    @abstractmethod
    def create_user(
        self,
        profile: UserProfileUpdate | None = None,
        provider: str | None = None,
        provider_user_id: str | None = None,
    ) -> UserProfileSchema: ...

    @abstractmethod
    def update_profile(self, user_id: str, update: UserProfileUpdate) -> UserProfileSchema | None:
        """Apply non-None fields. Returns None when the user does not exist."""


class InMemoryUserStore(UserStore):
    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._users: dict[str, UserProfileSchema] = {}

    def get_user(self, user_id: str) -> UserProfileSchema | None:
        if not user_id:
            return None
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user else None

    def create_user(
        self,
        profile: UserProfileUpdate | None = None,
        provider: str | None = None,
        provider_user_id: str | None = None,
    ) -> UserProfileSchema:
        now = self._clock()
        user = UserProfileSchema(
            id=f"mem-{uuid.uuid4()}",
            provider=provider,
            provider_user_id=provider_user_id,
            created_at=now,
            updated_at=now,
            **(profile.changes() if profile else {}),
        )
        with self._lock:
            self._users[user.id] = user
        return user.model_copy(deep=True)

    def update_profile(self, user_id: str, update: UserProfileUpdate) -> UserProfileSchema | None:
        with self._lock:
            existing = self._users.get(user_id)
            if existing is None:
                return None
            updated = existing.model_copy(update={**update.changes(), "updated_at": self._clock()})
            self._users[user_id] = updated
            return updated.model_copy(deep=True)


class SqlUserStore(UserStore):
    def __init__(self, session_factory: sessionmaker[Session], clock: Clock = utc_now) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def get_user(self, user_id: str) -> UserProfileSchema | None:
        if not user_id:
            return None
        with store_transaction(self._session_factory, "load user") as session:
            row = session.get(User, user_id)
            return UserProfileSchema.model_validate(row, from_attributes=True) if row else None

    def create_user(
        self,
        profile: UserProfileUpdate | None = None,
        provider: str | None = None,
        provider_user_id: str | None = None,
    ) -> UserProfileSchema:
        now = self._clock()
        with store_transaction(self._session_factory, "create user") as session:
            row = User(
                provider=provider,
                provider_user_id=provider_user_id,
                created_at=now,
                updated_at=now,
                **(profile.changes() if profile else {}),
            )
            session.add(row)
            session.flush()
            return UserProfileSchema.model_validate(row, from_attributes=True)

    def update_profile(self, user_id: str, update: UserProfileUpdate) -> UserProfileSchema | None:
        changes = update.changes()
        with store_transaction(self._session_factory, "update user") as session:
            row = session.get(User, user_id)
            if row is None:
                return None
            for column, value in changes.items():
                setattr(row, column, value)
            if changes:
                row.updated_at = self._clock()
            session.flush()
            return UserProfileSchema.model_validate(row, from_attributes=True)
