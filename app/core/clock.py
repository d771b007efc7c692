"""Injectable wall clock.

Every component that needs "now" receives a Clock so tests can pin time.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fixed_clock(instant: datetime) -> Clock:
    """Return a clock that always reports `instant` (UTC if naive)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)

    def _now() -> datetime:
        return instant

    return _now
