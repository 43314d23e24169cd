"""Weekly activity counters (distinct from per-entity counter caches)."""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction

from statusgraph.core.settings import settings
from statusgraph.db.time import utcnow
from statusgraph.services.cache import Cache, get_cache

LOCAL_STATUSES_KEY = "activity:statuses:local"

_PENDING_INFO_KEY = "statusgraph.pending_activity"


def week_bucket(at: datetime) -> int:
    """Return the POSIX timestamp of the Monday 00:00 UTC starting ``at``'s week."""
    day = at.replace(hour=0, minute=0, second=0, microsecond=0)
    return int((day - timedelta(days=day.weekday())).timestamp())


class ActivityTracker:
    """Increments ``<prefix>:<week-start>`` buckets in the cache layer."""

    def __init__(self, cache: Cache | None = None, clock=utcnow) -> None:
        self._cache = cache if cache is not None else get_cache()
        self._clock = clock

    def key_for(self, prefix: str, at: datetime | None = None) -> str:
        """Return the bucket key ``prefix`` is recorded under for ``at``."""
        return f"{prefix}:{week_bucket(at or self._clock())}"

    def increment(self, prefix: str) -> int:
        """Record one event for the current week and return the bucket total."""
        ttl_seconds = int(timedelta(days=settings.activity_expire_days).total_seconds())
        return self._cache.increment(self.key_for(prefix), ttl_seconds)

    def count(self, prefix: str, at: datetime | None = None) -> int:
        """Return the number of events recorded in the week containing ``at``."""
        value = self._cache.get(self.key_for(prefix, at))
        return int(value) if value is not None else 0


def get_activity_tracker() -> ActivityTracker:
    """Return an activity tracker bound to the process-wide cache."""
    return ActivityTracker()


def increment_after_commit(session: Session, tracker: ActivityTracker, prefix: str) -> None:
    """Record one event for ``prefix`` once ``session`` commits its outermost transaction.

    Events queued in a transaction that is rolled back or closed are dropped.
    """
    session.info.setdefault(_PENDING_INFO_KEY, []).append((tracker, prefix))


@event.listens_for(Session, "after_commit")
def _record_pending_activity(session: Session) -> None:
    # Savepoint releases dispatch this event too; only the outermost commit counts.
    if session.get_nested_transaction() is not None:
        return
    for tracker, prefix in session.info.pop(_PENDING_INFO_KEY, []):
        tracker.increment(prefix)


@event.listens_for(Session, "after_transaction_end")
def _discard_pending_activity(session: Session, transaction: SessionTransaction) -> None:
    if transaction.parent is None:
        session.info.pop(_PENDING_INFO_KEY, None)
