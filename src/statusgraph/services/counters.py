"""Counter-cache maintenance for statuses and their authors.

Every delta is applied with a single ``UPDATE ... SET col = col + delta``
statement against the one stat row it concerns, so concurrent writers on the
same status never lose an update. Stat rows are created on demand.
"""

from __future__ import annotations

import logging
from typing import Literal

from sqlalchemy import case, inspect, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from statusgraph.core.settings import settings
from statusgraph.models import AccountStat, Status, StatusStat
from statusgraph.repositories.status_repo import StatusRepository
from statusgraph.services.cache import Cache, get_cache
from statusgraph.services.resolver import is_reblog, reblog_countable, reply_countable

logger = logging.getLogger(__name__)

StatusCounter = Literal["replies_count", "reblogs_count", "favourites_count"]
AccountCounter = Literal["statuses_count"]

REPLIES_COUNT_KEY = "replies_count:{status_id}"


def _is_being_destroyed(session: Session, status: Status) -> bool:
    state = inspect(status)
    return state.deleted or state.was_deleted or status in session.deleted


def _ensure_stat_row(
    session: Session,
    model: type[StatusStat] | type[AccountStat],
    owner_id: int,
) -> None:
    if session.get(model, owner_id) is not None:
        return
    owner_key = "status_id" if model is StatusStat else "account_id"
    try:
        with session.begin_nested():
            session.add(model(**{owner_key: owner_id}))
    except IntegrityError:
        # Another writer inserted the row first; the update below still applies.
        logger.debug("%s row for %s created concurrently", model.__tablename__, owner_id)


def _apply_delta(
    session: Session,
    model: type[StatusStat] | type[AccountStat],
    owner_id: int,
    field: str,
    delta: int,
) -> None:
    _ensure_stat_row(session, model, owner_id)
    column = getattr(model, field)
    owner_column = model.status_id if model is StatusStat else model.account_id
    if delta >= 0:
        value = column + delta
    else:
        value = case((column + delta < 0, 0), else_=column + delta)
    session.execute(
        update(model)
        .where(owner_column == owner_id)
        .values({field: value})
        .execution_options(synchronize_session="fetch")
    )
    logger.debug("%s.%s %+d for %s", model.__tablename__, field, delta, owner_id)


def increment_count(session: Session, status: Status, key: StatusCounter) -> None:
    """Add one to ``key`` on the status's stat row."""
    if _is_being_destroyed(session, status):
        return
    _apply_delta(session, StatusStat, status.id, key, 1)


def decrement_count(session: Session, status: Status, key: StatusCounter) -> None:
    """Subtract one from ``key`` on the status's stat row, never going below zero."""
    if _is_being_destroyed(session, status):
        return
    _apply_delta(session, StatusStat, status.id, key, -1)


def increment_account_count(
    session: Session,
    account_id: int,
    key: AccountCounter = "statuses_count",
) -> None:
    """Add one to ``key`` on the account's stat row."""
    _apply_delta(session, AccountStat, account_id, key, 1)


def decrement_account_count(
    session: Session,
    account_id: int,
    key: AccountCounter = "statuses_count",
) -> None:
    """Subtract one from ``key`` on the account's stat row, never going below zero."""
    _apply_delta(session, AccountStat, account_id, key, -1)


def _counted_reblog_target(session: Session, status: Status) -> Status | None:
    if not (is_reblog(status) and reblog_countable(status)):
        return None
    target = status.reblog or session.get(Status, status.reblog_of_id)
    if target is None or not reblog_countable(target):
        return None
    return target


def _counted_thread(session: Session, status: Status) -> Status | None:
    if status.in_reply_to_id is None or not reply_countable(status):
        return None
    parent = session.get(Status, status.in_reply_to_id)
    if parent is None or not reply_countable(parent):
        return None
    return parent


def on_status_created(session: Session, status: Status) -> None:
    """Bump the counters a newly persisted status contributes to."""
    increment_account_count(session, status.account_id)

    target = _counted_reblog_target(session, status)
    if target is not None:
        increment_count(session, target, "reblogs_count")

    parent = _counted_thread(session, status)
    if parent is not None:
        increment_count(session, parent, "replies_count")


def on_status_destroyed(
    session: Session,
    status: Status,
    *,
    mass_destruction: bool = False,
) -> None:
    """Undo the counter contributions of a status being destroyed.

    Skipped entirely for mass destruction, where the related rows are usually
    going away too.
    """
    if mass_destruction:
        return

    decrement_account_count(session, status.account_id)

    target = _counted_reblog_target(session, status)
    if target is not None:
        decrement_count(session, target, "reblogs_count")

    parent = _counted_thread(session, status)
    if parent is not None:
        decrement_count(session, parent, "replies_count")


def resync_status_stat(session: Session, status: Status) -> None:
    """Overwrite the stat row with freshly counted replies and reblogs."""
    if _is_being_destroyed(session, status):
        return

    repo = StatusRepository(session)
    values: dict[str, int] = {}
    if reply_countable(status):
        values["replies_count"] = repo.count_direct_replies(status.id)
    if reblog_countable(status):
        values["reblogs_count"] = repo.count_reblogs(status.id)
    if not values:
        return

    _ensure_stat_row(session, StatusStat, status.id)
    session.execute(
        update(StatusStat)
        .where(StatusStat.status_id == status.id)
        .values(**values)
        .execution_options(synchronize_session="fetch")
    )
    logger.info("Resynced stat for status %s: %s", status.id, values)


def direct_replies_count(session: Session, status: Status) -> int:
    """Return the live number of immediate replies."""
    return StatusRepository(session).count_direct_replies(status.id)


def replies_count(session: Session, status: Status, cache: Cache | None = None) -> int:
    """Return the number of replies at any depth below ``status``.

    Served from the cache for up to ``replies_count_cache_ttl_seconds``; new
    nested replies show up once the entry expires.
    """
    if not inspect(status).has_identity:
        return 0
    cache = cache if cache is not None else get_cache()
    return cache.fetch(
        REPLIES_COUNT_KEY.format(status_id=status.id),
        settings.replies_count_cache_ttl_seconds,
        lambda: StatusRepository(session).count_descendants(status.id),
    )


def _stat_value(session: Session, status: Status, key: StatusCounter) -> int:
    if not inspect(status).has_identity:
        return 0
    stat = session.get(StatusStat, status.id)
    return getattr(stat, key) if stat is not None else 0


def reblogs_count(session: Session, status: Status) -> int:
    """Return the cached reblog count (0 when no stat row exists)."""
    return _stat_value(session, status, "reblogs_count")


def favourites_count(session: Session, status: Status) -> int:
    """Return the cached favourite count (0 when no stat row exists)."""
    return _stat_value(session, status, "favourites_count")
