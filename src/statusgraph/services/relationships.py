"""Batch lookups used when rendering a list of statuses for one account.

Each map answers a per-status question for a whole page in a single query so
that rendering never issues one query per row.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from statusgraph.models import (
    Account,
    Favourite,
    GroupPinnedStatus,
    Mention,
    Status,
    StatusBookmark,
    StatusPin,
)

logger = logging.getLogger(__name__)

__all__ = [
    "bookmarks_map",
    "direct_replies_count_map",
    "favourites_map",
    "group_pins_map",
    "pins_map",
    "reblogs_map",
    "reload_stale_associations",
    "searchable_by",
]


def _presence_map(session: Session, column, *conditions) -> dict[int, bool]:
    return {status_id: True for status_id in session.scalars(select(column).where(*conditions))}


def favourites_map(
    session: Session,
    status_ids: Iterable[int],
    account_id: int,
) -> dict[int, bool]:
    """Return ``{status_id: True}`` for each listed status ``account_id`` favourited."""
    return _presence_map(
        session,
        Favourite.status_id,
        Favourite.status_id.in_(list(status_ids)),
        Favourite.account_id == account_id,
    )


def bookmarks_map(
    session: Session,
    status_ids: Iterable[int],
    account_id: int,
) -> dict[int, bool]:
    """Return ``{status_id: True}`` for each listed status ``account_id`` bookmarked."""
    return _presence_map(
        session,
        StatusBookmark.status_id,
        StatusBookmark.status_id.in_(list(status_ids)),
        StatusBookmark.account_id == account_id,
    )


def reblogs_map(
    session: Session,
    status_ids: Iterable[int],
    account_id: int,
) -> dict[int, bool]:
    """Return ``{status_id: True}`` for each listed status ``account_id`` reblogged."""
    return _presence_map(
        session,
        Status.reblog_of_id,
        Status.reblog_of_id.in_(list(status_ids)),
        Status.account_id == account_id,
    )


def pins_map(
    session: Session,
    status_ids: Iterable[int],
    account_id: int,
) -> dict[int, bool]:
    """Return ``{status_id: True}`` for each listed status ``account_id`` pinned."""
    return _presence_map(
        session,
        StatusPin.status_id,
        StatusPin.status_id.in_(list(status_ids)),
        StatusPin.account_id == account_id,
    )


def group_pins_map(
    session: Session,
    status_ids: Iterable[int],
    group_id: int | None = None,
) -> dict[int, bool]:
    """Return ``{status_id: True}`` for each listed status pinned in ``group_id``.

    Without a group there is nothing to look up and the map is empty.
    """
    if group_id is None:
        return {}
    return _presence_map(
        session,
        GroupPinnedStatus.status_id,
        GroupPinnedStatus.status_id.in_(list(status_ids)),
        GroupPinnedStatus.group_id == group_id,
    )


def direct_replies_count_map(session: Session, status_ids: Iterable[int]) -> dict[int, int]:
    """Return ``{status_id: n}`` with the number of immediate replies.

    Statuses without replies are absent from the map.
    """
    rows = session.execute(
        select(Status.in_reply_to_id, func.count())
        .where(Status.in_reply_to_id.in_(list(status_ids)))
        .group_by(Status.in_reply_to_id)
    )
    return {status_id: count for status_id, count in rows}


def searchable_by(session: Session, status: Status) -> list[int]:
    """Return the ids of accounts allowed to find ``status`` in search.

    That is the author plus every mentioned, favouriting and reblogging
    account, without duplicates.
    """
    ids = [status.account_id]
    ids += session.scalars(select(Mention.account_id).where(Mention.status_id == status.id))
    ids += session.scalars(select(Favourite.account_id).where(Favourite.status_id == status.id))
    ids += session.scalars(select(Status.account_id).where(Status.reblog_of_id == status.id))
    return list(dict.fromkeys(ids))


def reload_stale_associations(session: Session, cached_items: Sequence[Status]) -> None:
    """Rebind authors of ``cached_items`` (and of their reblog targets) to fresh rows.

    Used after statuses are served from a cache so that author data such as
    display names and counters is current. All authors are fetched in one
    query with their stat rows loaded eagerly.
    """
    account_ids: list[int] = []
    for item in cached_items:
        account_ids.append(item.account_id)
        if item.reblog is not None:
            account_ids.append(item.reblog.account_id)

    account_ids = list(dict.fromkeys(account_ids))
    if not account_ids:
        return

    accounts = {
        account.id: account
        for account in session.scalars(
            select(Account)
            .where(Account.id.in_(account_ids))
            .options(selectinload(Account.stat))
            .execution_options(populate_existing=True)
        )
    }

    for item in cached_items:
        if item.account_id in accounts:
            item.account = accounts[item.account_id]
        if item.reblog is not None and item.reblog.account_id in accounts:
            item.reblog.account = accounts[item.reblog.account_id]

    logger.debug("Reloaded %d accounts for %d cached statuses", len(accounts), len(cached_items))
