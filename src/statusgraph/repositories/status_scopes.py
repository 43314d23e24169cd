"""Composable filters over ``select(Status)`` statements.

Every scope takes a ``Select`` and returns a narrowed copy, so timelines are
built by chaining plain function calls. Account-level conditions are expressed
as sub-selects on ``statuses.account_id`` rather than joins, which keeps the
scopes free to combine without duplicating the ``accounts`` table in the FROM
clause.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import Select, and_, exists, func, or_, select
from sqlalchemy.orm import aliased

from statusgraph.models import Account, Status, StatusStat, StatusVisibility, statuses_tags
from statusgraph.repositories.account_repo import (
    excluded_account_ids_select,
    excluded_domains_select,
)

__all__ = [
    "StatusOrder",
    "apply_order",
    "created_after",
    "excluding_silenced_accounts",
    "in_chosen_languages",
    "including_silenced_accounts",
    "local",
    "not_domain_blocked_by_account",
    "not_excluded_by_account",
    "only_replies",
    "paginate",
    "popular_accounts",
    "remote",
    "tagged_with",
    "tagged_with_all",
    "tagged_with_none",
    "updated_after",
    "with_public_visibility",
    "without_reblogs",
    "without_replies",
]


class StatusOrder(str, enum.Enum):
    """Sort orders understood by :func:`apply_order`."""

    RECENT = "recent"
    OLDEST = "oldest"
    TOP = "top"
    NONE = "none"


def _account_ids_where(*conditions) -> Select:
    return select(Account.id).where(*conditions)


def local(stmt: Select) -> Select:
    """Keep statuses authored on this instance."""
    return stmt.where(or_(Status.local.is_(True), Status.uri.is_(None)))


def remote(stmt: Select) -> Select:
    """Keep statuses fetched from other instances.

    Local statuses carry a stored uri too, so the flag decides whenever it is set.
    """
    return stmt.where(
        or_(
            Status.local.is_(False),
            and_(Status.local.is_(None), Status.uri.is_not(None)),
        )
    )


def only_replies(stmt: Select) -> Select:
    """Keep replies."""
    return stmt.where(Status.reply.is_(True))


def without_replies(stmt: Select) -> Select:
    """Drop replies."""
    return stmt.where(Status.reply.is_(False))


def without_reblogs(stmt: Select) -> Select:
    """Drop reblogs."""
    return stmt.where(Status.reblog_of_id.is_(None))


def with_public_visibility(stmt: Select) -> Select:
    """Keep statuses with ``public`` visibility."""
    return stmt.where(Status.visibility == StatusVisibility.PUBLIC)


def _has_tag(tag_id: int):
    return exists().where(
        statuses_tags.c.status_id == Status.id,
        statuses_tags.c.tag_id == tag_id,
    )


def tagged_with(stmt: Select, tag_id: int) -> Select:
    """Keep statuses carrying the tag ``tag_id``."""
    return stmt.where(_has_tag(tag_id))


def tagged_with_all(stmt: Select, tag_ids: Iterable[int]) -> Select:
    """Keep statuses carrying every tag in ``tag_ids``."""
    for tag_id in tag_ids:
        stmt = stmt.where(_has_tag(tag_id))
    return stmt


def tagged_with_none(stmt: Select, tag_ids: Iterable[int]) -> Select:
    """Drop statuses carrying any tag in ``tag_ids``."""
    for tag_id in tag_ids:
        stmt = stmt.where(~_has_tag(tag_id))
    return stmt


def excluding_silenced_accounts(stmt: Select) -> Select:
    """Drop statuses by silenced accounts."""
    return stmt.where(Status.account_id.in_(_account_ids_where(Account.silenced_at.is_(None))))


def including_silenced_accounts(stmt: Select) -> Select:
    """Keep only statuses by silenced accounts."""
    return stmt.where(
        Status.account_id.in_(_account_ids_where(Account.silenced_at.is_not(None)))
    )


def popular_accounts(stmt: Select) -> Select:
    """Keep statuses by verified accounts or unlocked pro accounts."""
    popular = or_(
        Account.is_verified.is_(True),
        and_(Account.is_pro.is_(True), Account.locked.is_(False)),
    )
    return stmt.where(Status.account_id.in_(_account_ids_where(popular)))


def not_excluded_by_account(stmt: Select, account: Account) -> Select:
    """Drop statuses by accounts ``account`` blocks, is blocked by, or mutes."""
    return stmt.where(Status.account_id.not_in(excluded_account_ids_select(account.id)))


def not_domain_blocked_by_account(stmt: Select, account: Account) -> Select:
    """Drop statuses from domains ``account`` has blocked; local authors always pass."""
    allowed = or_(
        Account.domain.is_(None),
        Account.domain.not_in(excluded_domains_select(account.id)),
    )
    return stmt.where(Status.account_id.in_(_account_ids_where(allowed)))


def in_chosen_languages(stmt: Select, account: Account) -> Select:
    """Keep untagged statuses and those in one of ``account``'s chosen languages."""
    languages = list(account.chosen_languages or [])
    return stmt.where(or_(Status.language.is_(None), Status.language.in_(languages)))


def created_after(stmt: Select, moment: datetime) -> Select:
    """Keep statuses created strictly after ``moment``."""
    return stmt.where(Status.created_at > moment)


def updated_after(stmt: Select, moment: datetime) -> Select:
    """Keep statuses updated strictly after ``moment``."""
    return stmt.where(Status.updated_at > moment)


def apply_order(stmt: Select, order: StatusOrder) -> Select:
    """Replace any existing ordering of ``stmt`` with ``order``.

    Identifiers are time-ordered, so ``RECENT`` and ``OLDEST`` sort by id.
    ``TOP`` ranks by favourites (missing stat rows count as zero) with the
    oldest status first among ties.
    """
    stmt = stmt.order_by(None)
    match order:
        case StatusOrder.RECENT:
            return stmt.order_by(Status.id.desc())
        case StatusOrder.OLDEST:
            return stmt.order_by(Status.id.asc())
        case StatusOrder.TOP:
            stat = aliased(StatusStat)
            return stmt.outerjoin(stat, stat.status_id == Status.id).order_by(
                func.coalesce(stat.favourites_count, 0).desc(),
                Status.id.asc(),
            )
        case StatusOrder.NONE:
            return stmt


def paginate(
    stmt: Select,
    limit: int,
    max_id: int | None = None,
    since_id: int | None = None,
    min_id: int | None = None,
) -> Select:
    """Apply id-cursor pagination to ``stmt``.

    Args:
        stmt: Statement to page through.
        limit: Maximum number of rows to return.
        max_id: Only return statuses with a smaller id.
        since_id: Only return statuses with a larger id, newest first.
        min_id: Only return statuses with a larger id, oldest first. Takes
            precedence over ``since_id`` and forces ascending order so that
            the page starts right after the cursor.

    Returns:
        The limited statement.
    """
    if max_id is not None:
        stmt = stmt.where(Status.id < max_id)
    if min_id is not None:
        stmt = apply_order(stmt.where(Status.id > min_id), StatusOrder.OLDEST)
    elif since_id is not None:
        stmt = stmt.where(Status.id > since_id)
    return stmt.limit(limit)
