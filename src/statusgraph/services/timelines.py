"""Timeline statements built from the status scopes.

Every builder returns an unexecuted ``Select`` so that callers can paginate
or further narrow it before running it against a session. Ordering is always
an explicit argument.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from sqlalchemy import Select, and_, exists, or_, select
from sqlalchemy.orm import aliased

from statusgraph.core.settings import settings
from statusgraph.db.time import utcnow
from statusgraph.models import Account, Block, Follow, Status, StatusVisibility, Tag
from statusgraph.repositories import status_scopes as scopes
from statusgraph.repositories.account_repo import (
    excluded_account_ids_select,
    followed_ids_select,
    mentioned_status_ids_select,
)
from statusgraph.repositories.status_scopes import StatusOrder

__all__ = [
    "apply_timeline_filters",
    "group_collection_timeline",
    "group_timeline",
    "home_timeline",
    "outbox_timeline",
    "permitted_for",
    "pro_timeline",
    "tag_timeline",
]

_DISTRIBUTABLE = (StatusVisibility.PUBLIC, StatusVisibility.UNLISTED)


def permitted_for(
    target: Account,
    viewer: Account | None,
    *,
    order: StatusOrder = StatusOrder.RECENT,
) -> Select:
    """Return the statuses of ``target`` that ``viewer`` may see.

    Args:
        target: Author whose statuses are listed.
        viewer: Account looking at them, or None for an anonymous visitor.
        order: Sort order of the result.

    Returns:
        A statement selecting the visible statuses.

    Notes:
        Anonymous visitors see public and unlisted statuses. The author sees
        everything. Anyone blocked by the author sees nothing, even where
        mentioned. Other viewers additionally see private statuses when they
        follow the author, and any status that mentions them; reblogs of
        accounts the viewer has excluded are dropped.
    """
    stmt = select(Status).where(Status.account_id == target.id)

    if viewer is None:
        return scopes.apply_order(stmt.where(Status.visibility.in_(_DISTRIBUTABLE)), order)

    if viewer.id == target.id:
        return scopes.apply_order(stmt, order)

    blocked = exists().where(Block.account_id == target.id, Block.target_account_id == viewer.id)

    follows = exists().where(Follow.account_id == viewer.id, Follow.target_account_id == target.id)
    visible = or_(
        Status.visibility.in_(_DISTRIBUTABLE),
        and_(Status.visibility == StatusVisibility.PRIVATE, follows),
        Status.id.in_(mentioned_status_ids_select(viewer.id)),
    )

    original = aliased(Status)
    allowed_reblog_targets = select(original.id).where(
        original.account_id.not_in(excluded_account_ids_select(viewer.id))
    )
    reblog_allowed = or_(
        Status.reblog_of_id.is_(None),
        Status.reblog_of_id.in_(allowed_reblog_targets),
    )

    stmt = stmt.where(~blocked, visible, reblog_allowed)
    return scopes.apply_order(stmt, order)


def _account_silencing_filter(stmt: Select, viewer: Account) -> Select:
    if not viewer.is_silenced:
        return scopes.excluding_silenced_accounts(stmt)
    unsilenced = select(Account.id).where(Account.silenced_at.is_(None))
    return stmt.where(or_(Status.account_id.in_(unsilenced), Status.account_id == viewer.id))


def apply_timeline_filters(stmt: Select, viewer: Account | None) -> Select:
    """Apply the account-level filters shared by public timelines.

    Anonymous visitors only lose statuses by silenced accounts. Signed-in
    viewers also lose statuses by accounts they excluded, statuses outside
    their chosen languages, and statuses from domains they blocked. A
    silenced viewer still sees their own statuses.
    """
    if viewer is None:
        return scopes.excluding_silenced_accounts(stmt)

    stmt = scopes.not_excluded_by_account(stmt, viewer)
    if viewer.chosen_languages:
        stmt = scopes.in_chosen_languages(stmt, viewer)
    stmt = _account_silencing_filter(stmt, viewer)
    return scopes.not_domain_blocked_by_account(stmt, viewer)


def _timeline_scope() -> Select:
    stmt = select(Status)
    stmt = scopes.local(stmt)
    stmt = scopes.with_public_visibility(stmt)
    return scopes.without_reblogs(stmt)


def home_timeline(
    viewer: Account,
    *,
    now: datetime | None = None,
    order: StatusOrder = StatusOrder.RECENT,
) -> Select:
    """Return recent top-level statuses by ``viewer`` and the accounts it follows."""
    since = (now or utcnow()) - timedelta(days=settings.home_timeline_max_age_days)
    stmt = select(Status).where(
        or_(
            Status.account_id == viewer.id,
            Status.account_id.in_(followed_ids_select(viewer.id)),
        )
    )
    stmt = scopes.created_after(stmt, since)
    stmt = scopes.without_replies(stmt)
    return scopes.apply_order(stmt, order)


def group_timeline(
    group_id: int,
    *,
    now: datetime | None = None,
    order: StatusOrder = StatusOrder.RECENT,
) -> Select:
    """Return recent top-level statuses posted into one group."""
    since = (now or utcnow()) - timedelta(days=settings.group_timeline_max_age_days)
    stmt = select(Status).where(Status.group_id == group_id)
    stmt = scopes.created_after(stmt, since)
    stmt = scopes.without_replies(stmt)
    return scopes.apply_order(stmt, order)


def group_collection_timeline(
    group_ids: Iterable[int],
    *,
    order: StatusOrder = StatusOrder.RECENT,
) -> Select:
    """Return top-level statuses from any of ``group_ids``, without a time bound."""
    stmt = select(Status).where(Status.group_id.in_(list(group_ids)))
    stmt = scopes.without_replies(stmt)
    return scopes.apply_order(stmt, order)


def pro_timeline(
    viewer: Account | None = None,
    *,
    now: datetime | None = None,
    order: StatusOrder = StatusOrder.RECENT,
) -> Select:
    """Return fresh public statuses by popular local accounts."""
    since = (now or utcnow()) - timedelta(hours=settings.pro_timeline_max_age_hours)
    stmt = _timeline_scope()
    stmt = scopes.without_replies(stmt)
    stmt = scopes.popular_accounts(stmt)
    stmt = scopes.updated_after(stmt, since)
    stmt = apply_timeline_filters(stmt, viewer)
    return scopes.apply_order(stmt, order)


def tag_timeline(
    tag: Tag,
    viewer: Account | None = None,
    *,
    order: StatusOrder = StatusOrder.RECENT,
) -> Select:
    """Return public local top-level statuses carrying ``tag``."""
    stmt = scopes.tagged_with(_timeline_scope(), tag.id)
    stmt = scopes.without_replies(stmt)
    stmt = apply_timeline_filters(stmt, viewer)
    return scopes.apply_order(stmt, order)


def outbox_timeline(account: Account, *, order: StatusOrder = StatusOrder.RECENT) -> Select:
    """Return every public status by ``account``, regardless of who is looking."""
    stmt = select(Status).where(
        Status.account_id == account.id,
        Status.visibility == StatusVisibility.PUBLIC,
    )
    return scopes.apply_order(stmt, order)
