"""Favouriting and unfavouriting statuses."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from statusgraph.models import Account, Favourite, Status
from statusgraph.services import counters

logger = logging.getLogger(__name__)

__all__ = ["favourite", "unfavourite"]


def _find_favourite(session: Session, account: Account, status: Status) -> Favourite | None:
    return session.scalars(
        select(Favourite).where(
            Favourite.account_id == account.id,
            Favourite.status_id == status.id,
        )
    ).first()


def favourite(session: Session, account: Account, status: Status) -> Favourite:
    """Record that ``account`` favourited ``status``.

    Idempotent: an existing favourite is returned unchanged and the counter is
    only moved when a new row is written.
    """
    existing = _find_favourite(session, account, status)
    if existing is not None:
        return existing

    row = Favourite(account_id=account.id, status_id=status.id)
    try:
        with session.begin_nested():
            session.add(row)
            session.flush()
    except IntegrityError:
        logger.debug("Favourite of %s by %s created concurrently", status.id, account.id)
        existing = _find_favourite(session, account, status)
        if existing is None:
            raise
        return existing

    counters.increment_count(session, status, "favourites_count")
    logger.info("Account %s favourited status %s", account.id, status.id)
    return row


def unfavourite(session: Session, account: Account, status: Status) -> bool:
    """Remove ``account``'s favourite of ``status``; return False if there was none."""
    existing = _find_favourite(session, account, status)
    if existing is None:
        return False
    with session.begin_nested():
        session.delete(existing)
        session.flush()
    counters.decrement_count(session, status, "favourites_count")
    logger.info("Account %s unfavourited status %s", account.id, status.id)
    return True
