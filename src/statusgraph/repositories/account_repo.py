"""Relationship lookups between accounts.

Each relation comes in two forms: a sub-select that timeline queries embed,
and an evaluated answer for callers that need a plain value.
"""

from __future__ import annotations

from sqlalchemy import CompoundSelect, Select, exists, select, union
from sqlalchemy.orm import Session

from statusgraph.models import Account, AccountDomainBlock, Block, Follow, Mention, Mute

__all__ = [
    "excluded_account_ids",
    "excluded_account_ids_select",
    "excluded_domains",
    "excluded_domains_select",
    "followed_ids_select",
    "is_blocking",
    "is_following",
    "mentioned_status_ids_select",
]


def followed_ids_select(account_id: int) -> Select:
    """Return a sub-select of the account ids ``account_id`` follows."""
    return select(Follow.target_account_id).where(Follow.account_id == account_id)


def excluded_account_ids_select(account_id: int) -> CompoundSelect:
    """Return a sub-select of account ids hidden from ``account_id``'s timelines.

    Covers accounts it blocks, accounts blocking it, and accounts it mutes.
    """
    return union(
        select(Block.target_account_id).where(Block.account_id == account_id),
        select(Block.account_id).where(Block.target_account_id == account_id),
        select(Mute.target_account_id).where(Mute.account_id == account_id),
    )


def excluded_domains_select(account_id: int) -> Select:
    """Return a sub-select of the domains ``account_id`` has blocked."""
    return select(AccountDomainBlock.domain).where(AccountDomainBlock.account_id == account_id)


def mentioned_status_ids_select(account_id: int) -> Select:
    """Return a sub-select of the status ids mentioning ``account_id``."""
    return select(Mention.status_id).where(Mention.account_id == account_id)


def is_following(session: Session, account: Account, target: Account) -> bool:
    """Return True when ``account`` follows ``target``."""
    return bool(
        session.scalar(
            select(
                exists().where(
                    Follow.account_id == account.id,
                    Follow.target_account_id == target.id,
                )
            )
        )
    )


def is_blocking(session: Session, account: Account, target: Account) -> bool:
    """Return True when ``account`` blocks ``target``."""
    return bool(
        session.scalar(
            select(
                exists().where(
                    Block.account_id == account.id,
                    Block.target_account_id == target.id,
                )
            )
        )
    )


def excluded_account_ids(session: Session, account: Account) -> set[int]:
    """Return the ids of accounts hidden from ``account``'s timelines."""
    return set(session.scalars(excluded_account_ids_select(account.id)))


def excluded_domains(session: Session, account: Account) -> set[str]:
    """Return the domains ``account`` has blocked."""
    return set(session.scalars(excluded_domains_select(account.id)))
