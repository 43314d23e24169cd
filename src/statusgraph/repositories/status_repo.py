"""Data access helpers for working with statuses."""

from __future__ import annotations

from sqlalchemy import exists, func, select
from sqlalchemy.orm import Session, aliased

from statusgraph.models import Status

__all__ = ["StatusRepository"]


class StatusRepository:
    """Thin wrapper around database access for status entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, status_id: int) -> Status | None:
        """Return a status by identifier."""
        return self.session.get(Status, status_id)

    def stored_group_id(self, status_id: int) -> tuple[bool, int | None]:
        """Return ``(found, group_id)`` as currently stored for ``status_id``.

        Reads the column directly so that unflushed in-memory edits of the
        parent object do not leak into the answer.
        """
        row = self.session.execute(
            select(Status.group_id).where(Status.id == status_id)
        ).first()
        if row is None:
            return False, None
        return True, row.group_id

    def uri_taken(self, uri: str, *, excluding_id: int | None = None) -> bool:
        """Return True when another status already uses ``uri``."""
        condition = Status.uri == uri
        if excluding_id is not None:
            condition = condition & (Status.id != excluding_id)
        return bool(self.session.scalar(select(exists().where(condition))))

    def reblog_exists(self, account_id: int, reblog_of_id: int) -> bool:
        """Return True when ``account_id`` already reblogged ``reblog_of_id``."""
        return bool(
            self.session.scalar(
                select(
                    exists().where(
                        Status.account_id == account_id,
                        Status.reblog_of_id == reblog_of_id,
                    )
                )
            )
        )

    def count_direct_replies(self, status_id: int) -> int:
        """Return the number of immediate replies to ``status_id``."""
        return self.session.scalar(
            select(func.count()).select_from(Status).where(Status.in_reply_to_id == status_id)
        ) or 0

    def count_reblogs(self, status_id: int) -> int:
        """Return the number of stored reblogs of ``status_id``."""
        return self.session.scalar(
            select(func.count()).select_from(Status).where(Status.reblog_of_id == status_id)
        ) or 0

    def count_descendants(self, status_id: int) -> int:
        """Return the number of replies below ``status_id`` at any depth.

        Runs as a single recursive query. ``UNION`` (not ``UNION ALL``) keeps
        the traversal finite even if the stored graph contains a cycle.
        """
        tree = (
            select(Status.id)
            .where(Status.in_reply_to_id == status_id)
            .cte("reply_tree", recursive=True)
        )
        child = aliased(Status)
        tree = tree.union(
            select(child.id).join(tree, child.in_reply_to_id == tree.c.id)
        )
        return self.session.scalar(select(func.count()).select_from(tree)) or 0

    def reblogs_of(self, status_id: int) -> list[Status]:
        """Return the reblogs of ``status_id``."""
        return list(self.session.scalars(select(Status).where(Status.reblog_of_id == status_id)))
