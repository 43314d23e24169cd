"""SQLAlchemy models for statuses and their counter cache."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statusgraph.db.session import Base
from statusgraph.db.time import utcnow
from statusgraph.models.media import preview_cards_statuses
from statusgraph.models.tag import statuses_tags

if TYPE_CHECKING:
    from statusgraph.models.account import Account
    from statusgraph.models.conversation import Conversation
    from statusgraph.models.group import Group
    from statusgraph.models.media import MediaAttachment, PreviewCard
    from statusgraph.models.mention import Mention
    from statusgraph.models.poll import Poll
    from statusgraph.models.tag import Tag


class StatusVisibility(str, enum.Enum):
    """Audience tier of a status."""

    PUBLIC = "public"
    UNLISTED = "unlisted"
    PRIVATE = "private"
    LIMITED = "limited"
    PRIVATE_GROUP = "private_group"


class Status(Base):
    """A single post: original content, reply, reblog or quote.

    Self references (thread parent, reblog target, quote target) are stored as
    identifier columns. Inverse collections such as replies and reblogs are
    queried by identifier instead of being mapped as back-references.
    """

    __tablename__ = "statuses"
    __table_args__ = (
        UniqueConstraint("account_id", "reblog_of_id", name="uq_statuses_account_reblog"),
        Index("ix_statuses_account_id_id", "account_id", "id"),
        Index("ix_statuses_in_reply_to_id", "in_reply_to_id"),
        Index("ix_statuses_reblog_of_id", "reblog_of_id"),
        Index("ix_statuses_quote_of_id", "quote_of_id"),
        Index("ix_statuses_group_id", "group_id"),
    )

    # Snowflake identifier; monotonic, so it doubles as the default sort key.
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    uri: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)

    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    spoiler_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sensitive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    language: Mapped[str | None] = mapped_column(Text, nullable=True)
    markdown: Mapped[str | None] = mapped_column(Text, nullable=True)
    visibility: Mapped[StatusVisibility] = mapped_column(
        Enum(
            StatusVisibility,
            name="status_visibility",
            native_enum=False,
            length=16,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
    )

    reply: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    local: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    has_quote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    account_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    in_reply_to_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("statuses.id", ondelete="SET NULL"),
        nullable=True,
    )
    in_reply_to_account_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    reblog_of_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("statuses.id", ondelete="CASCADE"),
        nullable=True,
    )
    quote_of_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("statuses.id", ondelete="SET NULL"),
        nullable=True,
    )
    conversation_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("conversations.id", ondelete="SET NULL"),
        nullable=True,
    )
    group_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("groups.id", ondelete="SET NULL"),
        nullable=True,
    )
    # Copied from the poll after creation; the poll row owns the link.
    poll_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    revised_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    account: Mapped[Account] = relationship("Account", foreign_keys=[account_id])
    in_reply_to_account: Mapped[Account | None] = relationship(
        "Account",
        foreign_keys=[in_reply_to_account_id],
    )
    thread: Mapped[Status | None] = relationship(
        "Status",
        remote_side="Status.id",
        foreign_keys=[in_reply_to_id],
    )
    reblog: Mapped[Status | None] = relationship(
        "Status",
        remote_side="Status.id",
        foreign_keys=[reblog_of_id],
    )
    quote: Mapped[Status | None] = relationship(
        "Status",
        remote_side="Status.id",
        foreign_keys=[quote_of_id],
    )
    conversation: Mapped[Conversation | None] = relationship("Conversation")
    group: Mapped[Group | None] = relationship("Group")
    poll: Mapped[Poll | None] = relationship(
        "Poll",
        uselist=False,
        cascade="all, delete-orphan",
    )

    media_attachments: Mapped[list[MediaAttachment]] = relationship("MediaAttachment")
    mentions: Mapped[list[Mention]] = relationship("Mention", cascade="all, delete-orphan")
    tags: Mapped[list[Tag]] = relationship("Tag", secondary=statuses_tags)
    preview_cards: Mapped[list[PreviewCard]] = relationship(
        "PreviewCard",
        secondary=preview_cards_statuses,
    )

    stat: Mapped[StatusStat | None] = relationship(
        "StatusStat",
        uselist=False,
        viewonly=True,
    )


class StatusStat(Base):
    """Counter cache for one status, created lazily on first write.

    ``reblogs_count`` and ``favourites_count`` are authoritative;
    ``replies_count`` here only tracks direct replies and may drift.
    """

    __tablename__ = "status_stats"

    status_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("statuses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    replies_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reblogs_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    favourites_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
