"""SQLAlchemy models for accounts and the relations between them."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statusgraph.db.session import Base
from statusgraph.db.time import utcnow
from statusgraph.db.types import BigIntPK


class Account(Base):
    """Author of statuses and viewer of timelines.

    Local accounts have no ``domain``. Silencing is recorded as a timestamp so
    that it can be lifted without losing history.
    """

    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("username", "domain", name="uq_accounts_username_domain"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    domain: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    silenced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_pro: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Null or empty means "every language".
    chosen_languages: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    stat: Mapped[AccountStat | None] = relationship(
        "AccountStat",
        uselist=False,
        viewonly=True,
    )

    @property
    def is_local(self) -> bool:
        """Return True when the account lives on this instance."""
        return self.domain is None

    @property
    def is_silenced(self) -> bool:
        """Return True when the account has been silenced by moderators."""
        return self.silenced_at is not None

    @property
    def acct(self) -> str:
        """Return the WebFinger-style handle used in titles."""
        return self.username if self.is_local else f"{self.username}@{self.domain}"

    @property
    def statuses_count(self) -> int:
        """Return the cached number of statuses authored by this account."""
        return self.stat.statuses_count if self.stat is not None else 0


class AccountStat(Base):
    """Counter cache for an account, created lazily on first write."""

    __tablename__ = "account_stats"

    account_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    statuses_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Follow(Base):
    """``account_id`` follows ``target_account_id``."""

    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("account_id", "target_account_id", name="uq_follows_pair"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )


class Block(Base):
    """``account_id`` blocks ``target_account_id``."""

    __tablename__ = "blocks"
    __table_args__ = (
        UniqueConstraint("account_id", "target_account_id", name="uq_blocks_pair"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )


class Mute(Base):
    """``account_id`` mutes ``target_account_id``."""

    __tablename__ = "mutes"
    __table_args__ = (
        UniqueConstraint("account_id", "target_account_id", name="uq_mutes_pair"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )


class AccountDomainBlock(Base):
    """A remote domain an account hides from its timelines."""

    __tablename__ = "account_domain_blocks"
    __table_args__ = (
        UniqueConstraint("account_id", "domain", name="uq_account_domain_blocks_pair"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    domain: Mapped[str] = mapped_column(Text, nullable=False)
