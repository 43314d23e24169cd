"""SQLAlchemy models for per-account interactions with a status."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from statusgraph.db.session import Base
from statusgraph.db.time import utcnow
from statusgraph.db.types import BigIntPK


class Favourite(Base):
    """``account_id`` favourited ``status_id``."""

    __tablename__ = "favourites"
    __table_args__ = (
        UniqueConstraint("account_id", "status_id", name="uq_favourites_account_status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    status_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("statuses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class StatusBookmark(Base):
    """``account_id`` bookmarked ``status_id``."""

    __tablename__ = "status_bookmarks"
    __table_args__ = (
        UniqueConstraint("account_id", "status_id", name="uq_status_bookmarks_account_status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    status_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("statuses.id", ondelete="CASCADE"), nullable=False, index=True
    )


class StatusPin(Base):
    """``account_id`` pinned ``status_id`` to its profile."""

    __tablename__ = "status_pins"
    __table_args__ = (
        UniqueConstraint("account_id", "status_id", name="uq_status_pins_account_status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    status_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("statuses.id", ondelete="CASCADE"), nullable=False, index=True
    )
