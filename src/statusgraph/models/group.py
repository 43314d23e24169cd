"""SQLAlchemy models for groups and their pinned statuses."""

from sqlalchemy import BigInteger, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from statusgraph.db.session import Base
from statusgraph.db.types import BigIntPK


class Group(Base):
    """Community that statuses can be posted into."""

    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")


class GroupPinnedStatus(Base):
    """Status pinned to the top of a group."""

    __tablename__ = "group_pinned_statuses"
    __table_args__ = (
        UniqueConstraint("group_id", "status_id", name="uq_group_pinned_statuses_pair"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("statuses.id", ondelete="CASCADE"), nullable=False, index=True
    )
