"""SQLAlchemy model for account mentions inside a status."""

from sqlalchemy import BigInteger, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from statusgraph.db.session import Base
from statusgraph.db.types import BigIntPK


class Mention(Base):
    """``account_id`` is mentioned in ``status_id``."""

    __tablename__ = "mentions"
    __table_args__ = (
        UniqueConstraint("account_id", "status_id", name="uq_mentions_account_status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    status_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("statuses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Silent mentions grant visibility without notifying.
    silent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
