"""SQLAlchemy model grouping a reply tree."""

from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from statusgraph.db.session import Base
from statusgraph.db.time import utcnow
from statusgraph.db.types import BigIntPK


class Conversation(Base):
    """Shared by the root of a reply tree and all of its descendants."""

    __tablename__ = "conversations"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    # Remote conversations keep the identifier their origin assigned.
    uri: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
