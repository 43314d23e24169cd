"""SQLAlchemy models for media attachments and link preview cards."""

from sqlalchemy import BigInteger, Column, ForeignKey, Table, Text
from sqlalchemy.orm import Mapped, mapped_column

from statusgraph.db.session import Base
from statusgraph.db.types import BigIntPK

preview_cards_statuses = Table(
    "preview_cards_statuses",
    Base.metadata,
    Column(
        "preview_card_id",
        BigInteger,
        ForeignKey("preview_cards.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "status_id",
        BigInteger,
        ForeignKey("statuses.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class MediaAttachment(Base):
    """Uploaded media; unattached until a status claims it."""

    __tablename__ = "media_attachments"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("statuses.id", ondelete="SET NULL"), nullable=True, index=True
    )
    file_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class PreviewCard(Base):
    """Link preview attached to one or more statuses."""

    __tablename__ = "preview_cards"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
