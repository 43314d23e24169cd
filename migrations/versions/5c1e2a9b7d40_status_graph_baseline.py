"""status graph baseline

Revision ID: 5c1e2a9b7d40
Revises:
Create Date: 2026-10-19 09:12:44.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a9b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BIG_PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _id_column() -> sa.Column:
    return sa.Column("id", BIG_PK, primary_key=True, autoincrement=True)


def _fk(name: str, target: str, ondelete: str = "CASCADE", nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.BigInteger(),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def _account_pair_table(name: str) -> None:
    op.create_table(
        name,
        _id_column(),
        _fk("account_id", "accounts.id"),
        _fk("target_account_id", "accounts.id"),
        sa.UniqueConstraint("account_id", "target_account_id", name=f"uq_{name}_pair"),
    )
    op.create_index(f"ix_{name}_account_id", name, ["account_id"])
    op.create_index(f"ix_{name}_target_account_id", name, ["target_account_id"])


def _account_status_table(name: str, *extra: sa.Column) -> None:
    op.create_table(
        name,
        _id_column(),
        _fk("account_id", "accounts.id"),
        _fk("status_id", "statuses.id"),
        *extra,
        sa.UniqueConstraint("account_id", "status_id", name=f"uq_{name}_account_status"),
    )
    op.create_index(f"ix_{name}_status_id", name, ["status_id"])


def upgrade() -> None:
    """Create the status graph tables."""
    op.create_table(
        "accounts",
        _id_column(),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("domain", sa.Text(), nullable=True),
        sa.Column("display_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("silenced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_pro", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("chosen_languages", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("username", "domain", name="uq_accounts_username_domain"),
    )
    op.create_table(
        "account_stats",
        sa.Column(
            "account_id",
            sa.BigInteger(),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("statuses_count", sa.Integer(), nullable=False, server_default="0"),
    )
    for name in ("follows", "blocks", "mutes"):
        _account_pair_table(name)
    op.create_table(
        "account_domain_blocks",
        _id_column(),
        _fk("account_id", "accounts.id"),
        sa.Column("domain", sa.Text(), nullable=False),
        sa.UniqueConstraint("account_id", "domain", name="uq_account_domain_blocks_pair"),
    )
    op.create_index("ix_account_domain_blocks_account_id", "account_domain_blocks", ["account_id"])

    op.create_table(
        "conversations",
        _id_column(),
        sa.Column("uri", sa.Text(), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_table(
        "groups",
        _id_column(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
    )
    op.create_table(
        "tags",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False, unique=True),
    )
    op.create_table(
        "preview_cards",
        _id_column(),
        sa.Column("url", sa.Text(), nullable=False, unique=True),
        sa.Column("title", sa.Text(), nullable=False, server_default=""),
    )

    op.create_table(
        "statuses",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("uri", sa.Text(), nullable=True, unique=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("text", sa.Text(), nullable=False, server_default=""),
        sa.Column("spoiler_text", sa.Text(), nullable=False, server_default=""),
        sa.Column("sensitive", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("language", sa.Text(), nullable=True),
        sa.Column("markdown", sa.Text(), nullable=True),
        sa.Column("visibility", sa.String(length=16), nullable=False),
        sa.Column("reply", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("local", sa.Boolean(), nullable=True),
        sa.Column("has_quote", sa.Boolean(), nullable=False, server_default=sa.false()),
        _fk("account_id", "accounts.id"),
        _fk("in_reply_to_id", "statuses.id", ondelete="SET NULL", nullable=True),
        _fk("in_reply_to_account_id", "accounts.id", ondelete="SET NULL", nullable=True),
        _fk("reblog_of_id", "statuses.id", nullable=True),
        _fk("quote_of_id", "statuses.id", ondelete="SET NULL", nullable=True),
        _fk("conversation_id", "conversations.id", ondelete="SET NULL", nullable=True),
        _fk("group_id", "groups.id", ondelete="SET NULL", nullable=True),
        sa.Column("poll_id", sa.BigInteger(), nullable=True),
        sa.Column("revised_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("account_id", "reblog_of_id", name="uq_statuses_account_reblog"),
    )
    op.create_index("ix_statuses_account_id_id", "statuses", ["account_id", "id"])
    op.create_index("ix_statuses_in_reply_to_id", "statuses", ["in_reply_to_id"])
    op.create_index("ix_statuses_reblog_of_id", "statuses", ["reblog_of_id"])
    op.create_index("ix_statuses_quote_of_id", "statuses", ["quote_of_id"])
    op.create_index("ix_statuses_group_id", "statuses", ["group_id"])
    op.create_index("ix_statuses_created_at", "statuses", ["created_at"])

    op.create_table(
        "status_stats",
        sa.Column(
            "status_id",
            sa.BigInteger(),
            sa.ForeignKey("statuses.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("replies_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reblogs_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("favourites_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "mentions",
        _id_column(),
        _fk("status_id", "statuses.id"),
        _fk("account_id", "accounts.id"),
        sa.Column("silent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint("account_id", "status_id", name="uq_mentions_account_status"),
    )
    op.create_index("ix_mentions_status_id", "mentions", ["status_id"])
    op.create_index("ix_mentions_account_id", "mentions", ["account_id"])

    op.create_table(
        "polls",
        _id_column(),
        _fk("account_id", "accounts.id"),
        sa.Column(
            "status_id",
            sa.BigInteger(),
            sa.ForeignKey("statuses.id", ondelete="CASCADE"),
            nullable=True,
            unique=True,
        ),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.Column("multiple", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "media_attachments",
        _id_column(),
        _fk("account_id", "accounts.id"),
        _fk("status_id", "statuses.id", ondelete="SET NULL", nullable=True),
        sa.Column("file_url", sa.Text(), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_index("ix_media_attachments_account_id", "media_attachments", ["account_id"])
    op.create_index("ix_media_attachments_status_id", "media_attachments", ["status_id"])

    op.create_table(
        "statuses_tags",
        sa.Column(
            "status_id",
            sa.BigInteger(),
            sa.ForeignKey("statuses.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "tag_id",
            sa.BigInteger(),
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index("ix_statuses_tags_tag_id", "statuses_tags", ["tag_id"])
    op.create_table(
        "preview_cards_statuses",
        sa.Column(
            "preview_card_id",
            sa.BigInteger(),
            sa.ForeignKey("preview_cards.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "status_id",
            sa.BigInteger(),
            sa.ForeignKey("statuses.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    _account_status_table(
        "favourites",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    _account_status_table("status_bookmarks")
    _account_status_table("status_pins")

    op.create_table(
        "group_pinned_statuses",
        _id_column(),
        _fk("group_id", "groups.id"),
        _fk("status_id", "statuses.id"),
        sa.UniqueConstraint("group_id", "status_id", name="uq_group_pinned_statuses_pair"),
    )
    op.create_index("ix_group_pinned_statuses_group_id", "group_pinned_statuses", ["group_id"])
    op.create_index("ix_group_pinned_statuses_status_id", "group_pinned_statuses", ["status_id"])

    op.create_table(
        "status_revisions",
        _id_column(),
        _fk("status_id", "statuses.id"),
        sa.Column("text", sa.Text(), nullable=False, server_default=""),
        sa.Column("spoiler_text", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_status_revisions_status_id", "status_revisions", ["status_id"])


def downgrade() -> None:
    """Drop the status graph tables."""
    for table in (
        "status_revisions",
        "group_pinned_statuses",
        "status_pins",
        "status_bookmarks",
        "favourites",
        "preview_cards_statuses",
        "statuses_tags",
        "media_attachments",
        "polls",
        "mentions",
        "status_stats",
        "statuses",
        "preview_cards",
        "tags",
        "groups",
        "conversations",
        "account_domain_blocks",
        "mutes",
        "blocks",
        "follows",
        "account_stats",
        "accounts",
    ):
        op.drop_table(table)
