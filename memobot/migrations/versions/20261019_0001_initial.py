from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# Alembic identifiers
revision = "20261019_0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "memos",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.BigInteger(), nullable=False),
        sa.Column("delivery_target", sa.BigInteger(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("remind_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("remind_at > created_at", name="remind_at_check"),
        sa.PrimaryKeyConstraint("id", name="pk_memos"),
    )
    op.create_index("ix_memos_owner_id", "memos", ["owner_id"])
    op.create_index("ix_memos_delivery_target", "memos", ["delivery_target"])
    op.create_index("ix_memos_sent_remind_at", "memos", ["sent", "remind_at"])

    op.create_table(
        "users",
        sa.Column("user_id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("username", sa.String(length=64), nullable=True),
        sa.Column("delivery_target", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id", name="pk_users"),
    )


def downgrade():
    op.drop_table("users")
    op.drop_index("ix_memos_sent_remind_at", table_name="memos")
    op.drop_index("ix_memos_delivery_target", table_name="memos")
    op.drop_index("ix_memos_owner_id", table_name="memos")
    op.drop_table("memos")
