"""create key-value store tables

Revision ID: 3f9a1c2d7e10
Revises:
Create Date: 2026-10-18 12:00:00.000000

Creates the four tables backing SQLAlchemyKeyValueStore: plain entries,
set members, scored (sorted set) members and counters.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "3f9a1c2d7e10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "kv_entries",
        sa.Column("key", sa.Text(), primary_key=True, comment="Store key."),
        sa.Column("value", sa.Text(), nullable=False, comment="Opaque serialized value."),
    )
    op.create_table(
        "kv_set_members",
        sa.Column("key", sa.Text(), nullable=False, comment="Set key."),
        sa.Column("member", sa.Text(), nullable=False, comment="Set member."),
        sa.PrimaryKeyConstraint("key", "member", name="pk_kv_set_member"),
    )
    op.create_table(
        "kv_sorted_members",
        sa.Column("key", sa.Text(), nullable=False, comment="Sorted set key."),
        sa.Column("member", sa.Text(), nullable=False, comment="Sorted set member."),
        sa.Column("score", sa.Float(), nullable=False, comment="Member score."),
        sa.PrimaryKeyConstraint("key", "member", name="pk_kv_sorted_member"),
    )
    op.create_index("idx_kv_sorted_key_score", "kv_sorted_members", ["key", "score"])
    op.create_table(
        "kv_counters",
        sa.Column("key", sa.Text(), primary_key=True, comment="Counter key."),
        sa.Column("value", sa.BigInteger(), nullable=False, comment="Counter value."),
    )


def downgrade() -> None:
    op.drop_table("kv_counters")
    op.drop_index("idx_kv_sorted_key_score", table_name="kv_sorted_members")
    op.drop_table("kv_sorted_members")
    op.drop_table("kv_set_members")
    op.drop_table("kv_entries")
