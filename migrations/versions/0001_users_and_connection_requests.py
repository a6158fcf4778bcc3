"""users and connection_requests

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=True),
        sa.Column("first_name", sa.String(length=40), nullable=False),
        sa.Column("last_name", sa.String(length=40), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("gender", sa.String(length=16), nullable=True),
        sa.Column("image", sa.String(length=256), nullable=True),
        sa.Column("about", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_telegram_id", "users", ["telegram_id"], unique=True)

    op.create_table(
        "connection_requests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("from_user_id", sa.Integer(), nullable=False),
        sa.Column("to_user_id", sa.Integer(), nullable=False),
        sa.Column("user_low_id", sa.Integer(), nullable=False),
        sa.Column("user_high_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["from_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["to_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_low_id", "user_high_id", name="uq_connection_requests_pair"
        ),
        sa.CheckConstraint(
            "from_user_id != to_user_id", name="ck_connection_requests_not_self"
        ),
        sa.CheckConstraint(
            "user_low_id < user_high_id", name="ck_connection_requests_pair_order"
        ),
    )
    op.create_index(
        "ix_connection_requests_from_user_id", "connection_requests", ["from_user_id"]
    )
    op.create_index(
        "ix_connection_requests_to_user_id", "connection_requests", ["to_user_id"]
    )
    op.create_index(
        "ix_connection_requests_to_status",
        "connection_requests",
        ["to_user_id", "status"],
    )


def downgrade() -> None:
    op.drop_index("ix_connection_requests_to_status", table_name="connection_requests")
    op.drop_index("ix_connection_requests_to_user_id", table_name="connection_requests")
    op.drop_index(
        "ix_connection_requests_from_user_id", table_name="connection_requests"
    )
    op.drop_table("connection_requests")
    op.drop_index("ix_users_telegram_id", table_name="users")
    op.drop_table("users")
