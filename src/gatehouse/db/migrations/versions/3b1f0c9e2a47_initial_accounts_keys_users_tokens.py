"""Initial schema: accounts, keys, users, tokens

Learn: Four tables. Usernames are unique per account
(uq_users_account_username) and also indexed on their own for lookups;
token fingerprints are unique and indexed because every authenticated
request looks one up.

Revision ID: 3b1f0c9e2a47
Revises:
Create Date: 2026-10-18 09:30:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3b1f0c9e2a47'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "keys",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("account_id", sa.Uuid(), sa.ForeignKey("accounts.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_keys_account", "keys", ["account_id"])

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("account_id", sa.Uuid(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default=""),
        sa.Column(
            "metadata",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=True,
        ),
        *_timestamps(),
        sa.UniqueConstraint("account_id", "username", name="uq_users_account_username"),
    )
    op.create_index("idx_users_username", "users", ["username"])
    op.create_index("idx_users_account", "users", ["account_id"])

    op.create_table(
        "tokens",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("value", sa.String(2048), nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_tokens_value", "tokens", ["value"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_tokens_value", table_name="tokens")
    op.drop_table("tokens")
    op.drop_index("idx_users_account", table_name="users")
    op.drop_index("idx_users_username", table_name="users")
    op.drop_table("users")
    op.drop_index("idx_keys_account", table_name="keys")
    op.drop_table("keys")
    op.drop_table("accounts")
