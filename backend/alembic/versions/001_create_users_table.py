"""Create users table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Append-only `users` table. Every account version is one row;
       the row with valid_until NULL is the active one.

Rollback: downgrade() drops the table and all account history.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
            comment="Identifier of this version",
        ),
        sa.Column("username", sa.String(255), nullable=False, comment="Normalized email address"),
        sa.Column("password_hash", sa.String(255), nullable=False, comment="bcrypt hash"),
        sa.Column("nickname", sa.String(255), nullable=False, comment="Display name"),
        sa.Column(
            "roles",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
            comment="Role tags: admin, player, viewer",
        ),
        sa.Column(
            "valid_from",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="Start of this version's validity (UTC)",
        ),
        sa.Column(
            "valid_until",
            sa.TIMESTAMP(timezone=True),
            nullable=True,
            comment="End of validity; NULL marks the active version",
        ),
        sa.PrimaryKeyConstraint("user_id"),
    )

    # At most one active row per username; concurrent creates lose here
    op.create_index(
        "idx_users_username_active",
        "users",
        ["username"],
        unique=True,
        postgresql_where=sa.text("valid_until IS NULL"),
    )
    op.create_index("idx_users_temporal", "users", ["username", "valid_from", "valid_until"])


def downgrade() -> None:
    op.drop_index("idx_users_temporal", table_name="users")
    op.drop_index("idx_users_username_active", table_name="users")
    op.drop_table("users")
