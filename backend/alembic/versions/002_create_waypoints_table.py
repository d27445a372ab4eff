"""Create waypoints table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Append-only `waypoints` table holding versioned waypoint
       sequences; `data` is the ordered list of waypoint records as JSON.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "waypoints",
        sa.Column(
            "waypoints_id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
            comment="Identifier of this version",
        ),
        sa.Column("waypoint_name", sa.String(255), nullable=False, comment="Normalized sequence name"),
        sa.Column("waypoint_description", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False, comment="Ordered waypoint records"),
        sa.Column(
            "valid_from",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("valid_until", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("waypoints_id"),
    )

    op.create_index(
        "idx_waypoints_name_active",
        "waypoints",
        ["waypoint_name"],
        unique=True,
        postgresql_where=sa.text("valid_until IS NULL"),
    )
    op.create_index(
        "idx_waypoints_temporal", "waypoints", ["waypoint_name", "valid_from", "valid_until"]
    )


def downgrade() -> None:
    op.drop_index("idx_waypoints_temporal", table_name="waypoints")
    op.drop_index("idx_waypoints_name_active", table_name="waypoints")
    op.drop_table("waypoints")
