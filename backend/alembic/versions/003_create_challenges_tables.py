"""Create challenges and challenge_participants tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Append-only `challenges` (scheduled games over a waypoint sequence)
       and `challenge_participants` (invited accounts and their state).
       Both are versioned like users and waypoints: a stable id shared by
       every version plus a per-version primary key.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _validity_columns():
    return [
        sa.Column(
            "valid_from",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("valid_until", sa.TIMESTAMP(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "challenges",
        sa.Column(
            "challenge_instance_id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
            comment="Identifier of this version",
        ),
        sa.Column("challenge_id", sa.String(36), nullable=False, comment="Stable challenge identifier"),
        sa.Column("challenge_name", sa.String(60), nullable=False),
        sa.Column("challenge_desc", sa.Text(), nullable=False),
        sa.Column("waypoints_ref", sa.String(255), nullable=True, comment="Waypoint sequence name"),
        sa.Column("challenge_start_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("challenge_duration", sa.Integer(), server_default="90", nullable=False),
        *_validity_columns(),
        sa.PrimaryKeyConstraint("challenge_instance_id"),
    )
    op.create_index(
        "idx_challenges_challenge_id_active",
        "challenges",
        ["challenge_id"],
        unique=True,
        postgresql_where=sa.text("valid_until IS NULL"),
    )
    op.create_index(
        "idx_challenges_name_active",
        "challenges",
        ["challenge_name"],
        unique=True,
        postgresql_where=sa.text("valid_until IS NULL"),
    )
    op.create_index(
        "idx_challenges_temporal", "challenges", ["challenge_id", "valid_from", "valid_until"]
    )

    op.create_table(
        "challenge_participants",
        sa.Column(
            "challenge_participant_inst_id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("challenge_participant_id", sa.String(36), nullable=False),
        sa.Column("challenge_id", sa.String(36), nullable=False),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.Column("participant_name", sa.String(60), server_default="", nullable=False),
        sa.Column(
            "participant_state",
            sa.String(16),
            nullable=False,
            comment="PENDING, INVITED, ACCEPTED or REJECTED",
        ),
        *_validity_columns(),
        sa.PrimaryKeyConstraint("challenge_participant_inst_id"),
        sa.CheckConstraint(
            "participant_state IN ('PENDING', 'INVITED', 'ACCEPTED', 'REJECTED')",
            name="ck_challenge_participants_state",
        ),
    )
    op.create_index(
        "idx_challenge_participants_id_active",
        "challenge_participants",
        ["challenge_participant_id"],
        unique=True,
        postgresql_where=sa.text("valid_until IS NULL"),
    )
    op.create_index(
        "idx_challenge_participants_user_active",
        "challenge_participants",
        ["challenge_id", "user_name"],
        unique=True,
        postgresql_where=sa.text("valid_until IS NULL"),
    )
    op.create_index(
        "idx_challenge_participants_temporal",
        "challenge_participants",
        ["challenge_participant_id", "valid_from", "valid_until"],
    )


def downgrade() -> None:
    op.drop_index("idx_challenge_participants_temporal", table_name="challenge_participants")
    op.drop_index("idx_challenge_participants_user_active", table_name="challenge_participants")
    op.drop_index("idx_challenge_participants_id_active", table_name="challenge_participants")
    op.drop_table("challenge_participants")
    op.drop_index("idx_challenges_temporal", table_name="challenges")
    op.drop_index("idx_challenges_name_active", table_name="challenges")
    op.drop_index("idx_challenges_challenge_id_active", table_name="challenges")
    op.drop_table("challenges")
