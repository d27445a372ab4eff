"""
Scavenger Hunt Backend - Challenge SQLAlchemy Models
=====================================================

What:  ORM models for the append-only `challenges` and
       `challenge_participants` tables.
Who:   Owned by the two TemporalStores inside ChallengeService.

Both tables follow the same versioning scheme as accounts and waypoint
sequences: a stable identifier shared by every version of an entity,
plus a per-version primary key.

Table Design (challenges):
    - challenge_instance_id: UUID per version
    - challenge_id: stable UUID (as text), the natural key
    - challenge_name: unique among active challenges
    - waypoints_ref: name of the waypoint sequence played, optional
    - challenge_start_time / challenge_duration (minutes)

Table Design (challenge_participants):
    - challenge_participant_inst_id: UUID per version
    - challenge_participant_id: stable UUID (as text), the natural key
    - challenge_id / user_name: the challenge and the invited account
    - participant_state: PENDING, INVITED, ACCEPTED or REJECTED

References to challenges, accounts and waypoint sequences are checked by
ChallengeService. They cannot be foreign keys: the referenced columns are
only unique among active rows.

Indexes:
    idx_challenges_challenge_id_active         UNIQUE (challenge_id) WHERE active
    idx_challenges_name_active                 UNIQUE (challenge_name) WHERE active
    idx_challenges_temporal                    (challenge_id, valid_from, valid_until)
    idx_challenge_participants_id_active       UNIQUE (challenge_participant_id) WHERE active
    idx_challenge_participants_user_active     UNIQUE (challenge_id, user_name) WHERE active
    idx_challenge_participants_temporal        (challenge_participant_id, valid_from, valid_until)
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from scavenger.database import Base
from scavenger.models.temporal import ACTIVE_ROW_CLAUSE, TemporalMixin

DEFAULT_DURATION_MINUTES = 90


class Challenge(TemporalMixin, Base):
    """One version of a scheduled game played over a waypoint sequence."""

    __tablename__ = "challenges"

    id: Mapped[uuid.UUID] = mapped_column(
        "challenge_instance_id",
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Identifier of this version",
    )

    challenge_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        comment="Stable challenge identifier shared by all versions",
    )

    challenge_name: Mapped[str] = mapped_column(String(60), nullable=False)

    challenge_desc: Mapped[str] = mapped_column(Text, nullable=False)

    waypoints_ref: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Name of the waypoint sequence this challenge uses",
    )

    start_time: Mapped[datetime] = mapped_column(
        "challenge_start_time",
        DateTime(timezone=True),
        nullable=False,
    )

    duration: Mapped[int] = mapped_column(
        "challenge_duration",
        Integer,
        nullable=False,
        default=DEFAULT_DURATION_MINUTES,
        comment="Length of the challenge in minutes",
    )

    __table_args__ = (
        Index(
            "idx_challenges_challenge_id_active",
            "challenge_id",
            unique=True,
            postgresql_where=text(ACTIVE_ROW_CLAUSE),
            sqlite_where=text(ACTIVE_ROW_CLAUSE),
        ),
        Index(
            "idx_challenges_name_active",
            "challenge_name",
            unique=True,
            postgresql_where=text(ACTIVE_ROW_CLAUSE),
            sqlite_where=text(ACTIVE_ROW_CLAUSE),
        ),
        Index("idx_challenges_temporal", "challenge_id", "valid_from", "valid_until"),
    )

    def __repr__(self) -> str:
        return (
            f"<Challenge(id='{self.challenge_id}', name='{self.challenge_name}', "
            f"valid_from='{self.valid_from}', valid_until='{self.valid_until}')>"
        )


class ChallengeParticipant(TemporalMixin, Base):
    """One version of an account's participation in a challenge."""

    __tablename__ = "challenge_participants"

    id: Mapped[uuid.UUID] = mapped_column(
        "challenge_participant_inst_id",
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    challenge_participant_id: Mapped[str] = mapped_column(String(36), nullable=False)

    challenge_id: Mapped[str] = mapped_column(String(36), nullable=False)

    user_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Username of the invited account",
    )

    participant_name: Mapped[str] = mapped_column(
        String(60),
        nullable=False,
        default="",
        comment="In-game display name chosen by the participant",
    )

    state: Mapped[str] = mapped_column("participant_state", String(16), nullable=False)

    __table_args__ = (
        Index(
            "idx_challenge_participants_id_active",
            "challenge_participant_id",
            unique=True,
            postgresql_where=text(ACTIVE_ROW_CLAUSE),
            sqlite_where=text(ACTIVE_ROW_CLAUSE),
        ),
        Index(
            "idx_challenge_participants_user_active",
            "challenge_id",
            "user_name",
            unique=True,
            postgresql_where=text(ACTIVE_ROW_CLAUSE),
            sqlite_where=text(ACTIVE_ROW_CLAUSE),
        ),
        Index(
            "idx_challenge_participants_temporal",
            "challenge_participant_id",
            "valid_from",
            "valid_until",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<ChallengeParticipant(challenge='{self.challenge_id}', user='{self.user_name}', "
            f"state='{self.state}')>"
        )
