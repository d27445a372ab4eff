"""
Scavenger Hunt Backend - Waypoint Sequence SQLAlchemy Model
============================================================

What:  ORM model for the append-only `waypoints` table.
Who:   Owned exclusively by the waypoint TemporalStore.

A sequence row stores its ordered waypoints as one JSON document
(`data`), so a version is always written whole. Entries use the wire
shape produced by `scavenger.schemas.waypoint.waypoint_to_record`.

Indexes:
    idx_waypoints_name_active  UNIQUE (waypoint_name) WHERE valid_until IS NULL
    idx_waypoints_temporal     (waypoint_name, valid_from, valid_until)
"""

import uuid
from typing import Any, Dict, List

from sqlalchemy import JSON, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from scavenger.database import Base
from scavenger.models.temporal import ACTIVE_ROW_CLAUSE, TemporalMixin


class WaypointSequence(TemporalMixin, Base):
    """One version of a named, ordered list of geolocated clues."""

    __tablename__ = "waypoints"

    id: Mapped[uuid.UUID] = mapped_column(
        "waypoints_id",
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Identifier of this version",
    )

    waypoint_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Normalized sequence name, the natural key",
    )

    waypoint_description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Free-text description shown to game admins",
    )

    data: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        comment="Ordered waypoint records",
    )

    __table_args__ = (
        Index(
            "idx_waypoints_name_active",
            "waypoint_name",
            unique=True,
            postgresql_where=text(ACTIVE_ROW_CLAUSE),
            sqlite_where=text(ACTIVE_ROW_CLAUSE),
        ),
        Index("idx_waypoints_temporal", "waypoint_name", "valid_from", "valid_until"),
    )

    def __repr__(self) -> str:
        return (
            f"<WaypointSequence(name='{self.waypoint_name}', waypoints={len(self.data or [])}, "
            f"valid_from='{self.valid_from}', valid_until='{self.valid_until}')>"
        )
