"""
Scavenger Hunt Backend - Account SQLAlchemy Model
==================================================

What:  ORM model for the append-only `users` table.
Who:   Owned exclusively by the account TemporalStore; Alembic reads it
       for schema management.

Table Design:
    - user_id: UUID per version (each update inserts a new row and a new id)
    - username: normalized email, the natural key
    - password_hash: bcrypt hash, never serialized outward
    - roles: text[] on PostgreSQL, JSON on SQLite (test suite)
    - valid_from / valid_until: from TemporalMixin

Indexes:
    idx_users_username_active  UNIQUE (username) WHERE valid_until IS NULL
    idx_users_temporal         (username, valid_from, valid_until)
"""

import uuid
from typing import List

from sqlalchemy import JSON, Index, String, Uuid, text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from scavenger.database import Base
from scavenger.models.temporal import ACTIVE_ROW_CLAUSE, TemporalMixin


class Account(TemporalMixin, Base):
    """One version of a principal able to authenticate."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        "user_id",
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Identifier of this version",
    )

    username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Normalized (trimmed, lowercased) email address",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the account password",
    )

    nickname: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name",
    )

    roles: Mapped[List[str]] = mapped_column(
        ARRAY(String).with_variant(JSON(), "sqlite"),
        nullable=False,
        default=list,
        comment="Role tags: admin, player, viewer",
    )

    __table_args__ = (
        Index(
            "idx_users_username_active",
            "username",
            unique=True,
            postgresql_where=text(ACTIVE_ROW_CLAUSE),
            sqlite_where=text(ACTIVE_ROW_CLAUSE),
        ),
        Index("idx_users_temporal", "username", "valid_from", "valid_until"),
    )

    def __repr__(self) -> str:
        return (
            f"<Account(username='{self.username}', roles={self.roles}, "
            f"valid_from='{self.valid_from}', valid_until='{self.valid_until}')>"
        )
