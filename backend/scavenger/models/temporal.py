"""
Scavenger Hunt Backend - Temporal Versioning Columns
=====================================================

What:  Mixin adding the validity window shared by every versioned table.
How:   A row is "active" while `valid_until IS NULL`. Updates close the
       active row and append a new one; soft deletes only close it.

Invariant:
    For a given natural key at most one row has `valid_until IS NULL`.
    Each table enforces this with a partial unique index, declared on the
    concrete model because the key column differs per table.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, text
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current time. All validity timestamps are UTC."""
    return datetime.now(timezone.utc)


# Clause shared by the partial unique indexes of every temporal table
ACTIVE_ROW_CLAUSE = "valid_until IS NULL"


class TemporalMixin:
    """Validity window columns for append-only, versioned tables."""

    valid_from: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="Start of this version's validity (UTC)",
    )

    valid_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        comment="End of validity; NULL marks the active version",
    )
