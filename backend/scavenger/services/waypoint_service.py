"""
Scavenger Hunt Backend - Waypoint Service
==========================================

What:  Versioned CRUD for named waypoint sequences.
How:   Same Validate → Temporal Record Store → response pattern as the
       account service, keyed by sequence name. The whole payload is
       validated before any write, so one bad waypoint rejects the write
       and partial sequences are never stored.
Who:   /waypoints route handlers.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from scavenger.exceptions import ConflictError, NotFoundError
from scavenger.models.waypoint import WaypointSequence
from scavenger.schemas.waypoint import (
    WaypointSequenceCreate,
    WaypointSequenceResponse,
    WaypointSummary,
    waypoint_to_record,
)
from scavenger.services.temporal_store import TemporalStore
from scavenger.validation import ensure_keys_match, normalize_sequence_name, parse_input

logger = logging.getLogger(__name__)

RESOURCE = "waypoint sequence"


class WaypointService:
    def __init__(self, store: Optional[TemporalStore[WaypointSequence]] = None):
        self.store = store or TemporalStore(WaypointSequence, "waypoint_name", RESOURCE)

    async def create(self, db: AsyncSession, payload: Any) -> WaypointSequenceResponse:
        """
        Raises:
            ValidationError: any invalid field or waypoint, all reported together
            ConflictError:   an active sequence already has this name
        """
        data = parse_input(WaypointSequenceCreate, payload)

        if await self.store.find_active(db, data.waypoint_name) is not None:
            raise ConflictError(f"{RESOURCE} already exists", key=data.waypoint_name)
        if await self.store.exists_any_version(db, data.waypoint_name):
            logger.info("Sequence name '%s' was used before; creating a new sequence", data.waypoint_name)

        record = await self.store.create(db, data.waypoint_name, self._fields(data))
        return self._to_response(record)

    async def update(self, db: AsyncSession, name: str, payload: Any) -> WaypointSequenceResponse:
        """
        Replace the active version with the submitted description and waypoints.

        Raises:
            ValidationError: invalid body, or body name differs from `name`
            NotFoundError:   no active sequence
        """
        key = normalize_sequence_name(name)
        data = parse_input(WaypointSequenceCreate, payload)
        ensure_keys_match(key, data.waypoint_name, "waypoint_name")

        record = await self.store.update(db, key, self._fields(data))
        return self._to_response(record)

    async def delete(self, db: AsyncSession, name: str) -> None:
        await self.store.soft_delete(db, normalize_sequence_name(name))

    async def get(self, db: AsyncSession, name: str) -> WaypointSequenceResponse:
        key = normalize_sequence_name(name)
        record = await self.store.find_active(db, key)
        if record is None:
            raise NotFoundError(RESOURCE, key)
        return self._to_response(record)

    async def history(self, db: AsyncSession, name: str) -> List[WaypointSequenceResponse]:
        key = normalize_sequence_name(name)
        records = await self.store.history(db, key)
        if not records:
            raise NotFoundError(RESOURCE, key)
        return [self._to_response(r) for r in records]

    async def list(
        self,
        db: AsyncSession,
        include_deleted: bool = False,
        name: Optional[str] = None,
    ) -> List[WaypointSequenceResponse]:
        records = await self.store.list(db, include_history=include_deleted)
        if name is not None:
            wanted = normalize_sequence_name(name)
            records = [r for r in records if r.waypoint_name == wanted]
        return [self._to_response(r) for r in records]

    async def summary(self, db: AsyncSession) -> List[WaypointSummary]:
        """Active sequences without their waypoint lists."""
        records = await self.store.list(db)
        return [
            WaypointSummary(
                waypoints_id=r.id,
                waypoint_name=r.waypoint_name,
                waypoint_description=r.waypoint_description,
                valid_from=r.valid_from,
            )
            for r in records
        ]

    @staticmethod
    def _fields(data: WaypointSequenceCreate) -> dict:
        return {
            "waypoint_description": data.waypoint_description,
            "data": [waypoint_to_record(entry) for entry in data.data],
        }

    @staticmethod
    def _to_response(record: WaypointSequence) -> WaypointSequenceResponse:
        return WaypointSequenceResponse(
            waypoints_id=record.id,
            waypoint_name=record.waypoint_name,
            waypoint_description=record.waypoint_description,
            data=list(record.data or []),
            valid_from=record.valid_from,
            valid_until=record.valid_until,
        )


# Singleton instance
waypoint_service = WaypointService()


def get_waypoint_service() -> WaypointService:
    """FastAPI dependency; override in tests via app.dependency_overrides."""
    return waypoint_service
