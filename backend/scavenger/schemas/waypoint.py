"""
Scavenger Hunt Backend - Waypoint Sequence Schemas
===================================================

What:  Input models for waypoint sequences, the wire-record mapping, and
       the sequence representations returned to clients.
How:   Every entry is validated before anything is written; a single bad
       entry fails the whole payload. Validated entries are turned into
       stored records by `waypoint_to_record`, an explicit field mapping.
Who:   WaypointService and the /waypoints routes.

Wire record (one element of the stored `data` list):
    {
        "waypoint_seq_id": 1,
        "location": {"lat": 40.7, "long": -74.0},
        "radius": 50,
        "clue": "Under the big clock",
        "hints": ["Look up"],
        "image_subject": "clock"
    }
"""

import uuid
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, Field, StrictInt, StrictStr, field_validator
from pydantic_core import PydanticCustomError

MAX_SEQUENCE_NAME_LENGTH = 255

# Names that collide with fixed paths under /waypoints
RESERVED_SEQUENCE_NAMES = frozenset({"summary"})


def _non_blank(value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise PydanticCustomError("blank", "value must not be empty")
    return trimmed


def _sequence_name(value: str) -> str:
    name = _non_blank(value).lower()
    if name in RESERVED_SEQUENCE_NAMES:
        raise PydanticCustomError("reserved_name", "'{name}' is a reserved name", {"name": name})
    return name


NonBlank = Annotated[StrictStr, AfterValidator(_non_blank)]
SequenceName = Annotated[
    StrictStr,
    Field(max_length=MAX_SEQUENCE_NAME_LENGTH),
    AfterValidator(_sequence_name),
]


# ══════════════════════════════════════════════════════════════════════════
# Input Models
# ══════════════════════════════════════════════════════════════════════════


class GeoLocation(BaseModel):
    """Coordinates in degrees. Ints are accepted; booleans and strings are not."""
    lat: float = Field(strict=True, ge=-90, le=90, description="Latitude in degrees")
    long: float = Field(strict=True, ge=-180, le=180, description="Longitude in degrees")


class WaypointEntry(BaseModel):
    """One clue in a sequence."""
    waypoint_seq_id: StrictInt = Field(gt=0, description="Position in the sequence, from 1")
    location: GeoLocation
    radius: StrictInt = Field(gt=0, description="Search radius in metres")
    clue: NonBlank
    hints: List[NonBlank] = Field(default_factory=list)
    image_subject: NonBlank


class WaypointSequenceCreate(BaseModel):
    """
    Body of POST /waypoints and PUT /waypoints/{name}.

    Beyond per-entry rules, sequence ids must run 1..n with no gaps or
    duplicates; entries may arrive in any order and are stored as sent.
    """
    waypoint_name: SequenceName
    waypoint_description: NonBlank
    data: List[WaypointEntry] = Field(min_length=1)

    @field_validator("data")
    @classmethod
    def check_sequence_ids(cls, v: List[WaypointEntry]) -> List[WaypointEntry]:
        ids = sorted(entry.waypoint_seq_id for entry in v)
        if ids != list(range(1, len(ids) + 1)):
            raise PydanticCustomError(
                "sequence_order",
                "waypoint_seq_id values must be consecutive starting from 1",
            )
        return v


def waypoint_to_record(entry: WaypointEntry) -> Dict[str, Any]:
    """Map a validated entry to the record stored in `waypoints.data`."""
    return {
        "waypoint_seq_id": entry.waypoint_seq_id,
        "location": {"lat": entry.location.lat, "long": entry.location.long},
        "radius": entry.radius,
        "clue": entry.clue,
        "hints": list(entry.hints),
        "image_subject": entry.image_subject,
    }


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class WaypointSequenceResponse(BaseModel):
    """One version of a waypoint sequence."""
    waypoints_id: uuid.UUID = Field(description="Identifier of this version")
    waypoint_name: str
    waypoint_description: str
    data: List[Dict[str, Any]] = Field(description="Waypoint records in stored order")
    valid_from: datetime
    valid_until: Optional[datetime] = None


class WaypointSequenceListResponse(BaseModel):
    waypoint_sequences: List[WaypointSequenceResponse]


class WaypointSequenceHistoryResponse(BaseModel):
    history: List[WaypointSequenceResponse] = Field(description="Newest version first")


class WaypointSummary(BaseModel):
    """Active sequence without its waypoint list, for overview screens."""
    waypoints_id: uuid.UUID
    waypoint_name: str
    waypoint_description: str
    valid_from: datetime


class WaypointSummaryResponse(BaseModel):
    waypoint_sequences_summary: List[WaypointSummary]
