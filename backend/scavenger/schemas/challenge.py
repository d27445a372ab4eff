"""
Scavenger Hunt Backend - Challenge Schemas
===========================================

What:  Input models for challenges and their participants, and the
       representations returned to clients.
How:   Same rules-as-Annotated-types approach as the account and waypoint
       schemas. Checks that need the database (does the waypoint sequence
       exist, are the invited accounts active, is the name free) happen in
       ChallengeService after these models pass.
Who:   ChallengeService and the /challenges routes.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import (
    AfterValidator,
    AwareDatetime,
    BaseModel,
    Field,
    StrictInt,
    StrictStr,
    model_validator,
)
from pydantic_core import PydanticCustomError

from scavenger.models.challenge import DEFAULT_DURATION_MINUTES
from scavenger.schemas.account import Username
from scavenger.schemas.waypoint import SequenceName

MIN_CHALLENGE_NAME_LENGTH = 3
MAX_CHALLENGE_NAME_LENGTH = 32
MAX_CHALLENGE_DESC_LENGTH = 255
MAX_PARTICIPANT_NAME_LENGTH = 60


class ParticipantState(str, Enum):
    """Where an invited account stands in a challenge."""
    PENDING = "PENDING"
    INVITED = "INVITED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


def _challenge_name(value: str) -> str:
    trimmed = value.strip()
    if not MIN_CHALLENGE_NAME_LENGTH <= len(trimmed) <= MAX_CHALLENGE_NAME_LENGTH:
        raise PydanticCustomError(
            "name_length",
            "challenge_name must be between {min} and {max} characters",
            {"min": MIN_CHALLENGE_NAME_LENGTH, "max": MAX_CHALLENGE_NAME_LENGTH},
        )
    return trimmed


def _challenge_desc(value: str) -> str:
    trimmed = value.strip()
    if len(trimmed) > MAX_CHALLENGE_DESC_LENGTH:
        raise PydanticCustomError(
            "desc_length",
            "challenge_desc must be at most {max} characters",
            {"max": MAX_CHALLENGE_DESC_LENGTH},
        )
    return trimmed


def _unique(value: List[str]) -> List[str]:
    return list(dict.fromkeys(value))


ChallengeName = Annotated[StrictStr, AfterValidator(_challenge_name)]
ChallengeDesc = Annotated[StrictStr, AfterValidator(_challenge_desc)]
InvitedUsers = Annotated[List[Username], AfterValidator(_unique)]


# ══════════════════════════════════════════════════════════════════════════
# Input Models
# ══════════════════════════════════════════════════════════════════════════


class ChallengeInput(BaseModel):
    """Body of PUT /challenges/{id}. Invitations are managed separately."""
    challenge_name: ChallengeName
    challenge_desc: ChallengeDesc
    waypoints_ref: Optional[SequenceName] = None
    start_time: AwareDatetime = Field(description="ISO 8601 with a UTC offset")
    duration: StrictInt = Field(default=DEFAULT_DURATION_MINUTES, ge=0, description="Minutes")


class ChallengeCreate(ChallengeInput):
    """Body of POST /challenges: the challenge plus accounts to invite."""
    invited_users: InvitedUsers = Field(default_factory=list)


class InviteRequest(BaseModel):
    invited_users: Annotated[List[Username], Field(min_length=1), AfterValidator(_unique)]


class ParticipantUpdate(BaseModel):
    state: Optional[ParticipantState] = None
    participant_name: Optional[Annotated[StrictStr, Field(max_length=MAX_PARTICIPANT_NAME_LENGTH)]] = None

    @model_validator(mode="after")
    def check_not_empty(self) -> "ParticipantUpdate":
        if self.state is None and self.participant_name is None:
            raise PydanticCustomError(
                "empty_update", "provide state, participant_name, or both"
            )
        return self


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ChallengeResponse(BaseModel):
    challenge_id: uuid.UUID = Field(description="Stable identifier shared by all versions")
    challenge_name: str
    challenge_desc: str
    waypoints_ref: Optional[str] = None
    start_time: datetime
    duration: int
    valid_from: datetime
    valid_until: Optional[datetime] = None


class ChallengeCreatedResponse(ChallengeResponse):
    invited_count: int = Field(description="Accounts invited along with the challenge")


class ChallengeListResponse(BaseModel):
    challenges: List[ChallengeResponse]


class ChallengeHistoryResponse(BaseModel):
    history: List[ChallengeResponse] = Field(description="Newest version first")


class ParticipantResponse(BaseModel):
    challenge_participant_id: uuid.UUID
    challenge_id: uuid.UUID
    user_name: str
    participant_name: str
    state: ParticipantState
    valid_from: datetime
    valid_until: Optional[datetime] = None


class ParticipantListResponse(BaseModel):
    participants: List[ParticipantResponse]
