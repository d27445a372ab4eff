"""
Scavenger Hunt Backend - Challenge Service
===========================================

What:  Versioned CRUD for challenges and management of their participants.
How:   Two TemporalStores, one per table, keyed by generated UUIDs. Input
       passes the pydantic models first, then the checks that need the
       database:

       ┌───────────┐   ┌─────────────────────────────┐   ┌──────────────┐
       │  Validate │──▶│ References: waypoint seq,   │──▶│ Name is free │──▶ store
       └───────────┘   │ invited accounts are active │   └──────────────┘
                       └─────────────────────────────┘
       Reference failures are 400s listing every bad reference; a name held
       by another active challenge is a 409.
Who:   /challenges route handlers.

Participants:
    Inviting an account that already takes part returns the existing
    participant unchanged, so invitations can be repeated safely. New
    participants start PENDING with an empty participant_name. Deleting a
    challenge closes every active participant of it in the same transaction.
"""

import logging
import uuid
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from scavenger.exceptions import ConflictError, NotFoundError
from scavenger.models.account import Account
from scavenger.models.challenge import Challenge, ChallengeParticipant
from scavenger.models.waypoint import WaypointSequence
from scavenger.schemas.challenge import (
    ChallengeCreate,
    ChallengeCreatedResponse,
    ChallengeInput,
    ChallengeResponse,
    InviteRequest,
    ParticipantResponse,
    ParticipantState,
    ParticipantUpdate,
)
from scavenger.services.temporal_store import TemporalStore
from scavenger.validation import normalize_username, parse_input, reject

logger = logging.getLogger(__name__)

RESOURCE = "challenge"
PARTICIPANT_RESOURCE = "challenge participant"


class ChallengeService:
    def __init__(
        self,
        challenges: Optional[TemporalStore[Challenge]] = None,
        participants: Optional[TemporalStore[ChallengeParticipant]] = None,
        accounts: Optional[TemporalStore[Account]] = None,
        waypoints: Optional[TemporalStore[WaypointSequence]] = None,
    ):
        self.challenges = challenges or TemporalStore(Challenge, "challenge_id", RESOURCE)
        self.participants = participants or TemporalStore(
            ChallengeParticipant, "challenge_participant_id", PARTICIPANT_RESOURCE
        )
        self.accounts = accounts or TemporalStore(Account, "username", "account")
        self.waypoints = waypoints or TemporalStore(
            WaypointSequence, "waypoint_name", "waypoint sequence"
        )

    # ── Challenges ────────────────────────────────────────────────────────

    async def create(self, db: AsyncSession, payload: Any) -> ChallengeCreatedResponse:
        """
        Create a challenge and invite `invited_users` to it.

        Raises:
            ValidationError: invalid body, unknown waypoint sequence or account
            ConflictError:   an active challenge already has this name
        """
        data = parse_input(ChallengeCreate, payload)
        await self._check_references(db, data.waypoints_ref, data.invited_users)
        await self._ensure_name_free(db, data.challenge_name)

        challenge_id = str(uuid.uuid4())
        record = await self.challenges.create(db, challenge_id, self._fields(data))
        invited = await self._invite(db, challenge_id, data.invited_users)

        return ChallengeCreatedResponse(
            **self._to_response(record).model_dump(),
            invited_count=len(invited),
        )

    async def update(
        self, db: AsyncSession, challenge_id: uuid.UUID, payload: Any
    ) -> ChallengeResponse:
        """
        Replace the active version. Participants are not touched.

        Raises:
            ValidationError: invalid body or unknown waypoint sequence
            ConflictError:   another active challenge has the new name
            NotFoundError:   no active challenge
        """
        key = str(challenge_id)
        data = parse_input(ChallengeInput, payload)
        await self._check_references(db, data.waypoints_ref, [])
        await self._ensure_name_free(db, data.challenge_name, exclude=key)

        record = await self.challenges.update(db, key, self._fields(data))
        return self._to_response(record)

    async def delete(self, db: AsyncSession, challenge_id: uuid.UUID) -> None:
        key = str(challenge_id)
        await self.challenges.soft_delete(db, key)

        closed = 0
        for participant in await self.participants.find_active_by(db, challenge_id=key):
            await self.participants.soft_delete(db, participant.challenge_participant_id)
            closed += 1
        logger.info("Cancelled challenge '%s' with %d participant(s)", key, closed)

    async def get(self, db: AsyncSession, challenge_id: uuid.UUID) -> ChallengeResponse:
        return self._to_response(await self._require_active(db, str(challenge_id)))

    async def history(self, db: AsyncSession, challenge_id: uuid.UUID) -> List[ChallengeResponse]:
        key = str(challenge_id)
        records = await self.challenges.history(db, key)
        if not records:
            raise NotFoundError(RESOURCE, key)
        return [self._to_response(r) for r in records]

    async def list(self, db: AsyncSession, include_deleted: bool = False) -> List[ChallengeResponse]:
        records = await self.challenges.list(db, include_history=include_deleted)
        return [self._to_response(r) for r in records]

    # ── Participants ──────────────────────────────────────────────────────

    async def participants_of(
        self, db: AsyncSession, challenge_id: uuid.UUID
    ) -> List[ParticipantResponse]:
        key = str(challenge_id)
        await self._require_active(db, key)
        records = await self.participants.find_active_by(db, challenge_id=key)
        return [self._participant_response(r) for r in records]

    async def participant(
        self, db: AsyncSession, challenge_id: uuid.UUID, participant_id: uuid.UUID
    ) -> ParticipantResponse:
        record = await self._require_participant(db, str(challenge_id), str(participant_id))
        return self._participant_response(record)

    async def participant_by_user(
        self, db: AsyncSession, challenge_id: uuid.UUID, username: str
    ) -> ParticipantResponse:
        key = str(challenge_id)
        user_name = normalize_username(username)
        records = await self.participants.find_active_by(db, challenge_id=key, user_name=user_name)
        if not records:
            raise NotFoundError(PARTICIPANT_RESOURCE, user_name)
        return self._participant_response(records[0])

    async def invite(
        self, db: AsyncSession, challenge_id: uuid.UUID, payload: Any
    ) -> List[ParticipantResponse]:
        """
        Invite accounts to an active challenge.

        Returns one participant per requested account, existing or new.

        Raises:
            ValidationError: invalid body or an account that is not active
            NotFoundError:   no active challenge
        """
        key = str(challenge_id)
        data = parse_input(InviteRequest, payload)
        await self._require_active(db, key)
        await self._check_references(db, None, data.invited_users)

        invited = await self._invite(db, key, data.invited_users)
        return [self._participant_response(r) for r in invited]

    async def update_participant(
        self,
        db: AsyncSession,
        challenge_id: uuid.UUID,
        participant_id: uuid.UUID,
        payload: Any,
    ) -> ParticipantResponse:
        """Record a new state and/or participant_name as a new version."""
        data = parse_input(ParticipantUpdate, payload)
        current = await self._require_participant(db, str(challenge_id), str(participant_id))

        fields = {}
        if data.state is not None:
            fields["state"] = data.state.value
        if data.participant_name is not None:
            fields["participant_name"] = data.participant_name

        record = await self.participants.update(db, current.challenge_participant_id, fields)
        return self._participant_response(record)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _require_active(self, db: AsyncSession, key: str) -> Challenge:
        record = await self.challenges.find_active(db, key)
        if record is None:
            raise NotFoundError(RESOURCE, key)
        return record

    async def _require_participant(
        self, db: AsyncSession, challenge_key: str, participant_key: str
    ) -> ChallengeParticipant:
        record = await self.participants.find_active(db, participant_key)
        if record is None or record.challenge_id != challenge_key:
            raise NotFoundError(PARTICIPANT_RESOURCE, participant_key)
        return record

    async def _check_references(
        self, db: AsyncSession, waypoints_ref: Optional[str], usernames: List[str]
    ) -> None:
        violations = []
        if waypoints_ref is not None and await self.waypoints.find_active(db, waypoints_ref) is None:
            violations.append(
                {
                    "field": "waypoints_ref",
                    "rule": "unknown_reference",
                    "message": f"no active waypoint sequence named '{waypoints_ref}'",
                }
            )
        for index, username in enumerate(usernames):
            if await self.accounts.find_active(db, username) is None:
                violations.append(
                    {
                        "field": f"invited_users.{index}",
                        "rule": "unknown_reference",
                        "message": f"no active account '{username}'",
                    }
                )
        reject(violations)

    async def _ensure_name_free(
        self, db: AsyncSession, name: str, exclude: Optional[str] = None
    ) -> None:
        holders = await self.challenges.find_active_by(db, challenge_name=name)
        if any(holder.challenge_id != exclude for holder in holders):
            raise ConflictError("challenge name already in use", key=name)

    async def _invite(
        self, db: AsyncSession, challenge_key: str, usernames: List[str]
    ) -> List[ChallengeParticipant]:
        invited = []
        for username in usernames:
            existing = await self.participants.find_active_by(
                db, challenge_id=challenge_key, user_name=username
            )
            if existing:
                invited.append(existing[0])
                continue
            invited.append(
                await self.participants.create(
                    db,
                    str(uuid.uuid4()),
                    {
                        "challenge_id": challenge_key,
                        "user_name": username,
                        "participant_name": "",
                        "state": ParticipantState.PENDING.value,
                    },
                )
            )
        return invited

    @staticmethod
    def _fields(data: ChallengeInput) -> dict:
        return {
            "challenge_name": data.challenge_name,
            "challenge_desc": data.challenge_desc,
            "waypoints_ref": data.waypoints_ref,
            "start_time": data.start_time,
            "duration": data.duration,
        }

    @staticmethod
    def _to_response(record: Challenge) -> ChallengeResponse:
        return ChallengeResponse(
            challenge_id=record.challenge_id,
            challenge_name=record.challenge_name,
            challenge_desc=record.challenge_desc,
            waypoints_ref=record.waypoints_ref,
            start_time=record.start_time,
            duration=record.duration,
            valid_from=record.valid_from,
            valid_until=record.valid_until,
        )

    @staticmethod
    def _participant_response(record: ChallengeParticipant) -> ParticipantResponse:
        return ParticipantResponse(
            challenge_participant_id=record.challenge_participant_id,
            challenge_id=record.challenge_id,
            user_name=record.user_name,
            participant_name=record.participant_name,
            state=ParticipantState(record.state),
            valid_from=record.valid_from,
            valid_until=record.valid_until,
        )


# Singleton instance
challenge_service = ChallengeService()


def get_challenge_service() -> ChallengeService:
    """FastAPI dependency; override in tests via app.dependency_overrides."""
    return challenge_service
