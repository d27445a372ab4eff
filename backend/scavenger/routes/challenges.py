"""
Scavenger Hunt Backend - Challenge Routes
==========================================

What:  Challenge scheduling and participant management under /challenges.
Who:   Admin console; every route requires the admin role.

Routes:
    GET    /challenges                                         list (include_deleted)
    POST   /challenges                                         create, optionally inviting accounts
    GET    /challenges/{id}                                    current version
    GET    /challenges/{id}/history                            every version, newest first
    PUT    /challenges/{id}                                    replace current version
    DELETE /challenges/{id}                                    cancel (soft delete, with participants)
    GET    /challenges/{id}/participants                       active participants
    POST   /challenges/{id}/participants                       invite accounts (idempotent)
    GET    /challenges/{id}/participants/by-user/{username}    participant of one account
    GET    /challenges/{id}/participants/{participant_id}      one participant
    PUT    /challenges/{id}/participants/{participant_id}      change state / participant_name

Identifiers are UUIDs; a malformed one is rejected with 400 before any
lookup happens.
"""

import uuid
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from scavenger.auth.dependencies import require_role
from scavenger.database import get_db_session
from scavenger.schemas.account import Role
from scavenger.schemas.challenge import (
    ChallengeCreatedResponse,
    ChallengeHistoryResponse,
    ChallengeListResponse,
    ChallengeResponse,
    ParticipantListResponse,
    ParticipantResponse,
)
from scavenger.schemas.common import ErrorResponse
from scavenger.services.challenge_service import ChallengeService, get_challenge_service

router = APIRouter(
    prefix="/challenges",
    tags=["Challenges"],
    dependencies=[Depends(require_role(Role.ADMIN))],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Admin role required", "model": ErrorResponse},
    },
)

_not_found = {404: {"description": "No active challenge", "model": ErrorResponse}}


@router.get("", response_model=ChallengeListResponse)
async def list_challenges(
    include_deleted: bool = Query(default=False, description="Include historical versions"),
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> ChallengeListResponse:
    return ChallengeListResponse(
        challenges=await challenges.list(db, include_deleted=include_deleted)
    )


@router.post(
    "",
    response_model=ChallengeCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid challenge or unknown reference", "model": ErrorResponse},
        409: {"description": "Challenge name already in use", "model": ErrorResponse},
    },
)
async def create_challenge(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> ChallengeCreatedResponse:
    return await challenges.create(db, payload)


@router.get("/{challenge_id}", response_model=ChallengeResponse, responses=_not_found)
async def get_challenge(
    challenge_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> ChallengeResponse:
    return await challenges.get(db, challenge_id)


@router.get("/{challenge_id}/history", response_model=ChallengeHistoryResponse, responses=_not_found)
async def get_challenge_history(
    challenge_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> ChallengeHistoryResponse:
    return ChallengeHistoryResponse(history=await challenges.history(db, challenge_id))


@router.put("/{challenge_id}", response_model=ChallengeResponse, responses=_not_found)
async def update_challenge(
    challenge_id: uuid.UUID,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> ChallengeResponse:
    return await challenges.update(db, challenge_id, payload)


@router.delete(
    "/{challenge_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_not_found,
)
async def delete_challenge(
    challenge_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> Response:
    await challenges.delete(db, challenge_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Participants ──────────────────────────────────────────────────────────


@router.get(
    "/{challenge_id}/participants", response_model=ParticipantListResponse, responses=_not_found
)
async def list_participants(
    challenge_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> ParticipantListResponse:
    return ParticipantListResponse(participants=await challenges.participants_of(db, challenge_id))


@router.post(
    "/{challenge_id}/participants", response_model=ParticipantListResponse, responses=_not_found
)
async def invite_participants(
    challenge_id: uuid.UUID,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> ParticipantListResponse:
    return ParticipantListResponse(participants=await challenges.invite(db, challenge_id, payload))


@router.get(
    "/{challenge_id}/participants/by-user/{username}",
    response_model=ParticipantResponse,
    responses={404: {"description": "Account is not a participant", "model": ErrorResponse}},
)
async def get_participant_by_user(
    challenge_id: uuid.UUID,
    username: str,
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> ParticipantResponse:
    return await challenges.participant_by_user(db, challenge_id, username)


@router.get(
    "/{challenge_id}/participants/{participant_id}",
    response_model=ParticipantResponse,
    responses={404: {"description": "No such participant in this challenge", "model": ErrorResponse}},
)
async def get_participant(
    challenge_id: uuid.UUID,
    participant_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> ParticipantResponse:
    return await challenges.participant(db, challenge_id, participant_id)


@router.put(
    "/{challenge_id}/participants/{participant_id}",
    response_model=ParticipantResponse,
    responses={404: {"description": "No such participant in this challenge", "model": ErrorResponse}},
)
async def update_participant(
    challenge_id: uuid.UUID,
    participant_id: uuid.UUID,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
    challenges: ChallengeService = Depends(get_challenge_service),
) -> ParticipantResponse:
    return await challenges.update_participant(db, challenge_id, participant_id, payload)
