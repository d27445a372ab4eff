"""
Scavenger Hunt Backend - Waypoint Routes
=========================================

What:  Versioned waypoint-sequence management under /waypoints.
Who:   Admin console; every route requires the admin role.

Routes:
    GET    /waypoints                  list (include_deleted, name filters)
    GET    /waypoints/summary          active sequences without waypoints
    GET    /waypoints/{name}           current version
    GET    /waypoints/{name}/history   every version, newest first
    POST   /waypoints                  create
    PUT    /waypoints/{name}           replace current version
    DELETE /waypoints/{name}           soft delete

`/summary` is declared before `/{name}` so it is not captured as a name.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from scavenger.auth.dependencies import require_role
from scavenger.database import get_db_session
from scavenger.schemas.account import Role
from scavenger.schemas.common import ErrorResponse
from scavenger.schemas.waypoint import (
    WaypointSequenceHistoryResponse,
    WaypointSequenceListResponse,
    WaypointSequenceResponse,
    WaypointSummaryResponse,
)
from scavenger.services.waypoint_service import WaypointService, get_waypoint_service

router = APIRouter(
    prefix="/waypoints",
    tags=["Waypoints"],
    dependencies=[Depends(require_role(Role.ADMIN))],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Admin role required", "model": ErrorResponse},
    },
)


@router.get("", response_model=WaypointSequenceListResponse)
async def list_waypoint_sequences(
    include_deleted: bool = Query(default=False, description="Include historical versions"),
    name: Optional[str] = Query(default=None, description="Only versions of this sequence"),
    db: AsyncSession = Depends(get_db_session),
    waypoints: WaypointService = Depends(get_waypoint_service),
) -> WaypointSequenceListResponse:
    sequences = await waypoints.list(db, include_deleted=include_deleted, name=name)
    return WaypointSequenceListResponse(waypoint_sequences=sequences)


@router.get("/summary", response_model=WaypointSummaryResponse)
async def summarize_waypoint_sequences(
    db: AsyncSession = Depends(get_db_session),
    waypoints: WaypointService = Depends(get_waypoint_service),
) -> WaypointSummaryResponse:
    return WaypointSummaryResponse(waypoint_sequences_summary=await waypoints.summary(db))


@router.get(
    "/{waypoint_name}",
    response_model=WaypointSequenceResponse,
    responses={404: {"description": "No active sequence", "model": ErrorResponse}},
)
async def get_waypoint_sequence(
    waypoint_name: str,
    db: AsyncSession = Depends(get_db_session),
    waypoints: WaypointService = Depends(get_waypoint_service),
) -> WaypointSequenceResponse:
    return await waypoints.get(db, waypoint_name)


@router.get(
    "/{waypoint_name}/history",
    response_model=WaypointSequenceHistoryResponse,
    responses={404: {"description": "Name never used", "model": ErrorResponse}},
)
async def get_waypoint_sequence_history(
    waypoint_name: str,
    db: AsyncSession = Depends(get_db_session),
    waypoints: WaypointService = Depends(get_waypoint_service),
) -> WaypointSequenceHistoryResponse:
    return WaypointSequenceHistoryResponse(history=await waypoints.history(db, waypoint_name))


@router.post(
    "",
    response_model=WaypointSequenceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid sequence or waypoint", "model": ErrorResponse},
        409: {"description": "Active sequence already exists", "model": ErrorResponse},
    },
)
async def create_waypoint_sequence(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
    waypoints: WaypointService = Depends(get_waypoint_service),
) -> WaypointSequenceResponse:
    return await waypoints.create(db, payload)


@router.put(
    "/{waypoint_name}",
    response_model=WaypointSequenceResponse,
    responses={404: {"description": "No active sequence", "model": ErrorResponse}},
)
async def update_waypoint_sequence(
    waypoint_name: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
    waypoints: WaypointService = Depends(get_waypoint_service),
) -> WaypointSequenceResponse:
    return await waypoints.update(db, waypoint_name, payload)


@router.delete(
    "/{waypoint_name}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"description": "No active sequence", "model": ErrorResponse}},
)
async def delete_waypoint_sequence(
    waypoint_name: str,
    db: AsyncSession = Depends(get_db_session),
    waypoints: WaypointService = Depends(get_waypoint_service),
) -> Response:
    await waypoints.delete(db, waypoint_name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
