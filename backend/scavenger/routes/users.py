"""
Scavenger Hunt Backend - User Routes
=====================================

What:  Versioned account management under /users.
Who:   Admin console. Reading a single account only needs a valid token;
       everything else requires the admin role.

Routes:
    GET    /users                      list (include_deleted, role filters)
    GET    /users/{username}           current version
    GET    /users/{username}/history   every version, newest first
    POST   /users                      create
    PUT    /users/{username}           replace current version
    DELETE /users/{username}           soft delete
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from scavenger.auth.dependencies import get_current_identity, require_role
from scavenger.database import get_db_session
from scavenger.schemas.account import (
    AccountHistoryResponse,
    AccountListResponse,
    AccountResponse,
    Role,
)
from scavenger.schemas.common import ErrorResponse
from scavenger.services.account_service import AccountService, get_account_service

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Admin role required", "model": ErrorResponse},
    },
)

admin_only = [Depends(require_role(Role.ADMIN))]


@router.get("", response_model=AccountListResponse, dependencies=admin_only)
async def list_users(
    include_deleted: bool = Query(default=False, description="Include historical versions"),
    role: Optional[str] = Query(default=None, description="Only accounts holding this role"),
    db: AsyncSession = Depends(get_db_session),
    accounts: AccountService = Depends(get_account_service),
) -> AccountListResponse:
    users = await accounts.list(db, include_deleted=include_deleted, role=role)
    return AccountListResponse(users=users)


@router.get(
    "/{username}",
    response_model=AccountResponse,
    dependencies=[Depends(get_current_identity)],
    responses={404: {"description": "No active account", "model": ErrorResponse}},
)
async def get_user(
    username: str,
    db: AsyncSession = Depends(get_db_session),
    accounts: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return await accounts.get(db, username)


@router.get(
    "/{username}/history",
    response_model=AccountHistoryResponse,
    dependencies=admin_only,
    responses={404: {"description": "Username never registered", "model": ErrorResponse}},
)
async def get_user_history(
    username: str,
    db: AsyncSession = Depends(get_db_session),
    accounts: AccountService = Depends(get_account_service),
) -> AccountHistoryResponse:
    return AccountHistoryResponse(history=await accounts.history(db, username))


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only,
    responses={409: {"description": "Active account already exists", "model": ErrorResponse}},
)
async def create_user(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
    accounts: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return await accounts.register(db, payload)


@router.put(
    "/{username}",
    response_model=AccountResponse,
    dependencies=admin_only,
    responses={404: {"description": "No active account", "model": ErrorResponse}},
)
async def update_user(
    username: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
    accounts: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return await accounts.update(db, username, payload)


@router.delete(
    "/{username}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=admin_only,
    responses={404: {"description": "No active account", "model": ErrorResponse}},
)
async def delete_user(
    username: str,
    db: AsyncSession = Depends(get_db_session),
    accounts: AccountService = Depends(get_account_service),
) -> Response:
    await accounts.delete(db, username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
