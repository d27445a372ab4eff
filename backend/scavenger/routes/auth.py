"""
Scavenger Hunt Backend - Authentication Routes
===============================================

What:  POST /auth/login and POST /auth/register.
How:   Bodies are passed through as raw JSON; the account service validates
       them so every violation is reported in one 400 response.
Who:   Unauthenticated clients (game app, admin console).
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from scavenger.database import get_db_session
from scavenger.schemas.account import LoginResponse, RegisterResponse
from scavenger.schemas.common import ErrorResponse
from scavenger.services.account_service import AccountService, get_account_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Malformed body", "model": ErrorResponse},
        401: {"description": "Wrong password", "model": ErrorResponse},
        404: {"description": "No active account", "model": ErrorResponse},
    },
    summary="Exchange username and password for a bearer token",
)
async def login(
    payload: Dict[str, Any] = Body(..., examples=[{"username": "a@b.com", "password": "password123"}]),
    db: AsyncSession = Depends(get_db_session),
    accounts: AccountService = Depends(get_account_service),
) -> LoginResponse:
    return await accounts.authenticate(db, payload)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid registration data", "model": ErrorResponse},
        409: {"description": "Active account already exists", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
    accounts: AccountService = Depends(get_account_service),
) -> RegisterResponse:
    account = await accounts.register(db, payload)
    return RegisterResponse(user_id=account.user_id, username=account.username)
