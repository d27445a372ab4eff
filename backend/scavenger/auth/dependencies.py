"""
Scavenger Hunt Backend - Authorization Dependencies
====================================================

What:  FastAPI dependencies that run the authorization gate for a route.
How:   The token comes from `Authorization: Bearer <token>`, or from the
       legacy `user-auth-token` header older clients send. A verified token
       must still belong to an active account: deleting an account revokes
       its outstanding tokens.
Who:   /users and /waypoints routes.

Usage:
    @router.get("/users", dependencies=[Depends(require_role(Role.ADMIN))])
    async def list_users(...): ...
"""

from typing import Callable, Optional, Union

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from scavenger.auth.gate import Identity, authorization_gate
from scavenger.database import get_db_session
from scavenger.exceptions import AuthenticationError
from scavenger.schemas.account import Role
from scavenger.services.account_service import AccountService, get_account_service


def bearer_token(
    authorization: Optional[str] = Header(default=None),
    user_auth_token: Optional[str] = Header(default=None),
) -> Optional[str]:
    """Raw token from the request headers, or None when absent."""
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    if user_auth_token and user_auth_token.strip():
        return user_auth_token.strip()
    return None


async def get_current_identity(
    token: Optional[str] = Depends(bearer_token),
    db: AsyncSession = Depends(get_db_session),
    accounts: AccountService = Depends(get_account_service),
) -> Identity:
    """
    Raises:
        AuthenticationError: no token, a rejected token, or the token's
                             account is no longer active
    """
    identity = authorization_gate.authenticate(token)
    if await accounts.store.find_active(db, identity.username) is None:
        raise AuthenticationError("invalid token")
    return identity


def require_role(role: Union[Role, str]) -> Callable:
    """Build a dependency that admits only identities holding `role`."""

    async def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        return authorization_gate.authorize(identity, role)

    return dependency
