"""
Scavenger Hunt Backend - Account Service
=========================================

What:  Registration, login, and versioned CRUD for user accounts.
How:   Each operation composes Validation → Temporal Record Store →
       response shaping. Credential work goes through the CredentialStore,
       token issuance through the TokenService.
Who:   /auth and /users route handlers; the startup lifespan (default
       admin seeding); the authorization dependencies (active-account check).

Flow (register):
    ┌───────────┐    ┌──────────────┐    ┌────────┐    ┌──────────────┐
    │  Validate │───▶│ Active check │───▶│  Hash  │───▶│ store.create │
    └───────────┘    └──────────────┘    └────────┘    └──────────────┘
    Reusing a username whose account was deleted is allowed; it is only
    logged. The partial unique index still decides concurrent races.

Output never includes `password_hash`: every response goes through
`_to_response`, which copies an explicit list of fields.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from scavenger.config import settings
from scavenger.exceptions import ConflictError, NotFoundError, UnauthorizedError
from scavenger.models.account import Account
from scavenger.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    LoginRequest,
    LoginResponse,
    Role,
)
from scavenger.services.credentials import CredentialStore, credential_store
from scavenger.services.temporal_store import TemporalStore
from scavenger.services.tokens import TokenService, token_service
from scavenger.validation import (
    ensure_keys_match,
    normalize_username,
    parse_input,
    parse_role_filter,
)

logger = logging.getLogger(__name__)

RESOURCE = "account"


class AccountService:
    """
    Business logic for accounts.

    Collaborators are injected so tests can swap any of them; the module
    instance below wires the configured defaults.
    """

    def __init__(
        self,
        store: Optional[TemporalStore[Account]] = None,
        credentials: Optional[CredentialStore] = None,
        tokens: Optional[TokenService] = None,
    ):
        self.store = store or TemporalStore(Account, "username", RESOURCE)
        self.credentials = credentials or credential_store
        self.tokens = tokens or token_service

    # ── Authentication ────────────────────────────────────────────────────

    async def register(self, db: AsyncSession, payload: Any) -> AccountResponse:
        """
        Create a new account.

        Raises:
            ValidationError: malformed username, weak password, bad roles, ...
            ConflictError:   an active account already holds the username
        """
        data = parse_input(AccountCreate, payload)

        if await self.store.find_active(db, data.username) is not None:
            raise ConflictError(f"{RESOURCE} already exists", key=data.username)
        if await self.store.exists_any_version(db, data.username):
            logger.info("Username '%s' was used before; registering a new account", data.username)

        password_hash = await self.credentials.hash(data.password)
        record = await self.store.create(
            db,
            data.username,
            {
                "password_hash": password_hash,
                "nickname": data.nickname,
                "roles": [role.value for role in data.roles],
            },
        )
        return self._to_response(record)

    async def authenticate(self, db: AsyncSession, payload: Any) -> LoginResponse:
        """
        Check a username/password pair and issue a bearer token.

        Raises:
            ValidationError:   username or password missing / not strings
            NotFoundError:     no active account for the username
            UnauthorizedError: password does not match
        """
        login = parse_input(LoginRequest, payload)

        record = await self.store.find_active(db, login.username)
        if record is None:
            raise NotFoundError(RESOURCE, login.username)

        if not await self.credentials.compare(login.password, record.password_hash):
            logger.info("Failed login for '%s'", login.username)
            raise UnauthorizedError()

        token = self.tokens.issue(record.username, list(record.roles), record.nickname)
        logger.info("Issued token for '%s'", record.username)
        return LoginResponse(token=token, expires_in=self.tokens.expires_in, token_type="Bearer")

    # ── Versioned CRUD ────────────────────────────────────────────────────

    async def update(self, db: AsyncSession, username: str, payload: Any) -> AccountResponse:
        """
        Replace the active version. Omitted fields carry over; the password
        is rehashed only when a new one is supplied.

        Raises:
            ValidationError: invalid body, or body username differs from `username`
            NotFoundError:   no active account
        """
        key = normalize_username(username)
        data = parse_input(AccountUpdate, payload)
        ensure_keys_match(key, data.username, "username")

        fields = {}
        if data.password is not None:
            fields["password_hash"] = await self.credentials.hash(data.password)
        if data.nickname is not None:
            fields["nickname"] = data.nickname
        if data.roles is not None:
            fields["roles"] = [role.value for role in data.roles]

        record = await self.store.update(db, key, fields)
        return self._to_response(record)

    async def delete(self, db: AsyncSession, username: str) -> None:
        await self.store.soft_delete(db, normalize_username(username))

    async def get(self, db: AsyncSession, username: str) -> AccountResponse:
        key = normalize_username(username)
        record = await self.store.find_active(db, key)
        if record is None:
            raise NotFoundError(RESOURCE, key)
        return self._to_response(record)

    async def list(
        self,
        db: AsyncSession,
        include_deleted: bool = False,
        role: Optional[str] = None,
    ) -> List[AccountResponse]:
        """Active accounts (or every version), optionally only those holding `role`."""
        role_filter = parse_role_filter(role)
        records = await self.store.list(db, include_history=include_deleted)
        if role_filter is not None:
            records = [r for r in records if role_filter.value in (r.roles or [])]
        return [self._to_response(r) for r in records]

    async def history(self, db: AsyncSession, username: str) -> List[AccountResponse]:
        """
        Every version of the account, newest first.

        Raises:
            NotFoundError: the username was never registered
        """
        key = normalize_username(username)
        records = await self.store.history(db, key)
        if not records:
            raise NotFoundError(RESOURCE, key)
        return [self._to_response(r) for r in records]

    # ── Startup ───────────────────────────────────────────────────────────

    async def ensure_default_admin(
        self,
        db: AsyncSession,
        username: Optional[str] = None,
        password: Optional[str] = None,
        nickname: Optional[str] = None,
    ) -> bool:
        """
        Seed the configured admin account if it is not active.

        Returns True when an account was created. Goes through the same
        validation as registration, so a bad configured value fails startup.
        """
        data = parse_input(
            AccountCreate,
            {
                "username": username or settings.default_admin_username,
                "password": password or settings.default_admin_password,
                "nickname": nickname or settings.default_admin_nickname,
                "roles": [Role.ADMIN.value],
            },
        )
        if await self.store.find_active(db, data.username) is not None:
            logger.info("Default admin '%s' already present", data.username)
            return False

        await self.store.create(
            db,
            data.username,
            {
                "password_hash": await self.credentials.hash(data.password),
                "nickname": data.nickname,
                "roles": [role.value for role in data.roles],
            },
        )
        logger.warning("Seeded default admin account '%s'", data.username)
        return True

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _to_response(record: Account) -> AccountResponse:
        return AccountResponse(
            user_id=record.id,
            username=record.username,
            nickname=record.nickname,
            roles=list(record.roles or []),
            valid_from=record.valid_from,
            valid_until=record.valid_until,
        )


# Singleton instance
account_service = AccountService()


def get_account_service() -> AccountService:
    """FastAPI dependency; override in tests via app.dependency_overrides."""
    return account_service
