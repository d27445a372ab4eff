"""
Scavenger Hunt Backend - Account Schemas
=========================================

What:  Pydantic models for account input (register, update, login) and the
       account representations returned to clients.
How:   Input models normalize and reject malformed values; pydantic collects
       every failing field into one error, which the validation layer turns
       into a single ValidationError listing all violations.
Who:   AccountService (input parsing, response shaping) and the /auth and
       /users routes (response models).

Security:
    No response model carries `password_hash`. Responses are built from
    explicit field lists in AccountService, never from the ORM row directly.
"""

import re
import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field, StrictStr, field_validator
from pydantic_core import PydanticCustomError

# Standard email shape: something@domain.tld, no whitespace
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 8


class Role(str, Enum):
    """Fixed set of role tags an account may hold."""
    ADMIN = "admin"
    PLAYER = "player"
    VIEWER = "viewer"


# ── Field Rules ───────────────────────────────────────────────────────────
# Shared by the input models below; each raises one typed violation.


def _username(value: str) -> str:
    normalized = value.strip().lower()
    if not EMAIL_PATTERN.match(normalized):
        raise PydanticCustomError("email_format", "username must be a valid email address")
    return normalized


def _password(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise PydanticCustomError(
            "password_length",
            "password must be at least {min_length} characters",
            {"min_length": MIN_PASSWORD_LENGTH},
        )
    if not re.search(r"[A-Za-z]", value) or not re.search(r"\d", value):
        raise PydanticCustomError(
            "password_strength", "password must contain at least one letter and one digit"
        )
    return value


def _nickname(value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise PydanticCustomError("blank", "nickname must not be empty")
    return trimmed


def _roles(value: List[Role]) -> List[Role]:
    # Collapse duplicates, keep first-seen order
    return list(dict.fromkeys(value))


Username = Annotated[StrictStr, AfterValidator(_username)]
Password = Annotated[StrictStr, AfterValidator(_password)]
Nickname = Annotated[StrictStr, AfterValidator(_nickname)]
Roles = Annotated[List[Role], Field(min_length=1), AfterValidator(_roles)]


# ══════════════════════════════════════════════════════════════════════════
# Input Models
# ══════════════════════════════════════════════════════════════════════════


class AccountCreate(BaseModel):
    """Body of POST /auth/register and POST /users."""
    username: Username
    password: Password
    nickname: Nickname
    roles: Roles


class AccountUpdate(BaseModel):
    """
    Body of PUT /users/{username}.

    `username` must equal the path key. Omitted fields keep their current
    value; an omitted password keeps the existing credential.
    """
    username: Username
    password: Optional[Password] = None
    nickname: Optional[Nickname] = None
    roles: Optional[Roles] = None


class LoginRequest(BaseModel):
    """Body of POST /auth/login. Shape only; credentials are checked by the service."""
    username: StrictStr = Field(min_length=1)
    password: StrictStr = Field(min_length=1)

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        return v.strip().lower()


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AccountResponse(BaseModel):
    """One version of an account, credential hash stripped."""
    user_id: uuid.UUID = Field(description="Identifier of this version")
    username: str
    nickname: str
    roles: List[str]
    valid_from: datetime
    valid_until: Optional[datetime] = Field(
        default=None, description="Null while this version is active"
    )


class AccountListResponse(BaseModel):
    users: List[AccountResponse]


class AccountHistoryResponse(BaseModel):
    history: List[AccountResponse] = Field(description="Newest version first")


class RegisterResponse(BaseModel):
    """Returned by POST /auth/register as `{"user-id": ..., "username": ...}`."""
    user_id: uuid.UUID = Field(serialization_alias="user-id")
    username: str


class LoginResponse(BaseModel):
    token: str = Field(description="Signed bearer token")
    expires_in: int = Field(description="Token lifetime in seconds")
    token_type: str = Field(default="Bearer")
