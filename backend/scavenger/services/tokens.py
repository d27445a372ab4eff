"""
Scavenger Hunt Backend - Token Service
=======================================

What:  Issues and verifies signed bearer tokens (HS256 JWT) carrying an
       account's identity, roles and display name.
How:   PyJWT encodes the claims below; verification checks signature,
       expiry and issuer, then the shape of the custom claims.
Who:   AccountService issues tokens at login; the AuthorizationGate
       verifies them on every protected request.

Claims:
    upn       username (the identity)
    nickname  display name
    roles     list of role tags
    iss       configured issuer (default "scavenger-hunt-game")
    iat, exp  issued-at and expiry (seconds since epoch)

Failure mapping:
    expired, bad signature, wrong issuer      → "invalid token"
    malformed, unsigned, missing claims       → "missing or invalid token"
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List

import jwt

from scavenger.config import settings
from scavenger.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a bearer token."""
    identity: str
    roles: List[str] = field(default_factory=list)
    display_name: str = ""


class TokenService:
    """
    Args:
        secret:     HMAC signing key
        issuer:     value written to and required in the `iss` claim
        expires_in: token lifetime in seconds
    """

    def __init__(self, secret: str, issuer: str, expires_in: int = 86_400):
        self.secret = secret
        self.issuer = issuer
        self.expires_in = expires_in

    def issue(self, identity: str, roles: List[str], display_name: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "upn": identity,
            "nickname": display_name,
            "roles": list(roles),
            "iss": self.issuer,
            "iat": now,
            "exp": now + timedelta(seconds=self.expires_in),
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and check `token`.

        Raises:
            AuthenticationError: on any failure; the message tells a stale or
                                 forged token apart from a malformed one
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                options={"require": ["exp", "iss", "upn"]},
            )
        except (jwt.ExpiredSignatureError, jwt.InvalidSignatureError, jwt.InvalidIssuerError) as e:
            logger.info("Rejected token: %s", type(e).__name__)
            raise AuthenticationError("invalid token") from e
        except jwt.InvalidTokenError as e:
            logger.info("Rejected malformed token: %s", type(e).__name__)
            raise AuthenticationError("missing or invalid token") from e

        identity = payload.get("upn")
        roles = payload.get("roles", [])
        if not isinstance(identity, str) or not identity:
            raise AuthenticationError("missing or invalid token")
        if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
            raise AuthenticationError("missing or invalid token")

        return TokenClaims(
            identity=identity,
            roles=roles,
            display_name=str(payload.get("nickname") or ""),
        )


# Singleton instance
token_service = TokenService(
    secret=settings.jwt_secret,
    issuer=settings.jwt_issuer,
    expires_in=settings.jwt_expires_in,
)
