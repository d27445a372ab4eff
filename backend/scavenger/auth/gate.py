"""
Scavenger Hunt Backend - Authorization Gate
============================================

What:  Authenticates a raw bearer token and checks role requirements.
Who:   FastAPI dependencies in `scavenger.auth.dependencies`; usable
       without a web framework (tests call it directly).
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Union

from scavenger.exceptions import AuthenticationError, AuthorizationError
from scavenger.schemas.account import Role
from scavenger.services.tokens import TokenService, token_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """An authenticated caller."""
    username: str
    roles: FrozenSet[str] = field(default_factory=frozenset)
    display_name: str = ""

    def has_role(self, role: Union[Role, str]) -> bool:
        value = role.value if isinstance(role, Role) else role
        return value in self.roles


class AuthorizationGate:
    def __init__(self, tokens: TokenService):
        self.tokens = tokens

    def authenticate(self, raw_token: Optional[str]) -> Identity:
        """
        Unauthenticated → Authenticated.

        Raises:
            AuthenticationError: absent/blank token ("missing or invalid token"),
                                 or whatever the token service rejects
        """
        if raw_token is None or not raw_token.strip():
            raise AuthenticationError("missing or invalid token")
        claims = self.tokens.verify(raw_token.strip())
        return Identity(
            username=claims.identity,
            roles=frozenset(claims.roles),
            display_name=claims.display_name,
        )

    def authorize(self, identity: Identity, required_role: Union[Role, str]) -> Identity:
        """
        Authenticated → Authorized.

        Raises:
            AuthorizationError: `required_role` is not among the identity's roles
        """
        if not identity.has_role(required_role):
            role = required_role.value if isinstance(required_role, Role) else required_role
            logger.info("Denied '%s': role '%s' required", identity.username, role)
            raise AuthorizationError("insufficient permissions", required_role=role)
        return identity


# Singleton instance
authorization_gate = AuthorizationGate(token_service)
