"""
Scavenger Hunt Backend - Authorization Gate Package
====================================================

What:  Turns a bearer token into an identity and decides role-gated access.
How:   `gate.py` holds the framework-free state machine; `dependencies.py`
       adapts it to FastAPI (header extraction, active-account check).

Per-request state machine (never retried):
    Unauthenticated ──verify──▶ Authenticated(identity, roles) ──role?──▶ Authorized
          │                            │
          ▼                            ▼
    AuthenticationError (401)    AuthorizationError (403)
"""

from scavenger.auth.gate import AuthorizationGate, Identity, authorization_gate

__all__ = ["AuthorizationGate", "Identity", "authorization_gate"]
