# Services package init
"""
Scavenger Hunt Backend - Services Layer
========================================

What:  Business logic between the HTTP routes and the database.

Service Inventory:
    - TemporalStore:    generic append-only versioning, one active row per key
    - CredentialStore:  bcrypt hashing, off the event loop
    - TokenService:     HS256 bearer tokens (PyJWT)
    - AccountService:   registration, login, versioned account CRUD
    - WaypointService:  versioned waypoint-sequence CRUD
    - ChallengeService: versioned challenges and their participants
"""
