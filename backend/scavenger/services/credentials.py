"""
Scavenger Hunt Backend - Credential Store
==========================================

What:  Password hashing and verification with bcrypt.
How:   bcrypt is CPU-bound (~250ms at 12 rounds), so both operations run in
       a worker thread via asyncio.to_thread and the event loop stays free.
Who:   AccountService (register, update with password, login, admin seeding).
"""

import asyncio
import logging

import bcrypt

from scavenger.config import settings

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Hashes and compares plaintext passwords.

    Args:
        rounds: bcrypt cost factor (log2 of the iteration count)
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def _hash_sync(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def _compare_sync(plaintext: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            logger.warning("Credential comparison against a malformed hash")
            return False

    async def hash(self, plaintext: str) -> str:
        return await asyncio.to_thread(self._hash_sync, plaintext)

    async def compare(self, plaintext: str, hashed: str) -> bool:
        """True if `plaintext` matches `hashed`. A malformed hash never matches."""
        return await asyncio.to_thread(self._compare_sync, plaintext, hashed)


# Singleton instance
credential_store = CredentialStore(rounds=settings.bcrypt_rounds)
