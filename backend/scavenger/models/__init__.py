"""ORM models. Importing this package registers every table with Base.metadata."""

from scavenger.models.account import Account
from scavenger.models.challenge import Challenge, ChallengeParticipant
from scavenger.models.waypoint import WaypointSequence

__all__ = ["Account", "Challenge", "ChallengeParticipant", "WaypointSequence"]
