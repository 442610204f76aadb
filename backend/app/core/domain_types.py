"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - PlayerId, RoomId, PlayerChallengeId wrap UUIDs — never use bare UUID in domain logic
    - Room.rounds is bounded MIN_ROUNDS–MAX_ROUNDS
    - Every round lasts exactly ROUND_DURATION
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and compare to DB strings without custom encoders
    - TransitionOutcome is tri-state so callers can tell a lost race from a real failure
"""

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

PlayerId = NewType("PlayerId", UUID)
RoomId = NewType("RoomId", UUID)
PlayerChallengeId = NewType("PlayerChallengeId", UUID)


# ─── Constants ───────────────────────────────────────────────────

MIN_ROUNDS: int = 1
MAX_ROUNDS: int = 10
DEFAULT_ROUNDS: int = 4
ROUND_DURATION: timedelta = timedelta(minutes=30)
MAX_ROOM_NAME_LENGTH: int = 60


# ─── Enums ───────────────────────────────────────────────────────

class RoomStatus(str, Enum):
    """Room lifecycle states — maps to DB `status` column."""
    LOBBY = "lobby"
    ACTIVE = "active"
    ENDED = "ended"


class MemberRole(str, Enum):
    """Membership role — the only source of authorization role."""
    OWNER = "owner"
    MEMBER = "member"


class MediaType(str, Enum):
    """Media family of a challenge submission."""
    IMAGE = "image"
    VIDEO = "video"


class RoomAction(str, Enum):
    """Actions checked by the authorization guard."""
    VIEW = "view"
    RENAME = "rename"
    SET_ROUNDS = "set_rounds"
    START = "start"
    END = "end"
    CLOSE = "close"


OWNER_ONLY_ACTIONS = frozenset({
    RoomAction.RENAME,
    RoomAction.SET_ROUNDS,
    RoomAction.START,
    RoomAction.END,
    RoomAction.CLOSE,
})


class AccessDecision(str, Enum):
    """Authorization guard verdict."""
    ALLOWED = "allowed"
    NOT_ALLOWED = "not_allowed"
    NOT_FOUND = "not_found"


class TransitionOutcome(str, Enum):
    """Result of a lifecycle transition attempt.

    ALREADY_APPLIED is the idempotent-retry signal (HTTP 409 for start and
    set_rounds): the target state was reached by an earlier or concurrent call.
    """
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    REJECTED = "rejected"


# ─── Value Objects ───────────────────────────────────────────────

@dataclass(frozen=True)
class PlayerIdentity:
    """Resolved caller identity. Only ever built from a session lookup."""
    player_id: PlayerId
    room_id: RoomId
