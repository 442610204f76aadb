"""Input Validators — pure normalization of request fields into domain values.

Invariants:
    - Every failure raises InvalidInputError with an INVALID_<FIELD> code
    - Validators never touch the store: they run before any lookup or mutation
    - Room codes are case-insensitive and always returned upper-cased

Design Decisions:
    - Plain functions over Pydantic models here: request bodies arrive as untyped JSON
      and must be checked only AFTER identity resolution, so unauthenticated callers
      always see UNAUTHORIZED regardless of body contents
"""

import re
from uuid import UUID

from app.core.domain_types import (
    MIN_ROUNDS, MAX_ROUNDS, MAX_ROOM_NAME_LENGTH, PlayerChallengeId,
)
from app.core.errors import InvalidInputError


SESSION_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]{16,256}$")
ROOM_CODE_PATTERN = re.compile(r"^[A-Z0-9]{4,10}$")
# Family (5) + "/" + subtype fits player_challenges.media_mime VARCHAR(100)
MIME_PATTERN = re.compile(r"^(image|video)/[a-z0-9.+\-]{0,94}$")


def is_well_formed_token(token: object) -> bool:
    """Session tokens are opaque, but must at least look like one."""
    return isinstance(token, str) and bool(SESSION_TOKEN_PATTERN.match(token))


def validate_room_code(code: object) -> str:
    if not isinstance(code, str):
        raise InvalidInputError("INVALID_ROOM_CODE", "Room code must be a string")
    normalized = code.strip().upper()
    if not ROOM_CODE_PATTERN.match(normalized):
        raise InvalidInputError(
            "INVALID_ROOM_CODE", "Room code must be 4-10 letters or digits",
        )
    return normalized


def validate_room_name(name: object) -> str | None:
    """Strip the name; empty clears it."""
    if name is None:
        return None
    if not isinstance(name, str):
        raise InvalidInputError("INVALID_NAME", "Room name must be a string")
    stripped = name.strip()
    if len(stripped) > MAX_ROOM_NAME_LENGTH:
        raise InvalidInputError(
            "INVALID_NAME",
            f"Room name must be at most {MAX_ROOM_NAME_LENGTH} characters",
        )
    return stripped or None


def validate_rounds(rounds: object) -> int:
    """Round count must be an integer in [MIN_ROUNDS, MAX_ROUNDS].

    bool is rejected even though it subclasses int.
    """
    if isinstance(rounds, bool) or not isinstance(rounds, int):
        raise InvalidInputError("INVALID_ROUNDS", "Rounds must be an integer")
    if not MIN_ROUNDS <= rounds <= MAX_ROUNDS:
        raise InvalidInputError(
            "INVALID_ROUNDS",
            f"Rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}",
        )
    return rounds


def validate_player_challenge_id(value: object) -> PlayerChallengeId:
    if not isinstance(value, str):
        raise InvalidInputError(
            "INVALID_PLAYER_CHALLENGE_ID", "playerChallengeId must be a UUID",
        )
    try:
        return PlayerChallengeId(UUID(value.strip()))
    except ValueError:
        raise InvalidInputError(
            "INVALID_PLAYER_CHALLENGE_ID", "playerChallengeId must be a UUID",
        )


def validate_mime(mime: object) -> str:
    """Only image/* and video/* are accepted. Returned lower-cased."""
    if not isinstance(mime, str) or not mime:
        raise InvalidInputError("INVALID_MIME", "mime is required")
    normalized = mime.strip().lower()
    if not MIME_PATTERN.match(normalized):
        raise InvalidInputError(
            "INVALID_MIME", "mime must be an image/* or video/* type",
        )
    return normalized


def validate_storage_path(path: object) -> str:
    if not isinstance(path, str) or not path.strip():
        raise InvalidInputError("INVALID_PATH", "path is required")
    return path.strip()
