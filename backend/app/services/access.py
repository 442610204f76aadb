"""Access Service — the single authorization entry point used by every protected operation.

Invariants:
    - Rows are loaded here, decisions are made in core/authorization.py
    - Role is read from room_members by exact (room_id, player_id) — never from the request
    - NOT_FOUND on a room → ROOM_NOT_FOUND; NOT_ALLOWED → NotAllowedError
    - Challenge checks collapse "missing" and "foreign" into one NOT_ALLOWED

Design Decisions:
    - Functions return the loaded row on success so callers never re-query
      what the guard already authorized (ADR: one guard, no per-endpoint copies)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import (
    decide_challenge_access, decide_room_action, path_in_player_sandbox,
)
from app.core.domain_types import (
    AccessDecision, MemberRole, PlayerChallengeId, PlayerIdentity, RoomAction, RoomId,
)
from app.core.errors import ErrorContext, NotAllowedError, ResourceNotFoundError
from app.models.player_challenge import PlayerChallenge
from app.models.room import Room
from app.models.room_member import RoomMember

logger = logging.getLogger(__name__)


async def get_room_by_code(db: AsyncSession, code: str) -> Room | None:
    result = await db.execute(select(Room).where(Room.code == code))
    return result.scalar_one_or_none()


async def get_member_role(
    db: AsyncSession, room_id: RoomId, identity: PlayerIdentity,
) -> MemberRole | None:
    result = await db.execute(
        select(RoomMember.role).where(
            RoomMember.room_id == room_id,
            RoomMember.player_id == identity.player_id,
        ),
    )
    role = result.scalar_one_or_none()
    return MemberRole(role) if role else None


async def authorize_room_action(
    db: AsyncSession,
    identity: PlayerIdentity,
    code: str,
    action: RoomAction,
) -> Room:
    """Load the room by (normalized) code and enforce `action` for the caller."""
    room = await get_room_by_code(db, code)
    role = None
    if room is not None and room.id == identity.room_id:
        role = await get_member_role(db, RoomId(room.id), identity)

    decision = decide_room_action(
        action,
        RoomId(room.id) if room is not None else None,
        identity.room_id,
        role,
    )
    context = ErrorContext(room_code=code, player_id=str(identity.player_id))
    if decision == AccessDecision.NOT_FOUND:
        raise ResourceNotFoundError("Room", code, context=context)
    if decision == AccessDecision.NOT_ALLOWED:
        logger.warning(
            f"Denied {action.value} on room",
            extra={"room_code": code, "player_id": identity.player_id},
        )
        raise NotAllowedError(
            f"Only the room owner may {action.value.replace('_', ' ')}",
            context=context,
        )
    return room


async def authorize_challenge_owner(
    db: AsyncSession,
    identity: PlayerIdentity,
    player_challenge_id: PlayerChallengeId,
) -> PlayerChallenge:
    result = await db.execute(
        select(PlayerChallenge).where(PlayerChallenge.id == player_challenge_id),
    )
    challenge = result.scalar_one_or_none()
    decision = decide_challenge_access(
        challenge.player_id if challenge is not None else None,
        identity.player_id,
    )
    if decision != AccessDecision.ALLOWED:
        logger.warning(
            "Denied access to player challenge",
            extra={
                "player_challenge_id": player_challenge_id,
                "player_id": identity.player_id,
            },
        )
        raise NotAllowedError(
            "Challenge does not belong to this player",
            context=ErrorContext(player_id=str(identity.player_id)),
        )
    return challenge


def authorize_storage_path(identity: PlayerIdentity, path: str) -> None:
    if not path_in_player_sandbox(path, identity.player_id):
        logger.warning(
            "Rejected storage path outside player sandbox",
            extra={"path": path, "player_id": identity.player_id},
        )
        raise NotAllowedError(
            "Path is outside the player's upload area",
            context=ErrorContext(player_id=str(identity.player_id)),
        )
