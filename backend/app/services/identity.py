"""Identity Resolver — session token → PlayerIdentity.

Invariants:
    - Missing, malformed, unknown token → UnauthorizedError (never a "not found")
    - A session whose player row is gone is also UNAUTHORIZED
    - Read-only: never creates, refreshes, or deletes sessions

Design Decisions:
    - One query joining player_sessions → players: the room id is needed by every
      room-scoped check, and a dangling session must not authenticate
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import MemberRole, PlayerId, PlayerIdentity, RoomId
from app.core.errors import UnauthorizedError
from app.core.validators import is_well_formed_token
from app.models.player import Player
from app.models.player_session import PlayerSession
from app.models.room import Room
from app.services.access import get_member_role

logger = logging.getLogger(__name__)


async def resolve_identity(
    db: AsyncSession, token: str | None,
) -> PlayerIdentity:
    if not is_well_formed_token(token):
        raise UnauthorizedError()

    result = await db.execute(
        select(Player.id, Player.room_id)
        .join(PlayerSession, PlayerSession.player_id == Player.id)
        .where(PlayerSession.session_token == token),
    )
    row = result.one_or_none()
    if row is None:
        logger.info("Session token did not resolve to a player")
        raise UnauthorizedError()
    return PlayerIdentity(player_id=PlayerId(row.id), room_id=RoomId(row.room_id))


async def get_player_profile(
    db: AsyncSession, identity: PlayerIdentity,
) -> tuple[Player, Room, MemberRole | None]:
    """Caller's player row, room, and membership role (None if no membership row)."""
    player = await db.get(Player, identity.player_id)
    room = await db.get(Room, identity.room_id)
    if player is None or room is None:
        raise UnauthorizedError()
    role = await get_member_role(db, identity.room_id, identity)
    return player, room, role
