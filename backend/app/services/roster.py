"""Roster Service — read-only projection of room membership and scores.

Invariants:
    - Side-effect free: safe to poll every few seconds
    - Unknown/closed room → None (caller maps to ROOM_NOT_FOUND), never stale rows
    - Order is stable: join time, then id

Design Decisions:
    - Identity is required by the route but the guard is skipped: any authenticated
      player who knows a room code may watch its roster (lobby join screen)
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.player import Player
from app.services.access import get_room_by_code


@dataclass(frozen=True)
class RosterEntry:
    id: UUID
    nickname: str
    points: int


async def list_players(db: AsyncSession, code: str) -> list[RosterEntry] | None:
    room = await get_room_by_code(db, code)
    if room is None:
        return None
    result = await db.execute(
        select(Player.id, Player.nickname, Player.points)
        .where(Player.room_id == room.id)
        .order_by(Player.created_at, Player.id),
    )
    return [
        RosterEntry(id=row.id, nickname=row.nickname, points=row.points)
        for row in result.all()
    ]
