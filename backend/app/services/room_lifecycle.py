"""Room Lifecycle Manager — owner-only configuration and state transitions.

Invariants:
    - Every operation goes through access.authorize_room_action first
    - Writes are conditional UPDATEs filtered on the expected status; rowcount
      decides APPLIED vs ALREADY_APPLIED, so concurrent duplicates converge
    - start computes ends_at from the rounds value it filtered on, so a racing
      set_rounds can never leave ends_at inconsistent with rounds
    - close deletes challenges, sessions, memberships, players, then the room
      in ONE transaction

Design Decisions:
    - Last-writer-wins for rename (no state filter), per product rule
    - No optimistic-concurrency tokens: the status filter IS the guard
      (ADR: store is the single serialization point)
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import (
    PlayerIdentity, RoomAction, RoomStatus, TransitionOutcome,
)
from app.core.room_lifecycle import (
    compute_schedule, plan_end, plan_set_rounds, plan_start,
)
from app.core.timestamps import utc_now
from app.models.player import Player
from app.models.player_challenge import PlayerChallenge
from app.models.player_session import PlayerSession
from app.models.room import Room
from app.models.room_member import RoomMember
from app.services.access import authorize_room_action

logger = logging.getLogger(__name__)

# A concurrent set_rounds can invalidate the rounds value start read; retry once
_MAX_START_ATTEMPTS = 2


@dataclass
class TransitionResult:
    outcome: TransitionOutcome
    room: Room


async def _conditional_update(
    db: AsyncSession, room: Room, *conditions, **values,
) -> bool:
    result = await db.execute(
        update(Room)
        .where(Room.id == room.id, *conditions)
        .values(**values)
        .execution_options(synchronize_session=False),
    )
    return result.rowcount == 1


def _log_transition(action: RoomAction, room: Room, outcome: TransitionOutcome):
    level = logging.WARNING if outcome == TransitionOutcome.REJECTED else logging.INFO
    logger.log(
        level,
        f"Room {action.value}: {outcome.value}",
        extra={"room_code": room.code, "outcome": outcome.value},
    )


async def rename_room(
    db: AsyncSession, identity: PlayerIdentity, code: str, name: str | None,
) -> Room:
    room = await authorize_room_action(db, identity, code, RoomAction.RENAME)
    room.name = name
    await db.commit()
    await db.refresh(room)
    _log_transition(RoomAction.RENAME, room, TransitionOutcome.APPLIED)
    return room


async def set_rounds(
    db: AsyncSession, identity: PlayerIdentity, code: str, rounds: int,
) -> TransitionResult:
    """Change round count while in lobby; ALREADY_APPLIED once the schedule is locked."""
    room = await authorize_room_action(db, identity, code, RoomAction.SET_ROUNDS)
    outcome = plan_set_rounds(RoomStatus(room.status))
    if outcome == TransitionOutcome.APPLIED:
        updated = await _conditional_update(
            db, room, Room.status == RoomStatus.LOBBY.value, rounds=rounds,
        )
        if not updated:
            outcome = TransitionOutcome.ALREADY_APPLIED
        await db.commit()
    await db.refresh(room)
    _log_transition(RoomAction.SET_ROUNDS, room, outcome)
    return TransitionResult(outcome, room)


async def start_room(
    db: AsyncSession, identity: PlayerIdentity, code: str,
) -> TransitionResult:
    """lobby → active with starts_at = now, ends_at = now + rounds * 30min."""
    room = await authorize_room_action(db, identity, code, RoomAction.START)
    outcome = TransitionOutcome.REJECTED
    for _ in range(_MAX_START_ATTEMPTS):
        outcome = plan_start(RoomStatus(room.status))
        if outcome != TransitionOutcome.APPLIED:
            break
        schedule = compute_schedule(utc_now(), room.rounds)
        updated = await _conditional_update(
            db, room,
            Room.status == RoomStatus.LOBBY.value,
            Room.rounds == room.rounds,
            status=RoomStatus.ACTIVE.value,
            starts_at=schedule.starts_at,
            ends_at=schedule.ends_at,
        )
        if updated:
            break
        await db.refresh(room)
    else:
        # rounds kept changing under us while still in lobby
        outcome = TransitionOutcome.REJECTED
    await db.commit()
    await db.refresh(room)
    _log_transition(RoomAction.START, room, outcome)
    return TransitionResult(outcome, room)


async def end_room(
    db: AsyncSession, identity: PlayerIdentity, code: str,
) -> TransitionResult:
    """active → ended with ends_at = now; lobby/ended are accepted no-ops."""
    room = await authorize_room_action(db, identity, code, RoomAction.END)
    outcome = plan_end(RoomStatus(room.status))
    if outcome == TransitionOutcome.APPLIED:
        updated = await _conditional_update(
            db, room,
            Room.status == RoomStatus.ACTIVE.value,
            status=RoomStatus.ENDED.value,
            ends_at=utc_now(),
        )
        if not updated:
            outcome = TransitionOutcome.ALREADY_APPLIED
        await db.commit()
    await db.refresh(room)
    _log_transition(RoomAction.END, room, outcome)
    return TransitionResult(outcome, room)


async def close_room(
    db: AsyncSession, identity: PlayerIdentity, code: str,
) -> None:
    """Irreversibly delete the room and everything that hangs off it."""
    room = await authorize_room_action(db, identity, code, RoomAction.CLOSE)
    room_id = room.id
    player_ids = select(Player.id).where(Player.room_id == room_id)

    for stmt in (
        delete(PlayerChallenge).where(PlayerChallenge.player_id.in_(player_ids)),
        delete(PlayerSession).where(PlayerSession.player_id.in_(player_ids)),
        delete(RoomMember).where(RoomMember.room_id == room_id),
        delete(Player).where(Player.room_id == room_id),
        delete(Room).where(Room.id == room_id),
    ):
        await db.execute(stmt.execution_options(synchronize_session=False))
    await db.commit()
    logger.info("Room closed", extra={"room_code": code})
