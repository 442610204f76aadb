"""Room Routes — room info, caller identity, roster, and owner lifecycle actions.

Invariants:
    - Identity resolved before any body/query validation (UNAUTHORIZED always wins)
    - Validation happens before the service call, i.e. before any mutation
    - start/rounds ALREADY_APPLIED → 409 CONFLICT carrying the current room, so a
      retrying client can proceed; end ALREADY_APPLIED → 200 (idempotent no-op)
    - REJECTED → 503 TRANSITION_REJECTED, never 409: the room did not change
    - Roster on an unknown/closed room → 404 ROOM_NOT_FOUND with players: []

Design Decisions:
    - Thin routes: validate, delegate to services, shape JSON (ADR: impureim sandwich)
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_player, read_json_body
from app.core.domain_types import PlayerIdentity, RoomAction, TransitionOutcome
from app.core.errors import (
    ConflictError, ResourceNotFoundError, TransitionRejectedError,
)
from app.core.timestamps import iso_utc
from app.core.validators import validate_room_code, validate_room_name, validate_rounds
from app.infrastructure.database import get_db
from app.schemas.room import PlayerView, RoomView, dump
from app.services import room_lifecycle
from app.services.access import authorize_room_action
from app.services.identity import get_player_profile
from app.services.roster import list_players

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/rooms", tags=["rooms"])


def _transition_response(
    result: room_lifecycle.TransitionResult,
    conflict_message: str,
    rejected_message: str = "Transition was not applied, try again",
    **extra,
) -> JSONResponse | dict:
    room = dump(RoomView.from_room(result.room))
    if result.outcome == TransitionOutcome.APPLIED:
        return {"ok": True, "outcome": result.outcome.value, "room": room, **extra}
    if result.outcome == TransitionOutcome.REJECTED:
        error = TransitionRejectedError(rejected_message)
    else:
        error = ConflictError(conflict_message)
    return JSONResponse(
        status_code=error.http_status,
        content={
            **error.to_response(),
            "outcome": result.outcome.value,
            "room": room,
            **extra,
        },
    )


@router.get("/info")
async def room_info(
    identity: PlayerIdentity = Depends(get_current_player),
    code: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Room configuration and schedule, visible to members only."""
    room = await authorize_room_action(
        db, identity, validate_room_code(code), RoomAction.VIEW,
    )
    return {"ok": True, "room": dump(RoomView.from_room(room))}


@router.get("/me")
async def me(
    identity: PlayerIdentity = Depends(get_current_player),
    db: AsyncSession = Depends(get_db),
):
    player, room, role = await get_player_profile(db, identity)
    return {
        "ok": True,
        "player": dump(PlayerView.from_player(player)),
        "roomCode": room.code,
        "role": role.value if role else None,
    }


@router.get("/players")
async def room_players(
    identity: PlayerIdentity = Depends(get_current_player),
    code: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Roster snapshot. Polled by clients; no authorization beyond identity."""
    room_code = validate_room_code(code)
    players = await list_players(db, room_code)
    if players is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                **ResourceNotFoundError("Room", room_code).to_response(),
                "players": [],
            },
        )
    return {
        "ok": True,
        "players": [dump(PlayerView.from_player(p)) for p in players],
    }


@router.post("/rename")
async def rename_room(
    identity: PlayerIdentity = Depends(get_current_player),
    body: dict = Depends(read_json_body),
    db: AsyncSession = Depends(get_db),
):
    code = validate_room_code(body.get("code"))
    name = validate_room_name(body.get("name"))
    room = await room_lifecycle.rename_room(db, identity, code, name)
    return {"ok": True, "room": {"code": room.code, "name": room.name}}


@router.post("/rounds")
async def set_rounds(
    identity: PlayerIdentity = Depends(get_current_player),
    body: dict = Depends(read_json_body),
    db: AsyncSession = Depends(get_db),
):
    code = validate_room_code(body.get("code"))
    rounds = validate_rounds(body.get("rounds"))
    result = await room_lifecycle.set_rounds(db, identity, code, rounds)
    return _transition_response(
        result, "Rounds are locked once the room has started",
    )


@router.post("/start")
async def start_room(
    identity: PlayerIdentity = Depends(get_current_player),
    body: dict = Depends(read_json_body),
    db: AsyncSession = Depends(get_db),
):
    code = validate_room_code(body.get("code"))
    result = await room_lifecycle.start_room(db, identity, code)
    return _transition_response(
        result,
        "Room has already started",
        "Room configuration kept changing; start was not applied",
        startsAt=iso_utc(result.room.starts_at),
        endsAt=iso_utc(result.room.ends_at),
    )


@router.post("/end")
async def end_room(
    identity: PlayerIdentity = Depends(get_current_player),
    body: dict = Depends(read_json_body),
    db: AsyncSession = Depends(get_db),
):
    code = validate_room_code(body.get("code"))
    result = await room_lifecycle.end_room(db, identity, code)
    return {
        "ok": True,
        "outcome": result.outcome.value,
        "endedAt": iso_utc(result.room.ends_at),
        "room": dump(RoomView.from_room(result.room)),
    }


@router.post("/close")
async def close_room(
    identity: PlayerIdentity = Depends(get_current_player),
    body: dict = Depends(read_json_body),
    db: AsyncSession = Depends(get_db),
):
    """Delete the room and every player, session and challenge in it."""
    code = validate_room_code(body.get("code"))
    await room_lifecycle.close_room(db, identity, code)
    return {"ok": True}
