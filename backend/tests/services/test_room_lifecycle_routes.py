"""Room Lifecycle Routes — owner-only transitions, conflict-as-idempotence, close cascade.

Invariants:
    - Non-owners get NOT_ALLOWED for rename/rounds/start/end/close
    - start fixes ends_at - starts_at == rounds * 30 minutes
    - start/rounds on an active room → 409 CONFLICT, schedule untouched
    - Concurrent starts converge on one schedule (one 200, one 409)
    - start that loses to set_rounds retries with the new rounds; if it keeps
      losing → 503 TRANSITION_REJECTED, room stays in lobby
    - Invalid rounds rejected before any mutation
    - end from lobby/ended is a successful no-op
    - close removes every dependent row; roster then reports ROOM_NOT_FOUND
"""

import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select, update

from app.models import Player, PlayerChallenge, PlayerSession, Room, RoomMember
from app.services import room_lifecycle as lifecycle_service
from tests.services.room_fixtures import (
    MEMBER_TOKEN, OUTSIDER_TOKEN, OWNER_TOKEN, auth,
)

OWNER_ACTIONS = [
    ("/api/rooms/rename", {"code": "ABCD", "name": "Hijacked"}),
    ("/api/rooms/rounds", {"code": "ABCD", "rounds": 2}),
    ("/api/rooms/start", {"code": "ABCD"}),
    ("/api/rooms/end", {"code": "ABCD"}),
    ("/api/rooms/close", {"code": "ABCD"}),
]


def _parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


async def _load_room(verify_session, code="ABCD") -> Room | None:
    async with verify_session() as db:
        result = await db.execute(select(Room).where(Room.code == code))
        return result.scalar_one_or_none()


# ─── Authorization ───────────────────────────────────────────────

@pytest.mark.parametrize("url,body", OWNER_ACTIONS)
async def test_member_cannot_perform_owner_actions(client, seed, verify_session, url, body):
    res = await client.post(url, json=body, headers=auth(MEMBER_TOKEN))
    assert res.status_code == 403
    assert res.json()["error"] == "NOT_ALLOWED"

    room = await _load_room(verify_session)
    assert room is not None
    assert room.status == "lobby"
    assert room.name == "Friday"
    assert room.rounds == 4


@pytest.mark.parametrize("url,body", OWNER_ACTIONS)
async def test_owner_of_another_room_cannot_act(client, seed, url, body):
    res = await client.post(url, json=body, headers=auth(OUTSIDER_TOKEN))
    assert res.status_code == 403
    assert res.json()["error"] == "NOT_ALLOWED"


@pytest.mark.parametrize("url,body", OWNER_ACTIONS)
async def test_unknown_room_code_is_not_found(client, seed, url, body):
    res = await client.post(
        url, json={**body, "code": "ZZZZ"}, headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 404
    assert res.json()["error"] == "ROOM_NOT_FOUND"


@pytest.mark.parametrize("code", ["", "ab", "AB-CD", 1234, None, "TOOLONGCODE1"])
async def test_malformed_room_code_rejected(client, seed, code):
    res = await client.post(
        "/api/rooms/start", json={"code": code}, headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 400
    assert res.json()["error"] == "INVALID_ROOM_CODE"


async def test_room_code_is_case_insensitive(client, seed):
    res = await client.post(
        "/api/rooms/rounds", json={"code": "abcd", "rounds": 5},
        headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 200
    assert res.json()["room"]["rounds"] == 5


# ─── set_rounds / start ──────────────────────────────────────────

async def test_start_with_four_rounds_schedules_two_hours(client, seed, verify_session):
    res = await client.post(
        "/api/rooms/rounds", json={"code": "ABCD", "rounds": 4},
        headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 200
    assert res.json()["outcome"] == "applied"

    res = await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    data = res.json()
    assert res.status_code == 200
    assert data["ok"] is True
    assert data["room"]["status"] == "active"
    assert _parse(data["endsAt"]) - _parse(data["startsAt"]) == timedelta(minutes=120)

    room = await _load_room(verify_session)
    assert room.status == "active"
    assert room.ends_at - room.starts_at == timedelta(minutes=120)


async def test_start_with_one_round_schedules_thirty_minutes(client, seed):
    await client.post(
        "/api/rooms/rounds", json={"code": "ABCD", "rounds": 1},
        headers=auth(OWNER_TOKEN),
    )
    res = await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    data = res.json()
    assert _parse(data["endsAt"]) - _parse(data["startsAt"]) == timedelta(minutes=30)
    assert data["room"]["totalMinutes"] == 30


@pytest.mark.parametrize("rounds", [0, 11, -1, "4", 2.5, True, None])
async def test_out_of_range_rounds_rejected_without_mutation(
    client, seed, verify_session, rounds,
):
    res = await client.post(
        "/api/rooms/rounds", json={"code": "ABCD", "rounds": rounds},
        headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 400
    assert res.json()["error"] == "INVALID_ROUNDS"
    room = await _load_room(verify_session)
    assert room.rounds == 4


async def test_second_start_is_conflict_and_keeps_schedule(client, seed, verify_session):
    first = await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    second = await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    assert first.status_code == 200
    assert second.status_code == 409
    body = second.json()
    assert body["ok"] is False
    assert body["error"] == "CONFLICT"
    assert body["outcome"] == "already_applied"
    assert body["startsAt"] == first.json()["startsAt"]
    assert body["endsAt"] == first.json()["endsAt"]

    room = await _load_room(verify_session)
    assert room.ends_at - room.starts_at == timedelta(minutes=120)


async def test_set_rounds_after_start_is_conflict_and_unchanged(
    client, seed, verify_session,
):
    start = await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    res = await client.post(
        "/api/rooms/rounds", json={"code": "ABCD", "rounds": 9},
        headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 409
    assert res.json()["error"] == "CONFLICT"
    assert res.json()["room"]["rounds"] == 4

    room = await _load_room(verify_session)
    assert room.rounds == 4
    assert room.status == "active"
    assert res.json()["room"]["startsAt"] == start.json()["startsAt"]


async def test_configure_then_start_retry_converges(client, seed):
    """A client unsure whether its first attempt landed simply repeats both calls."""
    for _ in range(2):
        rounds = await client.post(
            "/api/rooms/rounds", json={"code": "ABCD", "rounds": 2},
            headers=auth(OWNER_TOKEN),
        )
        start = await client.post(
            "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
        )
        assert rounds.status_code in (200, 409)
        assert start.status_code in (200, 409)
    assert start.json()["room"]["status"] == "active"
    assert start.json()["room"]["rounds"] == 2


async def test_concurrent_starts_yield_one_schedule(client, seed, verify_session):
    first, second = await asyncio.gather(*(
        client.post("/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN))
        for _ in range(2)
    ))
    assert sorted([first.status_code, second.status_code]) == [200, 409]
    assert first.json()["startsAt"] == second.json()["startsAt"]
    assert first.json()["endsAt"] == second.json()["endsAt"]

    room = await _load_room(verify_session)
    assert room.status == "active"
    assert room.ends_at - room.starts_at == timedelta(minutes=120)


def _race_rounds_before_start_update(monkeypatch, times: int):
    """Bump rounds in the store right before start's conditional UPDATE, `times` times."""
    real_update = lifecycle_service._conditional_update
    remaining = [times]

    async def racing_update(db, room, *conditions, **values):
        if "starts_at" in values and remaining[0] > 0:
            remaining[0] -= 1
            await db.execute(
                update(Room).where(Room.id == room.id).values(rounds=Room.rounds + 1),
            )
        return await real_update(db, room, *conditions, **values)

    monkeypatch.setattr(lifecycle_service, "_conditional_update", racing_update)


async def test_start_retries_after_rounds_change_and_uses_new_rounds(
    client, seed, verify_session, monkeypatch,
):
    _race_rounds_before_start_update(monkeypatch, times=1)
    res = await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 200
    data = res.json()
    assert data["outcome"] == "applied"
    assert data["room"]["rounds"] == 5
    assert _parse(data["endsAt"]) - _parse(data["startsAt"]) == timedelta(minutes=150)

    room = await _load_room(verify_session)
    assert room.status == "active"
    assert room.ends_at - room.starts_at == timedelta(minutes=150)


async def test_start_rejected_when_rounds_keep_changing(
    client, seed, verify_session, monkeypatch,
):
    _race_rounds_before_start_update(monkeypatch, times=2)
    res = await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    # Must not look like the benign 409 a retrying client ignores
    assert res.status_code == 503
    body = res.json()
    assert body["ok"] is False
    assert body["error"] == "TRANSITION_REJECTED"
    assert body["outcome"] == "rejected"
    assert body["room"]["status"] == "lobby"
    assert body["startsAt"] is None

    room = await _load_room(verify_session)
    assert room.status == "lobby"
    assert room.starts_at is None
    assert room.rounds == 6


# ─── rename ──────────────────────────────────────────────────────

async def test_rename_allowed_after_start(client, seed, verify_session):
    await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    res = await client.post(
        "/api/rooms/rename", json={"code": "ABCD", "name": "  Saturday  "},
        headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 200
    assert res.json()["room"] == {"code": "ABCD", "name": "Saturday"}
    assert (await _load_room(verify_session)).name == "Saturday"


async def test_rename_with_blank_name_clears_it(client, seed):
    res = await client.post(
        "/api/rooms/rename", json={"code": "ABCD", "name": "   "},
        headers=auth(OWNER_TOKEN),
    )
    assert res.json()["room"]["name"] is None


async def test_rename_rejects_overlong_name(client, seed):
    res = await client.post(
        "/api/rooms/rename", json={"code": "ABCD", "name": "x" * 61},
        headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 400
    assert res.json()["error"] == "INVALID_NAME"


# ─── end ─────────────────────────────────────────────────────────

async def test_end_active_room_shortens_schedule(client, seed, verify_session):
    await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    res = await client.post(
        "/api/rooms/end", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    data = res.json()
    assert res.status_code == 200
    assert data["outcome"] == "applied"
    assert data["room"]["status"] == "ended"
    assert _parse(data["endedAt"]) - _parse(data["room"]["startsAt"]) < timedelta(minutes=1)

    room = await _load_room(verify_session)
    assert room.status == "ended"


async def test_end_is_idempotent(client, seed):
    await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    first = await client.post(
        "/api/rooms/end", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    second = await client.post(
        "/api/rooms/end", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    assert second.status_code == 200
    assert second.json()["outcome"] == "already_applied"
    assert second.json()["endedAt"] == first.json()["endedAt"]


async def test_end_in_lobby_is_noop_success(client, seed, verify_session):
    res = await client.post(
        "/api/rooms/end", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 200
    assert res.json()["ok"] is True
    assert (await _load_room(verify_session)).status == "lobby"


async def test_start_after_end_is_conflict(client, seed):
    await client.post("/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN))
    await client.post("/api/rooms/end", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN))
    res = await client.post(
        "/api/rooms/start", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 409
    assert res.json()["room"]["status"] == "ended"


# ─── close ───────────────────────────────────────────────────────

async def test_close_cascades_and_roster_reports_not_found(
    client, seed, verify_session,
):
    res = await client.post(
        "/api/rooms/close", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    assert res.status_code == 200
    assert res.json() == {"ok": True}

    roster = await client.get(
        "/api/rooms/players?code=ABCD", headers=auth(OUTSIDER_TOKEN),
    )
    assert roster.status_code == 404
    assert roster.json()["error"] == "ROOM_NOT_FOUND"
    assert roster.json()["players"] == []

    async with verify_session() as db:
        assert await _load_room(verify_session) is None
        for model, column, value in [
            (Player, Player.room_id, seed.room.id),
            (RoomMember, RoomMember.room_id, seed.room.id),
            (PlayerSession, PlayerSession.player_id, seed.owner.id),
            (PlayerChallenge, PlayerChallenge.player_id, seed.member.id),
        ]:
            count = await db.scalar(
                select(func.count()).select_from(model).where(column == value),
            )
            assert count == 0, model.__tablename__


async def test_close_leaves_other_rooms_intact(client, seed, verify_session):
    await client.post(
        "/api/rooms/close", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    assert await _load_room(verify_session, "WXYZ") is not None
    res = await client.get("/api/rooms/me", headers=auth(OUTSIDER_TOKEN))
    assert res.status_code == 200


async def test_closed_room_sessions_no_longer_authenticate(client, seed):
    await client.post(
        "/api/rooms/close", json={"code": "ABCD"}, headers=auth(OWNER_TOKEN),
    )
    res = await client.get("/api/rooms/me", headers=auth(MEMBER_TOKEN))
    assert res.status_code == 401


# ─── info ────────────────────────────────────────────────────────

async def test_member_can_read_room_info(client, seed):
    res = await client.get("/api/rooms/info?code=abcd", headers=auth(MEMBER_TOKEN))
    assert res.status_code == 200
    assert res.json()["room"] == {
        "code": "ABCD",
        "name": "Friday",
        "status": "lobby",
        "rounds": 4,
        "totalMinutes": 120,
        "startsAt": None,
        "endsAt": None,
    }


async def test_non_member_room_info_is_not_found(client, seed):
    res = await client.get("/api/rooms/info?code=ABCD", headers=auth(OUTSIDER_TOKEN))
    assert res.status_code == 404
    assert res.json()["error"] == "ROOM_NOT_FOUND"
