"""Roster Routes — read-only player listing for polling clients.

Invariants:
    - Ordered by join time
    - Any authenticated player may read any room's roster
    - Unknown room → 404 ROOM_NOT_FOUND with an empty players list
    - Reading never mutates
"""

from tests.services.room_fixtures import MEMBER_TOKEN, OUTSIDER_TOKEN, auth


async def test_roster_lists_players_in_join_order(client, seed):
    res = await client.get("/api/rooms/players?code=ABCD", headers=auth(MEMBER_TOKEN))
    assert res.status_code == 200
    assert res.json() == {
        "ok": True,
        "players": [
            {"id": str(seed.owner.id), "nickname": "ana", "points": 3},
            {"id": str(seed.member.id), "nickname": "beto", "points": 7},
            {"id": str(seed.loner.id), "nickname": "cata", "points": 0},
        ],
    }


async def test_roster_readable_by_player_of_another_room(client, seed):
    res = await client.get("/api/rooms/players?code=abcd", headers=auth(OUTSIDER_TOKEN))
    assert res.status_code == 200
    assert len(res.json()["players"]) == 3


async def test_roster_of_unknown_room_is_empty_not_found(client, seed):
    res = await client.get("/api/rooms/players?code=NOPE", headers=auth(MEMBER_TOKEN))
    assert res.status_code == 404
    assert res.json()["ok"] is False
    assert res.json()["error"] == "ROOM_NOT_FOUND"
    assert res.json()["players"] == []


async def test_roster_requires_room_code(client, seed):
    res = await client.get("/api/rooms/players", headers=auth(MEMBER_TOKEN))
    assert res.status_code == 400
    assert res.json()["error"] == "INVALID_ROOM_CODE"


async def test_repeated_polls_are_stable(client, seed):
    first = await client.get("/api/rooms/players?code=ABCD", headers=auth(MEMBER_TOKEN))
    second = await client.get("/api/rooms/players?code=ABCD", headers=auth(MEMBER_TOKEN))
    assert first.json() == second.json()
