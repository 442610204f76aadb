"""Authorization Guard — tests for pure room, challenge and path decisions.

Tests cover:
    - Owner-only actions require the exact OWNER role in the actor's own room
    - VIEW collapses non-membership into NOT_FOUND
    - Missing and foreign challenges produce the same verdict
    - Storage paths must sit under `{player_id}/` without traversal
"""

from uuid import uuid4

import pytest

from app.core.authorization import (
    decide_challenge_access, decide_room_action, path_in_player_sandbox,
)
from app.core.domain_types import (
    AccessDecision, MemberRole, OWNER_ONLY_ACTIONS, PlayerId, RoomAction, RoomId,
)

ROOM = RoomId(uuid4())
OTHER_ROOM = RoomId(uuid4())
PLAYER = PlayerId(uuid4())


# ─── decide_room_action ──────────────────────────────────────────

@pytest.mark.parametrize("action", sorted(OWNER_ONLY_ACTIONS, key=lambda a: a.value))
def test_owner_is_allowed_owner_actions(action):
    assert decide_room_action(action, ROOM, ROOM, MemberRole.OWNER) == AccessDecision.ALLOWED


@pytest.mark.parametrize("action", sorted(OWNER_ONLY_ACTIONS, key=lambda a: a.value))
@pytest.mark.parametrize("role", [MemberRole.MEMBER, None])
def test_non_owner_is_not_allowed_owner_actions(action, role):
    assert decide_room_action(action, ROOM, ROOM, role) == AccessDecision.NOT_ALLOWED


def test_owner_of_other_room_is_not_allowed():
    decision = decide_room_action(RoomAction.START, ROOM, OTHER_ROOM, MemberRole.OWNER)
    assert decision == AccessDecision.NOT_ALLOWED


def test_missing_room_is_not_found():
    decision = decide_room_action(RoomAction.START, None, ROOM, MemberRole.OWNER)
    assert decision == AccessDecision.NOT_FOUND


def test_view_allowed_for_member():
    decision = decide_room_action(RoomAction.VIEW, ROOM, ROOM, MemberRole.MEMBER)
    assert decision == AccessDecision.ALLOWED


@pytest.mark.parametrize("actor_room,role", [
    (OTHER_ROOM, MemberRole.OWNER),
    (ROOM, None),
])
def test_view_hides_room_from_non_members(actor_room, role):
    assert decide_room_action(RoomAction.VIEW, ROOM, actor_room, role) == AccessDecision.NOT_FOUND


# ─── decide_challenge_access ─────────────────────────────────────

def test_own_challenge_allowed():
    assert decide_challenge_access(PLAYER, PLAYER) == AccessDecision.ALLOWED


def test_missing_and_foreign_challenge_share_verdict():
    missing = decide_challenge_access(None, PLAYER)
    foreign = decide_challenge_access(uuid4(), PLAYER)
    assert missing == foreign == AccessDecision.NOT_ALLOWED


# ─── path_in_player_sandbox ──────────────────────────────────────

def test_path_under_own_prefix_is_inside():
    path = f"{PLAYER}/2026-03-01T18:00:00.000Z/{uuid4()}.png"
    assert path_in_player_sandbox(path, PLAYER)


@pytest.mark.parametrize("path", [
    f"{uuid4()}/2026-03-01T18:00:00.000Z/x.png",
    f"{PLAYER}",
    f"{PLAYER}x/evil.png",
    f"/{PLAYER}/x.png",
    f"{PLAYER}/../other/x.png",
    f"{PLAYER}/./x.png",
    f"{PLAYER}//x.png",
    f"{PLAYER}/a\\b.png",
    f"{PLAYER}/",
])
def test_paths_outside_sandbox_rejected(path):
    assert not path_in_player_sandbox(path, PLAYER)
