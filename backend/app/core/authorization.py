"""Authorization Guard — pure allow/deny decisions for rooms, challenges, and storage paths.

Invariants:
    - Role comes ONLY from the membership row passed in, never from request fields
    - Owner-only actions require role == OWNER for that exact room
    - Missing challenge and foreign challenge produce the same verdict (no existence leak)
    - A storage path is inside a player's sandbox only if its first segment is the player id

Design Decisions:
    - Pure functions returning AccessDecision: the shell loads rows, the core decides,
      the shell maps decisions to errors (ADR: functional core, imperative shell)
    - Path check is independent of any earlier reserve: commit re-validates from scratch
"""

from uuid import UUID

from app.core.domain_types import (
    AccessDecision, MemberRole, OWNER_ONLY_ACTIONS, PlayerId, RoomAction, RoomId,
)


def decide_room_action(
    action: RoomAction,
    room_id: RoomId | None,
    actor_room_id: RoomId,
    role: MemberRole | None,
) -> AccessDecision:
    """Decide whether the actor may perform `action` on the room.

    room_id is None when no room matches the requested code.
    """
    if room_id is None:
        return AccessDecision.NOT_FOUND
    if action == RoomAction.VIEW:
        # Non-members must not learn that the room exists
        if room_id != actor_room_id or role is None:
            return AccessDecision.NOT_FOUND
        return AccessDecision.ALLOWED
    if room_id != actor_room_id:
        return AccessDecision.NOT_ALLOWED
    if action in OWNER_ONLY_ACTIONS and role != MemberRole.OWNER:
        return AccessDecision.NOT_ALLOWED
    return AccessDecision.ALLOWED


def decide_challenge_access(
    challenge_owner_id: UUID | None, actor_id: PlayerId,
) -> AccessDecision:
    """Self-only: the challenge must exist AND belong to the actor."""
    if challenge_owner_id is None or challenge_owner_id != actor_id:
        return AccessDecision.NOT_ALLOWED
    return AccessDecision.ALLOWED


def path_in_player_sandbox(path: str, player_id: PlayerId) -> bool:
    """True if path lives under `{player_id}/` with no traversal segments."""
    prefix = f"{player_id}/"
    if not path.startswith(prefix) or "\\" in path:
        return False
    segments = path.split("/")
    return all(seg not in ("", ".", "..") for seg in segments)
