"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Room is the aggregate root; players, memberships, sessions and challenges
      are all reachable from it and deleted with it

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from app.models.room import Room  # noqa: F401
from app.models.player import Player  # noqa: F401
from app.models.room_member import RoomMember  # noqa: F401
from app.models.player_session import PlayerSession  # noqa: F401
from app.models.player_challenge import PlayerChallenge  # noqa: F401
