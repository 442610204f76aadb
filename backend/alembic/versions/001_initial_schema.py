"""Initial schema — rooms, players, room_members, player_sessions, player_challenges.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

All player-scoped foreign keys cascade on delete so closing a room can never
be blocked by dependent rows, even outside the ORM.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "rooms",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(10), nullable=False),
        sa.Column("name", sa.String(60), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="lobby"),
        sa.Column("rounds", sa.Integer, nullable=False, server_default="4"),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("rounds BETWEEN 1 AND 10", name="ck_rooms_rounds_range"),
        sa.CheckConstraint("status IN ('lobby', 'active', 'ended')", name="ck_rooms_status"),
    )
    op.create_index("ix_rooms_code", "rooms", ["code"], unique=True)

    op.create_table(
        "players",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("room_id", UUID(as_uuid=True), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("nickname", sa.String(40), nullable=False),
        sa.Column("points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_players_room_id", "players", ["room_id"])

    op.create_table(
        "room_members",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("room_id", UUID(as_uuid=True), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("player_id", UUID(as_uuid=True), sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(10), nullable=False, server_default="member"),
        sa.UniqueConstraint("room_id", "player_id", name="uq_room_members_room_player"),
        sa.CheckConstraint("role IN ('owner', 'member')", name="ck_room_members_role"),
    )
    # At most one owner per room
    op.create_index(
        "uq_room_members_single_owner", "room_members", ["room_id"],
        unique=True, postgresql_where=sa.text("role = 'owner'"),
    )

    op.create_table(
        "player_sessions",
        sa.Column("session_token", sa.String(256), primary_key=True),
        sa.Column("player_id", UUID(as_uuid=True), sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_player_sessions_player_id", "player_sessions", ["player_id"])

    op.create_table(
        "player_challenges",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("player_id", UUID(as_uuid=True), sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("block_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("media_url", sa.Text, nullable=True),
        sa.Column("media_type", sa.String(10), nullable=True),
        sa.Column("media_mime", sa.String(100), nullable=True),
        sa.Column("media_uploaded_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_player_challenges_player_id", "player_challenges", ["player_id"])


def downgrade() -> None:
    op.drop_table("player_challenges")
    op.drop_table("player_sessions")
    op.drop_table("room_members")
    op.drop_table("players")
    op.drop_table("rooms")
