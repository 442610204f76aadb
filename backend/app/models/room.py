"""Room ORM — the coded lobby players join and the owner schedules.

Invariants:
    - code is unique and stored upper-case (case-insensitive join key)
    - status transitions: lobby -> active -> ended (close deletes the row)
    - starts_at/ends_at are NULL until start; ends_at = starts_at + rounds * 30min

Design Decisions:
    - Schedule columns denormalized on the room: roster/info polling reads one row
    - Rows are created by the join/provisioning flow; this service only mutates them
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.core.domain_types import DEFAULT_ROUNDS, MAX_ROOM_NAME_LENGTH
from app.db.base import Base


class Room(Base):
    """Room aggregate root — owns players and memberships."""
    __tablename__ = "rooms"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(
        String(10), nullable=False, unique=True, index=True,
    )
    name: Mapped[str | None] = mapped_column(
        String(MAX_ROOM_NAME_LENGTH), nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="lobby",
    )
    rounds: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_ROUNDS,
    )
    starts_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    ends_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    players: Mapped[list["Player"]] = relationship(
        "Player", back_populates="room",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    members: Mapped[list["RoomMember"]] = relationship(
        "RoomMember", back_populates="room",
        cascade="all, delete-orphan", passive_deletes=True,
    )
