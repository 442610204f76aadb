"""PlayerSession ORM — opaque bearer token → player.

Invariants:
    - session_token is the primary key (lookup by equality only)
    - Created by the join flow; read-only here. No expiry enforced by this service
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class PlayerSession(Base):
    __tablename__ = "player_sessions"

    session_token: Mapped[str] = mapped_column(String(256), primary_key=True)
    player_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("players.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
