"""PlayerChallenge ORM — one challenge assigned to a player for a time block.

Invariants:
    - Always belongs to a Player (player_id FK, ON DELETE CASCADE)
    - block_start namespaces uploaded media in storage
    - media_* columns are NULL until an upload commit; a later commit overwrites them

Design Decisions:
    - Media stored as a public URL + mime, not bytes: uploads go client → storage
      directly and this row only records the result
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class PlayerChallenge(Base):
    __tablename__ = "player_challenges"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    player_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("players.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    block_start: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    media_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    media_type: Mapped[str | None] = mapped_column(String(10), nullable=True)
    media_mime: Mapped[str | None] = mapped_column(String(100), nullable=True)
    media_uploaded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
