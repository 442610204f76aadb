"""Room Schemas — room, player and roster views returned by /api/rooms/*."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.core.room_lifecycle import total_minutes
from app.core.timestamps import iso_utc
from app.models.player import Player
from app.models.room import Room
from app.services.roster import RosterEntry


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RoomView(_CamelModel):
    code: str
    name: str | None
    status: str
    rounds: int
    total_minutes: int
    starts_at: str | None
    ends_at: str | None

    @classmethod
    def from_room(cls, room: Room) -> "RoomView":
        return cls(
            code=room.code,
            name=room.name,
            status=room.status,
            rounds=room.rounds,
            total_minutes=total_minutes(room.rounds),
            starts_at=iso_utc(room.starts_at),
            ends_at=iso_utc(room.ends_at),
        )


class PlayerView(_CamelModel):
    id: UUID
    nickname: str
    points: int

    @classmethod
    def from_player(cls, player: Player | RosterEntry) -> "PlayerView":
        return cls(id=player.id, nickname=player.nickname, points=player.points)


def dump(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)
