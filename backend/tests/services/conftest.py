"""Service test fixtures — async DB, fake storage, seeded rooms, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db and get_storage dependencies overridden for route tests
    - Assertions on persisted state use a FRESH session (verify_session), never
      the one that seeded the data, so identity-map caching cannot hide writes

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
    - FakeStorage records every signing call so tests can assert it was (not) reached
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.db.base import Base
from app.infrastructure.database import get_db
from app.infrastructure.storage_client import get_storage
from app.main import app
from app.models import Player, PlayerChallenge, PlayerSession, Room, RoomMember
from tests.services.room_fixtures import (
    BLOCK_START, LONER_TOKEN, MEMBER_TOKEN, OUTSIDER_TOKEN, OWNER_TOKEN,
    FakeStorage, Seed,
)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
def verify_session(test_session_factory):
    """Factory for fresh sessions used in post-request assertions."""
    return test_session_factory


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
async def client(test_session_factory, fake_storage):
    """FastAPI test client with DB and storage dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: fake_storage

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
async def seed(test_session_factory) -> Seed:
    """Room ABCD (owner + member, lobby, 4 rounds), room WXYZ (outsider),
    and a player in ABCD with no membership row (loner)."""
    joined = datetime(2026, 3, 1, 17, 0, tzinfo=timezone.utc)
    async with test_session_factory() as db:
        room = Room(code="ABCD", name="Friday", status="lobby", rounds=4)
        other_room = Room(code="WXYZ", status="lobby", rounds=2)
        db.add_all([room, other_room])
        await db.flush()

        owner = Player(room_id=room.id, nickname="ana", points=3, created_at=joined)
        member = Player(
            room_id=room.id, nickname="beto", points=7,
            created_at=joined + timedelta(minutes=1),
        )
        loner = Player(
            room_id=room.id, nickname="cata", points=0,
            created_at=joined + timedelta(minutes=2),
        )
        outsider = Player(room_id=other_room.id, nickname="dani", created_at=joined)
        db.add_all([owner, member, loner, outsider])
        await db.flush()

        db.add_all([
            RoomMember(room_id=room.id, player_id=owner.id, role="owner"),
            RoomMember(room_id=room.id, player_id=member.id, role="member"),
            RoomMember(room_id=other_room.id, player_id=outsider.id, role="owner"),
            PlayerSession(session_token=OWNER_TOKEN, player_id=owner.id),
            PlayerSession(session_token=MEMBER_TOKEN, player_id=member.id),
            PlayerSession(session_token=OUTSIDER_TOKEN, player_id=outsider.id),
            PlayerSession(session_token=LONER_TOKEN, player_id=loner.id),
        ])
        member_challenge = PlayerChallenge(player_id=member.id, block_start=BLOCK_START)
        owner_challenge = PlayerChallenge(player_id=owner.id, block_start=BLOCK_START)
        db.add_all([member_challenge, owner_challenge])
        await db.commit()

    return Seed(
        room=room, other_room=other_room, owner=owner, member=member,
        outsider=outsider, loner=loner,
        member_challenge=member_challenge, owner_challenge=owner_challenge,
    )
