"""Upload Routes — two-phase challenge media handshake.

Invariants:
    - POST /api/upload-url: identity → playerChallengeId → mime → reserve
    - POST /api/upload-confirm: identity → playerChallengeId → path → mime → commit
    - Storage credentials and URLs come from the injected StorageGateway only
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_player, read_json_body
from app.core.domain_types import PlayerIdentity
from app.core.repository_protocols import StorageGateway
from app.core.validators import (
    validate_mime, validate_player_challenge_id, validate_storage_path,
)
from app.infrastructure.database import get_db
from app.infrastructure.storage_client import get_storage
from app.schemas.room import dump
from app.schemas.upload import MediaView, UploadTicket
from app.services.media_upload import commit_upload, reserve_upload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["uploads"])


@router.post("/upload-url")
async def create_upload_url(
    identity: PlayerIdentity = Depends(get_current_player),
    body: dict = Depends(read_json_body),
    db: AsyncSession = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
):
    """Phase 1 — signed upload URL for the caller's own challenge."""
    player_challenge_id = validate_player_challenge_id(body.get("playerChallengeId"))
    mime = validate_mime(body.get("mime"))
    credential = await reserve_upload(
        db, storage, identity, player_challenge_id, mime,
    )
    return {"ok": True, "upload": dump(UploadTicket.from_credential(credential))}


@router.post("/upload-confirm")
async def confirm_upload(
    identity: PlayerIdentity = Depends(get_current_player),
    body: dict = Depends(read_json_body),
    db: AsyncSession = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
):
    """Phase 2 — record the uploaded object on the challenge."""
    player_challenge_id = validate_player_challenge_id(body.get("playerChallengeId"))
    path = validate_storage_path(body.get("path"))
    mime = validate_mime(body.get("mime"))
    media = await commit_upload(
        db, storage, identity, player_challenge_id, path, mime,
    )
    return {"ok": True, "media": dump(MediaView.from_media(media))}
