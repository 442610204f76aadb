"""Challenge Media Upload — two-phase reserve → commit handshake.

Invariants:
    - reserve: caller owns the challenge; path derived server-side; credential scoped to that path
    - commit: ownership re-checked AND path must sit in the caller's sandbox —
      the phases share no trust, each check stands alone
    - commit overwrites all four media fields (re-submission replaces, never appends)
    - Bytes never pass through this service

Design Decisions:
    - Storage injected as StorageGateway: routes pass the real client, tests a fake
    - Commit does not require the path to equal the reserved one, only the sandbox
      prefix: the prefix check is what makes cross-player tampering impossible
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import MediaType, PlayerChallengeId, PlayerIdentity
from app.core.repository_protocols import StorageGateway, UploadCredential
from app.core.timestamps import utc_now
from app.core.upload_paths import build_storage_path, media_type_from_mime
from app.services.access import authorize_challenge_owner, authorize_storage_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommittedMedia:
    url: str
    mime: str
    type: MediaType


async def reserve_upload(
    db: AsyncSession,
    storage: StorageGateway,
    identity: PlayerIdentity,
    player_challenge_id: PlayerChallengeId,
    mime: str,
) -> UploadCredential:
    """Phase 1: authorize the caller and hand back a signed upload for a fixed path."""
    challenge = await authorize_challenge_owner(db, identity, player_challenge_id)
    path = build_storage_path(
        identity.player_id, challenge.block_start, player_challenge_id, mime,
    )
    credential = await storage.create_upload_credential(path, allow_overwrite=True)
    logger.info(
        "Upload reserved",
        extra={"player_challenge_id": player_challenge_id, "path": path},
    )
    return credential


async def commit_upload(
    db: AsyncSession,
    storage: StorageGateway,
    identity: PlayerIdentity,
    player_challenge_id: PlayerChallengeId,
    path: str,
    mime: str,
) -> CommittedMedia:
    """Phase 2: re-authorize, then record the uploaded object on the challenge."""
    challenge = await authorize_challenge_owner(db, identity, player_challenge_id)
    authorize_storage_path(identity, path)

    media = CommittedMedia(
        url=storage.resolve_public_url(path),
        mime=mime,
        type=media_type_from_mime(mime),
    )
    challenge.media_url = media.url
    challenge.media_type = media.type.value
    challenge.media_mime = media.mime
    challenge.media_uploaded_at = utc_now()
    await db.commit()
    logger.info(
        "Upload committed",
        extra={"player_challenge_id": player_challenge_id, "path": path},
    )
    return media
