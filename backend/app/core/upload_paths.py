"""Upload Path Rules — deterministic storage paths and media classification.

Invariants:
    - Paths are ALWAYS derived server-side: {player_id}/{block_start ISO}/{challenge_id}{ext}
    - The first path segment is the owning player id (sandbox prefix)
    - video/* classifies as VIDEO; every other accepted mime is IMAGE
    - Extension derives from the mime subtype only, never from a client filename

Design Decisions:
    - block_start formatted like a JS toISOString() (ms precision, 'Z'): existing
      objects in the bucket keep their keys across implementations
    - Structured suffix (+xml, +json) dropped from the extension: image/svg+xml → .svg
"""

from datetime import datetime

from app.core.domain_types import MediaType, PlayerChallengeId, PlayerId
from app.core.timestamps import iso_utc

_DEFAULT_EXTENSIONS = {"image": ".jpg", "video": ".mp4"}


def extension_from_mime(mime: str) -> str:
    """image/png → .png; image/ → .jpg; video/ → .mp4; other families → ''."""
    family, _, subtype = mime.partition("/")
    if family not in _DEFAULT_EXTENSIONS:
        return ""
    subtype = subtype.split("+", 1)[0]
    if not subtype:
        return _DEFAULT_EXTENSIONS[family]
    return f".{subtype}"


def media_type_from_mime(mime: str) -> MediaType:
    if mime.startswith("video/"):
        return MediaType.VIDEO
    return MediaType.IMAGE


def build_storage_path(
    player_id: PlayerId,
    block_start: datetime,
    player_challenge_id: PlayerChallengeId,
    mime: str,
) -> str:
    return (
        f"{player_id}/{iso_utc(block_start)}/"
        f"{player_challenge_id}{extension_from_mime(mime)}"
    )
