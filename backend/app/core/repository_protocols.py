"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Object storage accessed only through StorageGateway
    - Implementations provided by shell via dependency injection (get_storage)

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass a plain fake object
    - create_upload_credential is async (network IO); resolve_public_url is sync
      because public URLs are a pure function of bucket + path
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class UploadCredential:
    """Short-lived, path-scoped permission for one direct client upload."""
    path: str
    token: str
    signed_url: str


class StorageGateway(Protocol):
    """Contract for object storage — implemented by infrastructure/storage_client.py."""
    async def create_upload_credential(
        self, path: str, allow_overwrite: bool = True,
    ) -> UploadCredential: ...

    def resolve_public_url(self, path: str) -> str: ...
