"""Resilient Storage Client — signed upload URLs and public URLs over the Storage REST API.

Invariants:
    - Transient errors (5xx, connection): max `max_retries` retries with exponential backoff
    - Client errors (4xx): immediate failure, no retry
    - Timeouts: immediate failure (the client may retry the whole request)
    - All failures mapped to StorageError (core/errors.py)
    - Public URLs are built locally, no network round-trip

Design Decisions:
    - httpx.AsyncClient over the vendor SDK: two endpoints, and tests inject
      httpx.MockTransport instead of patching a client library
    - ±25% jitter on backoff: prevents thundering herd when many players upload at once
    - Signing with x-upsert: a re-submission overwrites the previous object at the same path
"""

import asyncio
import logging
import random
from urllib.parse import quote, urlsplit, parse_qs

import httpx

from app.core.errors import StorageError
from app.core.repository_protocols import UploadCredential

logger = logging.getLogger(__name__)

# RFC 3986 pchar delimiters plus "/": colons in ISO timestamps stay literal,
# "?" and "#" are still escaped so a path can never spill into query or fragment
_PATH_SAFE = "/:@!$&'()*+,;="


class SupabaseStorageClient:
    """Implements StorageGateway against a Supabase-compatible storage service."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        timeout_seconds: float = 15.0,
        max_retries: int = 2,
        base_delay_ms: int = 200,
        max_delay_ms: int = 2_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.storage_root = f"{base_url.rstrip('/')}/storage/v1"
        self.bucket = bucket
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.client = httpx.AsyncClient(
            timeout=timeout_seconds,
            transport=transport,
            headers={
                "Authorization": f"Bearer {service_key}",
                "apikey": service_key,
            },
        )

    async def create_upload_credential(
        self, path: str, allow_overwrite: bool = True,
    ) -> UploadCredential:
        """Request a single-use signed upload URL for exactly `path`."""
        url = f"{self.storage_root}/object/upload/sign/{self.bucket}/{self._quote(path)}"
        headers = {"x-upsert": "true" if allow_overwrite else "false"}

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.post(url, headers=headers)
            except httpx.TimeoutException:
                raise StorageError("signing request timed out", "timeout")
            except httpx.TransportError as e:
                await self._handle_transient_error(str(e), attempt)
                continue

            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt,
                )
                continue
            if response.status_code >= 400:
                raise StorageError(
                    self._error_message(response), "client_error",
                )
            return self._parse_credential(path, response)

        # Unreachable: _handle_transient_error raises on the last attempt
        raise StorageError("retries exhausted", "transient")

    def resolve_public_url(self, path: str) -> str:
        return f"{self.storage_root}/object/public/{self.bucket}/{self._quote(path)}"

    async def aclose(self) -> None:
        await self.client.aclose()

    # ─── Internals ───────────────────────────────────────────────

    @staticmethod
    def _quote(path: str) -> str:
        return quote(path, safe=_PATH_SAFE)

    def _parse_credential(
        self, path: str, response: httpx.Response,
    ) -> UploadCredential:
        try:
            relative = response.json()["url"]
        except (ValueError, KeyError, TypeError):
            raise StorageError("malformed signing response", "bad_response")
        token = parse_qs(urlsplit(relative).query).get("token", [""])[0]
        if not token:
            raise StorageError("signing response has no token", "bad_response")
        return UploadCredential(
            path=path, token=token, signed_url=f"{self.storage_root}{relative}",
        )

    def _error_message(self, response: httpx.Response) -> str:
        try:
            body = response.json()
            message = body.get("message") or body.get("error") or response.text
        except ValueError:
            message = response.text
        if "bucket" in str(message).lower():
            return f"{message} (create the bucket '{self.bucket}' in storage)"
        return str(message)

    async def _handle_transient_error(self, reason: str, attempt: int):
        if attempt >= self.max_retries:
            raise StorageError(
                f"Failed after {self.max_retries} retries: {reason}",
                "transient",
            )
        delay = self._backoff_delay(attempt)
        logger.warning(
            f"Storage transient error, retrying in {delay:.2f}s: {reason}",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay)

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with ±25% jitter (seconds)."""
        delay_ms = min(self.base_delay_ms * (2 ** attempt), self.max_delay_ms)
        jitter = delay_ms * 0.25 * (2 * random.random() - 1)
        return max(0, (delay_ms + jitter) / 1000)


# Singleton (initialized on startup)
storage_client: SupabaseStorageClient | None = None


def init_storage(base_url: str, service_key: str, bucket: str, **kwargs):
    global storage_client
    storage_client = SupabaseStorageClient(base_url, service_key, bucket, **kwargs)


def get_storage() -> SupabaseStorageClient:
    """FastAPI dependency for the storage gateway."""
    if not storage_client:
        raise RuntimeError("Storage not initialized")
    return storage_client
