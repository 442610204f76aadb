"""Roster Poller — client-side pull loop over GET /api/rooms/players.

Invariants:
    - Each subscribe() returns its own RosterSubscription; revoking one never
      affects another (e.g. two screens watching rooms across navigation)
    - A response is delivered only if its fetch is the newest one started for
      that subscription and the subscription is still live
    - ROOM_NOT_FOUND delivers an empty roster; transport errors, 5xx and
      malformed bodies are logged and retried on the next tick
    - A subscription leaves the poller once its loop exits, so repeated
      subscribe/revoke cycles do not accumulate

Design Decisions:
    - Revocable token (asyncio.Event) over shared boolean flags: the loop waits on
      the event, so revoke() also cuts the sleep short
    - In-flight requests are not aborted on revoke, their results are dropped
"""

import asyncio
import logging
from collections.abc import Callable

import httpx

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 3.0

RosterCallback = Callable[[list[dict]], None]


class RosterSubscription:
    """Revocable handle for one polling lifecycle."""

    def __init__(self, code: str, on_update: RosterCallback):
        self.code = code
        self.on_update = on_update
        self.generation = 0
        self._revoked = asyncio.Event()
        self.task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return not self._revoked.is_set()

    def revoke(self) -> None:
        self._revoked.set()

    async def wait_revoked(self, timeout: float) -> bool:
        """Sleep up to `timeout`; True if revoked meanwhile."""
        try:
            await asyncio.wait_for(self._revoked.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True


class RosterPoller:
    """Polls roster snapshots for any number of independent subscriptions."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        session_token: str,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        session_header: str = "x-session-token",
    ):
        self.client = client
        self.interval_seconds = interval_seconds
        self._headers = {session_header: session_token}
        self._subscriptions: list[RosterSubscription] = []

    def subscribe(self, code: str, on_update: RosterCallback) -> RosterSubscription:
        subscription = RosterSubscription(code, on_update)
        subscription.task = asyncio.create_task(self._run(subscription))
        self._subscriptions.append(subscription)
        return subscription

    async def refresh(self, subscription: RosterSubscription) -> None:
        """Out-of-band poll (e.g. right after a lifecycle action)."""
        await self._poll_once(subscription)

    @property
    def subscriptions(self) -> list[RosterSubscription]:
        """Live subscriptions; revoked ones drop out once their loop exits."""
        return list(self._subscriptions)

    async def aclose(self) -> None:
        subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.revoke()
        tasks = [s.task for s in subscriptions if s.task is not None]
        await asyncio.gather(*tasks, return_exceptions=True)
        self._subscriptions.clear()

    async def _run(self, subscription: RosterSubscription) -> None:
        try:
            while subscription.active:
                await self._poll_once(subscription)
                if await subscription.wait_revoked(self.interval_seconds):
                    break
        finally:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    async def _poll_once(self, subscription: RosterSubscription) -> None:
        subscription.generation += 1
        generation = subscription.generation
        players = await self._fetch(subscription.code)
        if players is None:
            return
        if not subscription.active or generation != subscription.generation:
            logger.debug("Dropped stale roster response", extra={"room_code": subscription.code})
            return
        subscription.on_update(players)

    async def _fetch(self, code: str) -> list[dict] | None:
        try:
            response = await self.client.get(
                "/api/rooms/players", params={"code": code}, headers=self._headers,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Roster poll failed: {e}", extra={"room_code": code})
            return None
        if response.status_code == 404:
            return []
        if response.status_code != 200:
            logger.warning(
                f"Roster poll returned HTTP {response.status_code}",
                extra={"room_code": code},
            )
            return None
        try:
            body = response.json()
        except ValueError:
            body = None
        players = body.get("players") if isinstance(body, dict) else None
        if not isinstance(players, list):
            logger.warning(
                "Roster poll returned a malformed body", extra={"room_code": code},
            )
            return None
        return players
