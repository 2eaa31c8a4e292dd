"""
Session Registry
================

Server-side sessions keyed by an opaque random token. The token travels to the
browser inside the signed `session-id` cookie (see `handygo.api.utils`); this
module never sees the signature.

Behaviour
---------
- `create(user)` stores a snapshot of the user for one lifetime (7 days).
- `resolve(token)` returns the snapshot and slides the expiry to now + lifetime.
  Absent, unknown or expired tokens resolve to None; lookups never raise.
- `revoke(token)` is idempotent.
- `SessionSweeper` removes expired entries every minute from the event loop.
"""

import asyncio
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from handygo.registries.store import ExpiringStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRegistry:
    """
    Transient store of authenticated sessions.

    Parameters
    ----------
    store : ExpiringStore
        Backing store; keys are session tokens, values are user snapshots.
    lifetime : timedelta
        Sliding lifetime of a session.
    clock : callable, optional
        Returns the current aware UTC datetime; replaceable in tests.
    """

    def __init__(self, store: ExpiringStore, lifetime: timedelta = timedelta(days=7),
                 clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.lifetime = lifetime
        self.clock = clock

    def create(self, user: dict) -> str:
        token = secrets.token_urlsafe(32)
        self.store.set(token, dict(user), self.clock() + self.lifetime)
        logger.info("Session created for user %s", user.get("id"))
        return token

    def resolve(self, token: Optional[str]) -> Optional[dict]:
        if not token:
            return None
        try:
            now = self.clock()
            entry = self.store.touch(token, now + self.lifetime, now)
        except Exception:
            logger.exception("Session lookup failed; treating request as unauthenticated")
            return None
        if entry is None:
            return None
        return dict(entry.value)

    def refresh_user(self, token: Optional[str], user: dict) -> None:
        """Replace the snapshot of a live session (after a profile update)."""
        if not token:
            return
        now = self.clock()
        entry = self.store.touch(token, now + self.lifetime, now)
        if entry is not None:
            self.store.set(token, dict(user), entry.expires_at)

    def revoke(self, token: Optional[str]) -> None:
        if not token:
            return
        try:
            self.store.delete(token)
        except Exception:
            logger.exception("Session revoke failed")

    def sweep(self) -> int:
        return self.store.sweep(self.clock())

    def clear(self) -> None:
        self.store.clear()


class SessionSweeper:
    """Background asyncio task that periodically drops expired sessions."""

    def __init__(self, registry: SessionRegistry, interval_seconds: float = 60):
        self.registry = registry
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="session-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                removed = self.registry.sweep()
            except Exception:
                logger.exception("Session sweep failed")
                continue
            if removed:
                logger.info("Session sweep removed %d expired sessions", removed)
