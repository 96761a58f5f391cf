"""Periodic sweep of expired sessions.

Lookups already delete expired rows they touch; this removes the ones nobody
looks up again. Runs inside the API process (SessionSweeper) or from cron
(python -m app.session_cleanup).
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session, sessionmaker

from app.core.database import session_scope
from app.services.auth import Clock, build_auth_service, system_clock

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_session_cleanup(
    session: Session,
    settings: "Settings",
    clock: Clock = system_clock,
) -> int:
    """
    Delete sessions whose expires_at has passed. Returns the number deleted.

    Idempotent: safe to run repeatedly.
    """
    if not settings.SESSION_CLEANUP_ENABLED:
        logger.info("Session cleanup is disabled (SESSION_CLEANUP_ENABLED=false); skipping.")
        return 0

    deleted_count = build_auth_service(session, settings, clock).cleanup_expired_sessions()
    if deleted_count > 0:
        logger.info("Session cleanup run: sessions_deleted=%s", deleted_count)
    return deleted_count


class SessionSweeper:
    """Runs run_session_cleanup every interval; a tick is skipped while the previous run is busy."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        settings: "Settings",
        clock: Clock = system_clock,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings
        self._clock = clock
        self._interval = settings.SESSION_CLEANUP_INTERVAL_SECONDS
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _sweep_once(self) -> int:
        with session_scope(self._session_factory) as db:
            return run_session_cleanup(db, self._settings, self._clock)

    async def run_once(self) -> int | None:
        """Run one sweep in a worker thread. Returns None if a sweep is already in progress."""
        if self._lock.locked():
            logger.warning("Session cleanup still running; skipping this tick.")
            return None
        async with self._lock:
            try:
                return await asyncio.to_thread(self._sweep_once)
            except Exception:
                logger.exception("Session cleanup run failed")
                return 0

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            # Run detached so a slow sweep cannot delay the next tick; run_once skips overlaps.
            task = asyncio.create_task(self.run_once())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Session cleanup scheduled every %ss", self._interval)

    async def stop(self) -> None:
        """Stop ticking, then wait for any in-progress sweep so its worker thread releases its connection."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        # A cancelled to_thread task would leave the thread running; let in-flight sweeps finish.
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        async with self._lock:
            self._inflight.clear()
