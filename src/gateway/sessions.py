"""
Session manager

Tracks client sessions on the streaming transport. Enforces the concurrent
session ceiling (evicting the least recently active session) and idle-timeout
expiry, both lazily on touch and through a periodic sweep.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from src.logging import session_logger as logger

from .errors import session_not_found


@dataclass
class Session:
    session_id: str
    created_at: float
    last_activity_at: float
    idle_timeout: float

    @property
    def expires_at(self) -> float:
        return self.last_activity_at + self.idle_timeout

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class SessionManager:
    """
    Owns the session table.

    All mutations happen on the event loop thread, so open/touch/close and the
    sweep are serialized without locks. Expiry is always decided against the
    session's current last_activity_at.
    """

    def __init__(
        self,
        idle_timeout: float,
        max_sessions: int,
        clock: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4())
    ):
        if idle_timeout <= 0:
            raise ValueError("idle_timeout must be positive")
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.idle_timeout = idle_timeout
        self.max_sessions = max_sessions
        self._clock = clock
        self._id_factory = id_factory
        self._sessions: Dict[str, Session] = {}
        self._sweep_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def open(self) -> str:
        """
        Create a session, evicting the least recently active one at the ceiling.

        Returns:
            The new session id
        """
        if len(self._sessions) >= self.max_sessions:
            oldest = min(self._sessions.values(), key=lambda s: s.last_activity_at)
            del self._sessions[oldest.session_id]
            logger.warning(
                f"ceiling reached | evicted:{oldest.session_id[:8]} | max:{self.max_sessions}"
            )

        now = self._clock()
        session_id = self._id_factory()
        while session_id in self._sessions:
            session_id = self._id_factory()

        self._sessions[session_id] = Session(
            session_id=session_id,
            created_at=now,
            last_activity_at=now,
            idle_timeout=self.idle_timeout
        )
        logger.info(f"opened | id:{session_id[:8]} | active:{len(self._sessions)}")
        return session_id

    def touch(self, session_id: str) -> Session:
        """
        Reset the idle clock of a session.

        Raises:
            GatewayError: SessionNotFound if the session is unknown or expired
        """
        session = self._sessions.get(session_id)
        now = self._clock()
        if session is None:
            raise session_not_found(session_id)
        if session.is_expired(now):
            del self._sessions[session_id]
            logger.info(f"expired on touch | id:{session_id[:8]}")
            raise session_not_found(session_id)

        session.last_activity_at = now
        return session

    def get(self, session_id: str) -> Optional[Session]:
        """Look up a live session without refreshing it."""
        session = self._sessions.get(session_id)
        if session is None or session.is_expired(self._clock()):
            return None
        return session

    def close(self, session_id: str) -> bool:
        """
        Remove a session. Closing an unknown session is a no-op.

        Returns:
            True if a session was removed
        """
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info(f"closed | id:{session_id[:8]} | active:{len(self._sessions)}")
        return removed

    def sweep(self) -> List[str]:
        """
        Remove every session whose idle timeout has passed.

        Returns:
            Ids of the evicted sessions
        """
        now = self._clock()
        evicted = []
        for session_id in list(self._sessions):
            session = self._sessions.get(session_id)
            # Re-read the live record; a touch may have landed since the scan began
            if session is not None and session.is_expired(now):
                del self._sessions[session_id]
                evicted.append(session_id)

        if evicted:
            logger.info(f"sweep | evicted:{len(evicted)} | active:{len(self._sessions)}")
        return evicted

    def stats(self) -> Dict[str, float]:
        return {
            "active": len(self._sessions),
            "max_sessions": self.max_sessions,
            "idle_timeout": self.idle_timeout,
        }

    def start_sweeper(self, interval: float) -> asyncio.Task:
        """Start the periodic idle sweep on the running loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop(interval))
            logger.info(f"sweeper started | interval:{interval}s | idle_timeout:{self.idle_timeout}s")
        return self._sweep_task

    async def stop_sweeper(self) -> None:
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _sweep_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.sweep()
