"""
Session Store
=============

Bounded-lifetime pipeline records keyed by an opaque id, plus the
background sweep that expires them.
"""

import asyncio
import re
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from observability.logging_config import get_logger
from observability.metrics import ACTIVE_SESSIONS, SESSIONS_CREATED, SESSIONS_EXPIRED

from nlq_pipeline.models import Session

logger = get_logger(__name__)


def generate_session_id(query: str, now: float | None = None) -> str:
    """
    Derive a session id from submission time and the query text.

    Args:
        query: Query text (first 20 normalized characters are used)
        now: Submission time in seconds; defaults to the current time

    Returns:
        Id of the form ``session_<epoch ms>_<normalized query prefix>``
    """
    millis = int((time.time() if now is None else now) * 1000)
    normalized = re.sub(r"[^a-z0-9]", "_", query.lower())
    return f"session_{millis}_{normalized[:20]}"


class SessionStore(ABC):
    """Abstract session storage with expiry."""

    @abstractmethod
    def create(self, query: str, id_hint: str | None = None) -> Session:
        pass

    @abstractmethod
    def get(self, session_id: str) -> Optional[Session]:
        pass

    @abstractmethod
    def save(self, session: Session) -> None:
        pass

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        pass

    @abstractmethod
    def sweep_expired(self) -> int:
        """Remove expired sessions and return how many were removed."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class InMemorySessionStore(SessionStore):
    """
    Process-local session store.

    Sessions are mutated in place by the orchestrator. ``clock`` returns
    seconds and is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        max_age_seconds: float = 30 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_age_seconds = max_age_seconds
        self.clock = clock
        self._sessions: dict[str, Session] = {}

    def create(self, query: str, id_hint: str | None = None) -> Session:
        """
        Create and store a session.

        Args:
            query: Query the session is created for
            id_hint: Text the id is derived from instead of ``query``

        Returns:
            The new session
        """
        now = self.clock()
        session = Session(
            id=generate_session_id(id_hint or query, now),
            query=query,
            created_at=now,
        )
        self._sessions[session.id] = session
        SESSIONS_CREATED.inc()
        ACTIVE_SESSIONS.set(len(self._sessions))
        logger.info("Session created", session_id=session.id)
        return session

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def save(self, session: Session) -> None:
        self._sessions[session.id] = session
        ACTIVE_SESSIONS.set(len(self._sessions))

    def delete(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        ACTIVE_SESSIONS.set(len(self._sessions))
        if removed:
            logger.info("Session cleared", session_id=session_id)
        return removed

    def sweep_expired(self) -> int:
        now = self.clock()
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if now - session.created_at > self.max_age_seconds
        ]
        for session_id in expired:
            del self._sessions[session_id]

        if expired:
            SESSIONS_EXPIRED.inc(len(expired))
            logger.info(
                "Expired sessions removed",
                removed=len(expired),
                remaining=len(self._sessions),
            )
        ACTIVE_SESSIONS.set(len(self._sessions))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions


class SessionSweeper:
    """Background task that expires sessions on a fixed interval."""

    def __init__(self, store: SessionStore, interval_seconds: float = 5 * 60) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> int:
        """Run one sweep; failures are logged and reported as zero removals."""
        try:
            return self.store.sweep_expired()
        except Exception:
            logger.exception("Session sweep failed")
            return 0

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.tick()

    def start(self) -> None:
        """Start sweeping; must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Session sweeper started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Session sweeper stopped")
