# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""In-memory registry of live transport sessions.

Each HTTP transport kind (SSE and streamable HTTP) owns one
:class:`SessionRegistry`.  Liveness is checked lazily on :meth:`get` and
swept periodically by :meth:`watch`; a single sleep drives the sweep no
matter how many sessions are tracked.

Closing and removing are separate steps.  :meth:`close` asks the transport
to shut down and the transport's own close callback is expected to call
:meth:`delete`, so an explicit close racing a client disconnect never
removes an entry twice.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import time
from typing import Protocol

import anyio

from .errors import AbortedError, Errors, SessionError, SessionExpiredError, SessionNotFoundError, with_cause
from .result import Err, Ok, Result
from .utils import get_logger


NEVER_EXPIRES = 0.0


class Closable(Protocol):
    async def close(self) -> None: ...


class Clock(Protocol):
    def now(self) -> float: ...


class SystemClock:
    def now(self) -> float:
        return time.time()


@dataclass(frozen=True, slots=True)
class Session:
    """Snapshot of a registry entry.  ``expires_at == 0`` never expires."""

    id: str
    transport: Closable
    created_at: float
    expires_at: float

    def expired(self, now: float) -> bool:
        return self.expires_at != NEVER_EXPIRES and now >= self.expires_at


class SessionRegistry:
    """Keyed store of transport sessions with TTL-based expiry.

    ``ttl`` is in seconds; ``0`` disables expiry.  Callers only ever receive
    copies of the stored records.
    """

    def __init__(self, ttl: float, *, clock: Clock | None = None, label: str = "sessions") -> None:
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        self.ttl = ttl
        self._clock = clock or SystemClock()
        self._sessions: dict[str, Session] = {}
        self._logger = get_logger(f"docspace_mcp.sessions.{label}")

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def ids(self) -> list[str]:
        return list(self._sessions)

    def create(self, session_id: str, transport: Closable) -> Result[Session, SessionError]:
        created_at = self._clock.now()
        expires_at = NEVER_EXPIRES if self.ttl == 0 else created_at + self.ttl

        if session_id in self._sessions:
            self._logger.warning(
                "overwriting session %s",
                session_id,
                extra={"event": "sessions.overwrite", "session": session_id},
            )

        session = Session(id=session_id, transport=transport, created_at=created_at, expires_at=expires_at)
        self._sessions[session_id] = session
        self._logger.debug("created session %s", session_id, extra={"event": "sessions.create", "session": session_id})
        return Ok(replace(session))

    def get(self, session_id: str) -> Result[Session, SessionError]:
        session = self._sessions.get(session_id)
        if session is None:
            return Err(SessionNotFoundError(f"Session {session_id} not found"))
        if session.expired(self._clock.now()):
            return Err(SessionExpiredError(f"Session {session_id} has expired"))
        return Ok(replace(session))

    def delete(self, session_id: str) -> Result[None, SessionError]:
        if self._sessions.pop(session_id, None) is None:
            return Err(SessionNotFoundError(f"Session {session_id} could not be deleted"))
        self._logger.debug("deleted session %s", session_id, extra={"event": "sessions.delete", "session": session_id})
        return Ok(None)

    async def close(self, session_id: str) -> Result[None, SessionError]:
        session = self._sessions.get(session_id)
        if session is None:
            return Err(SessionNotFoundError(f"Session {session_id} not found"))

        try:
            await session.transport.close()
        except Exception as exc:
            return Err(with_cause(SessionError(f"Closing transport for session {session_id}"), exc))
        return Ok(None)

    async def expire(self, session_id: str) -> Result[None, SessionError]:
        session = self._sessions.get(session_id)
        if session is None or not session.expired(self._clock.now()):
            return Ok(None)

        self._logger.debug("expiring session %s", session_id, extra={"event": "sessions.expire", "session": session_id})
        result = await self.close(session_id)
        if isinstance(result, Err):
            return Err(with_cause(SessionError(f"Expiring session {session_id}"), result.error))
        return Ok(None)

    async def clear(self) -> Result[None, Errors]:
        """Close every tracked session, collecting all failures."""
        errors: list[Exception] = []

        async def _close(session_id: str) -> None:
            result = await self.close(session_id)
            if isinstance(result, Err):
                errors.append(with_cause(SessionError(f"Closing session {session_id}"), result.error))

        async with anyio.create_task_group() as tg:
            for session_id in list(self._sessions):
                tg.start_soon(_close, session_id)

        if errors:
            return Err(Errors(errors))
        return Ok(None)

    async def watch(self, stop: anyio.Event, interval: float) -> Result[None, Exception]:
        """Sweep expired sessions every ``interval`` seconds until ``stop`` is set.

        A zero interval disables the sweep.  A clean stop is reported as
        :class:`AbortedError`; any failed expiration ends the sweep after the
        current tick with the collected errors.
        """
        if interval == 0:
            return Ok(None)

        while True:
            with anyio.move_on_after(interval):
                await stop.wait()
            if stop.is_set():
                return Err(AbortedError())

            errors: list[Exception] = []
            for session_id in list(self._sessions):
                result = await self.expire(session_id)
                if isinstance(result, Err):
                    errors.append(result.error)

            if len(errors) == 1:
                return Err(errors[0])
            if errors:
                return Err(Errors(errors))


__all__ = ["NEVER_EXPIRES", "Clock", "Closable", "Session", "SessionRegistry", "SystemClock"]
