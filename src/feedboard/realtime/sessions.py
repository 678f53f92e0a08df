"""Session manager — live connections, participant ids, liveness.

Learn: A Session binds one live connection to a participant id. The
session dies with the connection; the participant id does not. Names
and votes stay keyed by the id, so reconnecting with ?id=<old id>
recovers everything.

Liveness works like a two-strike heartbeat:

  sweep N:   alive=True  → alive=False, probe the transport
  (answer)   alive=False → alive=True
  sweep N+1: alive=False → terminate + remove

A half-open connection that never answers is gone within two intervals.
Any inbound frame also counts as an answer. The probe itself lives at
the transport level (protocol ping/pong), never in the action protocol.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import structlog

from feedboard.realtime.connection import Connection, ConnectionClosedError
from feedboard.realtime.stats import DispatchStats

logger = structlog.get_logger()


@dataclass(eq=False)
class Session:
    participant_id: str
    connection: Connection
    is_alive: bool = True
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def connected_for(self) -> float:
        """Seconds since the connection was registered."""
        return (datetime.now(timezone.utc) - self.connected_at).total_seconds()


class SessionManager:
    """Owns the active-session set, keyed by connection handle."""

    def __init__(
        self,
        lock: asyncio.Lock,
        ping_interval: float = 30.0,
        stats: Optional[DispatchStats] = None,
    ):
        self.ping_interval = ping_interval
        self.stats = stats or DispatchStats()
        self._lock = lock
        self._sessions: dict[Connection, Session] = {}
        # Every id ever issued or resumed in this process
        self._participants: set[str] = set()
        self._running = False

    # ─── Connection lifecycle ─────────────────────────────

    def on_connect(
        self,
        connection: Connection,
        supplied_id: Optional[str] = None,
    ) -> tuple[Session, bool]:
        """Register a session, resuming supplied_id or minting a new id.

        Returns (session, is_new) where is_new means this process has
        never seen the participant id before.
        """
        participant_id = (supplied_id or "").strip()
        if not participant_id:
            participant_id = self._mint_id()

        is_new = participant_id not in self._participants
        self._participants.add(participant_id)

        session = Session(participant_id=participant_id, connection=connection)
        self._sessions[connection] = session
        logger.info(
            "session.connected",
            participant_id=participant_id,
            resumed=not is_new,
            active=len(self._sessions),
        )
        return session, is_new

    def on_disconnect(self, connection: Connection) -> Optional[Session]:
        """Drop the session. The participant id and its data are kept."""
        session = self._sessions.pop(connection, None)
        if session is not None:
            logger.info(
                "session.disconnected",
                participant_id=session.participant_id,
                connected_for=round(session.connected_for(), 1),
                active=len(self._sessions),
            )
        return session

    def get(self, connection: Connection) -> Optional[Session]:
        return self._sessions.get(connection)

    def mark_alive(self, connection: Connection) -> None:
        session = self._sessions.get(connection)
        if session is not None:
            session.is_alive = True

    def active(self) -> list[Session]:
        """Copy of the active set, safe to iterate across awaits."""
        return list(self._sessions.values())

    @property
    def participant_count(self) -> int:
        return len(self._participants)

    def __len__(self) -> int:
        return len(self._sessions)

    def _mint_id(self) -> str:
        participant_id = str(uuid.uuid4())
        while participant_id in self._participants:
            participant_id = str(uuid.uuid4())
        return participant_id

    # ─── Liveness ─────────────────────────────────────────

    async def sweep(self) -> list[Session]:
        """Run one liveness pass. Returns the sessions that were reaped.

        Callers must hold the context lock.
        """
        reaped: list[Session] = []
        for session in self.active():
            if not session.is_alive:
                self._sessions.pop(session.connection, None)
                await session.connection.terminate()
                reaped.append(session)
                self.stats.sessions_reaped += 1
                logger.info(
                    "session.reaped",
                    participant_id=session.participant_id,
                    connected_for=round(session.connected_for(), 1),
                )
                continue

            session.is_alive = False
            if not session.connection.is_open:
                continue
            try:
                if await session.connection.ping():
                    session.is_alive = True
                self.stats.probes_sent += 1
            except ConnectionClosedError:
                # Reaped on the next sweep
                logger.debug("session.probe_failed", participant_id=session.participant_id)
        return reaped

    async def run_loop(self) -> None:
        """Sweep every ping_interval seconds until stopped.

        Learn: Runs as a long-lived task in the FastAPI lifespan,
        independent of message traffic.
        """
        self._running = True
        logger.info("liveness.started", ping_interval=self.ping_interval)

        while self._running:
            await asyncio.sleep(self.ping_interval)
            try:
                async with self._lock:
                    await self.sweep()
            except Exception:
                logger.exception("liveness.error")

    def stop(self) -> None:
        """Signal the sweep loop to stop."""
        self._running = False
        logger.info("liveness.stopping")
