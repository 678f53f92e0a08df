"""Broadcast engine — serialize an event once, send it to every open session.

Learn: Delivery is best effort and at most once per open connection.
A connection that is not open (or closes mid-send) is skipped, not
retried; the disconnect handler or the liveness sweep cleans it up.
"""

import json
from typing import Any

import structlog
from pydantic import BaseModel

from feedboard.realtime.connection import Connection, ConnectionClosedError
from feedboard.realtime.sessions import SessionManager
from feedboard.realtime.stats import DispatchStats

logger = structlog.get_logger()


def encode(action: str, payload: Any = None) -> str:
    """Build the wire envelope {"action": ..., "payload": ...}."""
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json", by_alias=True)
    return json.dumps({"action": action, "payload": payload})


class Broadcaster:
    """Fans events out over the session manager's active set."""

    def __init__(self, sessions: SessionManager, stats: DispatchStats):
        self.sessions = sessions
        self.stats = stats

    async def send(self, connection: Connection, action: str, payload: Any = None) -> bool:
        """Send one event to one connection. Returns False if it was skipped."""
        return await self._deliver(connection, encode(action, payload))

    async def broadcast(self, action: str, payload: Any = None) -> int:
        """Send an event to every open session. Returns the delivery count."""
        message = encode(action, payload)
        self.stats.broadcasts += 1

        delivered = 0
        for session in self.sessions.active():
            if await self._deliver(session.connection, message):
                delivered += 1

        logger.debug("broadcast.sent", action=action, deliveries=delivered)
        return delivered

    async def _deliver(self, connection: Connection, message: str) -> bool:
        if not connection.is_open:
            self.stats.deliveries_skipped += 1
            return False
        try:
            await connection.send_text(message)
        except ConnectionClosedError:
            self.stats.deliveries_skipped += 1
            logger.debug("broadcast.skipped_closed")
            return False
        self.stats.deliveries += 1
        return True
