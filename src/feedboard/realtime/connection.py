"""Transport boundary — what the core needs from a live connection.

Learn: The session manager and broadcaster never touch a WebSocket
directly. They talk to anything that satisfies Connection, which is what
lets the tests drive the whole core with in-memory fakes.

ping() is a transport-level probe and never puts a frame on the
application protocol. It returns True when the transport has already
confirmed the peer is alive (e.g. protocol pongs arriving within the
keepalive timeout), False when confirmation must come later through
SessionManager.mark_alive.
"""

from typing import Protocol


class ConnectionClosedError(Exception):
    """Raised by send/ping when the connection closed under us."""
    pass


class Connection(Protocol):
    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None: ...

    async def ping(self) -> bool: ...

    async def terminate(self) -> None: ...
