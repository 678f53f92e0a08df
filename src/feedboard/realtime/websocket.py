"""WebSocket endpoint — the feedback-board protocol over FastAPI.

Learn: Each browser tab holds one connection to /ws, optionally with
?id=<participant id> to resume an earlier identity. The handler:
1. Accepts and wraps the socket in a WebSocketConnection
2. Registers it and sends initial-state (dispatcher.connect)
3. Feeds every inbound frame to the dispatcher until disconnect
4. Drops the session on the way out, keeping the participant data

ASGI gives applications no access to protocol ping/pong, so the probe
is delegated to the server: `feedboard serve` runs uvicorn with its
websockets keepalive (ws_ping_interval / ws_ping_timeout) set from
FEEDBOARD_PING_INTERVAL. Browsers answer those pings on their own, and
uvicorn closes any socket whose pong is late. Nothing liveness-related
ever appears in the action protocol.
"""

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from feedboard.context import BoardContext
from feedboard.realtime.connection import ConnectionClosedError

logger = structlog.get_logger()
router = APIRouter()


class WebSocketConnection:
    """Adapts a Starlette WebSocket to the Connection protocol."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        try:
            await self.websocket.send_text(data)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            raise ConnectionClosedError(str(e)) from e

    async def ping(self) -> bool:
        """Still connected means the transport keepalive got its pongs."""
        return self.is_open

    async def terminate(self) -> None:
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self.websocket.close(code=1001, reason="Liveness probe timed out")
        except (RuntimeError, OSError):
            logger.debug("session.terminate_after_close")


@router.websocket("/ws")
async def feedback_websocket(websocket: WebSocket):
    """WebSocket endpoint for the live feedback board."""
    ctx: BoardContext = websocket.app.state.board

    await websocket.accept()
    connection = WebSocketConnection(websocket)
    session = await ctx.dispatcher.connect(connection, websocket.query_params.get("id"))
    structlog.contextvars.bind_contextvars(participant_id=session.participant_id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            await ctx.dispatcher.handle(connection, raw)
    except WebSocketDisconnect:
        pass
    finally:
        ctx.dispatcher.disconnect(connection)
        structlog.contextvars.unbind_contextvars("participant_id")
