"""Health check endpoint.

Learn: There is no database or broker to check; all state is in
memory. Instead the endpoint reports the size of that state plus the
protocol counters, which is the only window onto dropped messages.
"""

from fastapi import APIRouter, Request

from feedboard import __version__
from feedboard.context import BoardContext

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Report server status, in-memory state sizes and protocol counters."""
    ctx: BoardContext = request.app.state.board
    return {
        "status": "healthy",
        "server": "ok",
        "version": __version__,
        "sessions": len(ctx.sessions),
        "participants": ctx.sessions.participant_count,
        "feedback": len(ctx.feedback),
        "stats": ctx.stats.as_dict(),
    }
