"""Protocol dispatcher — decode inbound frames, route them, emit events.

Learn: This is a pure router, no per-message state:

  set-username  → identity upsert            (no broadcast)
  add-feedback  → store.add + name join      → feedback-added
  add-vote      → store.vote                 → vote-added, only if the set grew
  anything else → ignored

Every frame from a registered connection, even a malformed one, is
proof of life for the liveness sweep.

Nothing here ever reports an error to a client. Malformed frames,
unknown actions and votes on unknown items are counted, logged at
debug level and dropped.
"""

import json
from typing import TYPE_CHECKING, Optional, Union

import structlog
from pydantic import ValidationError

from feedboard.events.types import (
    ADD_FEEDBACK,
    ADD_VOTE,
    FEEDBACK_ADDED,
    INITIAL_STATE,
    SET_USERNAME,
    VOTE_ADDED,
)
from feedboard.realtime.connection import Connection
from feedboard.realtime.sessions import Session
from feedboard.schemas.feedback import (
    Envelope,
    FeedbackCreate,
    FeedbackRead,
    InitialState,
    VoteAdded,
)
from feedboard.services.feedback_store import FeedbackItem

if TYPE_CHECKING:
    from feedboard.context import BoardContext

logger = structlog.get_logger()


class MalformedMessage(Exception):
    """Inbound frame or payload doesn't have the expected shape."""
    pass


def decode(raw: Union[str, bytes, None]) -> Envelope:
    """Parse a raw frame into an Envelope or raise MalformedMessage."""
    if raw is None:
        raise MalformedMessage("empty frame")
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return Envelope.model_validate(json.loads(raw))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError, ValidationError) as e:
        raise MalformedMessage(str(e)) from e


class ProtocolDispatcher:
    """Routes decoded messages against the shared BoardContext."""

    def __init__(self, ctx: "BoardContext"):
        self.ctx = ctx

    # ─── Joins ────────────────────────────────────────────

    def enrich(self, item: FeedbackItem) -> FeedbackRead:
        """Attach the author's *current* display name."""
        return FeedbackRead.from_item(item, self.ctx.identities.get_name(item.author_id))

    def initial_state(self, session: Session) -> InitialState:
        return InitialState(
            id=session.participant_id,
            username=self.ctx.identities.get_name(session.participant_id),
            feedback=[self.enrich(item) for item in self.ctx.feedback.snapshot()],
        )

    # ─── Connection lifecycle ─────────────────────────────

    async def connect(self, connection: Connection, supplied_id: Optional[str] = None) -> Session:
        """Register the connection and send it (only it) the initial state.

        Both happen under the lock so no broadcast can reach the new
        connection ahead of its initial-state.
        """
        async with self.ctx.lock:
            session, _ = self.ctx.sessions.on_connect(connection, supplied_id)
            await self.ctx.broadcaster.send(connection, INITIAL_STATE, self.initial_state(session))
        return session

    def disconnect(self, connection: Connection) -> Optional[Session]:
        return self.ctx.sessions.on_disconnect(connection)

    # ─── Inbound ──────────────────────────────────────────

    async def handle(self, connection: Connection, raw: Union[str, bytes, None]) -> None:
        """Process one inbound frame from connection. Never raises on bad input."""
        stats = self.ctx.stats
        stats.messages_received += 1

        session = self.ctx.sessions.get(connection)
        if session is None:
            # Reaped or disconnected between receive and dispatch
            return
        self.ctx.sessions.mark_alive(connection)

        try:
            envelope = decode(raw)
        except MalformedMessage as e:
            stats.malformed_dropped += 1
            logger.debug("dispatch.malformed", participant_id=session.participant_id, error=str(e))
            return

        handler = {
            SET_USERNAME: self._set_username,
            ADD_FEEDBACK: self._add_feedback,
            ADD_VOTE: self._add_vote,
        }.get(envelope.action)

        if handler is None:
            stats.unknown_ignored += 1
            logger.debug("dispatch.unknown_action", action=envelope.action)
            return

        async with self.ctx.lock:
            try:
                await handler(session, envelope.payload)
            except MalformedMessage as e:
                stats.malformed_dropped += 1
                logger.debug(
                    "dispatch.malformed",
                    participant_id=session.participant_id,
                    action=envelope.action,
                    error=str(e),
                )

    # ─── Actions ──────────────────────────────────────────

    async def _set_username(self, session: Session, payload: object) -> None:
        if not isinstance(payload, str):
            raise MalformedMessage("set-username payload must be a string")
        # Deliberately not broadcast; peers see it on their next initial-state
        self.ctx.identities.set_name(session.participant_id, payload)
        logger.info("identity.named", participant_id=session.participant_id)

    async def _add_feedback(self, session: Session, payload: object) -> None:
        if not isinstance(payload, dict):
            raise MalformedMessage("add-feedback payload must be an object")
        data = FeedbackCreate.model_validate(payload)

        item = self.ctx.feedback.add(session.participant_id, data.type, data.content)
        logger.info(
            "feedback.added",
            feedback_id=item.id,
            participant_id=session.participant_id,
            category=item.category,
        )
        await self.ctx.broadcaster.broadcast(FEEDBACK_ADDED, self.enrich(item))

    async def _add_vote(self, session: Session, payload: object) -> None:
        if not isinstance(payload, str):
            raise MalformedMessage("add-vote payload must be a feedback id")

        result = self.ctx.feedback.vote(payload, session.participant_id)
        if not result.found:
            self.ctx.stats.stale_votes_ignored += 1
            logger.debug("vote.unknown_item", feedback_id=payload)
            return
        if not result.changed:
            self.ctx.stats.duplicate_votes_ignored += 1
            return

        logger.info(
            "vote.added",
            feedback_id=result.item_id,
            participant_id=session.participant_id,
            votes=len(result.votes),
        )
        await self.ctx.broadcaster.broadcast(
            VOTE_ADDED, VoteAdded(id=result.item_id, votes=result.votes)
        )
