"""Pydantic schemas for the feedback-board wire protocol.

Learn: Every frame is an Envelope. Inbound payloads are parsed leniently
(the store normalizes bad categories and content instead of rejecting
them); outbound payloads keep the camelCase keys the browser client
reads (clientId).
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from feedboard.services.feedback_store import FeedbackItem


# ─── Envelope ─────────────────────────────────────────────


class Envelope(BaseModel):
    action: str
    payload: Any = None


# ─── Inbound ──────────────────────────────────────────────


class FeedbackCreate(BaseModel):
    """add-feedback payload. Both fields may be missing or junk."""
    type: Any = None
    content: Any = ""


# ─── Outbound ─────────────────────────────────────────────


class FeedbackRead(BaseModel):
    """A feedback item joined with its author's current display name."""
    id: str
    client_id: str = Field(serialization_alias="clientId")
    type: str
    content: str
    votes: list[str]
    username: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_item(cls, item: FeedbackItem, username: Optional[str]) -> "FeedbackRead":
        return cls(
            id=item.id,
            client_id=item.author_id,
            type=item.category,
            content=item.content,
            votes=list(item.votes),
            username=username,
        )


class VoteAdded(BaseModel):
    id: str
    votes: list[str]


class InitialState(BaseModel):
    id: str
    username: Optional[str] = None
    feedback: list[FeedbackRead]
