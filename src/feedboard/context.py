"""BoardContext — the process-wide shared state, as one explicit object.

Learn: Instead of module-level globals, the feedback store, identity
registry and session set live on a context that the app factory builds
and hangs on app.state. Tests build their own and drive it directly,
no transport needed.

The lock is the single serialization point for all mutation plus the
broadcast that follows it.
"""

import asyncio
from typing import Optional

from feedboard.config import Settings
from feedboard.realtime.broadcast import Broadcaster
from feedboard.realtime.dispatcher import ProtocolDispatcher
from feedboard.realtime.sessions import SessionManager
from feedboard.realtime.stats import DispatchStats
from feedboard.services.feedback_store import FeedbackStore
from feedboard.services.identity_registry import IdentityRegistry


class BoardContext:
    def __init__(self, ping_interval: float = 30.0, content_max_length: int = 100):
        self.lock = asyncio.Lock()
        self.stats = DispatchStats()
        self.identities = IdentityRegistry()
        self.feedback = FeedbackStore(max_length=content_max_length)
        self.sessions = SessionManager(self.lock, ping_interval=ping_interval, stats=self.stats)
        self.broadcaster = Broadcaster(self.sessions, self.stats)
        self.dispatcher = ProtocolDispatcher(self)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "BoardContext":
        if settings is None:
            from feedboard.config import settings
        return cls(
            ping_interval=settings.ping_interval,
            content_max_length=settings.content_max_length,
        )
