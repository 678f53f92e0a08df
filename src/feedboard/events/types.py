"""Protocol action constants.

Learn: Every message in either direction is an envelope
{"action": <one of these>, "payload": ...}. Centralizing the action
names prevents typos and makes the whole protocol discoverable here.
"""

# ─── Inbound (client → server) ───────────────────────────

SET_USERNAME = "set-username"
ADD_FEEDBACK = "add-feedback"
ADD_VOTE = "add-vote"

# ─── Outbound (server → client) ──────────────────────────

INITIAL_STATE = "initial-state"
FEEDBACK_ADDED = "feedback-added"
VOTE_ADDED = "vote-added"

# ─── Feedback categories ─────────────────────────────────

HAPPY = "happy"
SAD = "sad"
CATEGORIES = (HAPPY, SAD)
DEFAULT_CATEGORY = HAPPY

TRUNCATION_MARKER = "..."
