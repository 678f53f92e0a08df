"""Identity registry — participant id → display name.

Learn: Entries are only ever written by the participant themselves
(via set-username) and are never removed, so a reconnecting client
that supplies its old id gets its name back. A missing entry means
"no name yet" and is returned as None, never as "".
"""

from typing import Optional


class IdentityRegistry:
    """In-memory display-name lookup table."""

    def __init__(self) -> None:
        self._names: dict[str, str] = {}

    def set_name(self, participant_id: str, name: str) -> None:
        """Unconditional upsert. Empty and duplicate names are allowed."""
        self._names[participant_id] = name

    def get_name(self, participant_id: str) -> Optional[str]:
        return self._names.get(participant_id)

    def __len__(self) -> int:
        return len(self._names)
