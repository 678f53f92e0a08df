"""Feedback store — append-only list of feedback items with vote sets.

Learn: Items are created only by add() and never deleted. The only
mutation after creation is vote-set growth, and a voter can appear in
an item's vote set at most once:

  vote(item, p)  → changed=True   (first vote, caller broadcasts)
  vote(item, p)  → changed=False  (repeat, silently ignored)
  vote(missing)  → found=False    (stale client view, silently ignored)

Author display names are NOT stored on items. The dispatcher joins
them in from the identity registry at send time, so a rename shows up
on the next full sync.
"""

import uuid
from dataclasses import dataclass, field
from typing import Optional

from feedboard.events.types import CATEGORIES, DEFAULT_CATEGORY, TRUNCATION_MARKER


@dataclass
class FeedbackItem:
    """A single feedback note. Votes keep first-vote order for stable output."""
    id: str
    author_id: str
    category: str
    content: str
    votes: list[str] = field(default_factory=list)

    def copy(self) -> "FeedbackItem":
        return FeedbackItem(
            id=self.id,
            author_id=self.author_id,
            category=self.category,
            content=self.content,
            votes=list(self.votes),
        )


@dataclass
class VoteResult:
    """Outcome of a vote request."""
    found: bool
    changed: bool
    item_id: str
    votes: list[str] = field(default_factory=list)


def normalize_category(category: object) -> str:
    """Anything other than a known category becomes the default ("happy")."""
    if isinstance(category, str) and category in CATEGORIES:
        return category
    return DEFAULT_CATEGORY


def truncate_content(content: object, max_length: int = 100) -> str:
    """Cut content to max_length chars and append the truncation marker."""
    text = content if isinstance(content, str) else ""
    if len(text) > max_length:
        return text[:max_length] + TRUNCATION_MARKER
    return text


class FeedbackStore:
    """Ordered, in-memory feedback collection. Insertion order = arrival order."""

    def __init__(self, max_length: int = 100) -> None:
        self.max_length = max_length
        self._items: list[FeedbackItem] = []
        self._by_id: dict[str, FeedbackItem] = {}
        # Parallel membership sets so duplicate checks stay O(1)
        self._voters: dict[str, set[str]] = {}

    def add(
        self,
        author_id: str,
        category: Optional[str] = None,
        text: Optional[str] = None,
    ) -> FeedbackItem:
        """Normalize, store and return a new item. Never fails."""
        item_id = str(uuid.uuid4())
        while item_id in self._by_id:
            item_id = str(uuid.uuid4())

        item = FeedbackItem(
            id=item_id,
            author_id=author_id,
            category=normalize_category(category),
            content=truncate_content(text, self.max_length),
        )
        self._items.append(item)
        self._by_id[item.id] = item
        self._voters[item.id] = set()
        return item.copy()

    def vote(self, item_id: str, voter_id: str) -> VoteResult:
        """Record voter_id on item_id at most once."""
        item = self._by_id.get(item_id)
        if item is None:
            return VoteResult(found=False, changed=False, item_id=item_id)

        voters = self._voters[item.id]
        if voter_id in voters:
            return VoteResult(
                found=True, changed=False, item_id=item.id, votes=list(item.votes)
            )

        voters.add(voter_id)
        item.votes.append(voter_id)
        return VoteResult(
            found=True, changed=True, item_id=item.id, votes=list(item.votes)
        )

    def snapshot(self) -> list[FeedbackItem]:
        """Point-in-time copy of every item, in insertion order."""
        return [item.copy() for item in self._items]

    def __len__(self) -> int:
        return len(self._items)
