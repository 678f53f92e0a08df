"""Feedback store tests — normalization, ordering, idempotent votes."""

from feedboard.services.feedback_store import (
    FeedbackStore,
    normalize_category,
    truncate_content,
)


def _votes(store, item_id):
    return next(item.votes for item in store.snapshot() if item.id == item_id)


def test_add_returns_item_with_fresh_id():
    store = FeedbackStore()
    a = store.add("p1", "happy", "great talk")
    b = store.add("p1", "happy", "great talk")
    assert a.id and b.id and a.id != b.id
    assert a.author_id == "p1"
    assert a.votes == []
    assert len(store) == 2


def test_category_defaults_to_happy():
    store = FeedbackStore()
    assert store.add("p1", None, "x").category == "happy"
    assert store.add("p1", "angry", "x").category == "happy"
    assert store.add("p1", 42, "x").category == "happy"
    assert store.add("p1", "sad", "x").category == "sad"


def test_content_of_100_chars_is_kept():
    content = "a" * 100
    item = FeedbackStore().add("p1", "sad", content)
    assert item.content == content


def test_content_of_101_chars_is_truncated_with_marker():
    content = "b" * 100 + "c"
    item = FeedbackStore().add("p1", "sad", content)
    assert item.content == "b" * 100 + "..."


def test_missing_or_non_string_content_becomes_empty():
    assert truncate_content(None) == ""
    assert truncate_content({"x": 1}) == ""
    assert normalize_category("happy") == "happy"


def test_truncation_respects_configured_length():
    store = FeedbackStore(max_length=5)
    assert store.add("p1", "happy", "abcdefg").content == "abcde..."


def test_snapshot_preserves_insertion_order():
    store = FeedbackStore()
    ids = [store.add("p1", "happy", str(i)).id for i in range(5)]
    assert [item.id for item in store.snapshot()] == ids


def test_snapshot_is_a_copy():
    store = FeedbackStore()
    item = store.add("p1", "happy", "x")
    snap = store.snapshot()
    snap[0].votes.append("intruder")
    store.vote(item.id, "p2")
    assert snap[0].votes == ["intruder"]
    assert _votes(store, item.id) == ["p2"]


def test_vote_is_idempotent_per_voter():
    store = FeedbackStore()
    item = store.add("p1", "happy", "x")

    first = store.vote(item.id, "p2")
    assert first.found and first.changed
    assert first.votes == ["p2"]

    for _ in range(3):
        again = store.vote(item.id, "p2")
        assert again.found and not again.changed

    assert _votes(store, item.id) == ["p2"]


def test_votes_from_different_participants_accumulate():
    store = FeedbackStore()
    item = store.add("p1", "sad", "x")
    store.vote(item.id, "p1")
    result = store.vote(item.id, "p2")
    assert result.votes == ["p1", "p2"]


def test_vote_on_unknown_item_changes_nothing():
    store = FeedbackStore()
    item = store.add("p1", "happy", "x")
    before = store.snapshot()

    result = store.vote("does-not-exist", "p2")

    assert not result.found and not result.changed
    assert store.snapshot() == before
    assert _votes(store, item.id) == []
