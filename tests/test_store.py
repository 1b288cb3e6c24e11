"""Unit tests for ThreadStore and the records it hands out."""

from types import SimpleNamespace

import pytest

from forum_issues.models import BotIdentity, DeleteOutcome, ForumTag, IssueCreated, Thread
from forum_issues.store import ThreadStore


class TestThreadStore:
    def test_snapshot_reflects_cached_values(self) -> None:
        store = ThreadStore()
        store.bot = BotIdentity(tag="IssueBot#0001", id="999")
        store.available_tags = [ForumTag(id="t1", name="bug")]

        snap = store.snapshot()

        assert snap.bot == BotIdentity(tag="IssueBot#0001", id="999")
        assert snap.available_tags == (ForumTag(id="t1", name="bug"),)

    def test_snapshot_is_detached_from_later_changes(self) -> None:
        store = ThreadStore()
        store.available_tags = [ForumTag(id="t1", name="bug")]
        snap = store.snapshot()

        store.available_tags.append(ForumTag(id="t2", name="feature"))

        assert len(snap.available_tags) == 1
        with pytest.raises(AttributeError):
            snap.bot = None  # type: ignore[misc]

    def test_add_get_remove(self) -> None:
        store = ThreadStore()
        thread = Thread(id="5", title="x")

        store.add(thread)

        assert store.get(5) is thread
        assert store.remove("5") is thread
        assert store.get("5") is None
        assert store.remove("5") is None

    def test_replace_threads(self) -> None:
        store = ThreadStore()
        store.add(Thread(id="old", title="gone"))

        store.replace_threads([Thread(id="1", title="a", number=1), Thread(id="2", title="b", number=2)])

        assert len(store) == 2
        assert store.get("old") is None
        assert [t.number for t in store.threads] == [1, 2]


class TestModels:
    def test_issue_created_apply_to(self) -> None:
        thread = Thread(id="1", title="t")

        IssueCreated(number=7, node_id="N7", body="b", html_url="u").apply_to(thread)

        assert (thread.number, thread.node_id, thread.body) == (7, "N7", "b")

    def test_delete_outcomes(self) -> None:
        error = RuntimeError("nope")

        assert DeleteOutcome.done().deleted
        assert DeleteOutcome.skip().skipped
        suppressed = DeleteOutcome.suppress(error)
        assert suppressed.suppressed and suppressed.error is error and not suppressed.deleted

    def test_thread_from_discord(self) -> None:
        channel = SimpleNamespace(
            id=333, name="Crash", locked=False, archived=True,
            applied_tags=[SimpleNamespace(id=1, name="bug"), SimpleNamespace(id=2, name="ui")],
        )

        thread = Thread.from_discord(channel)

        assert thread == Thread(id="333", title="Crash", archived=True, applied_tags=["1", "2"])

    def test_forum_tag_and_bot_identity_from_discord(self) -> None:
        class User(SimpleNamespace):
            def __str__(self) -> str:
                return "IssueBot#0001"

        assert ForumTag.from_discord(SimpleNamespace(id=9, name="bug")) == ForumTag(id="9", name="bug")
        assert BotIdentity.from_user(User(id=999)) == BotIdentity(tag="IssueBot#0001", id="999")
