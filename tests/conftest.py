"""Shared pytest fixtures."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from forum_issues.issue_sync import IssueSync
from forum_issues.models import BotIdentity, ForumTag, StoreSnapshot, Thread


def make_attachment(filename: str, url: str, content_type):
    return SimpleNamespace(filename=filename, url=url, content_type=content_type)


def make_message(content: str = "It crashes on start", attachments=None):
    """Build an object shaped like a ``discord.Message``."""
    return SimpleNamespace(
        content=content,
        author=SimpleNamespace(name="alice", id=111),
        attachments=attachments or [],
        guild=SimpleNamespace(id=222),
        channel=SimpleNamespace(id=333),
    )


@pytest.fixture
def snapshot() -> StoreSnapshot:
    return StoreSnapshot(
        bot=BotIdentity(tag="IssueBot#0001", id="999"),
        available_tags=(ForumTag(id="t1", name="bug"), ForumTag(id="t2", name="feature")),
    )


@pytest.fixture
def message():
    return make_message()


@pytest.fixture
def thread() -> Thread:
    return Thread(id="333", title="Crash on start", applied_tags=["t1"])


@pytest.fixture
def linked_thread() -> Thread:
    return Thread(id="333", title="Crash on start", number=42, node_id="I_kwDOabc", body="...")


@pytest.fixture
def mock_repo() -> MagicMock:
    """A PyGithub ``Repository`` stand-in."""
    repo = MagicMock()
    repo.create_issue.return_value = SimpleNamespace(
        number=42,
        node_id="I_kwDOabc",
        body="returned body",
        html_url="https://github.com/owner/repo/issues/42",
    )
    return repo


@pytest.fixture
def sync(mock_repo: MagicMock) -> IssueSync:
    return IssueSync(mock_repo, token="ghp_test", owner="owner", name="repo")
