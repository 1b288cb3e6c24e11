"""
Data records shared by the ForumIssues cog.

``Thread`` is the only mutable record: it is owned by the caller and updated
when an issue is created for it. Everything read from Discord or GitHub is
captured in frozen dataclasses so that the sync layer never depends on live
library objects after the fact.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple


@dataclass
class Thread:
    """
    A forum thread linked (or about to be linked) to a GitHub issue.

    The thread counts as tracked by GitHub only once ``number`` is set.
    """

    id: str
    title: str
    number: Optional[int] = None
    body: str = ""
    node_id: Optional[str] = None
    locked: bool = False
    archived: bool = False
    applied_tags: List[str] = field(default_factory=list)

    @classmethod
    def from_discord(cls, thread: Any) -> "Thread":
        """Create a record from a ``discord.Thread`` that has no issue yet."""
        return cls(
            id=str(thread.id),
            title=thread.name,
            locked=bool(thread.locked),
            archived=bool(thread.archived),
            applied_tags=[str(tag.id) for tag in getattr(thread, "applied_tags", None) or []],
        )


@dataclass(frozen=True)
class GitIssue:
    title: str
    body: str
    number: int
    node_id: str
    locked: bool
    state: str

    @classmethod
    def from_github(cls, issue: Any) -> "GitIssue":
        """Capture the fields we use from a PyGithub ``Issue``."""
        return cls(
            title=issue.title,
            body=issue.body or "",
            number=issue.number,
            node_id=issue.node_id,
            locked=bool(issue.locked),
            state=issue.state,
        )


@dataclass(frozen=True)
class ForumTag:
    id: str
    name: str

    @classmethod
    def from_discord(cls, tag: Any) -> "ForumTag":
        return cls(id=str(tag.id), name=tag.name)


@dataclass(frozen=True)
class BotIdentity:
    tag: str
    id: str

    @classmethod
    def from_user(cls, user: Any) -> "BotIdentity":
        # discord.py 2 dropped discriminators for most accounts; str(user) gives the handle either way
        return cls(tag=str(user), id=str(user.id))


@dataclass(frozen=True)
class StoreSnapshot:
    """Read-only view of the cached bot identity and forum tags."""

    bot: Optional[BotIdentity] = None
    available_tags: Tuple[ForumTag, ...] = ()


@dataclass(frozen=True)
class IssueCreated:
    number: int
    node_id: str
    body: str
    html_url: str

    def apply_to(self, thread: Thread) -> None:
        thread.number = self.number
        thread.node_id = self.node_id
        thread.body = self.body


@dataclass(frozen=True)
class DeleteOutcome:
    """
    Result of a best-effort issue deletion.

    Exactly one of these holds: the issue was deleted, the thread had no node id
    and nothing was sent, or the mutation failed and the error was kept here
    instead of being raised.
    """

    deleted: bool = False
    skipped: bool = False
    error: Optional[BaseException] = None

    @property
    def suppressed(self) -> bool:
        return self.error is not None

    @classmethod
    def done(cls) -> "DeleteOutcome":
        return cls(deleted=True)

    @classmethod
    def skip(cls) -> "DeleteOutcome":
        return cls(skipped=True)

    @classmethod
    def suppress(cls, error: BaseException) -> "DeleteOutcome":
        return cls(error=error)
