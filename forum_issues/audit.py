"""
Audit lines for actions taken on GitHub.

Each line reads ``<origin> | <action> | <issue url>``.
"""
import enum
import logging

from .models import Thread


log = logging.getLogger("red.forum_issues.audit")


class Triggerer(str, enum.Enum):
    DISCORD = "Discord"


class Action(str, enum.Enum):
    CREATED = "Created"
    COMMENTED = "Commented"
    CLOSED = "Closed"
    REOPENED = "Reopened"
    LOCKED = "Locked"
    UNLOCKED = "Unlocked"
    DELETED = "Deleted"


def github_url(owner: str, repo: str, thread: Thread) -> str:
    number = thread.number if thread.number is not None else ""
    return f"https://github.com/{owner}/{repo}/issues/{number}"


def audit_line(triggerer: Triggerer, action: Action, url: str) -> str:
    return f"{triggerer.value} | {action.value} | {url}"


def record(action: Action, owner: str, repo: str, thread: Thread) -> None:
    log.info(audit_line(Triggerer.DISCORD, action, github_url(owner, repo, thread)))
