"""Unit tests for audit lines."""

import logging

from forum_issues.audit import Action, Triggerer, audit_line, github_url, record
from forum_issues.models import Thread


def test_github_url() -> None:
    assert github_url("owner", "repo", Thread(id="1", title="t", number=5)) == "https://github.com/owner/repo/issues/5"


def test_github_url_without_number() -> None:
    assert github_url("owner", "repo", Thread(id="1", title="t")) == "https://github.com/owner/repo/issues/"


def test_audit_line_format() -> None:
    assert audit_line(Triggerer.DISCORD, Action.REOPENED, "u") == "Discord | Reopened | u"


def test_record_logs_at_info(caplog) -> None:
    caplog.set_level(logging.INFO, logger="red.forum_issues.audit")

    record(Action.LOCKED, "owner", "repo", Thread(id="1", title="t", number=3))

    (rec,) = caplog.records
    assert rec.levelno == logging.INFO
    assert rec.getMessage() == "Discord | Locked | https://github.com/owner/repo/issues/3"
