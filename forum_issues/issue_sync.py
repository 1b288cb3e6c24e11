from typing import Any, Dict, List, Optional

import asyncio
import logging

import aiohttp

from .audit import Action, record
from .config import GITHUB_GRAPHQL_URL
from .errors import GraphQLError
from .formatting import format_body, parse_threads, resolve_labels
from .models import DeleteOutcome, GitIssue, IssueCreated, StoreSnapshot, Thread


DELETE_ISSUE_MUTATION = """
mutation($issueId: ID!) {
  deleteIssue(input: {issueId: $issueId}) {
    clientMutationId
  }
}
"""

log = logging.getLogger("red.forum_issues.sync")


class IssueSync:
    """
    Mirror forum thread lifecycle events onto issues of one GitHub repository.

    ``repo`` is a PyGithub ``Repository``; its blocking calls are run in a worker
    thread. Deletion goes through the GraphQL API since REST cannot delete issues.

    Operations on a thread that has no issue yet (no ``number``, or no
    ``node_id`` for deletion) return early without calling GitHub or logging.
    """

    def __init__(self, repo: Any, *, token: str, owner: str, name: str, lock_reason: str = "off-topic") -> None:
        self.repo = repo
        self.token = token
        self.owner = owner
        self.name = name
        self.lock_reason = lock_reason

    def _record(self, action: Action, thread: Thread) -> None:
        record(action, self.owner, self.name, thread)

    # ----------------------
    # Creation
    # ----------------------
    async def create_issue(self, thread: Thread, message: Any, snapshot: StoreSnapshot) -> IssueCreated:
        """Open an issue for ``thread`` using ``message`` as its body and link the two."""
        labels = resolve_labels(thread.applied_tags, snapshot)
        body = format_body(message, snapshot)
        issue = await asyncio.to_thread(
            lambda: self.repo.create_issue(title=thread.title, body=body, labels=labels)
        )
        created = IssueCreated(
            number=issue.number,
            node_id=issue.node_id,
            body=issue.body or "",
            html_url=issue.html_url,
        )
        created.apply_to(thread)
        self._record(Action.CREATED, thread)
        return created

    async def create_issue_comment(self, thread: Thread, message: Any, snapshot: StoreSnapshot) -> None:
        if thread.number is None:
            raise ValueError(f"Thread {thread.id} has no linked issue to comment on")
        body = format_body(message, snapshot)
        number = thread.number
        await asyncio.to_thread(lambda: self.repo.get_issue(number=number).create_comment(body))
        self._record(Action.COMMENTED, thread)

    # ----------------------
    # State changes
    # ----------------------
    async def _set_state(self, thread: Thread, state: str, action: Action) -> bool:
        number = thread.number
        if not number:
            return False
        self._record(action, thread)
        await asyncio.to_thread(lambda: self.repo.get_issue(number=number).edit(state=state))
        return True

    async def close_issue(self, thread: Thread) -> bool:
        return await self._set_state(thread, "closed", Action.CLOSED)

    async def open_issue(self, thread: Thread) -> bool:
        return await self._set_state(thread, "open", Action.REOPENED)

    async def lock_issue(self, thread: Thread) -> bool:
        number = thread.number
        if not number:
            return False
        self._record(Action.LOCKED, thread)
        reason = self.lock_reason
        await asyncio.to_thread(lambda: self.repo.get_issue(number=number).lock(reason))
        return True

    async def unlock_issue(self, thread: Thread) -> bool:
        number = thread.number
        if not number:
            return False
        self._record(Action.UNLOCKED, thread)
        await asyncio.to_thread(lambda: self.repo.get_issue(number=number).unlock())
        return True

    # ----------------------
    # Deletion (GraphQL)
    # ----------------------
    async def _graphql_request(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }
        payload = {"query": query, "variables": variables or {}}

        async with aiohttp.ClientSession() as session:
            async with session.post(GITHUB_GRAPHQL_URL, headers=headers, json=payload) as response:
                if response.status != 200:
                    raise GraphQLError(f"GraphQL request failed with status {response.status}: {await response.text()}")
                data = await response.json()

        errors = data.get("errors")
        if errors:
            raise GraphQLError("; ".join(e.get("message", str(e)) for e in errors))
        return data.get("data") or {}

    async def delete_issue(self, thread: Thread) -> DeleteOutcome:
        """
        Delete the linked issue. Failures are returned, not raised.

        The token needs admin rights on the repository for GitHub to accept this.
        """
        node_id = thread.node_id
        if not node_id:
            return DeleteOutcome.skip()

        self._record(Action.DELETED, thread)
        try:
            await self._graphql_request(DELETE_ISSUE_MUTATION, {"issueId": node_id})
        except Exception as e:
            log.debug("Deleting issue %s (node %s) failed: %s", thread.number, node_id, e)
            return DeleteOutcome.suppress(e)
        return DeleteOutcome.done()

    # ----------------------
    # Reconciliation
    # ----------------------
    async def get_issues(self) -> List[Thread]:
        """Rebuild thread records from every issue in the repository, open or closed."""
        issues = await asyncio.to_thread(
            lambda: [GitIssue.from_github(i) for i in self.repo.get_issues(state="all")]
        )
        log.debug("Fetched %d issues from %s/%s", len(issues), self.owner, self.name)
        return parse_threads(issues)
