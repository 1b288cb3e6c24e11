import re
from typing import Any, Iterable, List

from .models import GitIssue, StoreSnapshot, Thread


THREAD_MARKER_RE = re.compile(r"Thread: \[#(\d+)\]")

IMAGE_CONTENT_TYPES = {"image/png", "image/jpeg"}


def attachments_to_markdown(attachments: Iterable[Any]) -> str:
    md = ""
    for attachment in attachments:
        if attachment.content_type in IMAGE_CONTENT_TYPES:
            name = attachment.filename
            md += f'![{name}]({attachment.url} "{name}")'
    return md


def format_body(message: Any, snapshot: StoreSnapshot) -> str:
    """
    Build the GitHub issue or comment body for a Discord message.

    The ``Thread: [#<channel id>]`` line doubles as the marker used by
    ``parse_threads`` to link issues back to their threads.
    """
    guild_id = message.guild.id if message.guild else ""
    channel_id = message.channel.id
    author = message.author
    bot = snapshot.bot
    bot_tag = bot.tag if bot else ""
    bot_id = bot.id if bot else ""

    return (
        f"{message.content}\n"
        f"{attachments_to_markdown(message.attachments)}\n"
        "---\n"
        f"Thread: [#{channel_id}](https://discord.com/channels/{guild_id}/{channel_id})\n"
        f"User: [@{author.name}](https://discordapp.com/users/{author.id})\n"
        f"*This message was generated by [@{bot_tag}](https://discordapp.com/users/{bot_id})*"
    )


def resolve_labels(applied_tags: Iterable[str], snapshot: StoreSnapshot) -> List[str]:
    """Map applied forum tag ids to GitHub label names. Unknown ids become ``""``."""
    names = {tag.id: tag.name for tag in snapshot.available_tags}
    return [names.get(str(tag_id), "") for tag_id in applied_tags]


def parse_threads(issues: Iterable[GitIssue]) -> List[Thread]:
    """Rebuild thread records from issues that carry a thread marker, keeping their order."""
    result: List[Thread] = []
    for issue in issues:
        m = THREAD_MARKER_RE.search(issue.body)
        if not m:
            continue
        result.append(
            Thread(
                id=m.group(1),
                title=issue.title,
                number=issue.number,
                body=issue.body,
                node_id=issue.node_id,
                locked=issue.locked,
                archived=issue.state == "closed",
                applied_tags=[],
            )
        )
    return result
