from __future__ import annotations

from typing import Optional

import asyncio
import logging

import discord
from redbot.core import commands, Config
from redbot.core.bot import Red
from github import Auth, Github, GithubException

from .config import DEFAULT_GLOBAL_CONFIG, LOCK_REASONS
from .errors import NotConfigured
from .issue_sync import IssueSync
from .models import BotIdentity, ForumTag, Thread
from .store import ThreadStore


class ForumIssues(commands.Cog):
    """
    Mirror Discord forum threads as GitHub issues.

    Threads are tracked in memory only. On load the cog rebuilds them from the
    issues it created earlier, which carry a ``Thread: [#<id>]`` marker.
    """

    def __init__(self, bot: Red) -> None:
        self.bot = bot
        self.config = Config.get_conf(self, identifier=908039527271104515, force_registration=True)
        self.config.register_global(**DEFAULT_GLOBAL_CONFIG)
        self.log = logging.getLogger(f"red.{__name__}")

        self.store = ThreadStore()
        self.sync: Optional[IssueSync] = None
        self._init_task: Optional[asyncio.Task] = None

        # Threads with an issue creation in flight
        self._creating_threads: set[int] = set()

    async def cog_load(self) -> None:
        """Initialize once Red is ready; the channel cache is empty before that."""
        self._init_task = asyncio.create_task(self._initialize_when_ready())

    async def cog_unload(self) -> None:
        if self._init_task is not None and not self._init_task.done():
            self._init_task.cancel()
            self.log.debug("Initialization task cancelled")

    async def _initialize_when_ready(self) -> None:
        await self.bot.wait_until_red_ready()
        try:
            await self._initialize()
        except NotConfigured:
            self.log.info("ForumIssues is not configured yet; use [p]forumissuesset")
        except Exception:
            self.log.exception("Failed to initialize ForumIssues")

    async def _initialize(self) -> None:
        self._refresh_identity()
        await self._refresh_tags()
        self.sync = await self._build_sync()
        count = await self.reconcile()
        self.log.debug("Reconciled %d threads from GitHub", count)

    # ----------------------
    # Utilities
    # ----------------------
    async def _build_sync(self) -> IssueSync:
        conf = await self.config.all()
        token = conf["github_token"]
        owner = conf["github_owner"]
        repo_name = conf["github_repo"]
        if not token or not owner or not repo_name:
            raise NotConfigured("GitHub token, owner and repository must all be set")

        gh = Github(auth=Auth.Token(token))
        self.log.debug("Fetching repo %s/%s", owner, repo_name)
        repo = await asyncio.to_thread(lambda: gh.get_repo(f"{owner}/{repo_name}"))
        return IssueSync(repo, token=token, owner=owner, name=repo_name, lock_reason=conf["lock_reason"])

    def _get_sync(self) -> IssueSync:
        if self.sync is None:
            raise NotConfigured("GitHub repository is not configured")
        return self.sync

    def _refresh_identity(self) -> None:
        if self.bot.user is not None:
            self.store.bot = BotIdentity.from_user(self.bot.user)

    async def _refresh_tags(self) -> None:
        forum_id = await self.config.forum_channel()
        if not forum_id:
            return
        forum = self.bot.get_channel(forum_id)
        if not isinstance(forum, discord.ForumChannel):
            self.log.warning("Configured forum channel %s is not a forum channel the bot can see", forum_id)
            return
        self.store.available_tags = [ForumTag.from_discord(tag) for tag in forum.available_tags]
        self.log.debug("Cached %d forum tags from %s", len(self.store.available_tags), forum.name)

    async def reconcile(self) -> int:
        """Replace the tracked threads with those found on GitHub and return how many there are."""
        threads = await self._get_sync().get_issues()
        self.store.replace_threads(threads)
        return len(self.store)

    async def _forum_thread(self, ctx: commands.Context) -> Optional[discord.Thread]:
        forum_id = await self.config.forum_channel()
        channel = ctx.channel
        if not isinstance(channel, discord.Thread) or not forum_id or channel.parent_id != forum_id:
            await ctx.send("Run this inside a thread of the configured forum.")
            return None
        return channel

    async def _tracked(self, ctx: commands.Context) -> Optional[Thread]:
        channel = await self._forum_thread(ctx)
        if channel is None:
            return None
        thread = self.store.get(channel.id)
        if thread is None:
            await ctx.send("This thread is not linked to a GitHub issue.")
        return thread

    # ----------------------
    # Configuration Commands
    # ----------------------
    @commands.group(name="forumissuesset")
    @commands.is_owner()
    async def forumissuesset(self, ctx: commands.Context) -> None:
        """Configure ForumIssues."""

    @forumissuesset.command(name="token")
    async def forumissuesset_token(self, ctx: commands.Context, token: str) -> None:
        """Set the GitHub Personal Access Token."""
        try:
            gh = Github(auth=Auth.Token(token))
            self.log.debug("Validating GitHub token by fetching user login")
            await asyncio.to_thread(lambda: gh.get_user().login)
        except GithubException:
            await ctx.send("❌ Token validation failed.")
            self.log.warning("GitHub token validation failed")
            return
        except Exception:
            await ctx.send("❌ Error validating token.")
            self.log.exception("Error validating GitHub token")
            return
        await self.config.github_token.set(token)
        await ctx.send("✅ GitHub token set. Run `forumissuesset resync` to apply it.")
        try:
            await ctx.message.delete()
        except discord.HTTPException:
            self.log.debug("Could not delete token message in channel %s", ctx.channel.id)

    @forumissuesset.command(name="repo")
    async def forumissuesset_repo(self, ctx: commands.Context, owner: str, repo: str) -> None:
        """Set the GitHub repository as OWNER REPO (space separated)."""
        await self.config.github_owner.set(owner)
        await self.config.github_repo.set(repo)
        self.log.debug("Repo configured to %s/%s", owner, repo)
        await ctx.send(f"✅ Repository set to `{owner}/{repo}`.")

    @forumissuesset.command(name="forum")
    async def forumissuesset_forum(self, ctx: commands.Context, channel: discord.ForumChannel) -> None:
        """Set the forum channel whose threads become issues."""
        await self.config.forum_channel.set(channel.id)
        await self._refresh_tags()
        await ctx.send(f"✅ Forum set to {channel.mention} ({len(self.store.available_tags)} tags).")

    @forumissuesset.command(name="lockreason")
    async def forumissuesset_lockreason(self, ctx: commands.Context, *, reason: str) -> None:
        """Set the reason sent to GitHub when locking an issue."""
        reason = reason.lower()
        if reason not in LOCK_REASONS:
            await ctx.send(f"❌ Reason must be one of: {', '.join(LOCK_REASONS)}.")
            return
        await self.config.lock_reason.set(reason)
        if self.sync is not None:
            self.sync.lock_reason = reason
        await ctx.send(f"✅ Lock reason set to `{reason}`.")

    @forumissuesset.command(name="show")
    async def forumissuesset_show(self, ctx: commands.Context) -> None:
        """Show the current configuration."""
        conf = await self.config.all()
        forum = f"<#{conf['forum_channel']}>" if conf["forum_channel"] else "not set"
        lines = [
            f"Token: {'set' if conf['github_token'] else 'not set'}",
            f"Repository: {conf['github_owner'] or '?'}/{conf['github_repo'] or '?'}",
            f"Forum: {forum}",
            f"Lock reason: {conf['lock_reason']}",
            f"Tracked threads: {len(self.store)}",
        ]
        await ctx.send("\n".join(lines))

    @forumissuesset.command(name="resync")
    async def forumissuesset_resync(self, ctx: commands.Context) -> None:
        """Reload the configuration and rebuild tracked threads from GitHub."""
        async with ctx.typing():
            try:
                await self._initialize()
            except NotConfigured as e:
                await ctx.send(f"❌ {e}.")
                return
            except Exception:
                self.log.exception("Resync failed")
                await ctx.send("❌ Resync failed. Check logs.")
                return
        await ctx.send(f"✅ Tracking {len(self.store)} threads.")

    # ----------------------
    # Thread commands
    # ----------------------
    @commands.group(name="forumissues")
    @commands.guild_only()
    @commands.admin_or_permissions(manage_threads=True)
    async def forumissues(self, ctx: commands.Context) -> None:
        """Manage the GitHub issue linked to this forum thread."""

    @forumissues.command(name="create")
    async def forumissues_create(self, ctx: commands.Context) -> None:
        """Open a GitHub issue from this thread's starter message."""
        channel = await self._forum_thread(ctx)
        if channel is None:
            return
        if self.store.get(channel.id) is not None or channel.id in self._creating_threads:
            await ctx.send("This thread is already linked to a GitHub issue.")
            return
        self._creating_threads.add(channel.id)
        try:
            sync = self._get_sync()
            starter = channel.starter_message or await channel.fetch_message(channel.id)
            thread = Thread.from_discord(channel)
            self._refresh_identity()
            await self._refresh_tags()
            created = await sync.create_issue(thread, starter, self.store.snapshot())
        except NotConfigured as e:
            await ctx.send(f"❌ {e}.")
            return
        except Exception:
            self.log.exception("Failed to create issue for thread %s", channel.id)
            await ctx.send("❌ Failed to create the issue. Check logs.")
            return
        finally:
            self._creating_threads.discard(channel.id)
        self.store.add(thread)
        await ctx.send(f"✅ Linked to {created.html_url}")

    @forumissues.command(name="comment")
    async def forumissues_comment(self, ctx: commands.Context) -> None:
        """Copy the message you are replying to onto the linked issue."""
        thread = await self._tracked(ctx)
        if thread is None:
            return
        ref = ctx.message.reference
        if ref is None or ref.message_id is None:
            await ctx.send("Reply to the message you want to copy.")
            return
        try:
            message = ref.resolved if isinstance(ref.resolved, discord.Message) else await ctx.channel.fetch_message(ref.message_id)
            self._refresh_identity()
            await self._get_sync().create_issue_comment(thread, message, self.store.snapshot())
        except NotConfigured as e:
            await ctx.send(f"❌ {e}.")
            return
        except Exception:
            self.log.exception("Failed to comment on issue #%s", thread.number)
            await ctx.send("❌ Failed to post the comment. Check logs.")
            return
        await ctx.tick()

    async def _run_state_change(self, ctx: commands.Context, op_name: str, **fields) -> None:
        thread = await self._tracked(ctx)
        if thread is None:
            return
        try:
            sent = await getattr(self._get_sync(), op_name)(thread)
        except NotConfigured as e:
            await ctx.send(f"❌ {e}.")
            return
        except Exception:
            self.log.exception("%s failed for issue #%s", op_name, thread.number)
            await ctx.send("❌ GitHub request failed. Check logs.")
            return
        if not sent:
            await ctx.send("This thread has no issue number yet.")
            return
        for key, value in fields.items():
            setattr(thread, key, value)
        await ctx.tick()

    @forumissues.command(name="close")
    async def forumissues_close(self, ctx: commands.Context) -> None:
        """Close the linked issue."""
        await self._run_state_change(ctx, "close_issue", archived=True)

    @forumissues.command(name="reopen")
    async def forumissues_reopen(self, ctx: commands.Context) -> None:
        """Reopen the linked issue."""
        await self._run_state_change(ctx, "open_issue", archived=False)

    @forumissues.command(name="lock")
    async def forumissues_lock(self, ctx: commands.Context) -> None:
        """Lock the linked issue."""
        await self._run_state_change(ctx, "lock_issue", locked=True)

    @forumissues.command(name="unlock")
    async def forumissues_unlock(self, ctx: commands.Context) -> None:
        """Unlock the linked issue."""
        await self._run_state_change(ctx, "unlock_issue", locked=False)

    @forumissues.command(name="delete")
    async def forumissues_delete(self, ctx: commands.Context) -> None:
        """Delete the linked issue. Needs a token with admin rights on the repo."""
        thread = await self._tracked(ctx)
        if thread is None:
            return
        try:
            outcome = await self._get_sync().delete_issue(thread)
        except NotConfigured as e:
            await ctx.send(f"❌ {e}.")
            return
        if outcome.skipped:
            await ctx.send("This thread has no issue to delete.")
        elif outcome.suppressed:
            self.log.warning("Could not delete issue #%s: %s", thread.number, outcome.error)
            await ctx.send("❌ GitHub refused the deletion. Check logs.")
        else:
            self.store.remove(thread.id)
            await ctx.tick()
