from typing import Dict, Iterable, List, Optional

from .models import BotIdentity, ForumTag, StoreSnapshot, Thread


class ThreadStore:
    """
    In-memory cache of tracked threads, forum tags and the bot identity.

    Nothing here is persisted; threads are rebuilt from GitHub on load.
    """

    def __init__(self) -> None:
        self._threads: Dict[str, Thread] = {}
        self.available_tags: List[ForumTag] = []
        self.bot: Optional[BotIdentity] = None

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(bot=self.bot, available_tags=tuple(self.available_tags))

    @property
    def threads(self) -> List[Thread]:
        return list(self._threads.values())

    def get(self, thread_id) -> Optional[Thread]:
        return self._threads.get(str(thread_id))

    def add(self, thread: Thread) -> None:
        self._threads[thread.id] = thread

    def remove(self, thread_id) -> Optional[Thread]:
        return self._threads.pop(str(thread_id), None)

    def replace_threads(self, threads: Iterable[Thread]) -> None:
        # Later issues win when several point at the same thread
        self._threads = {t.id: t for t in threads}

    def __len__(self) -> int:
        return len(self._threads)
