import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set

logger = logging.getLogger(__name__)

# Delay after the last keystroke before a search is sent
SEARCH_DEBOUNCE_SECONDS = 0.3


class Debouncer:
    """
    Delay a coroutine call until no new trigger has arrived for `delay` seconds.
    A trigger cancels the previous call only while it is still waiting; once
    the callback has started it runs to completion.
    """

    def __init__(self, delay: float, callback: Callable[..., Awaitable[Any]]):
        self.delay = delay
        self.callback = callback
        self._pending: Optional[asyncio.Task] = None
        self._running: Set[asyncio.Task] = set()

    def trigger(self, *args, **kwargs) -> asyncio.Task:
        self.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._run(args, kwargs))
        return self._pending

    def cancel(self):
        task = self._pending
        if task is not None and not task.done() and task not in self._running:
            task.cancel()
        self._pending = None

    async def _run(self, args, kwargs):
        await asyncio.sleep(self.delay)
        task = asyncio.current_task()
        self._running.add(task)
        try:
            return await self.callback(*args, **kwargs)
        finally:
            self._running.discard(task)

    async def flush(self):
        """Wait for the latest call, if any, and return its result"""
        if self._pending is None:
            return None
        return await self._pending


class SearchBox:
    """Feed search input: keystrokes update the query, the feed follows after the debounce"""

    def __init__(self, search: Callable[[str], Awaitable[List[dict]]], delay: float = SEARCH_DEBOUNCE_SECONDS):
        self._search = search
        self.query = ""
        self.results: List[dict] = []
        self.requests_sent = 0
        self._debouncer = Debouncer(delay, self._fetch)

    def type(self, query: str) -> asyncio.Task:
        self.query = query
        return self._debouncer.trigger(query)

    async def _fetch(self, query: str) -> List[dict]:
        self.requests_sent += 1
        try:
            self.results = await self._search(query)
        except Exception as e:
            logger.error("Error fetching posts: %s", e)
            raise
        return self.results

    async def settle(self) -> List[dict]:
        await self._debouncer.flush()
        return self.results
