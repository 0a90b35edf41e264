# KBSync Pager
# Restartable pull sequence over paged results

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Generic, Optional, TypeVar

from kbsync.logger import SyncLogger

T = TypeVar("T")


class Pager(Generic[T]):
    """
    Turn a page callback plus a leftover buffer into one pull sequence.

    The buffer is drained first, then pages are fetched until the callback
    returns None or an empty page. Items are removed from the buffer as they
    are yielded, so after an aborted consumer the caller's list holds exactly
    the undelivered items. The generator itself cannot be replayed; resume by
    persisting the buffer and building a new Pager around it.
    """

    def __init__(
        self,
        unprocessed_items: list[T],
        get_next_page: Callable[[], Awaitable[Optional[list[T]]]],
        logger: Optional[SyncLogger] = None,
    ):
        """
        Initialize pager.

        Args:
            unprocessed_items: Leftover buffer, shared by reference with the caller.
            get_next_page: Callback returning the next page, or None when done.
            logger: Optional logger for debug output.
        """
        self.unprocessed_items = unprocessed_items
        self.get_next_page = get_next_page
        self.logger = logger or SyncLogger()

    async def fetch(self) -> AsyncIterator[T]:
        """Yield buffered items, then items of every following page."""
        async for item in self._drain():
            yield item

        self.logger.debug("Fetching next page")
        while (next_page := await self.get_next_page()) is not None:
            if not next_page:
                self.logger.debug("Next page is empty")
                return

            # extend in place, the buffer is persisted by reference
            self.unprocessed_items.extend(next_page)
            self.logger.debug(f"Loaded {len(next_page)} items")

            async for item in self._drain():
                yield item

    async def _drain(self) -> AsyncIterator[T]:
        while self.unprocessed_items:
            self.logger.debug(f"yield item ({len(self.unprocessed_items)} left)")
            yield self.unprocessed_items.pop(0)
