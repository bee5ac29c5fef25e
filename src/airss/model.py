"""The model layer of AirSS: all data fetching and store manipulation.

The UI calls the public methods below, which never block: each one queues
its work behind everything submitted before it and returns an
``asyncio.Task`` for the result. Queued work runs strictly in submission
order, so every operation sees the store exactly as the previous ones left
it. The model never calls the UI; it posts events on its EventBus instead.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable

from airss.config import Settings
from airss.database import Database
from airss.errors import DuplicateError, FeedParseError, ModelNotReadyError, NotFoundError
from airss.events import EventBus, InitDone, ItemsLoaded, ShutDown
from airss.feed_parser import Fetcher, fetch_document, sanitize
from airss.feeds import FeedRegistry
from airss.items import ItemStore
from airss.models import Feed, Item
from airss.scheduler import FeedLoader, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ModelContext:
    """Everything that lives between init and shutdown."""

    db: Database
    registry: FeedRegistry
    items: ItemStore
    loader: FeedLoader


class Model:
    """Serializes every operation against the store into one chain."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        fetcher: Fetcher | None = None,
        events: EventBus | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings or Settings()
        self.events = events or EventBus()
        self.fetcher = fetcher or functools.partial(
            fetch_document,
            timeout=self.settings.fetch_timeout,
            user_agent=self.settings.user_agent,
        )
        self.clock = clock
        self.context: ModelContext | None = None
        self._state: asyncio.Future | None = None

    # --- public entry points, all return immediately ---

    def current_state(self) -> asyncio.Future:
        """The tail of the chain; settles when all queued work is done."""
        if self._state is None:
            self._state = asyncio.get_running_loop().create_future()
            self._state.set_result(None)
        return self._state

    def reinit(self) -> asyncio.Task:
        """(Re)open the store and reload all state. Resolves to None."""
        return self._enqueue(self._reinit)

    def shutdown(self) -> asyncio.Task:
        return self._enqueue(self._shutdown)

    def forward_item(self) -> asyncio.Task:
        """Move to the next item. Resolves to it, or None at the end."""
        value = self._enqueue(self._forward_item)
        # piggy back marking and loading here
        self._enqueue(self._mark_read, value)
        self._enqueue(self._load_more)
        return value

    def backward_item(self) -> asyncio.Task:
        """Move to the previous item. Resolves to it, or None at the start."""
        return self._enqueue(self._backward_item)

    def current_item(self) -> asyncio.Task:
        """Resolves to the item under the cursor, if any."""
        value = self._enqueue(self._current_item)
        self._enqueue(self._load_more)
        return value

    def delete_item(self) -> asyncio.Task:
        """Delete the item under the cursor. Resolves to True/False."""
        return self._enqueue(self._delete_item)

    def subscribe(self, url: str) -> asyncio.Task:
        """Subscribe to a feed url. Resolves to the new Feed or None."""
        value = self._enqueue(self._subscribe, url)
        self._enqueue(self._load_more)
        return value

    def unsubscribe(self, feed_id: int) -> asyncio.Task:
        """Unsubscribe a feed by id. Resolves to True/False."""
        return self._enqueue(self._unsubscribe, feed_id)

    # --- the chain ---

    def _enqueue(self, work: Callable[..., Awaitable[Any]], *args) -> asyncio.Task:
        prev = self._state
        task = asyncio.ensure_future(self._after(prev, work, *args))
        task.add_done_callback(self._report_failure)
        # replaced before the work starts, so the next call queues behind it
        self._state = task
        return task

    @staticmethod
    async def _after(prev: asyncio.Future | None, work, *args):
        if prev is not None:
            # wait for settlement only; a failed step is its caller's problem
            await asyncio.wait([prev])
        return await work(*args)

    @staticmethod
    def _report_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Model operation failed: %s", exc, exc_info=exc)

    def _require(self) -> ModelContext:
        if self.context is None:
            raise ModelNotReadyError("Model is not initialized")
        return self.context

    # --- queued work ---

    async def _reinit(self) -> None:
        if self.context is not None:
            self.context.db.close()
            self.context = None

        db = Database(self.settings.db_path)
        db.connect()
        try:
            registry = FeedRegistry(db)
            registry.load()
            items = ItemStore(db)
            items.load()
        except Exception:
            db.close()
            raise
        loader = FeedLoader(
            registry,
            items,
            self.fetcher,
            self.events,
            watermark=self.settings.watermark,
            min_reload_wait=self.settings.min_reload_wait,
            clock=self.clock,
        )
        self.context = ModelContext(db=db, registry=registry, items=items, loader=loader)
        self._emit_items_loaded(items)
        self.events.emit(InitDone())

    async def _shutdown(self) -> None:
        context = self._require()
        context.db.close()
        # the store is safe; further operations fail until reinit
        self.context = None
        self.events.emit(ShutDown())

    async def _current_item(self) -> Item | None:
        return self._require().items.get_current_item()

    async def _forward_item(self) -> Item | None:
        items = self._require().items
        if not items.forward_cursor():
            self.events.warning("Already at the end")
            return None
        return items.get_current_item()

    async def _backward_item(self) -> Item | None:
        items = self._require().items
        if not items.backward_cursor():
            self.events.warning("Already at the beginning")
            return None
        return items.get_current_item()

    async def _delete_item(self) -> bool:
        items = self._require().items
        if not items.delete_current_item():
            self.events.warning("Nothing to delete")
            return False
        self._emit_items_loaded(items)
        return True

    async def _mark_read(self, step: asyncio.Future) -> None:
        # step settled before we were scheduled, and it produced the item
        # currently under the cursor
        if step.cancelled() or step.exception() is not None:
            return
        item = step.result()
        if item is not None:
            self._require().items.mark_read(item)

    async def _load_more(self) -> None:
        loader = self._require().loader
        if loader.should_load_more():
            await loader.load_more()

    async def _subscribe(self, url: str) -> Feed | None:
        registry = self._require().registry
        try:
            feed_url = sanitize(url)
        except FeedParseError as e:
            self.events.error(f"The feed '{url}' is not valid: {e}")
            return None
        try:
            feed = registry.add_feed(feed_url)
        except DuplicateError:
            self.events.error(f"The feed '{feed_url}' is already subscribed")
            return None
        self.events.info(f"The feed '{feed_url}' is now subscribed")
        return feed

    async def _unsubscribe(self, feed_id: int) -> bool:
        registry = self._require().registry
        try:
            registry.remove_feed(feed_id)
        except NotFoundError:
            self.events.error("Feed not found")
            return False
        self.events.info("Feed unsubscribed")
        return True

    def _emit_items_loaded(self, items: ItemStore) -> None:
        self.events.emit(
            ItemsLoaded(length=items.length(), cursor=items.reading_cursor())
        )
