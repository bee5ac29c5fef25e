"""Round-robin feed polling, driven by how many items are left unread."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from airss.errors import DuplicateError, InvalidItemError
from airss.events import EventBus, ItemsLoaded
from airss.feed_parser import Fetcher
from airss.feeds import FeedRegistry
from airss.items import ItemStore
from airss.models import Item
from airss.normalizer import normalize_document, oops_item

logger = logging.getLogger(__name__)

# load_feed result when the front feed is not due yet
NOT_DUE = -1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FeedLoader:
    """Pulls new items from feeds until enough are unread."""

    def __init__(
        self,
        registry: FeedRegistry,
        items: ItemStore,
        fetcher: Fetcher,
        events: EventBus,
        *,
        watermark: int,
        min_reload_wait: float,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.registry = registry
        self.items = items
        self.fetcher = fetcher
        self.events = events
        self.watermark = watermark
        self.min_reload_wait = timedelta(seconds=min_reload_wait)
        self.clock = clock

    def should_load_more(self) -> bool:
        return self.items.unread_count() < self.watermark

    async def load_more(self) -> int:
        """Poll feeds in rotation until the watermark is met.

        Stops early when there are no feeds or the feed at the front is not
        due yet, which means no feed is. Returns the number of new items.
        """
        total = 0
        while self.should_load_more():
            feed_id = self.registry.first()
            if feed_id is None:
                break
            num = await self.load_feed(feed_id)
            if num < 0:
                break
            total += num
        return total

    async def load_feed(self, feed_id: int) -> int:
        """Poll one feed if its reload wait has elapsed.

        Returns the number of items pushed, or NOT_DUE.
        """
        now = self.clock()
        feed = self.registry.get(feed_id)
        if now - feed.last_load_time < self.min_reload_wait:
            logger.info(
                "Not loading feed '%s', last loaded at %s",
                feed.feed_url,
                feed.last_load_time.isoformat(),
            )
            return NOT_DUE

        logger.info("Loading feed '%s' ...", feed.feed_url)
        feed.last_load_time = now
        changed = False
        try:
            document = await self.fetcher(feed.feed_url)
            normalized = normalize_document(document)
        except Exception as e:
            # recorded on the feed and shown as an item, never raised
            logger.warning("Feed '%s' error: %s", feed.feed_url, e)
            feed.error_count += 1
            feed.last_error = str(e)
            changed = True
            new_items = [oops_item(str(e))]
            self.events.error(f"The feed '{feed.title}' failed loading: {e}")
        else:
            for warning in normalized.warnings:
                logger.debug("Feed '%s': %s", feed.feed_url, warning)
            if normalized.title and normalized.title != feed.title:
                feed.title = normalized.title
                changed = True
            if feed.error_count or feed.last_error:
                feed.error_count = 0
                feed.last_error = None
                changed = True
            new_items = normalized.items

        try:
            num = self._push_all(feed.id, feed.title, new_items)
            logger.info("Feed '%s': %d new items", feed.feed_url, num)
        finally:
            # a polled feed always goes to the back with its new load time
            self.registry.rotate(feed.id)
            if changed:
                self.registry.update_feed(feed)
            else:
                self.registry.touch_feed(feed)

        if num > 0:
            self.events.emit(
                ItemsLoaded(
                    length=self.items.length(),
                    cursor=self.items.reading_cursor(),
                )
            )
        return num

    def _push_all(self, feed_id: int, feed_title: str, new_items: list[Item]) -> int:
        num = 0
        # oldest first, so ascending ids follow publication order
        for item in reversed(new_items):
            item.feed_id = feed_id
            item.feed_title = feed_title
            try:
                self.items.push_item(item)
            except DuplicateError:
                # seen on an earlier poll
                continue
            except InvalidItemError as e:
                logger.warning("Skipping item %r: %s", item.url, e)
                continue
            num += 1
        return num
