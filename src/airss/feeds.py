"""Subscribed feeds and their round-robin polling order."""

import logging
from collections import deque

from airss.database import Database
from airss.errors import NotFoundError
from airss.models import Feed

logger = logging.getLogger(__name__)


class FeedRegistry:
    """Feed records plus the in-memory rotation that decides who is next."""

    def __init__(self, db: Database):
        self.db = db
        self.order: deque[int] = deque()

    def load(self) -> None:
        """Rebuild the rotation, least recently loaded feed first."""
        self.order = deque(feed.id for feed in self.db.scan_feeds())
        logger.info("Loaded %d feeds", len(self.order))

    def feed_ids(self) -> list[int]:
        return list(self.order)

    def add_feed(self, feed_url: str) -> Feed:
        """Subscribe a new feed. It joins the front so it is polled next.

        Raises:
            DuplicateError: If the url is already subscribed.
        """
        feed = self.db.add_feed(Feed(feed_url=feed_url, title=feed_url))
        self.order.appendleft(feed.id)
        return feed

    def remove_feed(self, feed_id: int) -> None:
        """Unsubscribe a feed.

        Raises:
            NotFoundError: If no feed has this id.
        """
        self.db.delete_feed(feed_id)
        if feed_id in self.order:
            self.order.remove(feed_id)

    def get(self, feed_id: int) -> Feed:
        feed = self.db.get_feed(feed_id)
        if feed is None:
            raise NotFoundError(f"No feed with id {feed_id}")
        return feed

    def update_feed(self, feed: Feed) -> None:
        self.db.put_feed(feed)

    def touch_feed(self, feed: Feed) -> None:
        """Persist only the last load time."""
        self.db.touch_feed(feed.id, feed.last_load_time)

    def first(self) -> int | None:
        """Peek at the feed due next, if any."""
        return self.order[0] if self.order else None

    def rotate(self, feed_id: int | None = None) -> None:
        """Move a feed (the front one by default) to the back of the rotation."""
        if feed_id is None:
            self.order.rotate(-1)
        elif feed_id in self.order:
            self.order.remove(feed_id)
            self.order.append(feed_id)
