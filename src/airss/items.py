"""The item log and its reading cursors.

``items`` holds item ids in ascending order, which is also the order they
were pushed. ``reading`` points at the item on screen, ``known`` at the
furthest item ever reached; everything after ``known`` is unread.
"""

import logging

from airss.database import Database
from airss.errors import NotFoundError
from airss.models import Item

logger = logging.getLogger(__name__)


class ItemStore:
    """Cursor bookkeeping over the items table."""

    def __init__(self, db: Database):
        self.db = db
        self.items: list[int] = []
        self.reading = -1
        self.known = -1

    def load(self) -> None:
        """Rebuild the id list and cursors from the persisted read flags."""
        self.items = []
        self.known = -1
        for item_id, read in self.db.scan_items():
            if read:
                self.known += 1
            self.items.append(item_id)
        # both cursors start at the last read item
        self.reading = self.known
        logger.info(
            "Loaded %d items, %d unread", self.length(), self.unread_count()
        )

    def length(self) -> int:
        return len(self.items)

    def reading_cursor(self) -> int:
        return self.reading

    def known_cursor(self) -> int:
        return self.known

    def unread_count(self) -> int:
        return len(self.items) - self.known - 1

    def forward_cursor(self) -> bool:
        """Step to the next item. False if already at the end."""
        if self.reading >= len(self.items) - 1:
            return False
        self.reading += 1
        if self.known < self.reading:
            self.known = self.reading
        return True

    def backward_cursor(self) -> bool:
        """Step to the previous item. False if already at the beginning."""
        if self.reading <= 0:
            return False
        self.reading -= 1
        return True

    def get_current_item(self) -> Item | None:
        if self.reading < 0:
            return None
        return self.db.get_item(self.items[self.reading])

    def mark_read(self, item: Item) -> None:
        """Persist the read flag of the item under the cursor."""
        if item.read:
            return
        item.read = True
        self.db.put_item(item)

    def delete_current_item(self) -> bool:
        """Delete the item under the cursor. False if there is none."""
        if self.reading < 0:
            return False
        item_id = self.items[self.reading]
        try:
            self.db.delete_item(item_id)
        except NotFoundError:
            logger.warning("Item %d was already gone from the store", item_id)
        del self.items[self.reading]
        self.reading -= 1
        self.known -= 1
        return True

    def push_item(self, item: Item) -> int:
        """Store a new item and append it to the log.

        Raises:
            DuplicateError: If an item with the same url exists. The log is
                left untouched.
        """
        item_id = self.db.add_item(item)
        self.items.append(item_id)
        return item_id
