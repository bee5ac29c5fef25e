"""SQLite database operations for AirSS."""

import json
import sqlite3
from datetime import datetime
from typing import Iterator

from airss.errors import DuplicateError, InvalidItemError, NotFoundError
from airss.models import EPOCH, Feed, Item

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS feeds (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    feed_url TEXT UNIQUE NOT NULL,
    title TEXT NOT NULL,
    last_load_time TEXT NOT NULL,
    error_count INTEGER DEFAULT 0,
    last_error TEXT
);

CREATE TABLE IF NOT EXISTS items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT UNIQUE NOT NULL,
    read INTEGER DEFAULT 0,
    feed_id INTEGER,
    feed_title TEXT NOT NULL DEFAULT '',
    date_published TEXT,
    content_html TEXT NOT NULL,
    image_url TEXT,
    title TEXT,
    tags TEXT NOT NULL DEFAULT '[]'
);
"""


class Database:
    """SQLite store for feeds and items.

    Ids are assigned by AUTOINCREMENT so they grow in insertion order and are
    never reused. Unique violations and missing keys surface as
    DuplicateError and NotFoundError.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open database connection and initialize schema."""
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    # --- Item operations ---

    def add_item(self, item: Item) -> int:
        """Insert an item and return its assigned id.

        Raises:
            DuplicateError: If an item with the same url is already stored.
            InvalidItemError: If a field has a type SQLite cannot bind.
        """
        try:
            tags = json.dumps(item.tags)
        except TypeError as e:
            raise InvalidItemError(f"Unsupported tags: {e}") from e
        try:
            cursor = self.conn.execute(
                """INSERT INTO items (url, read, feed_id, feed_title,
                   date_published, content_html, image_url, title, tags)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    item.url,
                    int(item.read),
                    item.feed_id,
                    item.feed_title,
                    _dt_to_str(item.date_published),
                    item.content_html,
                    item.image_url,
                    item.title,
                    tags,
                ),
            )
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise DuplicateError(f"Item already stored: {item.url}") from e
        except (sqlite3.InterfaceError, sqlite3.ProgrammingError) as e:
            self.conn.rollback()
            raise InvalidItemError(str(e)) from e
        self.conn.commit()
        item.id = cursor.lastrowid
        return item.id

    def get_item(self, item_id: int) -> Item | None:
        """Look up an item by its id."""
        row = self.conn.execute(
            "SELECT * FROM items WHERE id = ?", (item_id,)
        ).fetchone()
        return _row_to_item(row) if row else None

    def put_item(self, item: Item) -> None:
        """Write the full item record, keyed by its id."""
        self.conn.execute(
            """INSERT OR REPLACE INTO items (id, url, read, feed_id, feed_title,
               date_published, content_html, image_url, title, tags)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                item.id,
                item.url,
                int(item.read),
                item.feed_id,
                item.feed_title,
                _dt_to_str(item.date_published),
                item.content_html,
                item.image_url,
                item.title,
                json.dumps(item.tags),
            ),
        )
        self.conn.commit()

    def delete_item(self, item_id: int) -> None:
        """Delete an item.

        Raises:
            NotFoundError: If no item has this id.
        """
        cursor = self.conn.execute("DELETE FROM items WHERE id = ?", (item_id,))
        self.conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(f"No item with id {item_id}")

    def scan_items(self) -> Iterator[tuple[int, bool]]:
        """Yield (id, read) for every item in ascending id order."""
        for row in self.conn.execute("SELECT id, read FROM items ORDER BY id"):
            yield row["id"], bool(row["read"])

    # --- Feed operations ---

    def add_feed(self, feed: Feed) -> Feed:
        """Insert a new feed and return it with its assigned id.

        Raises:
            DuplicateError: If a feed with the same url is already stored.
        """
        try:
            cursor = self.conn.execute(
                """INSERT INTO feeds (feed_url, title, last_load_time,
                   error_count, last_error)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    feed.feed_url,
                    feed.title,
                    _dt_to_str(feed.last_load_time),
                    feed.error_count,
                    feed.last_error,
                ),
            )
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise DuplicateError(f"Feed already subscribed: {feed.feed_url}") from e
        self.conn.commit()
        feed.id = cursor.lastrowid
        return feed

    def get_feed(self, feed_id: int) -> Feed | None:
        """Look up a feed by its id."""
        row = self.conn.execute(
            "SELECT * FROM feeds WHERE id = ?", (feed_id,)
        ).fetchone()
        return _row_to_feed(row) if row else None

    def put_feed(self, feed: Feed) -> None:
        """Persist the full feed record.

        Raises:
            NotFoundError: If the feed is no longer stored.
        """
        cursor = self.conn.execute(
            """UPDATE feeds SET feed_url = ?, title = ?, last_load_time = ?,
               error_count = ?, last_error = ? WHERE id = ?""",
            (
                feed.feed_url,
                feed.title,
                _dt_to_str(feed.last_load_time),
                feed.error_count,
                feed.last_error,
                feed.id,
            ),
        )
        self.conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(f"No feed with id {feed.id}")

    def touch_feed(self, feed_id: int, timestamp: datetime) -> None:
        """Update only a feed's last_load_time."""
        self.conn.execute(
            "UPDATE feeds SET last_load_time = ? WHERE id = ?",
            (_dt_to_str(timestamp), feed_id),
        )
        self.conn.commit()

    def delete_feed(self, feed_id: int) -> None:
        """Delete a feed. Its items are kept.

        Raises:
            NotFoundError: If no feed has this id.
        """
        cursor = self.conn.execute("DELETE FROM feeds WHERE id = ?", (feed_id,))
        self.conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(f"No feed with id {feed_id}")

    def scan_feeds(self) -> list[Feed]:
        """Return all feeds, least recently loaded first."""
        rows = self.conn.execute(
            "SELECT * FROM feeds ORDER BY last_load_time, id"
        ).fetchall()
        return [_row_to_feed(r) for r in rows]


# --- Helper functions ---


def _dt_to_str(dt: datetime | None) -> str | None:
    """Convert datetime to ISO string for storage."""
    return dt.isoformat() if dt else None


def _str_to_dt(s: str | None) -> datetime | None:
    """Convert stored ISO string back to datetime."""
    if not s:
        return None
    return datetime.fromisoformat(s)


def _row_to_feed(row: sqlite3.Row) -> Feed:
    """Convert a database row to a Feed dataclass."""
    return Feed(
        id=row["id"],
        feed_url=row["feed_url"],
        title=row["title"],
        last_load_time=_str_to_dt(row["last_load_time"]) or EPOCH,
        error_count=row["error_count"],
        last_error=row["last_error"],
    )


def _row_to_item(row: sqlite3.Row) -> Item:
    """Convert a database row to an Item dataclass."""
    return Item(
        id=row["id"],
        url=row["url"],
        read=bool(row["read"]),
        feed_id=row["feed_id"],
        feed_title=row["feed_title"],
        date_published=_str_to_dt(row["date_published"]),
        content_html=row["content_html"],
        image_url=row["image_url"],
        title=row["title"],
        tags=json.loads(row["tags"]),
    )
