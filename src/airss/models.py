"""Data models for AirSS."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

# A feed that was never loaded is always due for a poll
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class Feed:
    """Represents a subscribed feed source."""

    feed_url: str
    title: str
    last_load_time: datetime = EPOCH
    error_count: int = 0
    last_error: str | None = None
    id: int | None = None


@dataclass
class Item:
    """Represents a single entry, normalized from any feed format."""

    url: str
    content_html: str
    title: str | None = None
    image_url: str | None = None
    tags: list[str] = field(default_factory=list)
    date_published: datetime | None = None
    read: bool = False
    feed_id: int | None = None
    feed_title: str = ""
    id: int | None = None
