"""Shared test fixtures for AirSS tests."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from airss.config import Settings
from airss.database import Database
from airss.events import EventBus
from airss.feed_parser import FeedDocument
from airss.models import Item


SAMPLE_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com</link>
    <description>A test RSS feed</description>
    <item>
      <title>First Article</title>
      <link>https://example.com/article-1</link>
      <guid>article-1</guid>
      <description>Description of the first article</description>
      <content:encoded><![CDATA[<p>Full text of the first article</p>]]></content:encoded>
      <pubDate>Fri, 13 Feb 2026 10:00:00 GMT</pubDate>
      <category>tech</category>
      <category>news</category>
      <enclosure url="https://example.com/article-1.jpg" length="1234" type="image/jpeg"/>
    </item>
    <item>
      <title>Second Article</title>
      <link>https://example.com/article-2</link>
      <guid>article-2</guid>
      <description>Description of the second article</description>
      <pubDate>Fri, 13 Feb 2026 09:00:00 GMT</pubDate>
      <enclosure url="https://example.com/episode-2.mp3" length="99" type="audio/mpeg"/>
    </item>
    <item>
      <title>No Body</title>
      <link>https://example.com/article-3</link>
    </item>
  </channel>
</rss>"""

SAMPLE_ATOM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <link href="https://example.com"/>
  <subtitle>A test Atom feed</subtitle>
  <id>urn:uuid:feed</id>
  <updated>2026-02-13T10:00:00Z</updated>
  <entry>
    <title>Atom Entry 1</title>
    <link rel="alternate" href="https://example.com/entry-1"/>
    <link rel="enclosure" type="image/png" href="https://example.com/entry-1.png"/>
    <id>urn:uuid:entry-1</id>
    <summary>Summary of entry 1</summary>
    <published>2026-02-12T08:00:00Z</published>
    <updated>2026-02-13T10:00:00Z</updated>
    <category term="science"/>
    <category term="space"/>
  </entry>
  <entry>
    <title>Atom Entry 2</title>
    <link rel="alternate" href="https://example.com/entry-2"/>
    <id>urn:uuid:entry-2</id>
    <content type="html">&lt;p&gt;Content of entry 2&lt;/p&gt;</content>
    <summary>Summary of entry 2</summary>
    <updated>2026-02-11T10:00:00Z</updated>
  </entry>
  <entry>
    <title>Atom Entry 3</title>
    <link rel="alternate" href="https://example.com/entry-3"/>
    <id>urn:uuid:entry-3</id>
    <updated>2026-02-10T10:00:00Z</updated>
  </entry>
</feed>"""

SAMPLE_JSON_FEED = """{
  "version": "https://jsonfeed.org/version/1.1",
  "title": "Test JSON Feed",
  "home_page_url": "https://example.org/",
  "items": [
    {
      "id": "2",
      "url": "https://example.org/second",
      "title": "Second",
      "content_html": "<p>Second post</p>",
      "image": "https://example.org/second.png",
      "date_published": "2026-02-13T10:00:00Z",
      "tags": ["python", "feeds"]
    },
    {
      "id": "1",
      "url": "https://example.org/first",
      "content_text": "First post",
      "date_published": "2026-02-12T10:00:00+02:00"
    },
    {
      "id": "0",
      "url": "https://example.org/empty",
      "title": "No content"
    }
  ]
}"""

SAMPLE_NOT_A_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<html>
  <body>This is not a feed</body>
</html>"""


class FakeClock:
    """A clock the tests move by hand."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 2, 14, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeFetcher:
    """Serves canned documents (or raises canned errors) per url."""

    def __init__(self, responses: dict | None = None):
        self.responses = responses or {}
        self.calls: list[str] = []

    async def __call__(self, url: str) -> FeedDocument:
        self.calls.append(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def json_document(urls: list[str], title: str = "Feed") -> FeedDocument:
    """A JSON Feed document whose entries are listed newest first."""
    return FeedDocument(
        format="json",
        title=title,
        entries=[
            {"url": url, "title": url, "content_text": f"body of {url}"}
            for url in urls
        ],
    )


def make_item(url: str, **kwargs) -> Item:
    kwargs.setdefault("content_html", f"<p>{url}</p>")
    return Item(url=url, **kwargs)


@pytest.fixture
def tmp_db_path():
    """Provide a temporary SQLite database path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    yield path
    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(path + suffix)
        except OSError:
            pass


@pytest.fixture
def db(tmp_db_path):
    """A connected database on a temporary file."""
    database = Database(tmp_db_path)
    database.connect()
    yield database
    database.close()


@pytest.fixture
def events():
    """An EventBus that records everything emitted on it."""
    bus = EventBus()
    bus.received = []
    bus.subscribe(bus.received.append)
    return bus


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_db_path):
    return Settings(db_path=tmp_db_path, watermark=10, min_reload_wait=3600)


@pytest.fixture
def sample_rss_xml():
    """Sample valid RSS 2.0 XML."""
    return SAMPLE_RSS_XML


@pytest.fixture
def sample_atom_xml():
    """Sample valid Atom XML."""
    return SAMPLE_ATOM_XML


@pytest.fixture
def sample_json_feed():
    """Sample valid JSON Feed."""
    return SAMPLE_JSON_FEED


@pytest.fixture
def sample_not_a_feed_xml():
    """Sample XML that is not a feed."""
    return SAMPLE_NOT_A_FEED_XML
