"""Map raw feed entries of every supported format onto the Item shape.

JSON Feed entries arrive as plain dicts. RSS 2.0 and Atom entries arrive as
feedparser entries, where ``content`` holds ``content:encoded`` / Atom
``<content>``, ``summary`` holds ``<description>`` / Atom ``<summary>``,
``enclosures`` holds RSS enclosures and Atom ``rel="enclosure"`` links, and
``tags`` holds every ``<category>``.

An entry missing content or a url yields None instead of an Item.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from time import struct_time

from airss.feed_parser import FeedDocument
from airss.models import Item

ERROR_TAG = "error"


@dataclass
class NormalizedFeed:
    """Items of one fetched document, in document order (newest first)."""

    title: str
    items: list[Item]
    warnings: list[str] = field(default_factory=list)


def normalize_document(document: FeedDocument) -> NormalizedFeed:
    """Normalize every entry of a fetched document, dropping rejected ones."""
    parse = _PARSERS[document.format]
    warnings = list(document.warnings)
    items = []
    for entry in document.entries:
        item = parse(entry)
        if item is None:
            warnings.append(
                f"Skipping entry without content or url: {_entry_title(entry)}"
            )
            continue
        items.append(item)
    return NormalizedFeed(title=document.title, items=items, warnings=warnings)


def oops_item(text: str) -> Item:
    """Build the placeholder item shown in place of a feed that failed."""
    return Item(
        # a throwaway url keeps the unique index happy
        url=f"urn:airss:error:{uuid.uuid4().hex}",
        content_html=f"<p>If you see this, this feed failed loading: {text}</p>",
        title="Oops...",
        tags=[ERROR_TAG],
        date_published=datetime.now(timezone.utc),
    )


def parse_json_item(entry: dict) -> Item | None:
    """Normalize one JSON Feed item.

    Values of the wrong JSON type count as missing.
    """
    if isinstance(entry.get("content_html"), str):
        content = entry["content_html"]
    elif isinstance(entry.get("content_text"), str):
        content = _paragraph(entry["content_text"])
    else:
        return None

    url = entry.get("url")
    if not isinstance(url, str) or not url:
        return None

    tags = entry.get("tags")
    return Item(
        url=url,
        content_html=content,
        title=_str_or_none(entry.get("title")),
        image_url=_str_or_none(entry.get("image")),
        tags=[tag for tag in tags if isinstance(tag, str)] if isinstance(tags, list) else [],
        date_published=_parse_iso_date(entry.get("date_published")),
    )


def parse_rss2_item(entry) -> Item | None:
    """Normalize one RSS 2.0 item.

    ``content:encoded`` wins over ``description``. The description is HTML
    already in RSS 2.0, so it is used as-is.
    """
    content = _first_content(entry) or entry.get("summary")
    if not content:
        return None

    url = entry.get("link")
    if not url:
        return None

    return Item(
        url=url,
        content_html=content,
        title=entry.get("title") or None,
        image_url=_image_enclosure(entry),
        tags=_tags(entry),
        date_published=_struct_to_dt(entry.get("published_parsed")),
    )


def parse_atom_item(entry) -> Item | None:
    """Normalize one Atom entry."""
    content = _first_content(entry)
    if not content:
        summary = entry.get("summary")
        if not summary:
            return None
        content = _paragraph(summary)

    url = _atom_link(entry)
    if not url:
        return None

    published = _struct_to_dt(entry.get("published_parsed"))
    if published is None:
        published = _struct_to_dt(entry.get("updated_parsed"))

    return Item(
        url=url,
        content_html=content,
        title=entry.get("title") or None,
        image_url=_image_enclosure(entry),
        tags=_tags(entry),
        date_published=published,
    )


_PARSERS = {
    "json": parse_json_item,
    "rss2": parse_rss2_item,
    "atom": parse_atom_item,
}


def _paragraph(text: str) -> str:
    return f"<p>{text}</p>"


def _str_or_none(value) -> str | None:
    return value if isinstance(value, str) else None


def _first_content(entry) -> str | None:
    for content in entry.get("content") or []:
        value = content.get("value")
        if value:
            return value
    return None


def _atom_link(entry) -> str | None:
    links = entry.get("links") or []
    for link in links:
        if link.get("rel") == "alternate" and link.get("href"):
            return link["href"]
    for link in links:
        if link.get("href"):
            return link["href"]
    return entry.get("link") or None


def _image_enclosure(entry) -> str | None:
    enclosures = entry.get("enclosures") or []
    if not enclosures:
        return None
    # only the first enclosure counts
    enclosure = enclosures[0]
    media_type = enclosure.get("type") or ""
    if media_type.split("/")[0] == "image":
        return enclosure.get("href")
    return None


def _tags(entry) -> list[str]:
    tags = []
    for tag in entry.get("tags") or []:
        term = tag.get("term")
        if term:
            tags.append(term)
    return tags


def _struct_to_dt(time_struct) -> datetime | None:
    """feedparser normalizes dates to UTC struct_time."""
    if not isinstance(time_struct, struct_time):
        return None
    try:
        return datetime(*time_struct[:6], tzinfo=timezone.utc)
    except (ValueError, OverflowError):
        return None


def _parse_iso_date(value) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _entry_title(entry) -> str:
    title = entry.get("title") if hasattr(entry, "get") else None
    return title or "unknown"
