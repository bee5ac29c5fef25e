"""Fetching feed documents: httpx for transport, feedparser for XML."""

import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Literal, Protocol
from urllib.parse import urlparse

import feedparser
import httpx

from airss.config import DEFAULT_FETCH_TIMEOUT, DEFAULT_USER_AGENT
from airss.errors import FeedParseError

FeedFormat = Literal["json", "rss2", "atom"]


@dataclass
class FeedDocument:
    """A fetched feed: format, feed-level title and raw entries."""

    format: FeedFormat
    title: str | None
    entries: list[Any]
    warnings: list[str] = field(default_factory=list)


class Fetcher(Protocol):
    def __call__(self, url: str) -> Awaitable[FeedDocument]: ...


def sanitize(url: str) -> str:
    """Validate a user-supplied feed URL and return it stripped.

    Raises:
        FeedParseError: If the URL is not an absolute http(s) URL.
    """
    url = (url or "").strip()
    try:
        result = urlparse(url)
    except ValueError:
        raise FeedParseError("Invalid URL format")
    if not result.scheme or not result.netloc:
        raise FeedParseError("Invalid URL format")
    if result.scheme not in ("http", "https"):
        raise FeedParseError("Invalid URL format: only http and https are supported")
    return url


async def fetch_document(
    url: str,
    client: httpx.AsyncClient | None = None,
    *,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
) -> FeedDocument:
    """Fetch a JSON Feed, RSS or Atom document from a URL.

    Args:
        url: The feed URL.
        client: Optional shared client; a short-lived one is used otherwise.
        timeout: Request timeout in seconds for an owned client.
        user_agent: User-Agent header for an owned client.

    Returns:
        FeedDocument with the raw entries in document order.

    Raises:
        FeedParseError: If the URL is unreachable or not a valid feed.
    """
    sanitize(url)
    try:
        if client is not None:
            response = await client.get(url)
        else:
            async with httpx.AsyncClient(
                timeout=timeout,
                headers={"User-Agent": user_agent},
                follow_redirects=True,
            ) as owned_client:
                response = await owned_client.get(url)
    except httpx.HTTPError as e:
        raise FeedParseError(f"Could not reach URL: {e}") from e

    if response.status_code in (401, 403):
        raise FeedParseError(
            "Feed requires authentication. Ensure the URL is publicly accessible."
        )
    if response.status_code >= 400:
        raise FeedParseError(f"Could not reach URL: HTTP {response.status_code}")

    content_type = response.headers.get("content-type", "")
    if "json" in content_type or response.content.lstrip().startswith(b"{"):
        return parse_json_document(response.content)
    return parse_xml_document(response.content)


def parse_json_document(raw: bytes | str) -> FeedDocument:
    """Parse a JSON Feed document."""
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise FeedParseError(f"Invalid JSON feed: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise FeedParseError("URL does not point to a valid JSON feed")
    entries = [entry for entry in data["items"] if isinstance(entry, dict)]
    return FeedDocument(format="json", title=data.get("title"), entries=entries)


def parse_xml_document(raw: bytes | str) -> FeedDocument:
    """Parse an RSS or Atom document with feedparser."""
    parsed = feedparser.parse(raw)

    if not parsed.get("version"):
        raise FeedParseError("URL does not point to a valid RSS or Atom feed")

    warnings: list[str] = []
    if parsed.bozo:
        warnings.append(f"Feed has formatting issues: {parsed.bozo_exception}")

    fmt: FeedFormat = "atom" if parsed.version.startswith("atom") else "rss2"
    return FeedDocument(
        format=fmt,
        title=parsed.feed.get("title"),
        entries=list(parsed.entries),
        warnings=warnings,
    )
