"""
RSS/Atom feed parsing into NewsItem records
"""

from typing import List, Optional, Union

import feedparser
import structlog

from .models import NewsItem
from ..utils.string_utils import strip_markup, truncate_with_ellipsis

logger = structlog.get_logger(__name__)


class RSSParser:
    """Extracts news items from raw feed text.

    Items keep their document order. An entry without a title is dropped;
    everything else is optional. Unparseable input yields an empty list.
    """

    DESCRIPTION_MAX_LENGTH = 200

    def parse(self, xml_text: Union[str, bytes, None], source: str) -> List[NewsItem]:
        if not xml_text:
            return []

        # feedparser treats a str as a URL or path if it looks like one; bytes are always content.
        content = xml_text.encode("utf-8") if isinstance(xml_text, str) else xml_text

        try:
            feed = feedparser.parse(content)
        except Exception as e:
            logger.warning("Feed parsing failed", source=source, error=str(e))
            return []

        if feed.bozo and not feed.entries:
            logger.debug("Feed had no parseable entries", source=source,
                         bozo_exception=str(feed.get("bozo_exception", "")))
            return []

        items = []
        for entry in feed.entries:
            try:
                item = self._parse_entry(entry, source)
            except Exception as e:
                logger.warning("Skipping malformed feed entry", source=source, error=str(e))
                continue
            if item:
                items.append(item)
        return items

    def _parse_entry(self, entry, source: str) -> Optional[NewsItem]:
        title = strip_markup(entry.get("title"))
        if not title:
            return None

        description = strip_markup(entry.get("summary") or entry.get("description"))
        description = truncate_with_ellipsis(description, self.DESCRIPTION_MAX_LENGTH)

        return NewsItem(
            title=title,
            description=description,
            url=(entry.get("link") or "").strip(),
            source=source,
            published_at=entry.get("published") or entry.get("updated") or None,
            image=self._extract_image(entry),
        )

    @staticmethod
    def _extract_image(entry) -> Optional[str]:
        for thumbnail in entry.get("media_thumbnail") or []:
            if thumbnail.get("url"):
                return thumbnail["url"]

        for enclosure in entry.get("enclosures") or []:
            url = enclosure.get("href") or enclosure.get("url")
            if url:
                return url

        for media in entry.get("media_content") or []:
            if media.get("url"):
                return media["url"]

        return None
